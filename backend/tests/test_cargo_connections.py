"""
Tests for carrier connection settings.
"""
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import UnauthorizedError
from app.models.cargo import CargoConnection
from app.services.cargo_connections import CargoConnectionService
from app.services.encryption import decrypt_credential

from conftest import scalar_result, scalars_result


class TestGetActive:

    @pytest.mark.asyncio
    async def test_returns_connection(self, mock_db):
        connection = CargoConnection(organization_id="org-1", provider="Surat", username="acme", is_active=True)
        mock_db.execute.return_value = scalar_result(connection)

        assert await CargoConnectionService(mock_db).get_active("org-1") is connection

    @pytest.mark.asyncio
    async def test_none(self, mock_db):
        mock_db.execute.return_value = scalar_result(None)

        assert await CargoConnectionService(mock_db).get_active("org-1", "Surat") is None


class TestSave:

    @pytest.mark.asyncio
    async def test_creates_encrypted(self, mock_db):
        mock_db.execute.return_value = scalar_result(None)

        connection = await CargoConnectionService(mock_db).save_connection("org-1", "Surat", "acme", "s3cr3t")

        mock_db.add.assert_called_once_with(connection)
        assert connection.username == "acme"
        assert connection.password_encrypted != "s3cr3t"
        assert decrypt_credential(connection.password_encrypted) == "s3cr3t"
        assert connection.is_active is True
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_reactivates_and_keeps_password(self, mock_db):
        existing = CargoConnection(organization_id="org-1", provider="Surat", username="old",
                                   password_encrypted="stored", is_active=False)
        mock_db.execute.return_value = scalar_result(existing)

        connection = await CargoConnectionService(mock_db).save_connection("org-1", "Surat", "new")

        assert connection is existing
        assert connection.username == "new"
        assert connection.password_encrypted == "stored"
        assert connection.is_active is True
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_tenant(self, mock_db):
        with pytest.raises(UnauthorizedError):
            await CargoConnectionService(mock_db).save_connection("", "Surat", "acme", "x")


class TestListAndDelete:

    @pytest.mark.asyncio
    async def test_list(self, mock_db):
        rows = [CargoConnection(organization_id="org-1", provider="Surat", username="acme")]
        mock_db.execute.return_value = scalars_result(rows)

        assert await CargoConnectionService(mock_db).list_connections("org-1") == rows

    @pytest.mark.asyncio
    async def test_delete(self, mock_db):
        result = MagicMock()
        result.rowcount = 1
        mock_db.execute.return_value = result

        assert await CargoConnectionService(mock_db).delete_connection("org-1", "Surat") is True
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_missing(self, mock_db):
        result = MagicMock()
        result.rowcount = 0
        mock_db.execute.return_value = result

        assert await CargoConnectionService(mock_db).delete_connection("org-1", "Fedex") is False
