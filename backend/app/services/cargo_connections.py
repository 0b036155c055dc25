"""
Carrier connection settings

Per-tenant carrier credentials. Passwords are encrypted before they are stored
and only decrypted when a carrier client is built.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import UnauthorizedError
from app.models.cargo import CargoConnection
from app.services.encryption import encrypt_credential

logger = logging.getLogger(__name__)


class CargoConnectionService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active(self, organization_id: str, provider: Optional[str] = None) -> Optional[CargoConnection]:
        """Active connection of a tenant for a provider, or None."""
        provider = provider or settings.CARGO_PROVIDER_NAME
        result = await self.db.execute(
            select(CargoConnection).where(
                CargoConnection.organization_id == organization_id,
                CargoConnection.provider == provider,
                CargoConnection.is_active == True,
            ).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_connections(self, organization_id: str) -> List[CargoConnection]:
        if not organization_id:
            raise UnauthorizedError("No organization context")
        result = await self.db.execute(
            select(CargoConnection)
            .where(CargoConnection.organization_id == organization_id)
            .order_by(CargoConnection.provider)
        )
        return list(result.scalars().all())

    async def save_connection(
        self,
        organization_id: str,
        provider: str,
        username: str,
        password: Optional[str] = None,
    ) -> CargoConnection:
        """
        Create or update a tenant's connection for a provider.

        Saving always re-activates the connection. A missing password keeps the
        stored one.
        """
        if not organization_id:
            raise UnauthorizedError("No organization context")

        result = await self.db.execute(
            select(CargoConnection).where(
                CargoConnection.organization_id == organization_id,
                CargoConnection.provider == provider,
            )
        )
        connection = result.scalar_one_or_none()

        if connection is None:
            connection = CargoConnection(
                organization_id=organization_id,
                provider=provider,
            )
            self.db.add(connection)

        connection.username = username
        if password:
            connection.password_encrypted = encrypt_credential(password)
        connection.is_active = True

        await self.db.commit()
        await self.db.refresh(connection)

        logger.info(f"Saved {provider} cargo connection for organization {organization_id}")
        return connection

    async def delete_connection(self, organization_id: str, provider: str) -> bool:
        """Remove a tenant's connection. Returns whether a row was deleted."""
        if not organization_id:
            raise UnauthorizedError("No organization context")

        result = await self.db.execute(
            delete(CargoConnection).where(
                CargoConnection.organization_id == organization_id,
                CargoConnection.provider == provider,
            )
        )
        await self.db.commit()

        deleted = bool(result.rowcount)
        if deleted:
            logger.info(f"Deleted {provider} cargo connection for organization {organization_id}")
        return deleted
