"""
Tests for application settings.
"""
import pytest

from app.core.config import DEFAULT_CORS_ORIGINS, Settings

PROD_DB = "postgresql+asyncpg://kargo:pw@db.internal:5432/kargo"
PROD_KEY = "q8Zr1vLk0-9xN3tYwE2mB7aUu4Hc6dJf"


def make_settings(**overrides):
    values = {"DATABASE_URL": PROD_DB, "SECRET_KEY": PROD_KEY, "ENVIRONMENT": "production", "DEBUG": False}
    values.update(overrides)
    return Settings(**values)


class TestDatabaseUrl:

    @pytest.mark.parametrize("url", [
        "postgres://u:p@db:5432/kargo",
        "postgresql://u:p@db:5432/kargo",
    ])
    def test_rewritten_for_asyncpg(self, url):
        assert make_settings(DATABASE_URL=url).DATABASE_URL == "postgresql+asyncpg://u:p@db:5432/kargo"

    def test_asyncpg_url_untouched(self):
        assert make_settings().DATABASE_URL == PROD_DB


class TestCorsOrigins:

    def test_json_array(self):
        settings = make_settings(CORS_ORIGINS='["https://panel.example.com"]')
        assert settings.CORS_ORIGINS == ["https://panel.example.com"]

    def test_comma_separated(self):
        settings = make_settings(CORS_ORIGINS="https://a.example.com, https://b.example.com")
        assert settings.CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]

    def test_blank_uses_defaults(self):
        settings = make_settings(ENVIRONMENT="development", CORS_ORIGINS="  ")
        assert settings.CORS_ORIGINS == DEFAULT_CORS_ORIGINS


class TestProductionValidation:

    def test_valid_production_config(self):
        settings = make_settings(CORS_ORIGINS="https://panel.example.com")
        assert settings.production_problems() == ([], [])

    def test_debug_rejected(self):
        with pytest.raises(ValueError, match="DEBUG"):
            make_settings(DEBUG=True)

    def test_placeholder_secret_rejected(self):
        with pytest.raises(ValueError, match="SECRET_KEY"):
            make_settings(SECRET_KEY="changeme-please")

    def test_local_database_rejected(self):
        with pytest.raises(ValueError, match="local database"):
            make_settings(DATABASE_URL="postgresql+asyncpg://u:p@localhost:5432/kargo")

    def test_plain_http_carrier_rejected(self):
        with pytest.raises(ValueError, match="https"):
            make_settings(SURAT_SERVICE_URL="http://webservices.suratkargo.com.tr/services.asmx")

    def test_local_cors_only_warns(self):
        settings = make_settings()
        errors, warnings = settings.production_problems()
        assert errors == []
        assert warnings == ["local CORS origin http://localhost:3000", "local CORS origin http://127.0.0.1:3000"]

    def test_development_skips_checks(self):
        settings = make_settings(ENVIRONMENT="development", DEBUG=True, SECRET_KEY="changeme")
        assert settings.DEBUG is True
