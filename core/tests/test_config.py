import pytest

from core.config import ConfigurationError, Settings, require_platform_credentials


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("ALLOWED_ORIGINS", "LOG_LEVEL", "SIGNED_URL_TTL_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = Settings(_env_file=None)

        assert config.signed_url_ttl_seconds == 3600
        assert config.log_level == "INFO"
        assert config.origins == ["*"]

    def test_front_end_variable_names_accepted(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        monkeypatch.setenv("VITE_SUPABASE_URL", "https://project.supabase.co")
        monkeypatch.setenv("VITE_SUPABASE_ANON_KEY", "anon-key")

        config = Settings(_env_file=None)

        assert config.supabase_url == "https://project.supabase.co"
        assert config.supabase_anon_key == "anon-key"

    def test_origins_split(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example.com, https://b.example.com,")

        assert Settings(_env_file=None).origins == ["https://a.example.com", "https://b.example.com"]


class TestPlatformCredentials:
    """Tests for the credential check used by scripts."""

    def test_missing_everything(self, monkeypatch):
        for name in (
            "SUPABASE_URL", "VITE_SUPABASE_URL", "SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY",
            "SUPABASE_SERVICE_ROLE_KEY", "SERVICE_ROLE_KEY",
        ):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ConfigurationError) as exc:
            require_platform_credentials(Settings(_env_file=None))

        assert "SUPABASE_URL" in str(exc.value)
        assert "SUPABASE_ANON_KEY" in str(exc.value)

    def test_service_key_preferred(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co/")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")

        url, key = require_platform_credentials(Settings(_env_file=None))

        assert url == "https://project.supabase.co"
        assert key == "service"
