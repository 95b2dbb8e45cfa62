"""
Unit tests for configuration manager
"""

import pytest
import json

from utils.config_manager import UnifiedConfigManager
from utils.exceptions import ConfigurationError


@pytest.mark.unit
class TestConfigManager:
    """Test cases for UnifiedConfigManager class"""

    @pytest.fixture
    def sample_config(self):
        """Sample configuration data"""
        return {
            "database_config": {
                "db_path": "data/test.db",
                "quotes_table": "quotes",
                "users_table": "users"
            },
            "auth_config": {
                "jwks_uri": "https://auth.quotes.test/.well-known/jwks.json",
                "audience": "https://quotes.test/api",
                "claims_namespace": "https://quotes.test/"
            },
            "quotes_config": {
                "random_fetch_size": 7
            },
            "api_config": {
                "host": "localhost",
                "port": 8000
            }
        }

    @pytest.fixture
    def config_dir(self, sample_config, tmp_path):
        """Create temporary config directory"""
        with open(tmp_path / "config.json", 'w') as f:
            json.dump(sample_config, f)
        return tmp_path

    @pytest.fixture
    def config_manager(self, config_dir):
        return UnifiedConfigManager(str(config_dir), environ={})

    def test_get_and_get_nested(self, config_manager):
        assert "auth_config" in config_manager
        assert config_manager.get_nested("api_config.host") == "localhost"
        assert config_manager.get_nested("api_config.missing", "default") == "default"
        assert config_manager.get("missing") is None

    def test_typed_sections(self, config_manager):
        auth = config_manager.get_auth_config()
        assert auth.jwks_uri.endswith("jwks.json")
        assert auth.issuer is None
        assert auth.algorithms == ["RS256"]
        assert auth.jwks_requests_per_minute == 5
        assert auth.cache_keys is True

        assert config_manager.get_quotes_config().random_fetch_size == 7
        assert config_manager.get_api_config().port == 8000

    def test_database_url_defaults_to_sqlite_path(self, config_manager):
        db_config = config_manager.get_database_config()
        assert db_config.url is None
        assert db_config.get_async_url() == "sqlite+aiosqlite:///data/test.db"

    def test_files_merge_in_name_order(self, config_dir):
        with open(config_dir / "zz_override.json", 'w') as f:
            json.dump({"quotes_config": {"random_fetch_size": 3}}, f)

        manager = UnifiedConfigManager(str(config_dir), environ={})
        assert manager.get_quotes_config().random_fetch_size == 3

    def test_environment_overrides(self, config_dir):
        manager = UnifiedConfigManager(str(config_dir), environ={
            "QUOTES_DATABASE_URL": "sqlite+aiosqlite:///:memory:",
            "QUOTES_JWKS_URI": "https://other.test/jwks.json",
            "QUOTES_JWT_ALGORITHMS": "RS256, ES256",
            "QUOTES_JWKS_RATE_LIMIT": "false",
            "QUOTES_JWKS_REQUESTS_PER_MINUTE": "10",
            "QUOTES_RANDOM_FETCH_SIZE": "2",
            "QUOTES_USERS_TABLE": "members",
        })

        auth = manager.get_auth_config()
        assert auth.jwks_uri == "https://other.test/jwks.json"
        assert auth.algorithms == ["RS256", "ES256"]
        assert auth.rate_limit is False
        assert auth.jwks_requests_per_minute == 10
        assert manager.get_quotes_config().random_fetch_size == 2
        assert manager.get_database_config().get_async_url() == "sqlite+aiosqlite:///:memory:"
        assert manager.get_database_config().users_table == "members"

    def test_empty_environment_value_is_ignored(self, config_dir):
        manager = UnifiedConfigManager(str(config_dir), environ={"QUOTES_JWKS_URI": ""})
        assert manager.get_auth_config().jwks_uri.endswith("jwks.json")

    def test_invalid_environment_value(self, config_dir):
        with pytest.raises(ConfigurationError):
            UnifiedConfigManager(str(config_dir), environ={"QUOTES_API_PORT": "eighty"})

    def test_non_positive_fetch_size_falls_back(self, config_dir):
        manager = UnifiedConfigManager(str(config_dir), environ={"QUOTES_RANDOM_FETCH_SIZE": "0"})
        assert manager.get_quotes_config().random_fetch_size == 5

    def test_invalid_json(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            UnifiedConfigManager(str(tmp_path), environ={})

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigurationError):
            UnifiedConfigManager(str(tmp_path / "missing"), environ={})

    def test_set_nested_refreshes_typed_section(self, config_manager):
        assert config_manager.get_quotes_config().random_fetch_size == 7

        config_manager.set_nested("quotes_config.random_fetch_size", 9)
        assert config_manager.get_quotes_config().random_fetch_size == 9

    def test_update_from_dict(self, config_manager):
        config_manager.update_from_dict({"api_config": {"port": 9000}})
        assert config_manager.get_api_config().port == 9000
        assert config_manager.to_dict()["api_config"] == {"port": 9000}

    def test_invalid_field_keeps_rest_of_section(self, config_dir, sample_config, caplog):
        sample_config["auth_config"].update({"issuer": "https://auth.quotes.test/", "jwks_requests_per_minute": "five"})
        sample_config["api_config"]["workers"] = "many"
        with open(config_dir / "config.json", 'w') as f:
            json.dump(sample_config, f)

        manager = UnifiedConfigManager(str(config_dir), environ={})
        with caplog.at_level("ERROR", logger="Config"):
            auth = manager.get_auth_config()
            api = manager.get_api_config()

        assert auth.jwks_uri.endswith("jwks.json")
        assert auth.audience == "https://quotes.test/api"
        assert auth.issuer == "https://auth.quotes.test/"
        assert auth.jwks_requests_per_minute == 5
        assert (api.host, api.workers) == ("localhost", 1)
        assert "auth_config.jwks_requests_per_minute" in caplog.text
        assert "api_config.workers" in caplog.text

    def test_workers_environment_override(self, config_dir):
        manager = UnifiedConfigManager(str(config_dir), environ={"QUOTES_API_WORKERS": "4"})
        assert manager.get_api_config().workers == 4
