"""Tests for configuration loading."""

import os
import pytest
import tempfile
from pathlib import Path

from toornament_core.config.loader import load_yaml, save_yaml, load_config, ConfigManager
from toornament_core.config.models import ClientConfig, resolve_env_vars

ENV_VARS = (
    "TOORNAMENT_API_KEY",
    "TOORNAMENT_CLIENT_ID",
    "TOORNAMENT_CLIENT_SECRET",
    "TOORNAMENT_API_URL",
    "TOORNAMENT_CONFIG_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestEnvVarResolution:
    """Test environment variable resolution."""

    def test_resolve_simple_var(self):
        """Test resolving simple environment variable."""
        os.environ["TEST_VAR"] = "test_value"
        try:
            result = resolve_env_vars("${TEST_VAR}")
            assert result == "test_value"
        finally:
            del os.environ["TEST_VAR"]

    def test_resolve_with_default(self):
        """Test resolving variable with default."""
        # Variable not set - use default
        result = resolve_env_vars("${UNSET_VAR:-default_value}")
        assert result == "default_value"

        # Variable set - use value
        os.environ["SET_VAR"] = "actual_value"
        try:
            result = resolve_env_vars("${SET_VAR:-default_value}")
            assert result == "actual_value"
        finally:
            del os.environ["SET_VAR"]

    def test_resolve_missing_required(self):
        """Test error on missing required variable."""
        with pytest.raises(ValueError) as exc_info:
            resolve_env_vars("${MISSING_REQUIRED_VAR}")

        assert "MISSING_REQUIRED_VAR" in str(exc_info.value)

    def test_no_var_passthrough(self):
        """Test that non-variable strings pass through unchanged."""
        result = resolve_env_vars("regular_string")
        assert result == "regular_string"


class TestYamlLoader:
    """Test YAML loading and saving."""

    def test_load_yaml_with_env_vars(self):
        """Test loading YAML with environment variables."""
        os.environ["TEST_CLIENT_SECRET"] = "secret"

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("""
toornament:
  client_secret: "${TEST_CLIENT_SECRET}"
  api_url: "https://api.test.com"
""")
            f.flush()

            try:
                data = load_yaml(Path(f.name))
                assert data["toornament"]["client_secret"] == "secret"
                assert data["toornament"]["api_url"] == "https://api.test.com"
            finally:
                os.unlink(f.name)
                del os.environ["TEST_CLIENT_SECRET"]

    def test_load_empty_yaml(self):
        """Test an empty file loads as an empty dict."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "empty.yaml"
            path.write_text("")

            assert load_yaml(path) == {}

    def test_save_yaml(self):
        """Test saving YAML file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "nested" / "test.yaml"

            data = {"key": "value", "nested": {"a": 1, "b": 2}}
            save_yaml(data, path)

            loaded = load_yaml(path)
            assert loaded == data

    def test_load_yaml_file_not_found(self):
        """Test error on missing file."""
        with pytest.raises(FileNotFoundError):
            load_yaml(Path("/nonexistent/file.yaml"))


class TestClientConfig:
    """Test the client configuration model."""

    def test_defaults(self):
        """Test defaults without any environment."""
        config = ClientConfig()

        assert config.api_url == "https://api.toornament.com"
        assert config.timeout == 30.0
        assert config.token_leeway_seconds == 0.0
        assert not config.is_complete

    def test_env_fallback(self, monkeypatch):
        """Test credentials fall back to TOORNAMENT_* variables."""
        monkeypatch.setenv("TOORNAMENT_API_KEY", "env_key")
        monkeypatch.setenv("TOORNAMENT_CLIENT_ID", "env_id")
        monkeypatch.setenv("TOORNAMENT_CLIENT_SECRET", "env_secret")
        monkeypatch.setenv("TOORNAMENT_API_URL", "https://sandbox.test.com/")

        config = ClientConfig()

        assert config.api_key == "env_key"
        assert config.client_id == "env_id"
        assert config.client_secret == "env_secret"
        assert config.api_url == "https://sandbox.test.com"
        assert config.is_complete

    def test_explicit_values_win(self, monkeypatch):
        """Test explicit values take precedence over the environment."""
        monkeypatch.setenv("TOORNAMENT_CLIENT_ID", "env_id")

        config = ClientConfig(client_id="explicit_id")

        assert config.client_id == "explicit_id"

    def test_placeholder_resolution(self, monkeypatch):
        """Test ${VAR} placeholders in values."""
        monkeypatch.setenv("MY_SECRET", "resolved")

        config = ClientConfig(client_secret="${MY_SECRET}")

        assert config.client_secret == "resolved"

    def test_timeout_validation(self):
        """Test non-positive timeouts are rejected."""
        with pytest.raises(ValueError):
            ClientConfig(timeout=0)

    def test_leeway_validation(self):
        """Test negative leeway is rejected."""
        with pytest.raises(ValueError):
            ClientConfig(token_leeway_seconds=-1)

    def test_secrets_not_in_repr(self):
        """Test secrets are hidden from repr."""
        config = ClientConfig(api_key="k3y", client_id="id", client_secret="s3cret")

        text = repr(config)
        assert "k3y" not in text
        assert "s3cret" not in text
        assert "client_id='id'" in text


class TestConfigManager:
    """Test ConfigManager."""

    def test_load_section(self):
        """Test loading settings under the toornament section."""
        os.environ["TEST_API_KEY"] = "test_key"

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("""
toornament:
  api_url: "https://api.test.com"
  api_key: "${TEST_API_KEY}"
  client_id: my_client
  client_secret: my_secret
  timeout: 10
""")
            f.flush()

            try:
                manager = ConfigManager(Path(f.name))
                config = manager.load()

                assert config.api_key == "test_key"
                assert config.client_id == "my_client"
                assert config.timeout == 10
                assert manager.config is config
            finally:
                os.unlink(f.name)
                del os.environ["TEST_API_KEY"]

    def test_load_top_level(self):
        """Test loading settings without a section."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"
            path.write_text("client_id: top_level\ntoken_leeway_seconds: 30\n")

            config = load_config(path)

            assert config.client_id == "top_level"
            assert config.token_leeway_seconds == 30

    def test_file_with_env_credentials(self, monkeypatch):
        """Test secrets left out of the file come from the environment."""
        monkeypatch.setenv("TOORNAMENT_CLIENT_SECRET", "from_env")

        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"
            path.write_text("toornament:\n  client_id: file_id\n")

            config = ConfigManager(path).load()

            assert config.client_id == "file_id"
            assert config.client_secret == "from_env"

    def test_load_without_file(self, monkeypatch):
        """Test loading from the environment alone."""
        monkeypatch.setenv("TOORNAMENT_API_KEY", "env_key")

        config = ConfigManager().load()

        assert config.api_key == "env_key"

    def test_config_before_load(self):
        """Test accessing config before loading fails."""
        with pytest.raises(RuntimeError):
            ConfigManager().config

    def test_save_excludes_secrets(self):
        """Test saved configuration holds no secrets."""
        with tempfile.TemporaryDirectory() as temp_dir:
            source = Path(temp_dir) / "in.yaml"
            target = Path(temp_dir) / "out.yaml"
            source.write_text(
                "toornament:\n  api_key: k\n  client_id: id\n  client_secret: s\n"
            )

            manager = ConfigManager(source)
            manager.load()
            manager.save(target)

            saved = load_yaml(target)["toornament"]
            assert saved["client_id"] == "id"
            assert "api_key" not in saved
            assert "client_secret" not in saved

    def test_from_env(self, monkeypatch):
        """Test the config path is taken from TOORNAMENT_CONFIG_PATH."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"
            path.write_text("toornament:\n  client_id: via_env_path\n")
            monkeypatch.setenv("TOORNAMENT_CONFIG_PATH", str(path))

            config = ConfigManager.from_env().load()

            assert config.client_id == "via_env_path"
