"""Tests for client configuration loading."""

import logging
import os
import tempfile

from par_client.config import ClientConfig, load_config
from par_client.constants import Constants


class TestFromEnv:
    """Test ClientConfig.from_env."""

    def test_defaults(self):
        """Test defaults with an empty environment."""
        config = ClientConfig.from_env({})
        assert config.cache_dir == os.path.join(tempfile.gettempdir(), "par")
        assert config.request_timeout == 30.0
        assert config.http_retries == Constants.HTTP_RETRY_MAX
        assert config.verify_checksums is False

    def test_overrides(self):
        """Test that environment variables replace defaults."""
        config = ClientConfig.from_env({
            "PAR_CLIENT_CACHE_DIR": "/var/cache/par",
            "PAR_CLIENT_TEMP_DIR": "/var/tmp/par",
            "PAR_CLIENT_TIMEOUT": "5.5",
            "PAR_CLIENT_VERIFY_CHECKSUMS": "yes",
        })
        assert config.cache_dir == "/var/cache/par"
        assert config.temp_dir == "/var/tmp/par"
        assert config.request_timeout == 5.5
        assert config.verify_checksums is True

    def test_legacy_cache_variable(self):
        """Test PAR_TEMP and its precedence."""
        assert ClientConfig.from_env({"PAR_TEMP": "/old"}).cache_dir == "/old"
        config = ClientConfig.from_env({"PAR_TEMP": "/old", "PAR_CLIENT_CACHE_DIR": "/new"})
        assert config.cache_dir == "/new"

    def test_invalid_timeout_ignored(self, caplog):
        """Test that a bad timeout keeps the default and warns."""
        with caplog.at_level(logging.WARNING):
            config = ClientConfig.from_env({"PAR_CLIENT_TIMEOUT": "soon"})
        assert config.request_timeout == 30.0
        assert "PAR_CLIENT_TIMEOUT" in caplog.text


class TestMerged:
    """Test ClientConfig.merged."""

    def test_coercion(self):
        """Test that values are coerced to field types."""
        config = ClientConfig().merged({"http_retries": "5", "request_timeout": 7, "verify_checksums": "true"})
        assert config.http_retries == 5
        assert config.request_timeout == 7.0
        assert config.verify_checksums is True

    def test_original_untouched(self):
        """Test that merged returns a copy."""
        base = ClientConfig()
        base.merged({"http_retries": 9})
        assert base.http_retries == Constants.HTTP_RETRY_MAX

    def test_unknown_and_invalid_keys(self, caplog):
        """Test that unknown keys and bad values are ignored with a warning."""
        with caplog.at_level(logging.WARNING):
            config = ClientConfig().merged({"colour": "blue", "http_retries": "many"})
        assert config.http_retries == Constants.HTTP_RETRY_MAX
        assert "colour" in caplog.text
        assert "http_retries" in caplog.text


class TestLoadConfig:
    """Test load_config."""

    def test_no_file(self):
        """Test that no path gives the environment config."""
        assert load_config(None, environ={}) == ClientConfig.from_env({})

    def test_section(self, tmp_path):
        """Test settings under a par_client key."""
        path = tmp_path / "config.yml"
        path.write_text("par_client:\n  cache_dir: /srv/cache\n  http_retries: 2\n")
        config = load_config(str(path), environ={"PAR_CLIENT_CACHE_DIR": "/env"})
        assert config.cache_dir == "/srv/cache"
        assert config.http_retries == 2

    def test_top_level(self, tmp_path):
        """Test settings at the top level of the file."""
        path = tmp_path / "config.yml"
        path.write_text("verify_checksums: true\n")
        assert load_config(str(path), environ={}).verify_checksums is True

    def test_missing_file(self, tmp_path, caplog):
        """Test that a missing file warns and falls back."""
        with caplog.at_level(logging.WARNING):
            config = load_config(str(tmp_path / "absent.yml"), environ={})
        assert config == ClientConfig.from_env({})
        assert "Config file not found" in caplog.text

    def test_invalid_yaml(self, tmp_path):
        """Test that malformed YAML falls back to the environment."""
        path = tmp_path / "config.yml"
        path.write_text("par_client: [unclosed\n")
        assert load_config(str(path), environ={}) == ClientConfig.from_env({})
