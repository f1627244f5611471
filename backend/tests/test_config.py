"""
Apidex Backend — Configuration Tests
=====================================

What:  Validates Settings defaults and fail-fast validators.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from apidex.config import Settings


class TestSettingsDefaults:

    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.api_name == "Apidex API"
        assert s.discovery_path == "/api/"
        assert s.cache_default_ttl_ms == 300_000
        assert s.duplicate_endpoint_policy == "warn"

    def test_packaged_endpoints_dir_is_absolute(self):
        resolved = Settings(_env_file=None, endpoints_dir=None).resolved_endpoints_dir()
        assert resolved.is_absolute()
        assert resolved.name == "endpoints"
        assert (resolved / "server_time.py").is_file()

    def test_cors_origins_list(self):
        s = Settings(_env_file=None, cors_origins="http://a.test, http://b.test,")
        assert s.cors_origins_list == ["http://a.test", "http://b.test"]


class TestSettingsValidation:

    def test_relative_endpoints_dir_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, endpoints_dir="./endpoints")

    def test_absolute_endpoints_dir_accepted(self, tmp_path):
        s = Settings(_env_file=None, endpoints_dir=str(tmp_path))
        assert s.resolved_endpoints_dir() == Path(str(tmp_path))

    def test_endpoints_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENDPOINTS_DIR", str(tmp_path))
        assert Settings(_env_file=None).endpoints_dir == str(tmp_path)

    def test_duplicate_policy_normalized_and_checked(self):
        assert Settings(_env_file=None, duplicate_endpoint_policy="ERROR").duplicate_endpoint_policy == "error"
        with pytest.raises(ValidationError):
            Settings(_env_file=None, duplicate_endpoint_policy="ignore")

    def test_log_level_normalized_and_checked(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_discovery_path_must_be_absolute_url_path(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, discovery_path="api/")
