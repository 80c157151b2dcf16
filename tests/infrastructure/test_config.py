"""Tests for configuration loading."""

import json
import os

import pytest

from kubeship.infrastructure.config import (
    KubeshipConfig,
    TimeoutsConfig,
    _build_sub_config,
    _env_override,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("KUBESHIP_"):
            monkeypatch.delenv(key)


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        config = load_config(str(tmp_path / "missing.json"))
        assert config == KubeshipConfig()
        assert config.timeouts.rollout_seconds == 300
        assert config.timeouts.load_balancer_attempts == 60
        assert config.cluster.type == "kubernetes"
        assert config.log_level == "WARNING"

    def test_file_values(self, tmp_path):
        path = tmp_path / "kubeship.json"
        path.write_text(
            json.dumps(
                {
                    "cluster": {"type": "openshift", "name": "mycluster"},
                    "timeouts": {"rollout_seconds": 600, "load_balancer_interval": 10},
                    "log_level": "INFO",
                }
            )
        )
        config = load_config(str(path))
        assert config.cluster.type == "openshift"
        assert config.cluster.name == "mycluster"
        assert config.timeouts.rollout_seconds == 600
        assert config.timeouts.load_balancer_interval == 10.0
        assert isinstance(config.timeouts.load_balancer_interval, float)
        assert config.log_level == "INFO"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "kubeship.json"
        path.write_text(json.dumps({"timeouts": {"rollout_seconds": 600}}))
        monkeypatch.setenv("KUBESHIP_TIMEOUTS_ROLLOUT_SECONDS", "900")
        monkeypatch.setenv("KUBESHIP_TELEMETRY_INSECURE", "true")
        monkeypatch.setenv("KUBESHIP_LOG_LEVEL", "DEBUG")

        config = load_config(str(path))

        assert config.timeouts.rollout_seconds == 900
        assert config.telemetry.insecure is True
        assert config.log_level == "DEBUG"

    def test_invalid_json_falls_back(self, tmp_path):
        path = tmp_path / "kubeship.json"
        path.write_text("{not json")
        assert load_config(str(path)) == KubeshipConfig()

    def test_api_key_not_in_repr(self, monkeypatch, tmp_path):
        monkeypatch.setenv("KUBESHIP_REGISTRY_IBM_CLOUD_API_KEY", "s3cret")
        config = load_config(str(tmp_path / "missing.json"))
        assert config.registry.ibm_cloud_api_key == "s3cret"
        assert "s3cret" not in repr(config)


class TestHelpers:
    def test_env_override_sections(self, monkeypatch):
        monkeypatch.setenv("KUBESHIP_CLUSTER_TYPE", "openshift")
        data = _env_override({})
        assert data == {"cluster": {"type": "openshift"}}

    def test_invalid_value_uses_default(self):
        timeouts = _build_sub_config(TimeoutsConfig, {"rollout_seconds": "soon"})
        assert timeouts.rollout_seconds == 300

    def test_unknown_keys_ignored(self):
        timeouts = _build_sub_config(TimeoutsConfig, {"bogus": 1, "health_check_seconds": "60"})
        assert timeouts.health_check_seconds == 60

    def test_non_object_section(self):
        assert _build_sub_config(TimeoutsConfig, "fast") == TimeoutsConfig()
