"""Tests for reading connection settings from the environment."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from jenkins_remote.config import JenkinsConfig


@pytest.fixture
def env(monkeypatch):
    for key in ("JENKINS_URL", "JENKINS_USER", "JENKINS_TOKEN", "JENKINS_VERIFY_SSL", "JENKINS_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("JENKINS_URL", "https://ci.example.com/")
    monkeypatch.setenv("JENKINS_USER", "bob")
    monkeypatch.setenv("JENKINS_TOKEN", "tok")
    return monkeypatch


@patch("jenkins_remote.config.load_dotenv")
class TestFromEnv:
    def test_required_values(self, _dotenv, env):
        cfg = JenkinsConfig.from_env()
        assert cfg == JenkinsConfig("https://ci.example.com", "bob", "tok")
        assert cfg.verify_ssl is True
        assert cfg.timeout == 30.0

    def test_missing_values_listed(self, _dotenv, env):
        env.delenv("JENKINS_USER")
        env.delenv("JENKINS_TOKEN")
        with pytest.raises(EnvironmentError, match="JENKINS_USER, JENKINS_TOKEN"):
            JenkinsConfig.from_env()

    @pytest.mark.parametrize("value", ["false", "0", "NO"])
    def test_verify_ssl_disabled(self, _dotenv, env, value):
        env.setenv("JENKINS_VERIFY_SSL", value)
        assert JenkinsConfig.from_env().verify_ssl is False

    def test_timeout_override(self, _dotenv, env):
        env.setenv("JENKINS_TIMEOUT", "5")
        assert JenkinsConfig.from_env().timeout == 5.0

    def test_timeout_disabled(self, _dotenv, env):
        env.setenv("JENKINS_TIMEOUT", "none")
        assert JenkinsConfig.from_env().timeout is None


def test_trailing_slash_stripped():
    assert JenkinsConfig("https://ci.example.com//", "u", "t").url == "https://ci.example.com"
