"""Connection settings for a Jenkins controller."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

_DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class JenkinsConfig:
    url: str
    user: str
    token: str
    verify_ssl: bool = True
    timeout: float | None = _DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", self.url.rstrip("/"))

    @classmethod
    def from_env(cls) -> "JenkinsConfig":
        """Build a config from JENKINS_* variables (a local .env is honoured).

        Raises EnvironmentError listing every missing required variable.
        """
        load_dotenv()

        url = os.environ.get("JENKINS_URL", "")
        user = os.environ.get("JENKINS_USER", "")
        token = os.environ.get("JENKINS_TOKEN", "")

        missing = [k for k, v in {
            "JENKINS_URL": url,
            "JENKINS_USER": user,
            "JENKINS_TOKEN": token,
        }.items() if not v]
        if missing:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Copy .env.example to .env and fill in your credentials."
            )

        verify_ssl = os.environ.get("JENKINS_VERIFY_SSL", "true").lower() not in ("false", "0", "no")

        raw_timeout = os.environ.get("JENKINS_TIMEOUT", "").strip().lower()
        if not raw_timeout:
            timeout: float | None = _DEFAULT_TIMEOUT
        elif raw_timeout in ("0", "none"):
            timeout = None
        else:
            timeout = float(raw_timeout)

        return cls(url=url, user=user, token=token, verify_ssl=verify_ssl, timeout=timeout)
