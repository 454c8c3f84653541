"""Shared fakes for the transport layer."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from jenkins_remote.config import JenkinsConfig


def mock_response(
    body: bytes | list[bytes] = b"",
    status_code: int = 200,
    headers: dict | None = None,
    url: str = "https://jenkins.example.com/x",
) -> MagicMock:
    chunks = body if isinstance(body, list) else [body]
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.url = url
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.iter_content.side_effect = lambda chunk_size=1, decode_unicode=False: iter(chunks)
    return resp


@pytest.fixture
def config() -> JenkinsConfig:
    return JenkinsConfig(url="https://jenkins.example.com/", user="alice", token="s3cret")


@pytest.fixture
def make_response():
    return mock_response
