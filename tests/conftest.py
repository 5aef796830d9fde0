"""Shared fixtures: a recording stand-in for the upstream HTTP session and an app client."""

import json

import pytest
from fastapi.testclient import TestClient

from procureflow import storage
from procureflow.config import Settings, get_settings
from procureflow.main import app, get_session

SCRIPT_URL = "https://script.example/exec"
READ_URL = "https://script.example/read"
UPDATE_URL = "https://script.example/update"


class FakeResponse:
    def __init__(self, body=None, status_code=200, text=None, content_type="application/json"):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body)
        self.headers = {"content-type": content_type}

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Answers queued responses in order and records every call."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def queue(self, body=None, **kwargs):
        self.responses.append(body if isinstance(body, (FakeResponse, Exception)) else FakeResponse(body, **kwargs))
        return self

    def _next(self):
        response = self.responses.pop(0) if self.responses else FakeResponse({"success": True})
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, params=None, timeout=None):
        self.calls.append({"method": "GET", "url": url, "params": params, "json": None, "timeout": timeout})
        return self._next()

    def post(self, url, json=None, timeout=None):
        self.calls.append({"method": "POST", "url": url, "params": None, "json": json, "timeout": timeout})
        return self._next()

    def request(self, method, url, params=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "json": json, "timeout": timeout})
        return self._next()

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(storage, "DATA_DIR", tmp_path)
    return tmp_path


@pytest.fixture
def upstream():
    return FakeSession()


@pytest.fixture
def settings():
    return Settings(script_url=SCRIPT_URL, read_url=READ_URL, update_url=UPDATE_URL)


@pytest.fixture
def client(upstream, settings):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_session] = lambda: upstream
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
