"""
Shared pytest fixtures: an in-memory ClickUp workspace served through
httpx.MockTransport, and clients wired to it.
"""

import json
import re
from datetime import date

import httpx
import pytest

from clickup_bridge import config
from clickup_bridge.client import ClickUpClient
from clickup_bridge.credentials import Credential, get_credential_store

BASE_URL = "https://api.clickup.test/api/v2"
TODAY = date(2025, 3, 10)


class FakeClickUp:
    """Minimal ClickUp API: teams, spaces, folders, lists, task creation."""

    def __init__(self):
        self.teams = [
            {
                "id": "t1",
                "name": "Acme",
                "members": [
                    {"user": {"id": 101, "username": "Juan Pérez", "email": "juan@acme.com"}},
                    {"user": {"id": 102, "username": "María López", "email": "maria.lopez@acme.com"}},
                    {"user": {"id": 103, "username": "Juana Ruiz", "email": "jruiz@acme.com"}},
                ],
            }
        ]
        self.spaces = {
            "t1": [
                {"id": "s1", "name": "Clientes"},
                {"id": "s2", "name": "PIGMEA S.L."},
                {"id": "s3", "name": "Marketing"},
                {"id": "s4", "name": "Archivo vacío"},
                {"id": "s5", "name": "General"},
            ]
        }
        self.folders = {
            "s1": [
                {"id": "f1", "name": "Puertas Martínez"},
                {"id": "f2", "name": "Ventanas S.L."},
            ],
            "s4": [
                {"id": "f9", "name": "Histórico"},
            ],
        }
        self.lists = {
            "f1": [
                {"id": "l1", "name": "Propuestas"},
                {"id": "l2", "name": "Seguimiento"},
            ],
            "f2": [
                {"id": "l3", "name": "Backlog"},
            ],
            "f9": [],
        }
        self.folderless = {
            "s1": [{"id": "l4", "name": "Inbox"}],
            "s2": [{"id": "l6", "name": "Tareas"}],
            "s3": [{"id": "l5", "name": "Campañas"}],
            "s4": [],
            "s5": [{"id": "l7", "name": "General"}],
        }
        self.requests = []
        self.created = []
        # path -> (status, body), checked before routing
        self.failures = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/api/v2"):]

        if path in self.failures:
            status, body = self.failures[path]
            return httpx.Response(status, json=body)

        if request.method == "GET" and path == "/team":
            return httpx.Response(200, json={"teams": self.teams})

        match = re.fullmatch(r"/team/(\w+)/space", path)
        if match:
            return httpx.Response(200, json={"spaces": self.spaces.get(match.group(1), [])})

        match = re.fullmatch(r"/space/(\w+)/folder", path)
        if match:
            return httpx.Response(200, json={"folders": self.folders.get(match.group(1), [])})

        match = re.fullmatch(r"/folder/(\w+)/list", path)
        if match:
            return httpx.Response(200, json={"lists": self.lists.get(match.group(1), [])})

        match = re.fullmatch(r"/space/(\w+)/list", path)
        if match:
            return httpx.Response(200, json={"lists": self.folderless.get(match.group(1), [])})

        match = re.fullmatch(r"/list/(\w+)/task", path)
        if match and request.method == "POST":
            payload = json.loads(request.content)
            task = {"id": f"task{len(self.created) + 1}", "list": {"id": match.group(1)}, **payload}
            self.created.append(task)
            return httpx.Response(200, json=task)

        return httpx.Response(404, json={"err": "Route not found", "ECODE": "APP_001"})

    def paths(self) -> list:
        return [r.url.path[len("/api/v2"):] for r in self.requests]


@pytest.fixture
def fake():
    return FakeClickUp()


@pytest.fixture
def make_client(fake):
    def factory(**kwargs):
        kwargs.setdefault("credential_provider", lambda: Credential("pk_test", "personal", 0, 0.0))
        return ClickUpClient(base_url=BASE_URL, transport=httpx.MockTransport(fake.handler), **kwargs)
    return factory


@pytest.fixture
def bridge_config(monkeypatch):
    """Deterministic configuration independent of the developer's .env"""
    monkeypatch.setattr(config, "CLICKUP_TEAM_ID", "t1")
    monkeypatch.setattr(config, "CLICKUP_DEFAULT_SPACE", "General")
    monkeypatch.setattr(config, "CLICKUP_API_TOKEN", "pk_test")
    yield config
    get_credential_store().clear()
