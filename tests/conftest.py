"""Shared test fixtures: sample playbooks and an API client on fresh state."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from cortexops.config import Settings
from cortexops.generation.registry import default_registry
from cortexops.logger import RequestLogger
from cortexops.main import app
from cortexops.repositories.memory import InMemoryHistoryRepository

VALID_PLAYBOOK = """\
---
- name: Configure web servers
  hosts: web
  become: true
  tasks:
    - name: Install nginx
      apt:
        name: nginx
        state: present
    - name: Start nginx
      service:
        name: nginx
        state: started
"""

MISSING_HOSTS_PLAYBOOK = """\
---
- name: Configure web servers
  tasks:
    - name: Install nginx
      apt:
        name: nginx
"""

TAB_PLAYBOOK = (
    "---\n"
    "- name: Configure web servers\n"
    "  hosts: all\n"
    "  tasks:\n"
    "\t- name: Install nginx\n"
    "\t  apt:\n"
    "\t    name: nginx\n"
)


def setup_test_app(tmp_path: Path, **overrides: object) -> Settings:
    """Populate app.state the way the lifespan does.

    ASGITransport does not run the lifespan, so API tests call this.
    """
    settings = Settings(log_dir=tmp_path / "logs", **overrides)  # type: ignore[arg-type]
    app.state.settings = settings
    app.state.registry = default_registry()
    app.state.history = InMemoryHistoryRepository(
        limit=settings.history_limit
    )
    app.state.request_logger = RequestLogger(
        log_dir=settings.log_dir, level="WARNING"
    )
    return settings


@pytest.fixture
async def client(tmp_path: Path) -> AsyncIterator[AsyncClient]:
    """API client on fresh in-memory state, auth disabled."""
    setup_test_app(tmp_path, api_key="")
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def secured_client(tmp_path: Path) -> AsyncIterator[AsyncClient]:
    """API client with X-API-Key enforcement on."""
    setup_test_app(tmp_path, api_key="test-key")
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as c:
        yield c


@pytest.fixture(autouse=True)
def _quiet_request_logger() -> None:
    """RequestLogger handlers outlive tmp_path; start each test clean."""
    lg = logging.getLogger("cortexops.requests")
    for handler in list(lg.handlers):
        handler.close()
        lg.removeHandler(handler)


@pytest.fixture
def valid_playbook() -> str:
    return VALID_PLAYBOOK


@pytest.fixture
def missing_hosts_playbook() -> str:
    return MISSING_HOSTS_PLAYBOOK


@pytest.fixture
def tab_playbook() -> str:
    return TAB_PLAYBOOK
