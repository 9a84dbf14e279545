"""Shared fixtures for chat relay tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from chat_relay.config import Settings
from chat_relay.infrastructure.conversation_store import ConversationStore
from fakes import FakeCompletionClient, make_settings


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def store(tmp_path: Path) -> ConversationStore:
    """A ConversationStore connected to a temp database."""
    svc = ConversationStore(db_path=tmp_path / "chat_relay.sqlite")
    svc.connect()
    yield svc
    svc.close()


@pytest.fixture()
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()
