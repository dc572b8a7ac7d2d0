"""Tests for the SQLite conversation store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from voice_assistant.core.config import StorageSettings
from voice_assistant.intelligence import DEFAULT_CHAT_TITLE
from voice_assistant.storage import SqliteConversationStore

START = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


class StubTitler:
    """Title generator stub recording the messages it was asked about."""

    def __init__(self, title: str = "Plan na jutro") -> None:
        self.title = title
        self.requests: list[str] = []

    async def generate_title(self, first_message: str) -> str:
        self.requests.append(first_message)
        return self.title


def _settings(tmp_path: Path, name: str = "h.db") -> StorageSettings:
    return StorageSettings(db_path=tmp_path / name)


def test_recent_messages_are_chronological_and_limited(tmp_path: Path) -> None:
    with SqliteConversationStore(_settings(tmp_path)) as store:
        for index in range(3):
            store.save_exchange(
                f"pytanie {index}",
                f"odpowiedź {index}",
                START + timedelta(minutes=index),
            )

        messages = store.load_recent_messages(3)

        assert [(message.role, message.content) for message in messages] == [
            ("assistant", "odpowiedź 1"),
            ("user", "pytanie 2"),
            ("assistant", "odpowiedź 2"),
        ]
        assert store.load_recent_messages(0) == []
        [chat] = store.list_chats()
        assert chat.exchange_count == 3


def test_history_survives_reopen(tmp_path: Path) -> None:
    settings = StorageSettings(db_path=tmp_path / "nested" / "h.db")
    with SqliteConversationStore(settings) as store:
        store.save_exchange("Cześć", "Hej!", START)

    with SqliteConversationStore(settings) as reopened:
        assert [message.content for message in reopened.load_recent_messages(10)] == [
            "Cześć",
            "Hej!",
        ]


def test_new_chat_starts_with_empty_history(tmp_path: Path) -> None:
    with SqliteConversationStore(_settings(tmp_path)) as store:
        first_chat = store.save_exchange("Cześć", "Hej!", START)
        second_chat = store.start_chat(START + timedelta(hours=1))

        assert second_chat != first_chat
        assert store.load_recent_messages(10) == []

        assert store.save_exchange("Pogoda?", "Słonecznie.", START) == second_chat
        assert [m.content for m in store.load_recent_messages(10)] == [
            "Pogoda?",
            "Słonecznie.",
        ]
        chats = store.list_chats()
        assert [chat.chat_id for chat in chats] == [second_chat, first_chat]
        assert [chat.exchange_count for chat in chats] == [1, 1]


def test_blank_transcript_rejected(tmp_path: Path) -> None:
    with SqliteConversationStore(_settings(tmp_path)) as store:
        with pytest.raises(ValueError):
            store.save_exchange("   ", "reply", START)
        assert store.list_chats() == []


async def test_async_protocol_methods(tmp_path: Path) -> None:
    with SqliteConversationStore(_settings(tmp_path)) as store:
        await store.record_exchange("Która godzina?", "Jest dziewiąta.", START)

        history = await store.recent_messages(20)

    assert [message.role for message in history] == ["user", "assistant"]


async def test_first_exchange_titles_the_chat_once(tmp_path: Path) -> None:
    titler = StubTitler()
    with SqliteConversationStore(_settings(tmp_path), titler=titler) as store:
        await store.record_exchange("Co mam jutro w planie?", "Dwa spotkania.", START)
        await store.record_exchange("A pojutrze?", "Nic.", START)

        [chat] = store.list_chats()

    assert titler.requests == ["Co mam jutro w planie?"]
    assert chat.title == "Plan na jutro"
    assert chat.exchange_count == 2


async def test_each_new_chat_gets_its_own_title(tmp_path: Path) -> None:
    titler = StubTitler()
    with SqliteConversationStore(_settings(tmp_path), titler=titler) as store:
        await store.record_exchange("Pierwsza rozmowa", "Ok.", START)
        store.start_chat(START)
        await store.record_exchange("Druga rozmowa", "Ok.", START)

    assert titler.requests == ["Pierwsza rozmowa", "Druga rozmowa"]


async def test_without_titler_the_default_title_is_used(tmp_path: Path) -> None:
    with SqliteConversationStore(_settings(tmp_path)) as store:
        chat_id = store.start_chat(START)
        assert store.chat_title(chat_id) is None

        await store.record_exchange("Cześć", "Hej!", START)

        assert store.chat_title(chat_id) == DEFAULT_CHAT_TITLE
