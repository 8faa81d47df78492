"""
Client-side persistence for issues and chat messages.

Provides a key-value store abstraction (SQLAlchemy-backed or in-memory) and a
``LocalStore`` that snapshots the two known collections under fixed keys.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import Column, Float, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.types import ChatMessage, Issue
from tracker.codecs import Codec, IssuesCodec, MessagesCodec
from tracker.config import TrackerSettings, get_settings

logger = logging.getLogger(__name__)

ISSUES_KEY = "fusion-issues"
CHAT_MESSAGES_KEY = "fusion-chat-messages"


class KeyValueStore(Protocol):
    """Text values addressed by string keys."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store for development and tests."""

    def __init__(self):
        self.items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.items.clear()


class SqlKeyValueStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (SQLite by default).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("A database URL is required for SqlKeyValueStore")
        self.engine = create_engine(database_url, future=True)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get_item(self, key: str) -> Optional[str]:
        with self.Session() as session:
            row = session.get(KeyValueRow, key)
            return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        with self.Session() as session:
            row = session.get(KeyValueRow, key)
            if row:
                row.value = value
                row.updated_at = time.time()
            else:
                session.add(KeyValueRow(key=key, value=value, updated_at=time.time()))
            session.commit()


class LocalStore:
    """
    Snapshots the issue list and the message map into a key-value store.

    Writes never raise: a failed save is logged and the caller's in-memory state
    stays authoritative. Reads fall back to the supplied default when the key is
    absent, unknown or unreadable.
    """

    def __init__(self, backend: KeyValueStore):
        self.backend = backend
        self.issues_codec = IssuesCodec()
        self.messages_codec = MessagesCodec()
        self._codecs: Dict[str, Codec] = {
            ISSUES_KEY: self.issues_codec,
            CHAT_MESSAGES_KEY: self.messages_codec,
        }

    def save(self, key: str, data: Any) -> None:
        codec = self._codecs.get(key)
        if codec is None:
            logger.warning("Refusing to save unknown key %s", key)
            return
        self._write(key, codec, data)

    def load(self, key: str, default: Any) -> Any:
        codec = self._codecs.get(key)
        if codec is None:
            return default
        return self._read(key, codec, default)

    def save_issues(self, issues: List[Issue]) -> None:
        self._write(ISSUES_KEY, self.issues_codec, issues)

    def load_issues(self) -> List[Issue]:
        return self._read(ISSUES_KEY, self.issues_codec, [])

    def save_messages(self, messages: Dict[str, List[ChatMessage]]) -> None:
        self._write(CHAT_MESSAGES_KEY, self.messages_codec, messages)

    def load_messages(self) -> Dict[str, List[ChatMessage]]:
        return self._read(CHAT_MESSAGES_KEY, self.messages_codec, {})

    def _write(self, key: str, codec: Codec, data: Any) -> None:
        try:
            self.backend.set_item(key, json.dumps(codec.encode(data)))
        except (SQLAlchemyError, OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s to local store: %s", key, exc)

    def _read(self, key: str, codec: Codec, default: Any) -> Any:
        try:
            stored = self.backend.get_item(key)
            if not stored:
                return default
            return codec.decode(json.loads(stored))
        except (SQLAlchemyError, OSError, TypeError, ValueError, KeyError) as exc:
            logger.error("Failed to load %s from local store: %s", key, exc)
            return default


def create_local_store(settings: TrackerSettings | None = None) -> LocalStore:
    """Opens the durable store at the configured ``data_url``."""
    settings = settings or get_settings()
    logger.info("Opening local store at %s", settings.data_url)
    return LocalStore(SqlKeyValueStore(settings.data_url))


Base = declarative_base()


class KeyValueRow(Base):
    __tablename__ = "local_storage"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(Float, nullable=False)
