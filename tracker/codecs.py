"""
JSON codecs for the entities persisted in the local store.

Records are stored with camelCase keys and ISO-8601 date strings, the same
shape the browser client keeps in localStorage.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, TypeVar

from shared.json_utils import convert_keys, parse_datetime, to_jsonable
from shared.types import (
    ChatMessage,
    ContentDetails,
    GeneralDetails,
    Issue,
    MediaFile,
    TechnicalDetails,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Codec(Protocol, Generic[T]):
    """Converts a value to and from a JSON-compatible structure."""

    def encode(self, value: T) -> Any:
        ...

    def decode(self, raw: Any) -> T:
        ...


def _get_value(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _encode_record(record) -> dict:
    return convert_keys(to_jsonable(asdict(record)), "snake_to_camel")


def _to_media_file(data: dict) -> MediaFile:
    return MediaFile(
        id=_get_value(data, "id") or "",
        name=_get_value(data, "name") or "",
        url=_get_value(data, "url") or "",
        type=_get_value(data, "type") or "",
        size=int(_get_value(data, "size") or 0),
        uploaded_at=parse_datetime(_get_value(data, "uploadedAt", "uploaded_at")),
    )


def _to_content_details(data: dict | None) -> Optional[ContentDetails]:
    if not data:
        return None
    return ContentDetails(
        content_type=_get_value(data, "contentType", "content_type") or "",
        platform=_get_value(data, "platform") or "",
        audience=_get_value(data, "audience") or "",
        deadline=parse_datetime(_get_value(data, "deadline")),
    )


def _to_technical_details(data: dict | None) -> Optional[TechnicalDetails]:
    if not data:
        return None
    return TechnicalDetails(
        system_type=_get_value(data, "systemType", "system_type") or "",
        browser=_get_value(data, "browser"),
        error_message=_get_value(data, "errorMessage", "error_message"),
        steps_to_reproduce=_get_value(data, "stepsToReproduce", "steps_to_reproduce"),
    )


def _to_general_details(data: dict | None) -> Optional[GeneralDetails]:
    if not data:
        return None
    return GeneralDetails(
        category=_get_value(data, "category") or "",
        department=_get_value(data, "department") or "",
        urgency=_get_value(data, "urgency") or "",
    )


def _to_issue(data: dict) -> Issue:
    return Issue(
        id=_get_value(data, "id"),
        title=_get_value(data, "title") or "",
        description=_get_value(data, "description") or "",
        type=_get_value(data, "type"),
        priority=_get_value(data, "priority"),
        status=_get_value(data, "status"),
        submitted_by=_get_value(data, "submittedBy", "submitted_by") or "",
        submitted_at=parse_datetime(_get_value(data, "submittedAt", "submitted_at")),
        updated_at=parse_datetime(_get_value(data, "updatedAt", "updated_at")),
        tags=list(_get_value(data, "tags") or []),
        media_files=[
            _to_media_file(item)
            for item in _get_value(data, "mediaFiles", "media_files") or []
        ],
        content_details=_to_content_details(
            _get_value(data, "contentDetails", "content_details")
        ),
        technical_details=_to_technical_details(
            _get_value(data, "technicalDetails", "technical_details")
        ),
        general_details=_to_general_details(
            _get_value(data, "generalDetails", "general_details")
        ),
    )


def _to_chat_message(data: dict) -> ChatMessage:
    return ChatMessage(
        id=_get_value(data, "id"),
        issue_id=_get_value(data, "issueId", "issue_id"),
        sender=_get_value(data, "sender") or "",
        message=_get_value(data, "message") or "",
        timestamp=parse_datetime(_get_value(data, "timestamp")),
        is_system=bool(_get_value(data, "isSystem", "is_system")),
    )


def _decode_records(raw: list, convert: Callable[[dict], T], label: str) -> List[T]:
    """Decodes each record, skipping (and logging) the ones that are malformed."""
    records = []
    for index, item in enumerate(raw):
        try:
            records.append(convert(item))
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Skipping malformed %s at index %d: %s", label, index, exc)
    return records


class IssuesCodec:
    """Encodes the full issue list."""

    def encode(self, value: List[Issue]) -> list:
        return [_encode_record(issue) for issue in value]

    def decode(self, raw: Any) -> List[Issue]:
        if not isinstance(raw, list):
            raise ValueError("Stored issues must be a JSON array")
        return _decode_records(raw, _to_issue, "issue")


class MessagesCodec:
    """Encodes the mapping of issue id to its ordered message list."""

    def encode(self, value: Dict[str, List[ChatMessage]]) -> dict:
        # Issue ids are used verbatim as keys; only the records are camelCased.
        return {
            issue_id: [_encode_record(message) for message in messages]
            for issue_id, messages in value.items()
        }

    def decode(self, raw: Any) -> Dict[str, List[ChatMessage]]:
        if not isinstance(raw, dict):
            raise ValueError("Stored chat messages must be a JSON object")
        return {
            issue_id: _decode_records(messages or [], _to_chat_message, "chat message")
            for issue_id, messages in raw.items()
        }
