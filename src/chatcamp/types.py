"""Typed, immutable data structures for conversations.

Also holds the JSON shape used for durable storage. The field names
(``content``, ``isFromUser``, ``messages``, ``createdAt``) are the ones the
demo app has always written, so existing blobs keep loading.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from enum import Enum
import logging
from typing import Any
import uuid

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1
REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=UTC)


class Origin(Enum):
    """Who authored a turn; maps onto the outbound message role."""

    USER = "user"
    ASSISTANT = "assistant"

    @property
    def role(self) -> str:
        """Chat-completions role for this origin."""
        return self.value


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class Turn:
    """One message in a conversation."""

    text: str
    origin: Origin
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def user(cls, text: str) -> Turn:
        """Create a user turn stamped now."""
        return cls(text=text, origin=Origin.USER)

    @classmethod
    def assistant(cls, text: str) -> Turn:
        """Create an assistant turn stamped now."""
        return cls(text=text, origin=Origin.ASSISTANT)

    @property
    def is_from_user(self) -> bool:
        return self.origin is Origin.USER


@dataclass(frozen=True)
class ConversationSummary:
    """Lightweight view of a conversation for history lists."""

    id: str
    title: str
    turn_count: int
    created_at: datetime


@dataclass(frozen=True)
class Conversation:
    """Immutable snapshot of a named, ordered collection of turns."""

    title: str
    turns: tuple[Turn, ...] = ()
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def with_turn(self, turn: Turn) -> Conversation:
        """Return a copy with *turn* appended."""
        if any(t.id == turn.id for t in self.turns):
            raise ValueError(
                f"Turn id {turn.id!r} already present in conversation {self.id!r}"
            )
        return replace(self, turns=(*self.turns, turn))

    def summary(self) -> ConversationSummary:
        return ConversationSummary(
            id=self.id,
            title=self.title,
            turn_count=len(self.turns),
            created_at=self.created_at,
        )


# --- JSON encoding ---


def format_timestamp(value: datetime) -> str:
    """Encode a datetime as ISO-8601 UTC with a trailing ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(raw: object) -> datetime:
    """Decode an ISO-8601 string or a bare number into an aware UTC datetime.

    Bare numbers are seconds since 2001-01-01T00:00:00Z, the reference date
    Foundation's ``JSONEncoder`` uses for ``Date`` by default. Blobs written
    by the iOS app carry timestamps in that form.

    Raises:
        ValueError: When *raw* is neither form.
    """
    if isinstance(raw, bool):
        raise ValueError(f"Unsupported timestamp: {raw!r}")
    if isinstance(raw, int | float):
        try:
            return REFERENCE_DATE + timedelta(seconds=raw)
        except OverflowError as e:
            raise ValueError(f"Unsupported timestamp: {raw!r}") from e
    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    raise ValueError(f"Unsupported timestamp: {raw!r}")


def turn_to_dict(turn: Turn) -> dict[str, object]:
    return {
        "id": turn.id,
        "content": turn.text,
        "isFromUser": turn.is_from_user,
        "timestamp": format_timestamp(turn.created_at),
    }


def turn_from_dict(data: dict[str, Any]) -> Turn:
    """Decode a stored turn.

    Raises:
        ValueError: When a required field is missing or has the wrong type.
    """
    turn_id = data.get("id")
    content = data.get("content")
    is_from_user = data.get("isFromUser")
    if not isinstance(turn_id, str) or not turn_id:
        raise ValueError("turn is missing an id")
    if not isinstance(content, str):
        raise ValueError(f"turn {turn_id!r} has no string content")
    if not isinstance(is_from_user, bool):
        raise ValueError(f"turn {turn_id!r} has no isFromUser flag")
    return Turn(
        text=content,
        origin=Origin.USER if is_from_user else Origin.ASSISTANT,
        id=turn_id,
        created_at=parse_timestamp(data.get("timestamp")),
    )


def conversation_to_dict(conversation: Conversation) -> dict[str, object]:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "id": conversation.id,
        "title": conversation.title,
        "createdAt": format_timestamp(conversation.created_at),
        "messages": [turn_to_dict(t) for t in conversation.turns],
    }


def conversation_from_dict(data: dict[str, Any]) -> Conversation:
    """Decode a stored conversation.

    ``schemaVersion`` is optional: blobs written before it existed carry
    none and are read as version 1.

    Raises:
        ValueError: When the entry cannot be decoded.
    """
    version = data.get("schemaVersion", SCHEMA_VERSION)
    if not isinstance(version, int) or version > SCHEMA_VERSION:
        raise ValueError(f"unsupported schemaVersion {version!r}")
    conv_id = data.get("id")
    title = data.get("title")
    if not isinstance(conv_id, str) or not conv_id:
        raise ValueError("conversation is missing an id")
    if not isinstance(title, str):
        raise ValueError(f"conversation {conv_id!r} has no title")
    messages = data.get("messages", [])
    if not isinstance(messages, list):
        raise ValueError(f"conversation {conv_id!r} messages is not a list")

    conversation = Conversation(
        title=title, id=conv_id, created_at=parse_timestamp(data.get("createdAt"))
    )
    for raw in messages:
        if not isinstance(raw, dict):
            raise ValueError(f"conversation {conv_id!r} holds a non-object turn")
        conversation = conversation.with_turn(turn_from_dict(raw))
    return conversation


def encode_conversations(conversations: list[Conversation]) -> list[dict[str, object]]:
    """Encode the whole conversation set as one JSON-ready array."""
    return [conversation_to_dict(c) for c in conversations]


def decode_conversations(raw: object) -> list[Conversation]:
    """Decode a stored conversation array, treating bad input as no data.

    Anything other than a list yields an empty set. Entries that fail to
    decode are dropped with a warning; duplicate ids keep the first entry.
    """
    if not isinstance(raw, list):
        if raw is not None:
            log.warning("Ignoring stored conversations: expected a list")
        return []
    result: list[Conversation] = []
    seen: set[str] = set()
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            log.warning("Skipping stored conversation %d: not an object", idx)
            continue
        try:
            conversation = conversation_from_dict(entry)
        except ValueError as e:
            log.warning("Skipping stored conversation %d: %s", idx, e)
            continue
        if conversation.id in seen:
            log.warning("Skipping duplicate stored conversation %s", conversation.id)
            continue
        seen.add(conversation.id)
        result.append(conversation)
    return result
