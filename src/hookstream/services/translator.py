"""Translate provider topics into event kinds and wire event types."""

from __future__ import annotations

from dataclasses import dataclass

from hookstream.core.events import EVENT_KIND_TO_WIRE, TOPIC_TO_EVENT_KIND, EventKind

__all__ = ["TopicTranslation", "parse_event_kind", "translate_topic", "wire_event_type"]


@dataclass(frozen=True)
class TopicTranslation:
    """A recognised topic resolved to its internal kind and wire string."""

    kind: EventKind
    wire_type: str


def translate_topic(topic: str) -> TopicTranslation | None:
    """Return the translation for ``topic``, or ``None`` when it is not recognised.

    An unrecognised topic is a normal outcome. The caller decides how to reject it.
    """
    kind = TOPIC_TO_EVENT_KIND.get(topic)
    if kind is None:
        return None
    return TopicTranslation(kind=kind, wire_type=EVENT_KIND_TO_WIRE[kind])


def wire_event_type(kind: EventKind) -> str:
    """Return the downstream event type string for ``kind``."""
    return EVENT_KIND_TO_WIRE[kind]


def parse_event_kind(value: str) -> EventKind | None:
    """Parse a stored event kind value, returning ``None`` for unknown values."""
    try:
        return EventKind(value)
    except ValueError:
        return None
