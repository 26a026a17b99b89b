"""Event kinds handled by the relay and their downstream wire names."""

from __future__ import annotations

from enum import Enum
from typing import Final


class EventKind(str, Enum):
    """Closed set of inbound event kinds: resource family x action."""

    PICTURES_CREATE = "pictures/create"
    PICTURES_UPDATE = "pictures/update"
    PICTURES_DELETE = "pictures/delete"
    REFERENCES_CREATE = "references/create"
    REFERENCES_UPDATE = "references/update"
    REFERENCES_DELETE = "references/delete"


EVENT_KINDS: Final[tuple[EventKind, ...]] = tuple(EventKind)

EVENT_KIND_TO_WIRE: Final[dict[EventKind, str]] = {
    EventKind.PICTURES_CREATE: "picture.create",
    EventKind.PICTURES_UPDATE: "picture.update",
    EventKind.PICTURES_DELETE: "picture.delete",
    EventKind.REFERENCES_CREATE: "reference.create",
    EventKind.REFERENCES_UPDATE: "reference.update",
    EventKind.REFERENCES_DELETE: "reference.delete",
}

# Provider topics currently share their spelling with the event kind values.
TOPIC_TO_EVENT_KIND: Final[dict[str, EventKind]] = {kind.value: kind for kind in EventKind}
