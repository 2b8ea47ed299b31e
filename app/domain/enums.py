"""Domain enumerations."""

from enum import Enum


class ExperienceLevel(str, Enum):
    """Ordered experience levels; declaration order is the ordinal."""

    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"

    @property
    def ordinal(self) -> int:
        return list(ExperienceLevel).index(self)


class ConnectionStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"


class InteractionStatus(str, Enum):
    """How one user relates to another, from the viewer's side."""

    NONE = "NONE"
    CONNECTION_ACCEPTED = "CONNECTION_ACCEPTED"
    PENDING_OUTGOING = "PENDING_OUTGOING"
    PENDING_INCOMING = "PENDING_INCOMING"
    BLOCKED_BY_YOU = "BLOCKED_BY_YOU"
    BLOCKED_BY_OTHER = "BLOCKED_BY_OTHER"
    BLOCKED_MUTUAL = "BLOCKED_MUTUAL"


class ProfileKind(str, Enum):
    ARTIST = "artist"
    PRODUCER = "producer"
