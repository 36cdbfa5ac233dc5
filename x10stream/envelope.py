"""Stream envelope: the outer wrapper around every pushed message."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EnvelopeType(str, Enum):
    """Declared type of a stream message."""

    UNKNOWN = "UNKNOWN"
    BALANCE = "BALANCE"
    DELTA = "DELTA"
    DEPOSIT = "DEPOSIT"
    ORDER = "ORDER"
    POSITION = "POSITION"
    SNAPSHOT = "SNAPSHOT"
    TRADE = "TRADE"
    TRANSFER = "TRANSFER"
    WITHDRAWAL = "WITHDRAWAL"

    @classmethod
    def parse(cls, value: Any) -> EnvelopeType:
        """Map a wire string to a member. Anything unrecognised is UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class Envelope:
    """One decoded stream message.

    ``ts`` and ``seq`` are ``None`` when the server omitted them (or sent 0),
    so subscriptions only advance their sequencing metadata on real values.
    """

    type: EnvelopeType
    data: dict[str, Any] | None = None
    error: str | None = None
    ts: int | None = None
    seq: int | None = None

    @property
    def is_snapshot_payload(self) -> bool:
        """True when the payload flags itself as a full snapshot (account streams)."""
        return bool(self.data) and self.data.get("isSnapshot") is True

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Envelope:
        """Build an envelope from a decoded JSON object.

        Raises TypeError if ``raw`` is not a mapping.
        """
        if not isinstance(raw, dict):
            raise TypeError(f"envelope must be a JSON object, got {type(raw).__name__}")
        data = raw.get("data")
        return cls(
            type=EnvelopeType.parse(raw.get("type")),
            data=data if isinstance(data, dict) else None,
            error=raw.get("error") or None,
            ts=raw.get("ts") or None,
            seq=raw.get("seq") or None,
        )
