"""Shared notation-layer data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

DEFAULT_EVENT = "Casual Game"
DEFAULT_SITE = "Knightly"
UNKNOWN_TAG = "?"


@dataclass(slots=True)
class PgnMove:
    """A single mainline move extracted from PGN movetext."""

    san: str
    comment: str = ""


@dataclass(slots=True)
class ParsedPgn:
    """Structured PGN payload used by the game import path."""

    headers: dict[str, str]
    moves: list[PgnMove]
    result_token: str

    @property
    def start_fen(self) -> str | None:
        """Starting FEN from a ``SetUp``/``FEN`` header pair, if any."""
        fen = self.headers.get("FEN")
        if fen and self.headers.get("SetUp", "1") == "1":
            return fen
        return None


@dataclass(frozen=True, slots=True)
class PgnMetadata:
    """Optional tag values for an exported game; blanks fall back to defaults."""

    event: str | None = None
    site: str | None = None
    date: str | None = None
    white: str | None = None
    black: str | None = None

    def headers(self, result_token: str, today: date | None = None) -> dict[str, str]:
        """The Seven Tag Roster in standard order."""
        day = today if today is not None else date.today()
        return {
            "Event": self.event or DEFAULT_EVENT,
            "Site": self.site or DEFAULT_SITE,
            "Date": self.date or day.strftime("%Y.%m.%d"),
            "Round": "-",
            "White": self.white or UNKNOWN_TAG,
            "Black": self.black or UNKNOWN_TAG,
            "Result": result_token,
        }
