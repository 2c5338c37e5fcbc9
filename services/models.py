"""
Level Up Dashboard - Domain Models
Lightweight records built from scoring service payloads
"""

import math
from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Dict, Optional, Tuple

from logger import get_logger

log = get_logger("services.models")


def coerce_points(value: Any) -> int:
    """
    Normalize a point value to a whole number.

    None counts as zero. Numeric text such as "12" is accepted; fractional
    values are truncated toward zero. Anything else raises ValueError.
    """
    if value is None:
        return 0
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            raise ValueError(f"Point value {value!r} is not numeric") from None
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ValueError(f"Point value {value!r} is not numeric")
    if isinstance(value, int):
        return value
    if not math.isfinite(value):
        raise ValueError(f"Point value {value!r} is not finite")
    whole = int(value)
    if whole != value:
        log.warning(f"Truncating fractional point value {value} to {whole}")
    return whole


@dataclass(frozen=True)
class Player:
    id: Any
    name: str
    team_id: Optional[Any] = None

    @classmethod
    def from_payload(cls, data: Dict, team_id: Optional[Any] = None) -> "Player":
        return cls(id=data["id"], name=data.get("name") or "", team_id=data.get("team_id", team_id))


@dataclass(frozen=True)
class Team:
    id: Any
    name: str
    logo_url: Optional[str] = None
    coach: str = ""
    mentor: str = ""
    players: Tuple[Player, ...] = field(default_factory=tuple)
    total_points: int = 0

    @classmethod
    def from_payload(cls, data: Dict) -> "Team":
        team_id = data["id"]
        players = tuple(Player.from_payload(p, team_id) for p in data.get("players") or [])
        return cls(
            id=team_id,
            name=data.get("name") or "",
            logo_url=data.get("logo_url") or None,
            coach=data.get("coach") or "",
            mentor=data.get("mentor") or "",
            players=players,
            total_points=coerce_points(data.get("total_points")),
        )


@dataclass(frozen=True)
class Activity:
    id: Any
    name: str

    @classmethod
    def from_payload(cls, data: Dict) -> "Activity":
        return cls(id=data["id"], name=data.get("name") or "")


@dataclass(frozen=True)
class PointEntry:
    """A single scoring fact; only ever created, never edited"""
    player_id: Any
    activity_id: Any
    points: int

    def to_payload(self) -> Dict:
        return {
            "player_id": self.player_id,
            "activity_id": self.activity_id,
            "points": self.points,
        }


@dataclass(frozen=True)
class BreakdownRow:
    activity: str
    points: int

    @classmethod
    def from_payload(cls, data: Dict) -> "BreakdownRow":
        return cls(activity=data.get("activity") or "", points=coerce_points(data.get("points")))


@dataclass(frozen=True)
class Session:
    username: str
    token: str

    @classmethod
    def from_record(cls, data: Any) -> Optional["Session"]:
        """Build a session from a stored record, or None if it is incomplete"""
        if not isinstance(data, dict):
            return None
        username = data.get("username")
        token = data.get("token")
        if not isinstance(username, str) or not isinstance(token, str):
            return None
        if not username.strip() or not token.strip():
            return None
        return cls(username=username, token=token)
