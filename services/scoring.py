"""
Level Up Dashboard - Scoring Service
Client-side point aggregation and leaderboard data retrieval
"""

import asyncio
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

import pandas as pd

from logger import get_logger
from services.errors import GatewayError
from services.models import Team, coerce_points

log = get_logger("services.scoring")

NEGATIVE_CLASS = "negative-points"


class PointSummary(NamedTuple):
    total: int
    is_negative: bool

    @property
    def css_class(self) -> str:
        return NEGATIVE_CLASS if self.is_negative else ""


def _points_of(record: Any, key: str) -> Any:
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def summarize_points(records: Optional[Iterable[Any]], key: str = "points") -> PointSummary:
    """
    Sum the points of a sequence of records.

    Records may be mappings or objects; a missing value counts as zero and an
    empty or absent sequence totals zero. Fractional values are truncated
    toward zero.
    """
    total = 0
    for record in records or ():
        total += coerce_points(_points_of(record, key))
    return PointSummary(total=total, is_negative=total < 0)


def _teams_frame(teams: List[Team]) -> pd.DataFrame:
    rows = []
    for team in teams:
        summary = summarize_points([team], key="total_points")
        rows.append({
            "id": team.id,
            "name": team.name,
            "logo_url": team.logo_url,
            "total_points": summary.total,
            "is_negative": summary.is_negative,
        })

    df = pd.DataFrame(rows, columns=["id", "name", "logo_url", "total_points", "is_negative"])
    df = df.sort_values(["total_points", "name"], ascending=[False, True]).reset_index(drop=True)
    df.insert(0, "rank", range(1, len(df) + 1))
    return df


class ScoringService:
    """Scoring views assembled from the remote gateway"""

    def __init__(self, gateway):
        self.gateway = gateway

    async def get_team_leaderboard(self) -> pd.DataFrame:
        """Get dashboard teams ranked by total points"""
        teams = await self.gateway.list_teams_with_totals()
        return _teams_frame(teams)

    async def get_team_list(self) -> pd.DataFrame:
        """Get the team listing used by the team explorer"""
        teams = await self.gateway.list_teams()
        return _teams_frame(teams)

    async def get_team_details(self, team_id) -> Dict:
        """Get team information with per-player and team totals"""
        team = await self.gateway.get_team_detail(team_id)

        results = await asyncio.gather(
            *(self.gateway.get_player_breakdown(p.id) for p in team.players),
            return_exceptions=True,
        )

        members = []
        all_rows = []
        errors = []
        for player, result in zip(team.players, results):
            if isinstance(result, GatewayError):
                log.warning(f"Breakdown for player {player.id} unavailable: {result}")
                errors.append(player.name)
                summary = PointSummary(0, False)
            elif isinstance(result, BaseException):
                raise result
            else:
                all_rows.extend(result)
                summary = summarize_points(result)

            members.append({
                "id": player.id,
                "name": player.name,
                "total_points": summary.total,
                "is_negative": summary.is_negative,
            })

        return {
            "team": team,
            "members": pd.DataFrame(members, columns=["id", "name", "total_points", "is_negative"]),
            "total": summarize_points(all_rows),
            "errors": errors,
        }

    async def get_player_breakdown(self, player_id) -> Dict:
        """Get a player's activity breakdown and derived total"""
        rows = await self.gateway.get_player_breakdown(player_id)
        df = pd.DataFrame(
            [{"activity": r.activity, "points": coerce_points(r.points)} for r in rows],
            columns=["activity", "points"],
        )
        return {
            "breakdown": df,
            "summary": summarize_points(rows),
        }

    async def get_activity_totals(self, player_id) -> pd.DataFrame:
        """Get a player's points grouped by activity"""
        details = await self.get_player_breakdown(player_id)
        df = details["breakdown"]
        if len(df) == 0:
            return pd.DataFrame(columns=["activity", "points"])
        return (
            df.groupby("activity", sort=False)["points"].sum()
            .reset_index()
            .sort_values("points", ascending=False)
            .reset_index(drop=True)
        )
