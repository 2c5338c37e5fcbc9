#!/usr/bin/env python3
"""
Recompute every team's total from its players' breakdowns and compare it
with the total the scoring service reports on the dashboard.
"""

import asyncio
import sys

import pandas as pd

import config
from logger import get_logger
from services import ScoringGateway, ScoringService
from services.errors import GatewayError

log = get_logger("verify_scores", runtime="scripts")


async def verify_team_scores(scoring: ScoringService) -> pd.DataFrame:
    """Return one row per team with reported vs recomputed totals"""
    leaderboard = await scoring.get_team_leaderboard()

    rows = []
    for _, team in leaderboard.iterrows():
        try:
            details = await scoring.get_team_details(team["id"])
        except GatewayError as e:
            log.error(f"Could not load team {team['name']}: {e}")
            rows.append({
                "team": team["name"],
                "reported": team["total_points"],
                "recomputed": None,
                "match": False,
            })
            continue

        recomputed = details["total"].total
        rows.append({
            "team": team["name"],
            "reported": team["total_points"],
            "recomputed": recomputed,
            "match": not details["errors"] and recomputed == team["total_points"],
        })

    return pd.DataFrame(rows, columns=["team", "reported", "recomputed", "match"])


def main() -> int:
    print("🏆 LEVEL UP - SCORE VERIFICATION")
    print("=" * 50)

    scoring = ScoringService(ScoringGateway(config.API_URL))
    try:
        report = asyncio.run(verify_team_scores(scoring))
    except GatewayError as e:
        print(f"❌ Error: {e}")
        return 1

    for _, row in report.iterrows():
        marker = "✅" if row["match"] else "❌"
        print(f"  {marker} {row['team']}: reported {row['reported']}, recomputed {row['recomputed']}")

    mismatches = len(report) - int(report["match"].astype(bool).sum())
    if mismatches:
        print(f"\n❌ {mismatches} team(s) do not match")
        return 1

    print(f"\n✅ Verification complete: {len(report)} teams consistent")
    return 0


if __name__ == "__main__":
    sys.exit(main())
