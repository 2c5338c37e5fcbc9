"""In-memory stand-ins for the scoring gateway used across tests."""

import asyncio

from services.errors import GatewayError
from services.models import Activity, BreakdownRow, Player, Team


class FakeGateway:
    def __init__(self, teams=None, activities=None, rosters=None, breakdowns=None,
                 gated=False):
        self.teams = teams or []
        self.activities = activities or []
        self.rosters = rosters or {}
        self.breakdowns = breakdowns or {}
        self.gated = gated
        self.gates = {}
        self.created = []
        self.calls = []
        self.fail_with = {}
        self.login_result = None
        self.session = None

    def gate(self, key):
        if key not in self.gates:
            self.gates[key] = asyncio.Event()
        return self.gates[key]

    def release(self, key):
        self.gate(key).set()

    def _maybe_fail(self, name):
        error = self.fail_with.get(name)
        if error is not None:
            raise error

    async def list_teams(self):
        self.calls.append(("list_teams",))
        self._maybe_fail("list_teams")
        return list(self.teams)

    async def list_teams_with_totals(self):
        self.calls.append(("list_teams_with_totals",))
        self._maybe_fail("list_teams_with_totals")
        return list(self.teams)

    async def list_activities(self):
        self.calls.append(("list_activities",))
        self._maybe_fail("list_activities")
        return list(self.activities)

    async def list_players_for_team(self, team_id):
        self.calls.append(("list_players_for_team", team_id))
        if self.gated:
            await self.gate(team_id).wait()
        self._maybe_fail("list_players_for_team")
        return list(self.rosters.get(team_id, []))

    async def get_team_detail(self, team_id):
        self.calls.append(("get_team_detail", team_id))
        self._maybe_fail("get_team_detail")
        for team in self.teams:
            if team.id == team_id:
                return team
        raise GatewayError("not found", 404)

    async def get_player_breakdown(self, player_id):
        self.calls.append(("get_player_breakdown", player_id))
        result = self.breakdowns.get(player_id, [])
        if isinstance(result, Exception):
            raise result
        return [BreakdownRow(**row) for row in result]

    async def create_point_entry(self, player_id, activity_id, points):
        self.calls.append(("create_point_entry", player_id, activity_id, points))
        if self.gated:
            await self.gate("points").wait()
        self._maybe_fail("create_point_entry")
        self.created.append((player_id, activity_id, points))

    async def login(self, username, password):
        self.calls.append(("login", username))
        if isinstance(self.login_result, Exception):
            raise self.login_result
        return self.login_result


def sample_gateway(**kwargs):
    teams = [
        Team(id=1, name="Eagles", coach="Ravi", mentor="Meera",
             players=(Player(10, "Anand", 1), Player(11, "Bhavin", 1)), total_points=12),
        Team(id=2, name="Lions", coach="Kiran", mentor="Nisha",
             players=(Player(20, "Chirag", 2),), total_points=-4),
    ]
    activities = [Activity(100, "Quiz"), Activity(101, "Volunteering")]
    rosters = {
        1: [Player(10, "Anand", 1), Player(11, "Bhavin", 1)],
        2: [Player(20, "Chirag", 2)],
    }
    return FakeGateway(teams=teams, activities=activities, rosters=rosters, **kwargs)


__all__ = ["FakeGateway", "sample_gateway"]
