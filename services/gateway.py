"""
Level Up Dashboard - Remote Data Gateway
Async client for the scoring service's read, login and allocation endpoints
"""

from typing import Any, Callable, Dict, List, Optional

import httpx

from logger import get_logger
from services.errors import (
    AuthenticationError,
    GatewayAuthorizationError,
    GatewayTransportError,
    GatewayValidationError,
)
from services.models import Activity, BreakdownRow, PointEntry, Player, Team

log = get_logger("services.gateway")


class ScoringGateway:
    """Thin contract over the scoring service HTTP API"""

    def __init__(self, base_url: str, session=None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        # Anything exposing a `token` attribute (normally a SessionHolder)
        self.session = session
        self._transport = transport

    def _client(self, headers: Optional[Dict[str, str]] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, headers=headers, transport=self._transport)

    async def _get(self, path: str) -> Any:
        async with self._client() as client:
            try:
                resp = await client.get(path)
            except httpx.HTTPError as e:
                log.error(f"GET {path} failed: {e}")
                raise GatewayTransportError(f"Could not reach scoring service: {e}") from e

        if resp.status_code >= 500:
            log.error(f"GET {path} returned {resp.status_code}")
            raise GatewayTransportError(f"Server error on {path}", resp.status_code)
        if resp.status_code >= 400:
            log.warning(f"GET {path} rejected [{resp.status_code}]")
            raise GatewayValidationError(f"Request for {path} was rejected", resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            log.error(f"GET {path} returned a non-JSON body")
            raise GatewayTransportError(f"Malformed response from {path}") from e

    def _parse_list(self, path: str, data: Any, build: Callable[[Dict], Any]) -> List[Any]:
        """Build records from a list-of-objects body; anything else is malformed"""
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            log.error(f"GET {path} returned an unexpected body shape")
            raise GatewayTransportError(f"Malformed response from {path}")
        try:
            return [build(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            log.error(f"GET {path} returned an unusable record: {e!r}")
            raise GatewayTransportError(f"Malformed response from {path}") from e

    # ------------------------------
    # Read operations
    # ------------------------------

    async def list_teams(self) -> List[Team]:
        data = await self._get("/teams")
        return self._parse_list("/teams", data, Team.from_payload)

    async def list_teams_with_totals(self) -> List[Team]:
        data = await self._get("/dashboard")
        return self._parse_list("/dashboard", data, Team.from_payload)

    async def list_activities(self) -> List[Activity]:
        data = await self._get("/activities")
        return self._parse_list("/activities", data, Activity.from_payload)

    async def list_players_for_team(self, team_id) -> List[Player]:
        path = f"/players/team/{team_id}"
        data = await self._get(path)
        return self._parse_list(path, data, lambda item: Player.from_payload(item, team_id))

    async def get_team_detail(self, team_id) -> Team:
        path = f"/team/{team_id}"
        data = await self._get(path)
        if not isinstance(data, dict):
            raise GatewayTransportError(f"Malformed team record for {team_id}")
        try:
            return Team.from_payload(data)
        except (KeyError, TypeError, ValueError) as e:
            log.error(f"GET {path} returned an unusable team record: {e!r}")
            raise GatewayTransportError(f"Malformed response from {path}") from e

    async def get_player_breakdown(self, player_id) -> List[BreakdownRow]:
        path = f"/player/{player_id}"
        data = await self._get(path)
        return self._parse_list(path, data, BreakdownRow.from_payload)

    # ------------------------------
    # Authentication
    # ------------------------------

    async def login(self, username: str, password: str) -> Dict[str, str]:
        """Exchange credentials for {username, token}"""
        async with self._client() as client:
            try:
                resp = await client.post("/login", json={"username": username, "password": password})
            except httpx.HTTPError as e:
                log.error(f"Login request failed: {e}")
                raise AuthenticationError("Login request failed") from e

        if resp.status_code >= 400:
            reason = None
            try:
                body = resp.json()
                if isinstance(body, dict):
                    reason = body.get("error")
            except ValueError:
                pass
            log.warning(f"Login rejected for '{username}' [{resp.status_code}]")
            raise AuthenticationError("Login rejected", reason=reason, status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise AuthenticationError("Malformed login response") from e

        if not isinstance(body, dict) or not body.get("token"):
            raise AuthenticationError("Login response did not include a token")

        return {"username": body.get("username") or username, "token": body["token"]}

    # ------------------------------
    # Mutation
    # ------------------------------

    async def create_point_entry(self, player_id, activity_id, points: int) -> PointEntry:
        """Append a new point allocation; requires an authenticated session"""
        token = getattr(self.session, "token", None)
        if not token:
            raise GatewayAuthorizationError("No active session")

        entry = PointEntry(player_id=player_id, activity_id=activity_id, points=points)
        headers = {"Authorization": f"Bearer {token}"}

        async with self._client(headers=headers) as client:
            try:
                resp = await client.post("/points", json=entry.to_payload())
            except httpx.HTTPError as e:
                log.error(f"Point allocation failed in transport: {e}")
                raise GatewayTransportError(f"Could not reach scoring service: {e}") from e

        if resp.status_code in (401, 403):
            log.warning(f"Point allocation unauthorized [{resp.status_code}]")
            raise GatewayAuthorizationError("Credential rejected", resp.status_code)
        if resp.status_code >= 500:
            log.error(f"Point allocation server error [{resp.status_code}]")
            raise GatewayTransportError("Server error saving points", resp.status_code)
        if resp.status_code >= 400:
            log.warning(f"Point allocation rejected [{resp.status_code}]: {resp.text}")
            raise GatewayValidationError("Allocation rejected", resp.status_code)

        log.info(f"Allocated {points} points to player {player_id} for activity {activity_id}")
        return entry
