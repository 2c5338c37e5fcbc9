"""
Level Up Dashboard - Point Allocation Form
View-model for the Team -> Player -> Activity -> Points allocation flow.

The form owns an AllocationDraft plus the option lists it is scoped by. The
player roster is reloaded whenever the team changes; each roster request is
tagged with a generation number so a late reply for a team that is no longer
selected is dropped instead of overwriting the current roster. Activities are
team-independent and load once with the team list.

Rendering is not done here. The Streamlit page calls these methods from its
widget callbacks and reads `state`, `message` and the option lists back.
"""

import asyncio
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from logger import get_logger
from services.errors import GatewayAuthorizationError, GatewayError
from services.models import Activity, Player, Team

log = get_logger("services.allocation")

INCOMPLETE_MSG = "Complete all fields!"
ZERO_POINTS_MSG = "Points cannot be zero."
NOT_WHOLE_MSG = "Points must be a whole number."
SAVING_MSG = "Saving..."
SUCCESS_MSG = "Success! Reflected on dashboard!"
FAILURE_MSG = "Error saving data, try again."


class AllocationState(Enum):
    EMPTY = "empty"
    TEAM_CHOSEN = "team_chosen"
    ROSTER_LOADED = "roster_loaded"
    PLAYER_CHOSEN = "player_chosen"
    READY = "ready"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_points(value: Any) -> int:
    """Convert form input to an integer point value; raises ValueError otherwise"""
    if isinstance(value, bool):
        raise ValueError(NOT_WHOLE_MSG)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or value != int(value):
            raise ValueError(NOT_WHOLE_MSG)
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return parse_points(float(text))
        except ValueError:
            raise ValueError(NOT_WHOLE_MSG) from None
    raise ValueError(NOT_WHOLE_MSG)


@dataclass
class AllocationDraft:
    team_id: Optional[Any] = None
    player_id: Optional[Any] = None
    activity_id: Optional[Any] = None
    points: int = 0

    @property
    def is_complete(self) -> bool:
        return not (_blank(self.team_id) or _blank(self.player_id) or _blank(self.activity_id))

    def validate(self) -> Optional[str]:
        """Return the blocking validation message, or None if submittable"""
        if not self.is_complete:
            return INCOMPLETE_MSG
        if self.points == 0:
            return ZERO_POINTS_MSG
        return None


class AllocationForm:
    """Cascading selection state machine for recording point allocations"""

    def __init__(self, gateway, on_unauthorized: Optional[Callable[[str], None]] = None):
        self.gateway = gateway
        self.on_unauthorized = on_unauthorized

        self.draft = AllocationDraft()
        self.teams: List[Team] = []
        self.activities: List[Activity] = []
        self.players: List[Player] = []

        self.message = ""
        self.load_error: Optional[str] = None
        self.roster_error: Optional[str] = None

        self._roster_generation = 0
        self._roster_team_id = None
        self._submitting = False
        self._outcome: Optional[AllocationState] = None

    # ------------------------------
    # Derived state
    # ------------------------------

    @property
    def state(self) -> AllocationState:
        if self._submitting:
            return AllocationState.SUBMITTING
        if self._outcome is not None:
            return self._outcome
        if _blank(self.draft.team_id):
            return AllocationState.EMPTY
        if self.draft.validate() is None:
            return AllocationState.READY
        if not _blank(self.draft.player_id):
            return AllocationState.PLAYER_CHOSEN
        if self.roster_loaded:
            return AllocationState.ROSTER_LOADED
        return AllocationState.TEAM_CHOSEN

    @property
    def roster_loaded(self) -> bool:
        return (
            not _blank(self.draft.team_id)
            and self._roster_team_id == self.draft.team_id
        )

    @property
    def player_selectable(self) -> bool:
        return self.roster_loaded and bool(self.players)

    @property
    def can_submit(self) -> bool:
        return not self._submitting and self.draft.validate() is None

    def _touch(self):
        # Any edit drops the last outcome and its message
        self._outcome = None
        self.message = ""

    # ------------------------------
    # Loading
    # ------------------------------

    async def load_reference_data(self):
        """Load teams and activities once, at mount"""
        teams, activities = await asyncio.gather(
            self.gateway.list_teams(),
            self.gateway.list_activities(),
            return_exceptions=True,
        )

        errors = []
        if isinstance(teams, GatewayError):
            log.warning(f"Team list unavailable: {teams}")
            errors.append("teams")
            teams = []
        elif isinstance(teams, BaseException):
            raise teams

        if isinstance(activities, GatewayError):
            log.warning(f"Activity list unavailable: {activities}")
            errors.append("activities")
            activities = []
        elif isinstance(activities, BaseException):
            raise activities

        self.teams = list(teams)
        self.activities = list(activities)
        self.load_error = f"Could not load {' and '.join(errors)}." if errors else None

    # ------------------------------
    # Selection
    # ------------------------------

    async def select_team(self, team_id):
        """Choose a team; clears the player and reloads the roster"""
        self._touch()
        self.draft.team_id = None if _blank(team_id) else team_id
        self.draft.player_id = None
        self.players = []
        self.roster_error = None
        self._roster_team_id = None
        self._roster_generation += 1
        generation = self._roster_generation

        if self.draft.team_id is None:
            return

        try:
            players = await self.gateway.list_players_for_team(team_id)
        except GatewayError as e:
            if generation == self._roster_generation:
                log.warning(f"Roster for team {team_id} unavailable: {e}")
                self.roster_error = "Could not load players for this team."
            return

        if generation != self._roster_generation or self.draft.team_id != team_id:
            log.debug(f"Discarding stale roster for team {team_id}")
            return

        self.players = list(players)
        self._roster_team_id = team_id

    def select_player(self, player_id):
        self._touch()
        if _blank(player_id):
            self.draft.player_id = None
            return
        if not any(p.id == player_id for p in self.players):
            raise ValueError(f"Player {player_id} is not on the selected team")
        self.draft.player_id = player_id

    def select_activity(self, activity_id):
        self._touch()
        self.draft.activity_id = None if _blank(activity_id) else activity_id

    def set_points(self, value) -> bool:
        """Set points from direct entry; rejects non-integer input"""
        try:
            points = parse_points(value)
        except ValueError:
            self.message = NOT_WHOLE_MSG
            return False
        self._touch()
        self.draft.points = points
        return True

    def increment(self) -> bool:
        return self.set_points(self.draft.points + 1)

    def decrement(self) -> bool:
        return self.set_points(self.draft.points - 1)

    def validate(self) -> Optional[str]:
        return self.draft.validate()

    # ------------------------------
    # Submission
    # ------------------------------

    async def submit(self) -> bool:
        """Record the draft as a new point entry"""
        if self._submitting:
            log.debug("Submit ignored; a submission is already in flight")
            return False

        error = self.draft.validate()
        if error:
            self.message = error
            return False

        draft = self.draft
        self._submitting = True
        self._outcome = None
        self.message = SAVING_MSG
        try:
            await self.gateway.create_point_entry(draft.player_id, draft.activity_id, draft.points)
        except GatewayAuthorizationError as e:
            log.warning(f"Allocation unauthorized: {e}")
            if self.on_unauthorized:
                self.on_unauthorized(str(e))
            return self._finish(AllocationState.FAILED, FAILURE_MSG)
        except GatewayError as e:
            log.error(f"Allocation failed: {e}")
            return self._finish(AllocationState.FAILED, FAILURE_MSG)
        finally:
            self._submitting = False

        return self._finish(AllocationState.SUBMITTED, SUCCESS_MSG)

    def _finish(self, outcome: AllocationState, message: str) -> bool:
        self._outcome = outcome
        self.message = message
        return outcome is AllocationState.SUBMITTED

    def reset(self):
        """Start a fresh draft; reference lists stay loaded"""
        self.draft = AllocationDraft()
        self.players = []
        self.message = ""
        self.roster_error = None
        self._roster_team_id = None
        self._roster_generation += 1
        self._outcome = None
