import logging
from typing import NamedTuple
from pitchpenguin.animation.events import MASCOTS
from pitchpenguin.game.models import ActionResult, Player
from pitchpenguin.game.rules import ROOM_CAPACITY, find_player, same_name
from pitchpenguin.pages.base import Page, PolledState
from pitchpenguin.sync.navigator import route_for_phase

logger = logging.getLogger(__name__)

ACTIVITY_LOG_SIZE = 5


class MascotOption(NamedTuple):
    id: str
    name: str
    taken_by: str | None
    disabled: bool
    selected: bool


def mascot_options(players: list[Player], player_name: str | None, catalogue: list[str] | None = None) -> list[MascotOption]:
    """
    Mascots are exclusive per room: one held by another player is disabled
    for everyone except its holder.
    """
    holders = {p.mascot: p.name for p in players if p.mascot}
    options = []
    for mascot_id in catalogue or list(MASCOTS):
        holder = holders.get(mascot_id)
        mine = holder is not None and same_name(holder, player_name)
        options.append(MascotOption(
            id=mascot_id,
            name=MASCOTS.get(mascot_id, (mascot_id, ""))[0],
            taken_by=holder,
            disabled=holder is not None and not mine,
            selected=mine,
        ))
    return options


def roster_message(names: list[str], verb: str) -> str:
    first = names[0]
    if len(names) == 1:
        return f"{first} {verb} the room."
    return f"{first} and {len(names) - 1} others {verb} the room."


def roster_changes(previous: list[str], current: list[str]) -> tuple[list[str], list[str]]:
    joined = [n for n in current if not any(same_name(n, p) for p in previous)]
    left = [n for n in previous if not any(same_name(n, c) for c in current)]
    return joined, left


class LobbyPage(Page):
    name = "lobby"
    phase = "lobby"
    interval = 4.0
    needs_room = True

    def __init__(self, ctx):
        super().__init__(ctx)
        self.capacity = ROOM_CAPACITY
        self.host_name = ""
        self.host_changed = False
        self.activity_log: list[str] = []
        self.selected_mascot = ""
        self.robot_voice_enabled = True
        self._previous_names: list[str] = []
        self._seen_roster = False

    async def before_reconcile(self, state: PolledState) -> None:
        # A player that dropped off the roster (server restart, stale tab) rejoins
        room, name = state.room, self.player_name
        if room is None or not name:
            return
        if find_player(room.players, name) is None:
            logger.info(f"{name} is missing from room {self.ctx.code}, rejoining")
            result = await self.ctx.client.join_room(self.ctx.code, name)
            if not result.ok:
                logger.warning(f"Rejoin failed: {result.message}")

    def reconcile(self, state: PolledState) -> None:
        if state.snapshot.room is not None:
            self.robot_voice_enabled = state.snapshot.room.robot_voice_enabled
        room = state.room
        if room is None:
            return
        self.players = room.players
        self.capacity = room.capacity

        names = [p.name for p in room.players]
        if self._seen_roster:
            joined, left = roster_changes(self._previous_names, names)
            if joined:
                self._log(roster_message(joined, "joined"))
            elif left:
                self._log(roster_message(left, "left"))
        self._previous_names = names
        self._seen_roster = True

        host = next((p.name for p in room.players if p.is_host), "")
        self.host_changed = bool(host and self.host_name and host != self.host_name)
        if host:
            self.host_name = host

        me = find_player(room.players, self.player_name)
        if me is not None and me.mascot:
            self.selected_mascot = me.mascot

    def _log(self, message: str) -> None:
        self.activity_log = [message, *self.activity_log][:ACTIVITY_LOG_SIZE]

    @property
    def is_host(self) -> bool:
        return same_name(self.host_name, self.player_name)

    @property
    def options(self) -> list[MascotOption]:
        return mascot_options(self.players, self.player_name)

    async def select_mascot(self, mascot: str) -> ActionResult:
        if not self.player_name:
            return ActionResult(ok=False, message="Join the room first.")
        option = next((o for o in self.options if o.id == mascot), None)
        if option is not None and option.disabled:
            return ActionResult(ok=False, message=f"{option.name} is taken by {option.taken_by}.")
        result = await self.ctx.client.select_mascot(self.ctx.code, self.player_name, mascot)
        if result.ok:
            previous = self.selected_mascot
            self.selected_mascot = result.payload("mascot") or mascot
            if previous and previous != self.selected_mascot:
                self.ctx.animations.trigger(self.player_name, "deselect")
            self.ctx.animations.trigger(self.player_name, "select")
        return result

    async def toggle_voice(self) -> ActionResult:
        self.robot_voice_enabled = not self.robot_voice_enabled
        return await self.ctx.client.toggle_voice(self.ctx.code, self.robot_voice_enabled)

    async def start(self) -> ActionResult:
        result = await self.ctx.client.advance(self.ctx.code, self.player_name or "")
        if result.ok and result.phase:
            route = route_for_phase(result.phase, self.ctx.code)
            if route is not None:
                self.ctx.navigator.navigate(route)
        return result

    async def leave(self) -> ActionResult:
        if not self.player_name:
            return ActionResult(ok=False, message="No player stored for this room.")
        result = await self.ctx.client.leave_room(self.ctx.code, self.player_name)
        if result.ok:
            if self.ctx.store is not None:
                self.ctx.store.forget_room(self.ctx.code)
            self.ctx.navigator.navigate("/")
        return result
