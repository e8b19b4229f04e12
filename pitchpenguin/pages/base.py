from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pitchpenguin.animation.trigger import AnimationRegistry
from pitchpenguin.api.client import RoomApiClient
from pitchpenguin.game.models import GameSnapshot, Pitch, Player, RoomInfo
from pitchpenguin.game.rules import is_judge
from pitchpenguin.storage.local_state import LocalState
from pitchpenguin.sync.navigator import Navigator


@dataclass
class PageContext:
    """Everything a page needs to talk to the room and move between pages."""
    client: RoomApiClient
    code: str
    navigator: Navigator
    player_name: str | None = None
    store: LocalState | None = None
    animations: AnimationRegistry = field(default_factory=AnimationRegistry)


@dataclass
class PolledState:
    """One poll's worth of server data."""
    snapshot: GameSnapshot
    pitches: list[Pitch] | None = None
    room: RoomInfo | None = None


class Page(ABC):
    """
    Local view of one game screen. The phase poller feeds it snapshots;
    subclasses pick the fields they care about in `reconcile`.
    """
    name: str = ""
    phase: str = ""
    interval: float = 2.0           # seconds between network polls
    timer_fields: tuple[str, ...] = ()
    needs_pitches: bool = False
    needs_room: bool = False

    def __init__(self, ctx: PageContext):
        self.ctx = ctx
        self.status = "loading"     # "idle", "loading" or "error"
        self.seconds_left: int | None = None
        self.round = 0
        self.judge = ""
        self.players: list[Player] = []
        self.mascots: dict[str, str] = {}

    @property
    def player_name(self) -> str | None:
        return self.ctx.player_name

    @property
    def is_judge(self) -> bool:
        return is_judge(self.judge, self.player_name)

    def redirect_phase(self, snapshot: GameSnapshot) -> str | None:
        """Server phase this page should hand over to, if any."""
        room = snapshot.room
        if room is None or not room.phase or room.phase == self.phase:
            return None
        return room.phase

    def timer_expiry(self, snapshot: GameSnapshot) -> int | None:
        room = snapshot.room
        if room is None:
            return None
        for name in self.timer_fields:
            value = room.timers.get(name)
            if value is not None:
                return int(value)
        return None

    async def before_reconcile(self, state: PolledState) -> None:
        """Hook for pages that have to call the server before updating."""

    def apply(self, state: PolledState) -> None:
        snapshot = state.snapshot
        if snapshot.room is None:
            # "Unable to load round state"
            self.status = "error"
            return
        self.round = snapshot.room.round
        self.judge = snapshot.room.judge
        if snapshot.players:
            self.players = snapshot.players
            self.mascots = snapshot.mascots()
        if state.room is not None:
            self.mascots = {p.name: p.mascot for p in state.room.players if p.mascot}
        if snapshot.players or state.room is not None:
            # Animators exist before reconcile fires any event
            self.ctx.animations.track(self.mascots)
        self.reconcile(state)
        self.status = "idle"

    @abstractmethod
    def reconcile(self, state: PolledState) -> None:
        pass
