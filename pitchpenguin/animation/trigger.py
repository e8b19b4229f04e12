import asyncio
import logging
import time
from typing import Any, Callable, Mapping, NamedTuple, Protocol
from pitchpenguin.animation.events import (
    EVENT_DURATIONS_MS,
    EVENT_TO_STATE,
    IDLE,
    AnimationBundle,
    resolve_animation,
)

logger = logging.getLogger(__name__)

TriggerFn = Callable[..., None]


class Handle(Protocol):
    def cancel(self) -> Any: ...


# (delay_seconds, callback) -> handle with cancel()
Scheduler = Callable[[float, Callable[[], None]], Handle]


def asyncio_scheduler(delay: float, callback: Callable[[], None]) -> Handle:
    return asyncio.get_running_loop().call_later(delay, callback)


class PendingReset(NamedTuple):
    state: str        # state we fall back to
    deadline: float   # monotonic seconds


class MascotAnimator:
    """
    Animation state machine for one mascot.

    A trigger applies its state and class bundle immediately. Timed events
    also record a PendingReset; once its deadline passes the mascot goes back
    to idle. A new trigger overwrites the pending reset, so the last trigger
    always wins and a superseded reset can never fire.
    """

    def __init__(
        self,
        species: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Scheduler | None = None,
        on_animation_end: Callable[[], None] | None = None,
    ):
        self.species = species.lower() if species else None
        self.clock = clock
        self.scheduler = scheduler
        self.on_animation_end = on_animation_end
        self._state = "idle"
        self._bundle: AnimationBundle = IDLE
        self.pending: PendingReset | None = None
        self._wakeup: Handle | None = None

    @property
    def state(self) -> str:
        self.advance()
        return self._state

    @property
    def bundle(self) -> AnimationBundle:
        self.advance()
        return self._bundle

    @property
    def classes(self) -> tuple[str, ...]:
        return self.bundle.classes

    @property
    def class_name(self) -> str:
        return self.bundle.class_name

    def trigger(self, event: str, hold_ms: int | None = None) -> None:
        bundle = resolve_animation(self.species, event)
        self._cancel_wakeup()
        self.pending = None
        self._state = EVENT_TO_STATE[event]
        self._bundle = bundle

        duration = hold_ms if hold_ms is not None else EVENT_DURATIONS_MS[event]
        if duration is None or duration <= 0:
            return
        self.pending = PendingReset("idle", self.clock() + duration / 1000)
        if self.scheduler is not None:
            self._wakeup = self.scheduler(duration / 1000, self._on_wakeup)

    def advance(self, now: float | None = None) -> bool:
        """Applies the pending reset if its deadline has passed."""
        if self.pending is None:
            return False
        current = self.clock() if now is None else now
        if current < self.pending.deadline:
            return False
        self.pending = None
        self._wakeup = None
        self.reset()
        return True

    def _on_wakeup(self) -> None:
        self._wakeup = None
        if self.advance() or self.pending is None or self.scheduler is None:
            return
        # Timers may fire a hair early; wait out the remainder
        remaining = max(0.0, self.pending.deadline - self.clock())
        self._wakeup = self.scheduler(remaining, self._on_wakeup)

    def reset(self) -> None:
        self._cancel_wakeup()
        self.pending = None
        self._state = "idle"
        self._bundle = IDLE
        if self.on_animation_end is not None:
            self.on_animation_end()

    def dispose(self) -> None:
        self._cancel_wakeup()
        self.pending = None

    def _cancel_wakeup(self) -> None:
        if self._wakeup is not None:
            self._wakeup.cancel()
            self._wakeup = None


class AnimationRegistry:
    """
    Maps player names to trigger callbacks so game code can say "X won"
    without knowing how X's mascot reacts.
    """

    def __init__(self, scheduler: Scheduler | None = asyncio_scheduler):
        self.scheduler = scheduler
        self._triggers: dict[str, TriggerFn] = {}
        self._last_statuses: dict[str, Any] = {}
        self._owned: dict[str, MascotAnimator] = {}

    def register(self, player_name: str, trigger: TriggerFn | None) -> None:
        owned = self._owned.pop(player_name, None)
        if owned is not None:
            owned.dispose()
        if trigger is None:
            self._triggers.pop(player_name, None)
            return
        self._triggers[player_name] = trigger

    def register_animator(self, player_name: str, animator: MascotAnimator) -> None:
        self.register(player_name, animator.trigger)

    def is_registered(self, player_name: str) -> bool:
        return player_name in self._triggers

    def animator(self, player_name: str) -> MascotAnimator | None:
        """The animator this registry created for a player, if any."""
        return self._owned.get(player_name)

    def track(self, mascots: Mapping[str, str]) -> None:
        """
        Creates an animator the first time a player's mascot is seen and
        drops it once the player leaves the roster. Triggers registered by
        hand are left alone.
        """
        for player_name, species in mascots.items():
            current = self._owned.get(player_name)
            if current is not None and current.species == species.lower():
                continue
            if current is None and player_name in self._triggers:
                continue
            animator = MascotAnimator(species, scheduler=self.scheduler)
            self.register_animator(player_name, animator)
            self._owned[player_name] = animator
        for player_name in [p for p in self._owned if p not in mascots]:
            self.register(player_name, None)

    def forget_statuses(self) -> None:
        self._last_statuses.clear()

    def dispose(self) -> None:
        for player_name in list(self._owned):
            self.register(player_name, None)

    def trigger(self, player_name: str, event: str, hold_ms: int | None = None) -> bool:
        fn = self._triggers.get(player_name)
        if fn is None:
            return False
        fn(event, hold_ms)
        return True

    def watch_statuses(self, statuses: Mapping[str, Any], events: Mapping[Any, str]) -> list[str]:
        """
        Fires the mapped event for every player whose status changed since
        the last call. The first observation of a player only records it.
        Returns the players that were triggered.
        """
        fired = []
        for player, status in statuses.items():
            seen = player in self._last_statuses
            previous = self._last_statuses.get(player)
            self._last_statuses[player] = status
            if not seen or previous == status:
                continue
            event = events.get(status)
            if event and self.trigger(player, event):
                fired.append(player)
        return fired
