import asyncio
import logging
from typing import Callable
import aiohttp
from pydantic import ValidationError
from pitchpenguin.api.client import ApiError, RoomNotFoundError
from pitchpenguin.pages.base import Page, PolledState
from pitchpenguin.sync.clock import ClockOffset, now_ms, seconds_left
from pitchpenguin.sync.navigator import route_for_phase

logger = logging.getLogger(__name__)

POLL_ERRORS = (ApiError, aiohttp.ClientError, asyncio.TimeoutError)
TICK_SECONDS = 1.0


class PhaseSync:
    """
    Keeps a page consistent with the server-declared room phase.

    While mounted it polls the room on the page's interval and runs a
    separate one second countdown tick. A fetched phase that belongs to
    another page replaces the current route. Failed polls mark the page as
    errored and are retried on the next tick. A tick that fires while the
    previous fetch is still in flight is skipped, so responses are always
    applied in order.
    """

    def __init__(self, page: Page, clock: Callable[[], int] = now_ms, tick_seconds: float = TICK_SECONDS):
        self.page = page
        self.ctx = page.ctx
        self.clock = clock
        self.tick_seconds = tick_seconds
        self.offset = ClockOffset()
        self.expires_at: int | None = None
        self.mounted = False
        self.polls = 0
        self.skipped = 0
        self._in_flight = False
        self._poll_task: asyncio.Task | None = None
        self._tick_task: asyncio.Task | None = None
        self._fetches: set[asyncio.Task] = set()

    async def mount(self) -> None:
        if self.mounted:
            return
        self.mounted = True
        logger.debug(f"Mounting {self.page.name} for room {self.ctx.code}")
        # Status changes are tracked per page, not carried over from the last round
        self.ctx.animations.forget_statuses()
        self._poll_task = asyncio.create_task(self._poll_loop())
        self._tick_task = asyncio.create_task(self._tick_loop())

    async def unmount(self) -> None:
        self.mounted = False
        tasks = [t for t in (self._poll_task, self._tick_task, *self._fetches) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._poll_task = None
        self._tick_task = None
        self._fetches.clear()
        logger.debug(f"Unmounted {self.page.name} for room {self.ctx.code}")

    async def __aenter__(self) -> "PhaseSync":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.unmount()

    async def _poll_loop(self) -> None:
        while self.mounted:
            task = asyncio.create_task(self.poll_once())
            self._fetches.add(task)
            task.add_done_callback(self._fetches.discard)
            await asyncio.sleep(self.page.interval)

    async def _tick_loop(self) -> None:
        while self.mounted:
            self.tick()
            await asyncio.sleep(self.tick_seconds)

    def tick(self) -> int | None:
        self.page.seconds_left = seconds_left(self.expires_at, self.clock(), self.offset.value)
        return self.page.seconds_left

    async def refresh(self) -> bool:
        """Polls right away, e.g. after a user action or a socket push."""
        return await self.poll_once()

    async def poll_once(self) -> bool:
        """
        Fetches and applies one round of state. Returns True when the page
        was updated, False when the tick was skipped, failed or redirected.
        """
        if self._in_flight:
            self.skipped += 1
            logger.debug(f"Skipping {self.page.name} poll, previous fetch still running")
            return False
        self._in_flight = True
        try:
            state = await self._fetch()
            if not self.mounted:
                return False
            return await self._apply(state)
        except RoomNotFoundError as e:
            self.page.status = "error"
            if self.ctx.store is not None:
                self.ctx.store.forget_room(self.ctx.code)
            logger.debug(f"Room {self.ctx.code} not found: {e}")
            return False
        except (ValidationError, ValueError) as e:
            self.page.status = "error"
            logger.error(f"Unexpected payload for {self.page.name} in room {self.ctx.code}: {e}")
            return False
        except POLL_ERRORS as e:
            self.page.status = "error"
            logger.debug(f"Poll for {self.page.name} failed: {e}")
            return False
        finally:
            self._in_flight = False

    async def _fetch(self) -> PolledState:
        client, code, page = self.ctx.client, self.ctx.code, self.page
        self.polls += 1
        requests = [client.get_game(code)]
        if page.needs_pitches:
            requests.append(client.get_pitches(code))
        if page.needs_room:
            requests.append(client.get_room(code))
        results = await asyncio.gather(*requests)
        snapshot = results[0]
        rest = list(results[1:])
        pitches = rest.pop(0).pitches if page.needs_pitches else None
        room = rest.pop(0) if page.needs_room else None
        return PolledState(snapshot=snapshot, pitches=pitches, room=room)

    async def _apply(self, state: PolledState) -> bool:
        snapshot = state.snapshot
        self.offset.update(snapshot.effective_server_now, self.clock())

        target = self.page.redirect_phase(snapshot)
        if target is not None:
            route = route_for_phase(target, self.ctx.code)
            if route is not None:
                self.ctx.navigator.replace(route)
                return False
            logger.warning(f"Server reported unknown phase {target!r}")

        await self.page.before_reconcile(state)
        self.page.apply(state)
        self.expires_at = self.page.timer_expiry(snapshot)
        self.tick()
        return True
