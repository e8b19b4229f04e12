import asyncio
import logging
from typing import Any, Callable
from socketio.exceptions import ConnectionError as SocketConnectionError
from pitchpenguin.animation.trigger import AnimationRegistry
from pitchpenguin.api.client import RoomApiClient
from pitchpenguin.api.socket import RoomSocket
from pitchpenguin.pages.base import Page, PageContext
from pitchpenguin.pages.factory import PAGES, create_page
from pitchpenguin.storage.local_state import LocalState
from pitchpenguin.sync.clock import now_ms
from pitchpenguin.sync.navigator import Navigator, Route
from pitchpenguin.sync.poller import PhaseSync

logger = logging.getLogger(__name__)


class GameSession:
    """
    Mounts the page that matches the navigator's current route and swaps it
    whenever the route changes, so exactly one phase poller runs at a time.
    """

    def __init__(
        self,
        client: RoomApiClient,
        navigator: Navigator,
        store: LocalState | None = None,
        player_name: str | None = None,
        animations: AnimationRegistry | None = None,
        clock: Callable[[], int] = now_ms,
        use_socket: bool = False,
        on_page: Callable[[Page], Any] | None = None,
        socket_factory: Callable[[str, str, str], RoomSocket] = RoomSocket,
    ):
        self.client = client
        self.navigator = navigator
        self.store = store
        self.player_name = player_name
        self.animations = animations or AnimationRegistry()
        self.clock = clock
        self.use_socket = use_socket
        self.on_page = on_page
        self.socket_factory = socket_factory
        self.sync: PhaseSync | None = None
        self.socket: RoomSocket | None = None
        self._switching: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def page(self) -> Page | None:
        return self.sync.page if self.sync else None

    def _resolve(self, route: Route) -> tuple[str, str | None]:
        code = route.code
        if not code and self.store is not None:
            code = self.store.last_room
        name = self.player_name
        if not name and self.store is not None:
            name = self.store.player_for_room(code)
        return code or "", name

    async def start(self) -> None:
        self.navigator.subscribe(self._on_navigate)
        await self._mount(self.navigator.current)

    async def stop(self) -> None:
        self.navigator.unsubscribe(self._on_navigate)
        if self._switching is not None:
            await asyncio.gather(self._switching, return_exceptions=True)
        async with self._lock:
            await self._unmount()
        self.animations.dispose()

    async def __aenter__(self) -> "GameSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def _on_navigate(self, previous: Route, route: Route) -> None:
        # Called from inside a poll; the swap must not await its own task
        self._switching = asyncio.get_running_loop().create_task(self._mount(route))

    async def _mount(self, route: Route) -> None:
        async with self._lock:
            await self._unmount()
            if route.page not in PAGES:
                logger.info(f"No poller for {route.path}")
                return
            code, name = self._resolve(route)
            if not code:
                logger.warning(f"No room code for {route.path}")
                return
            ctx = PageContext(
                client=self.client,
                code=code,
                navigator=self.navigator,
                player_name=name,
                store=self.store,
                animations=self.animations,
            )
            page = create_page(route.page, ctx)
            self.sync = PhaseSync(page, clock=self.clock)
            if self.use_socket and name:
                self.socket = self.socket_factory(self.client.settings.api_base_url, code, name)
                self.socket.on_state(self._on_socket_state)
                try:
                    await self.socket.connect()
                except SocketConnectionError as e:
                    # Polling alone still converges
                    logger.warning(f"Socket unavailable, polling only: {e}")
                    self.socket = None
            await self.sync.mount()
            if self.on_page is not None:
                self.on_page(page)

    async def _unmount(self) -> None:
        if self.socket is not None:
            await self.socket.close()
            self.socket = None
        if self.sync is not None:
            await self.sync.unmount()
            self.sync = None

    async def _on_socket_state(self, data: dict) -> None:
        if self.sync is not None:
            logger.debug(f"room:state push (phase={data.get('phase')}), refreshing")
            await self.sync.refresh()
