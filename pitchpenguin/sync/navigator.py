import logging
import re
from typing import Callable, NamedTuple

logger = logging.getLogger(__name__)

PHASE_PAGES = {
    "lobby": "lobby",
    "deal": "deal",
    "pitch": "pitch",
    "reveal": "reveal",
    "vote": "vote",
    "results": "results",
    "final-round": "final-round",
}

# Pages that can be opened without a code fall back to the last room
_CODE_OPTIONAL = {"deal", "pitch", "reveal", "vote", "results", "final-round"}
_ROUTE = re.compile(r"^/(?P<page>[a-z-]+)(?:/(?P<code>[^/]+))?/?$")


class Route(NamedTuple):
    page: str
    code: str | None = None

    @property
    def path(self) -> str:
        if self.page == "home":
            return "/"
        if self.code:
            return f"/{self.page}/{self.code}"
        return f"/{self.page}"


HOME = Route("home")


def parse_route(path: str) -> Route:
    """
    Maps a client path onto a page. Anything unknown resolves to home,
    like the wildcard redirect of the web client.
    """
    if path in ("", "/"):
        return HOME
    match = _ROUTE.match(path)
    if not match:
        return HOME
    page, code = match.group("page"), match.group("code")
    if page == "join" and code is None:
        return Route("join")
    if page == "lobby" and code:
        return Route("lobby", code)
    if page in _CODE_OPTIONAL:
        return Route(page, code)
    return HOME


def route_for_phase(phase: str, code: str | None) -> Route | None:
    page = PHASE_PAGES.get(phase)
    if page is None:
        return None
    return Route(page, code)


class Navigator:
    """
    Holds the current route. `replace` swaps it in place (no history entry);
    replacing with the route we are already on does nothing.
    """

    def __init__(self, start: str | Route = HOME):
        self.current = parse_route(start) if isinstance(start, str) else start
        self.history: list[Route] = [self.current]
        self.navigations = 0
        self._listeners: list[Callable[[Route, Route], None]] = []

    def subscribe(self, listener: Callable[[Route, Route], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Route, Route], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def navigate(self, target: str | Route, replace: bool = False) -> bool:
        route = parse_route(target) if isinstance(target, str) else target
        if route == self.current:
            return False
        previous = self.current
        self.current = route
        if replace:
            self.history[-1] = route
        else:
            self.history.append(route)
        self.navigations += 1
        logger.info(f"Navigating {previous.path} -> {route.path}")
        for listener in list(self._listeners):
            listener(previous, route)
        return True

    def replace(self, target: str | Route) -> bool:
        return self.navigate(target, replace=True)
