import asyncio
import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError
from pitchpenguin.api.client import ApiError, RoomNotFoundError
from pitchpenguin.config import Settings
from pitchpenguin.game.models import ActionResult, GameSnapshot, PitchList, RoomInfo
from pitchpenguin.pages.base import PageContext
from pitchpenguin.storage.local_state import LocalState
from pitchpenguin.sync.navigator import Navigator, Route


def game_payload(phase="lobby", judge="Sam", players=None, server_now=None, **room):
    payload = {
        "ok": True,
        "room": {"phase": phase, "round": 0, "walrus": judge, **room},
        "players": players or [
            {"name": "Sam", "isHost": True, "mascot": "walrus"},
            {"name": "Alex", "mascot": "shark"},
        ],
    }
    if server_now is not None:
        payload["serverNow"] = server_now
    return payload


class FakeRoomClient:
    """
    Stands in for RoomApiClient. Reads serve whatever payloads the test set;
    every action is recorded and answered with `responses[name]` or ok.
    """

    def __init__(self, game=None, pitches=None, room=None):
        self.game = game or game_payload()
        self.pitches = pitches or []
        self.room = room or {
            "ok": True,
            "code": "ABC",
            "players": [
                {"name": "Sam", "isHost": True, "mascot": "walrus"},
                {"name": "Alex", "mascot": "shark"},
            ],
        }
        self.responses: dict[str, ActionResult] = {}
        self.actions: list[tuple] = []
        self.game_calls = 0
        self.fail_reads = 0
        self.missing = False
        self.delay = 0.0
        self.settings = Settings()

    async def _read(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.missing:
            raise RoomNotFoundError("Room not found", status=200)
        if self.fail_reads:
            self.fail_reads -= 1
            raise ApiError("GET failed: 500 - boom", status=500)

    async def get_game(self, code):
        self.game_calls += 1
        await self._read()
        return GameSnapshot.from_payload(self.game)

    async def get_pitches(self, code):
        await self._read()
        return PitchList.model_validate({"ok": True, "pitches": self.pitches})

    async def get_room(self, code):
        await self._read()
        return RoomInfo.model_validate(self.room)

    def __getattr__(self, name):
        async def action(*args, **kwargs):
            self.actions.append((name, *args))
            return self.responses.get(name, ActionResult(ok=True))
        return action

    def called(self, name):
        return [call[1:] for call in self.actions if call[0] == name]


class FakeSio:
    """Records what a RoomSocket does with its Socket.IO client."""

    def __init__(self, refuse=False):
        self.refuse = refuse
        self.handlers = {}
        self.emitted: list[tuple] = []
        self.connected = False
        self.url = None

    def on(self, event, handler=None):
        self.handlers[event] = handler

    async def connect(self, url, transports=None):
        if self.refuse:
            raise SocketConnectionError("Connection refused by the server")
        self.url = url
        self.connected = True
        await self.handlers["connect"]()

    async def emit(self, event, data=None):
        self.emitted.append((event, data))

    async def disconnect(self):
        self.connected = False


@pytest.fixture
def client():
    return FakeRoomClient()


@pytest.fixture
def store(tmp_path):
    return LocalState(tmp_path)


@pytest.fixture
def make_ctx(client):
    def _make(page="lobby", code="ABC", player_name="Sam", store=None):
        return PageContext(
            client=client,
            code=code,
            navigator=Navigator(Route(page, code)),
            player_name=player_name,
            store=store,
        )
    return _make
