from pitchpenguin.api.socket import RoomSocket
from conftest import FakeSio


async def test_connect_joins_room():
    sio = FakeSio()
    socket = RoomSocket("http://localhost:3001", "ABC", "Sam", client=sio)
    await socket.connect()
    assert sio.url == "http://localhost:3001"
    assert sio.emitted == [("room:join", {"code": "ABC", "playerName": "Sam"})]


async def test_state_push_reaches_handlers():
    sio = FakeSio()
    socket = RoomSocket("http://localhost:3001", "ABC", "Sam", client=sio)
    seen = []

    async def handler(data):
        seen.append(data["phase"])

    socket.on_state(handler)
    await socket.connect()
    await sio.handlers["room:state"]({"phase": "pitch"})
    assert seen == ["pitch"]


async def test_malformed_state_is_ignored(caplog):
    sio = FakeSio()
    socket = RoomSocket("http://localhost:3001", "ABC", "Sam", client=sio)
    seen = []

    async def handler(data):
        seen.append(data)

    socket.on_state(handler)
    await sio.handlers["room:state"]("pitch")
    assert seen == []
    assert any("malformed room:state" in r.getMessage() for r in caplog.records)


async def test_close_leaves_then_disconnects():
    sio = FakeSio()
    socket = RoomSocket("http://localhost:3001", "ABC", "Sam", client=sio)
    await socket.connect()
    await socket.close()
    assert sio.emitted[-1] == ("room:leave", {"code": "ABC", "playerName": "Sam"})
    assert not sio.connected

    # Closing a socket that never connected emits nothing
    idle = FakeSio()
    await RoomSocket("http://localhost:3001", "ABC", "Sam", client=idle).close()
    assert idle.emitted == []
