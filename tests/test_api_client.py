import pytest
from aiohttp import web
from aiohttp import test_utils
from pitchpenguin.api.client import ApiError, RoomApiClient, RoomNotFoundError
from pitchpenguin.config import Settings
from pitchpenguin.game.models import PitchDraft


def build_app(received: list) -> web.Application:
    async def game(request):
        code = request.match_info["code"]
        if code == "GONE":
            return web.json_response({"ok": False, "message": "Room not found"})
        if code == "ERR":
            return web.Response(status=500, text="boom")
        return web.json_response({
            "ok": True,
            "room": {
                "phase": "pitch",
                "round": 2,
                "penguin": "Sam",
                "penguinSurprisePlayer": "Alex",
                "selectedAsk": "A pet for astronauts",
                "pitchEndsAt": 1_060_000,
                "finalRoundEndsAt": None,
                "playerScores": {"Sam": 1, "Alex": 2},
                "unknownField": "ignored",
            },
            "pitchStatusByPlayer": {"Alex": "ready"},
            "players": [{"name": "Sam", "isHost": True, "mascot": "penguin"}],
            "serverNow": 1_000_000,
        })

    async def pitches(request):
        return web.json_response({"ok": True, "pitches": [
            {"id": "p1", "player": "Alex", "title": "Moon Mutt", "usedMustHaves": ["fur"], "isValid": False},
        ]})

    async def mascot(request):
        received.append(("mascot", await request.json()))
        return web.json_response({"ok": False, "message": "Mascot already taken"}, status=400)

    async def join(request):
        received.append(("join", await request.json()))
        return web.json_response({"ok": True, "room": {"code": "ABC"}})

    async def pitch(request):
        received.append(("pitch", await request.json()))
        return web.json_response({"ok": True})

    async def tts(request):
        body = await request.json()
        if body.get("voiceProfile") == "silent":
            return web.json_response({"ok": False, "message": "TTS unavailable"}, status=503)
        return web.Response(body=b"ID3audio", content_type="audio/mpeg")

    app = web.Application()
    app.router.add_get("/api/room/{code}/game", game)
    app.router.add_get("/api/room/{code}/pitches", pitches)
    app.router.add_post("/api/room/{code}/mascot", mascot)
    app.router.add_post("/api/rooms/join", join)
    app.router.add_post("/api/room/{code}/pitch", pitch)
    app.router.add_post("/api/tts", tts)
    return app


@pytest.fixture
async def api():
    received = []
    server = test_utils.TestServer(build_app(received))
    await server.start_server()
    client = RoomApiClient(Settings(api_base_url=str(server.make_url("/"))))
    client.received = received
    yield client
    await client.close()
    await server.close()


async def test_get_game_reads_either_judge_spelling(api):
    snapshot = await api.get_game("ABC")
    room = snapshot.room
    assert room.phase == "pitch"
    assert room.round == 2
    assert room.judge == "Sam"
    assert room.judge_surprise_player == "Alex"
    assert room.timers == {"pitchEndsAt": 1_060_000}
    assert snapshot.effective_server_now == 1_000_000
    assert snapshot.pitch_status_by_player == {"Alex": "ready"}
    assert snapshot.mascots() == {"Sam": "penguin"}


async def test_missing_room_raises(api):
    with pytest.raises(RoomNotFoundError):
        await api.get_game("GONE")


async def test_server_error_raises(api):
    with pytest.raises(ApiError) as info:
        await api.get_game("ERR")
    assert info.value.status == 500


async def test_get_pitches(api):
    listing = await api.get_pitches("ABC")
    assert listing.pitches[0].used_must_haves == ["fur"]
    assert not listing.pitches[0].eligible


async def test_rejected_action_returns_message(api):
    result = await api.select_mascot("ABC", "Sam", "shark")
    assert not result.ok
    assert result.message == "Mascot already taken"
    assert api.received == [("mascot", {"playerName": "Sam", "mascot": "shark"})]


async def test_join_normalizes_code(api):
    result = await api.join_room(" abc ", " Riley ")
    assert result.ok
    assert result.payload("room") == {"code": "ABC"}
    assert api.received == [("join", {"code": "ABC", "playerName": "Riley"})]


async def test_submit_pitch_sends_camel_case(api):
    draft = PitchDraft(player_name="Sam", title="Sky Taxi", summary="Cabs, but up.", used_must_haves=["wings"])
    await api.submit_pitch("ABC", draft)
    body = api.received[0][1]
    assert body["playerName"] == "Sam"
    assert body["usedMustHaves"] == ["wings"]
    assert body["status"] == "drafting"


async def test_tts_audio(api):
    assert await api.fetch_tts_audio("Sky Taxi. Cabs, but up.", "Heart") == b"ID3audio"
    assert await api.fetch_tts_audio("Sky Taxi.", "silent") is None
