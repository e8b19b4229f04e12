import pytest
import typer
from aiohttp import web
from aiohttp import test_utils
from pitchpenguin.cli import _mascot, _narrate
from pitchpenguin.config import Settings
from pitchpenguin.storage.local_state import LocalState


@pytest.fixture
async def broken_server():
    async def fail(request):
        return web.Response(status=500, text="boom")

    app = web.Application()
    app.router.add_get("/{tail:.*}", fail)
    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def settings(broken_server, tmp_path):
    LocalState(tmp_path).remember_player("ABC", "Sam")
    return Settings(api_base_url=str(broken_server.make_url("/")), state_dir=tmp_path)


async def test_mascot_reports_unreachable_room(settings, capsys):
    with pytest.raises(typer.Exit) as info:
        await _mascot(settings, "shark", "ABC")
    assert info.value.exit_code == 1
    assert "Unable to load the room" in capsys.readouterr().out


async def test_narrate_reports_failed_pitch_listing(settings, tmp_path, capsys):
    out = tmp_path / "pitch.mp3"
    with pytest.raises(typer.Exit) as info:
        await _narrate(settings, "p1", str(out), "ABC")
    assert info.value.exit_code == 1
    assert "Unable to load pitches" in capsys.readouterr().out
    assert not out.exists()
