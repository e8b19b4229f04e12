from pitchpenguin.sync.clock import ClockOffset, seconds_left
from pitchpenguin.sync.navigator import HOME, Navigator, Route, parse_route, route_for_phase


def test_countdown_from_ten_seconds():
    expires_at = 1_000_000 + 10_000
    readings = [seconds_left(expires_at, 1_000_000 + step * 1000) for step in range(13)]
    assert readings[0] == 10
    assert readings[10] == 0
    assert readings == sorted(readings, reverse=True)
    assert min(readings) == 0


def test_countdown_rounds_up_partial_seconds():
    assert seconds_left(10_000, 9_999) == 1
    assert seconds_left(10_000, 8_500) == 2
    assert seconds_left(10_000, 10_000) == 0


def test_countdown_without_expiry():
    assert seconds_left(None, 5_000) is None


def test_countdown_uses_server_offset():
    # Local clock runs 3s behind the server
    offset = ClockOffset()
    offset.update(server_now=50_000, local_now=47_000)
    assert offset.value == 3_000
    assert seconds_left(60_000, 47_000, offset.value) == 10
    assert offset.server_time(47_000) == 50_000


def test_clock_offset_keeps_last_value_without_server_time():
    offset = ClockOffset()
    offset.update(20_000, 10_000)
    offset.update(None, 99_000)
    assert offset.value == 10_000


def test_parse_route():
    assert parse_route("/") == HOME
    assert parse_route("/join") == Route("join")
    assert parse_route("/lobby/WLR-123") == Route("lobby", "WLR-123")
    assert parse_route("/deal") == Route("deal")
    assert parse_route("/final-round/WLR-123") == Route("final-round", "WLR-123")


def test_unknown_routes_resolve_home():
    assert parse_route("/lobby") == HOME
    assert parse_route("/nowhere") == HOME
    assert parse_route("/deal/a/b") == HOME
    assert parse_route("not a path") == HOME


def test_route_for_phase():
    assert route_for_phase("pitch", "ABC").path == "/pitch/ABC"
    assert route_for_phase("final-round", None).path == "/final-round"
    assert route_for_phase("intermission", "ABC") is None


def test_replace_is_idempotent():
    nav = Navigator("/deal/ABC")
    seen = []
    nav.subscribe(lambda previous, route: seen.append((previous.page, route.page)))

    assert nav.replace(Route("pitch", "ABC")) is True
    assert nav.replace(Route("pitch", "ABC")) is False
    assert nav.navigations == 1
    assert seen == [("deal", "pitch")]
    assert nav.history == [Route("pitch", "ABC")]


def test_navigate_pushes_history():
    nav = Navigator()
    nav.navigate("/join")
    nav.navigate("/lobby/ABC")
    assert [r.path for r in nav.history] == ["/", "/join", "/lobby/ABC"]
