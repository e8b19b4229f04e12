import asyncio
from pitchpenguin.animation.trigger import MascotAnimator
from pitchpenguin.pages.round import READY_EVENTS, DealPage, PitchPage
from pitchpenguin.sync.navigator import Route
from pitchpenguin.sync.poller import PhaseSync
from conftest import game_payload


class FrozenClock:
    def __call__(self) -> float:
        return 0.0


class FakeClock:
    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now


async def test_phase_mismatch_navigates_once(client, make_ctx):
    client.game = game_payload(phase="pitch")
    ctx = make_ctx("deal")
    page = DealPage(ctx)

    async with PhaseSync(page) as sync:
        await asyncio.sleep(0.05)
        assert await sync.refresh() is False

    assert ctx.navigator.current == Route("pitch", "ABC")
    assert ctx.navigator.navigations == 1
    # Redirecting polls never reconcile the old page
    assert page.status == "loading"


async def test_matching_phase_reconciles(client, make_ctx):
    client.game = game_payload(phase="deal", askOptions=["A sandwich", "A bridge"], selectedAsk=None)
    client.game["mustHavesByPlayer"] = {"Sam": ["wheels", "glitter"]}
    page = DealPage(make_ctx("deal"))
    sync = PhaseSync(page)
    sync.mounted = True

    assert await sync.poll_once() is True
    assert page.status == "idle"
    assert page.ask_options == ["A sandwich", "A bridge"]
    assert page.must_haves == ["wheels", "glitter"]
    assert page.judge == "Sam"
    assert page.is_judge
    assert not page.must_haves_revealed


async def test_failed_poll_marks_error_then_recovers(client, make_ctx):
    client.game = game_payload(phase="deal")
    client.fail_reads = 1
    page = DealPage(make_ctx("deal"))

    async with PhaseSync(page) as sync:
        await asyncio.sleep(0.05)
        assert page.status == "error"
        assert await sync.refresh() is True
        assert page.status == "idle"


async def test_missing_room_forgets_stored_player(client, make_ctx, store):
    store.remember_player("ABC", "Sam")
    client.missing = True
    page = DealPage(make_ctx("deal", store=store))
    sync = PhaseSync(page)
    sync.mounted = True

    assert await sync.poll_once() is False
    assert page.status == "error"
    assert store.player_for_room("ABC") is None


async def test_unmount_stops_fetching(client, make_ctx):
    client.game = game_payload(phase="deal")
    page = DealPage(make_ctx("deal"))
    page.interval = 0.01

    sync = PhaseSync(page, tick_seconds=0.01)
    await sync.mount()
    await asyncio.sleep(0.1)
    await sync.unmount()
    calls = client.game_calls
    assert calls > 1

    page.seconds_left = 42
    await asyncio.sleep(0.1)
    assert client.game_calls == calls
    assert not sync.mounted
    # The countdown tick stopped with the poll loop
    assert page.seconds_left == 42


async def test_overlapping_poll_is_skipped(client, make_ctx):
    client.game = game_payload(phase="deal")
    client.delay = 0.05
    page = DealPage(make_ctx("deal"))

    async with PhaseSync(page) as sync:
        await asyncio.sleep(0.01)
        assert await sync.refresh() is False
        assert sync.skipped == 1
        await asyncio.sleep(0.1)
        assert client.game_calls == 1
        assert page.status == "idle"


async def test_unmount_mid_fetch_drops_response(client, make_ctx):
    client.game = game_payload(phase="pitch")
    client.delay = 0.05
    page = DealPage(make_ctx("deal"))
    sync = PhaseSync(page)

    await sync.mount()
    await asyncio.sleep(0.01)
    await sync.unmount()
    await asyncio.sleep(0.1)
    assert client.game_calls == 1
    assert page.ctx.navigator.navigations == 0
    assert page.status == "loading"


async def test_late_refresh_after_unmount_is_dropped(client, make_ctx):
    client.game = game_payload(phase="deal")
    page = DealPage(make_ctx("deal"))
    sync = PhaseSync(page)
    await sync.mount()
    await asyncio.sleep(0.02)
    assert page.status == "idle"

    client.game = game_payload(phase="pitch")
    client.delay = 0.05
    refresh = asyncio.create_task(sync.refresh())
    await asyncio.sleep(0.01)
    await sync.unmount()
    assert await refresh is False
    assert page.ctx.navigator.navigations == 0
    assert page.ctx.navigator.current == Route("deal", "ABC")


async def test_malformed_payload_marks_error(client, make_ctx, caplog):
    client.game = game_payload(phase="deal", round="not-a-number")
    page = DealPage(make_ctx("deal"))
    sync = PhaseSync(page)
    sync.mounted = True

    assert await sync.poll_once() is False
    assert page.status == "error"
    assert any(r.levelname == "ERROR" and "Unexpected payload" in r.getMessage() for r in caplog.records)

    client.game = game_payload(phase="deal")
    assert await sync.poll_once() is True
    assert page.status == "idle"


async def test_mount_starts_status_tracking_afresh(client, make_ctx):
    client.game = game_payload(phase="pitch")
    client.game["pitchStatusByPlayer"] = {"Alex": "ready"}
    ctx = make_ctx("pitch")
    animator = MascotAnimator("shark", clock=FrozenClock())
    ctx.animations.register_animator("Alex", animator)
    # Seen during an earlier round
    ctx.animations.watch_statuses({"Alex": "drafting"}, READY_EVENTS)

    sync = PhaseSync(PitchPage(ctx))
    await sync.mount()
    await asyncio.sleep(0.02)
    await sync.unmount()
    assert animator.state == "idle"


async def test_countdown_follows_server_clock(client, make_ctx):
    local = FakeClock(1_000_000)
    # Server runs 2s ahead of us; the ASK expires 10s after server time
    client.game = game_payload(phase="deal", server_now=1_002_000, askSelectionExpiresAt=1_012_000)
    page = DealPage(make_ctx("deal"))
    sync = PhaseSync(page, clock=local)
    sync.mounted = True

    await sync.poll_once()
    assert sync.offset.value == 2_000
    assert sync.expires_at == 1_012_000
    assert page.seconds_left == 10

    readings = []
    for _ in range(12):
        local.now += 1000
        readings.append(sync.tick())
    assert readings[:3] == [9, 8, 7]
    assert readings[-1] == 0
    assert readings == sorted(readings, reverse=True)


async def test_offset_kept_when_server_omits_time(client, make_ctx):
    local = FakeClock(0)
    client.game = game_payload(phase="deal", server_now=5_000)
    sync = PhaseSync(DealPage(make_ctx("deal")), clock=local)
    sync.mounted = True
    await sync.poll_once()

    client.game = game_payload(phase="deal")
    local.now = 1_000
    await sync.poll_once()
    assert sync.offset.value == 5_000
