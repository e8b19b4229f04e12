import logging
from pitchpenguin.game.models import ActionResult, PitchDraft
from pitchpenguin.game.rules import validate_ready
from pitchpenguin.pages.base import Page, PolledState

logger = logging.getLogger(__name__)

READY_EVENTS = {"ready": "select", "drafting": "deselect"}


class DealPage(Page):
    """The judge picks an ASK card; everyone else waits for their MUST HAVEs."""
    name = "deal"
    phase = "deal"
    interval = 1.0
    timer_fields = ("askSelectionExpiresAt",)

    def __init__(self, ctx):
        super().__init__(ctx)
        self.ask_options: list[str] = []
        self.selected_ask: str | None = None
        self.must_haves: list[str] = []
        self.surprise: str | None = None

    @property
    def must_haves_revealed(self) -> bool:
        return bool(self.selected_ask)

    def reconcile(self, state: PolledState) -> None:
        snapshot = state.snapshot
        room = snapshot.room
        self.ask_options = room.ask_options
        self.selected_ask = room.selected_ask
        if self.player_name:
            self.must_haves = snapshot.must_haves_by_player.get(self.player_name, [])
            self.surprise = snapshot.surprise_by_player.get(self.player_name)

    async def select_ask(self, ask: str) -> ActionResult:
        if not ask:
            return ActionResult(ok=False, message="Pick an ASK card first.")
        return await self.ctx.client.select_ask(self.ctx.code, ask)

    async def skip_timer(self, ask: str | None = None) -> ActionResult:
        choice = ask or (self.ask_options[0] if self.ask_options else "")
        return await self.select_ask(choice)


class PitchPage(Page):
    """Players write against the chosen ASK before the pitch timer runs out."""
    name = "pitch"
    phase = "pitch"
    interval = 1.0
    timer_fields = ("pitchEndsAt",)

    def __init__(self, ctx):
        super().__init__(ctx)
        self.selected_ask: str | None = None
        self.must_haves: list[str] = []
        self.surprise: str | None = None
        self.pitch_statuses: dict[str, str] = {}

    @property
    def my_status(self) -> str | None:
        if not self.player_name:
            return None
        return self.pitch_statuses.get(self.player_name)

    @property
    def is_locked(self) -> bool:
        return self.my_status == "ready"

    def reconcile(self, state: PolledState) -> None:
        snapshot = state.snapshot
        room = snapshot.room
        self.selected_ask = room.selected_ask
        self.pitch_statuses = snapshot.pitch_status_by_player
        if self.player_name:
            self.must_haves = snapshot.must_haves_by_player.get(self.player_name, [])
            self.surprise = snapshot.surprise_by_player.get(self.player_name)
        self.ctx.animations.watch_statuses(self.pitch_statuses, READY_EVENTS)

    async def save_draft(self, draft: PitchDraft) -> ActionResult:
        return await self.ctx.client.submit_pitch(self.ctx.code, draft.model_copy(update={"status": "drafting"}))

    async def mark_ready(self, draft: PitchDraft) -> ActionResult:
        if self.is_locked:
            return ActionResult(ok=False, message="Your pitch is already locked in.")
        problem = validate_ready(draft.used_must_haves, draft.title, draft.summary)
        if problem:
            return ActionResult(ok=False, message=problem)
        return await self.ctx.client.submit_pitch(self.ctx.code, draft.model_copy(update={"status": "ready"}))

    async def request_ai_pitch(self) -> ActionResult:
        """One AI-generated pitch per player per room."""
        store, name = self.ctx.store, self.player_name
        if not name:
            return ActionResult(ok=False, message="Join the room first.")
        if store is not None and store.ai_locked(self.ctx.code, name):
            return ActionResult(ok=False, message="You already used your AI pitch in this room.")
        result = await self.ctx.client.generate_ai_pitch(self.ctx.code, name)
        if result.ok and store is not None:
            store.lock_ai(self.ctx.code, name)
        return result
