import logging
from pitchpenguin.game.models import ActionResult, GameSnapshot, Pitch, PitchDraft, RoundWinner
from pitchpenguin.game.rules import find_player, validate_ready
from pitchpenguin.pages.base import Page, PolledState
from pitchpenguin.ranking.leaderboard import Leaderboard
from pitchpenguin.sync.navigator import Route

logger = logging.getLogger(__name__)


class ResultsPage(Page):
    """Scores after a round, the round winner, and the end-of-game podium."""
    name = "results"
    phase = "results"
    interval = 2.0
    needs_pitches = True

    def __init__(self, ctx):
        super().__init__(ctx)
        self.leaderboard = Leaderboard()
        self.game_winner: str | None = None
        self.game_winners: list[str] = []
        self.final_round_needed = False
        self.last_winner: RoundWinner | None = None
        self.winner_must_have_count = 0
        self.final_round_pitches: list[Pitch] = []
        self.truce_activated = False
        self.round_no_participation = False
        self._celebrated: str | None = None

    @property
    def scores(self) -> dict[str, float]:
        return self.leaderboard.scores

    @property
    def is_host(self) -> bool:
        me = find_player(self.players, self.player_name)
        return bool(me and me.is_host)

    @property
    def game_over(self) -> bool:
        return bool(self.game_winner or self.game_winners)

    def reconcile(self, state: PolledState) -> None:
        room = state.snapshot.room
        self.leaderboard.update(room.player_scores, self.mascots)
        self.game_winner = room.game_winner
        self.game_winners = room.game_winners
        self.final_round_needed = bool(room.final_round_players)
        self.last_winner = room.last_round_winner
        self.truce_activated = room.truce_activated
        self.round_no_participation = room.round_no_participation

        pitches = state.pitches or []
        winner_pitch = None
        if self.last_winner is not None:
            winner_pitch = next((p for p in pitches if p.id == self.last_winner.pitch_id), None)
        self.winner_must_have_count = len(winner_pitch.used_must_haves) if winner_pitch else 0
        if self.final_round_needed and self.game_over:
            self.final_round_pitches = [p for p in pitches if p.player in room.final_round_players]
        else:
            self.final_round_pitches = []

        signature = f"{self.game_winner or ''}|{','.join(self.game_winners)}|{len(room.player_scores)}"
        if self.game_over and signature != self._celebrated:
            # Every scored player reacts once per distinct outcome
            self._celebrated = signature
            winners = {self.game_winner, *self.game_winners}
            for player in room.player_scores:
                self.ctx.animations.trigger(player, "win" if player in winners else "lose-money")

    async def advance_round(self) -> ActionResult:
        result = await self.ctx.client.advance_round(self.ctx.code, self.player_name or "")
        if result.ok or result.phase:
            if result.payload("finalRoundStarted") or result.phase == "final-round":
                self.ctx.navigator.navigate(Route("final-round", self.ctx.code))
            else:
                self.ctx.navigator.navigate(Route("deal", self.ctx.code))
        return result


class FinalRoundPage(Page):
    """
    Tie-break round: finalists pitch again, every other player ranks the
    finalists' pitches.
    """
    name = "final-round"
    phase = "final-round"
    interval = 2.0
    timer_fields = ("pitchEndsAt",)
    needs_pitches = True

    def __init__(self, ctx):
        super().__init__(ctx)
        self.mode = "pitching"          # "pitching" or "ranking"
        self.finalists: list[str] = []
        self.selected_ask: str | None = None
        self.pitch_statuses: dict[str, str] = {}
        self.pitches: list[Pitch] = []
        self.must_haves: list[str] = []
        self.surprise: str | None = None
        self.viewed: set[str] = set()
        self.submitted = False
        self.ranked_pitch_ids: list[str] = []
        self.ready_signalled = False
        self._entered: set[str] = set()

    def redirect_phase(self, snapshot: GameSnapshot) -> str | None:
        room = snapshot.room
        if room is None or not room.phase or room.phase == self.phase:
            return None
        if room.phase == "results" or room.game_winner:
            return "results"
        return room.phase

    @property
    def is_pitcher(self) -> bool:
        return bool(self.player_name) and self.player_name in self.finalists

    @property
    def is_locked(self) -> bool:
        return self.pitch_statuses.get(self.player_name or "") == "ready"

    @property
    def all_ready(self) -> bool:
        return bool(self.finalists) and all(self.pitch_statuses.get(p) == "ready" for p in self.finalists)

    @property
    def all_viewed(self) -> bool:
        return bool(self.pitches) and all(p.id in self.viewed for p in self.pitches)

    def reconcile(self, state: PolledState) -> None:
        snapshot = state.snapshot
        room = snapshot.room
        self.finalists = room.final_round_players
        self.selected_ask = room.selected_ask
        self.pitch_statuses = snapshot.pitch_status_by_player

        for finalist in self.finalists:
            if finalist not in self._entered:
                self._entered.add(finalist)
                self.ctx.animations.trigger(finalist, "enter-final")

        name = self.player_name or ""
        if self.is_pitcher:
            self.must_haves = snapshot.must_haves_by_player.get(name, [])
            self.surprise = snapshot.surprise_by_player.get(name)
        else:
            self.viewed = set(room.judge_viewed_pitches.get(name, []))
            if name in room.final_round_rankings:
                self.submitted = True
                self.ranked_pitch_ids = room.final_round_rankings[name]

        if state.pitches is not None:
            self.pitches = [p for p in state.pitches if p.player in self.finalists]

        if self.all_ready:
            if len(self.pitches) <= 1:
                # The server resolves 0 or 1 valid submissions on its own
                logger.info("Final round auto-resolution in progress")
            elif self.mode == "pitching":
                self.mode = "ranking"
                if not self.ranked_pitch_ids:
                    self.ranked_pitch_ids = [p.id for p in self.pitches]

    async def signal_ready(self) -> ActionResult | None:
        """Tells the server this client has finished entering the round. Sent once."""
        if self.ready_signalled or not self.player_name or self.mode != "pitching":
            return None
        result = await self.ctx.client.player_ready(self.ctx.code, self.player_name)
        if result.ok:
            self.ready_signalled = True
        return result

    async def submit_pitch(self, draft: PitchDraft) -> ActionResult:
        if not self.is_pitcher:
            return ActionResult(ok=False, message="Only finalists pitch in the final round.")
        if self.is_locked:
            return ActionResult(ok=False, message="Your pitch is already locked in.")
        problem = validate_ready(draft.used_must_haves, draft.title, draft.summary, final_round=True)
        if problem:
            return ActionResult(ok=False, message=problem)
        return await self.ctx.client.submit_pitch(self.ctx.code, draft.model_copy(update={"status": "ready"}))

    async def view_pitch(self, pitch_id: str) -> ActionResult | None:
        if self.is_pitcher or not self.player_name or pitch_id in self.viewed:
            return None
        result = await self.ctx.client.mark_pitch_viewed(self.ctx.code, pitch_id, self.player_name)
        if result.ok:
            self.viewed.add(pitch_id)
        return result

    async def submit_ranking(self, ranked_pitch_ids: list[str] | None = None) -> ActionResult:
        if self.is_pitcher:
            return ActionResult(ok=False, message="Finalists do not rank.")
        if self.submitted:
            return ActionResult(ok=False, message="Ranking already submitted.")
        if not self.all_viewed:
            return ActionResult(ok=False, message="View every pitch before ranking.")
        ranking = ranked_pitch_ids or self.ranked_pitch_ids
        result = await self.ctx.client.submit_ranking(self.ctx.code, self.player_name, ranking)
        if result.ok:
            self.submitted = True
            self.ranked_pitch_ids = ranking
            if result.payload("allJudgesVoted"):
                self.ctx.navigator.navigate(Route("results", self.ctx.code))
        return result
