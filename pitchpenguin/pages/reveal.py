import logging
from pitchpenguin.game.models import ActionResult, ChallengeReveal, Pitch
from pitchpenguin.game.rules import challenge_blocker, same_name
from pitchpenguin.pages.base import Page, PolledState
from pitchpenguin.sync.navigator import Route
from pitchpenguin.voice.profiles import build_narration_text, normalize_voice_name

logger = logging.getLogger(__name__)


def merge_pitches(previous: list[Pitch], incoming: list[Pitch]) -> list[Pitch]:
    """
    Updates the queue in place by id. The first non-empty list seeds the
    queue; afterwards the order we are presenting in stays fixed.
    """
    if not previous:
        return list(incoming)
    by_id = {p.id: p for p in incoming}
    return [by_id.get(p.id, p) for p in previous]


class RevealPage(Page):
    """
    Pitches are presented one by one. The judge steps through them (marking
    each as viewed); other players may challenge a viewed pitch as AI-written.
    """
    name = "reveal"
    phase = "reveal"
    interval = 2.0
    needs_pitches = True

    def __init__(self, ctx):
        super().__init__(ctx)
        self.pitches: list[Pitch] = []
        self.current_index = 0
        self.viewed_pitch_ids: list[str] = []
        self.surprise_player: str | None = None
        self.surprise_by_player: dict[str, str | None] = {}
        self.challenge_reveal: ChallengeReveal | None = None
        self.announcements: list[ChallengeReveal] = []
        self.challenged = False
        self.robot_voice_enabled = True
        self._last_challenge_at: str | None = None

    @property
    def current_pitch(self) -> Pitch | None:
        if not self.pitches:
            return None
        return self.pitches[min(self.current_index, len(self.pitches) - 1)]

    @property
    def all_viewed(self) -> bool:
        return bool(self.pitches) and all(p.id in self.viewed_pitch_ids for p in self.pitches)

    @property
    def is_last_pitch(self) -> bool:
        return self.current_index == len(self.pitches) - 1

    @property
    def surprise_label(self) -> str | None:
        if not self.surprise_player:
            return None
        return self.surprise_by_player.get(self.surprise_player)

    def reconcile(self, state: PolledState) -> None:
        if state.pitches:
            self.pitches = merge_pitches(self.pitches, state.pitches)
        room = state.snapshot.room
        self.viewed_pitch_ids = room.viewed_pitch_ids
        self.robot_voice_enabled = room.robot_voice_enabled
        self.surprise_player = room.judge_surprise_player
        self.surprise_by_player = state.snapshot.surprise_by_player

        reveal = room.challenge_reveal
        if reveal is not None and reveal.created_at != self._last_challenge_at:
            # Each verdict is announced once, however many polls carry it
            self._last_challenge_at = reveal.created_at
            self.challenge_reveal = reveal
            self.announcements.append(reveal)
            if reveal.disqualified_player:
                self.ctx.animations.trigger(reveal.disqualified_player, "lose-money")

    async def _show(self, index: int) -> None:
        self.current_index = index
        self.challenged = False
        pitch = self.current_pitch
        if pitch is not None and self.is_judge:
            await self.mark_viewed(pitch.id)

    async def next(self) -> None:
        await self._show(min(self.current_index + 1, max(len(self.pitches) - 1, 0)))

    async def previous(self) -> None:
        await self._show(max(self.current_index - 1, 0))

    async def mark_viewed(self, pitch_id: str) -> ActionResult | None:
        if not self.player_name or not self.is_judge or pitch_id in self.viewed_pitch_ids:
            return None
        result = await self.ctx.client.mark_pitch_viewed(self.ctx.code, pitch_id, self.player_name)
        if result.ok:
            self.viewed_pitch_ids = [*self.viewed_pitch_ids, pitch_id]
        return result

    async def narrate(self, pitch: Pitch | None = None) -> bytes | None:
        """Fetches the spoken version of a pitch, or None when the room muted the robot voice."""
        pitch = pitch or self.current_pitch
        if pitch is None or not self.robot_voice_enabled:
            return None
        text = build_narration_text(pitch.title, pitch.summary)
        return await self.ctx.client.fetch_tts_audio(text, normalize_voice_name(pitch.voice))

    def challenge_blocker(self) -> str | None:
        if self.challenged:
            return "You already challenged this pitch."
        return challenge_blocker(self.current_pitch, self.player_name, self.viewed_pitch_ids, self.pitches)

    async def challenge(self) -> ActionResult:
        problem = self.challenge_blocker()
        if problem:
            return ActionResult(ok=False, message=problem)
        result = await self.ctx.client.challenge(self.ctx.code, self.player_name, self.current_pitch.id)
        if result.ok:
            self.challenged = True
        return result

    async def pick_winner(self, pitch_id: str) -> ActionResult:
        if not self.is_judge:
            return ActionResult(ok=False, message="Only the judge can pick a winner.")
        if not self.all_viewed:
            return ActionResult(ok=False, message="View every pitch before judging.")
        result = await self.ctx.client.judge(self.ctx.code, pitch_id, self.player_name)
        if result.ok:
            winner = next((p.player for p in self.pitches if p.id == pitch_id), None)
            if winner:
                self.ctx.animations.trigger(winner, "win")
            self.ctx.navigator.navigate(Route("results", self.ctx.code))
        return result


class VotePage(Page):
    name = "vote"
    phase = "vote"
    interval = 2.0
    needs_pitches = True

    def __init__(self, ctx):
        super().__init__(ctx)
        self.pitches: list[Pitch] = []

    @property
    def candidates(self) -> list[Pitch]:
        return [p for p in self.pitches if p.eligible]

    def reconcile(self, state: PolledState) -> None:
        if state.pitches is not None:
            self.pitches = state.pitches

    async def vote(self, pitch_id: str) -> ActionResult:
        if not self.is_judge:
            return ActionResult(ok=False, message="Only the judge can vote.")
        pitch = next((p for p in self.pitches if p.id == pitch_id), None)
        if pitch is None:
            return ActionResult(ok=False, message="Pitch not found")
        result = await self.ctx.client.judge(self.ctx.code, pitch_id, self.player_name)
        if result.ok:
            self.ctx.animations.trigger(pitch.player, "win")
            for other in self.candidates:
                if not same_name(other.player, pitch.player):
                    self.ctx.animations.trigger(other.player, "lose")
            self.ctx.navigator.navigate(Route("results", self.ctx.code))
        return result
