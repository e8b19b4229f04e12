from typing import Any
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """
    Base for everything the game server sends. The server speaks camelCase;
    fields here are snake_case and accept either spelling.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Player(WireModel):
    name: str
    is_host: bool = False
    mascot: str | None = None


class RoomInfo(WireModel):
    ok: bool = True
    code: str | None = None
    status: str | None = None
    players: list[Player] = Field(default_factory=list)
    capacity: int = 8
    message: str | None = None


class Pitch(WireModel):
    id: str
    player: str
    title: str = "Untitled Pitch"
    summary: str = ""
    voice: str = ""
    sketch_data: str | None = None
    used_must_haves: list[str] = Field(default_factory=list)
    ai_generated: bool = False
    is_valid: bool | None = None
    is_disqualified: bool = False

    @property
    def eligible(self) -> bool:
        return self.is_valid is not False and not self.is_disqualified


class ChallengeReveal(WireModel):
    accuser: str
    pitch_id: str
    was_correct: bool = False
    disqualified_player: str | None = None
    created_at: str


class RoundWinner(WireModel):
    player: str
    pitch_id: str
    pitch_title: str = ""
    sketch_data: str | None = None
    points_awarded: int = 1
    # penguinSurpriseWinner in one build, walrusSurpriseWinner in the other
    surprise_winner: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "penguinSurpriseWinner", "walrusSurpriseWinner", "surpriseWinner", "surprise_winner"
        ),
    )
    created_at: str = ""


class GameRoom(WireModel):
    phase: str | None = None
    round: int = 0
    # The judge role was renamed between app variants
    judge: str = Field(
        default="",
        validation_alias=AliasChoices("penguin", "walrus", "judge"),
    )
    judge_surprise_player: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "penguinSurprisePlayer", "walrusSurprisePlayer", "judgeSurprisePlayer", "judge_surprise_player"
        ),
    )
    ask_options: list[str] = Field(default_factory=list)
    selected_ask: str | None = None
    ask_selection_expires_at: int | None = None
    pitch_ends_at: int | None = None
    server_now: int | None = None
    player_scores: dict[str, float] = Field(default_factory=dict)
    game_winner: str | None = None
    game_winners: list[str] = Field(default_factory=list)
    final_round_players: list[str] = Field(default_factory=list)
    robot_voice_enabled: bool = True
    viewed_pitch_ids: list[str] = Field(default_factory=list)
    challenge_reveal: ChallengeReveal | None = None
    last_round_winner: RoundWinner | None = None
    truce_activated: bool = False
    round_no_participation: bool = False
    judge_viewed_pitches: dict[str, list[str]] = Field(default_factory=dict)
    final_round_rankings: dict[str, list[str]] = Field(default_factory=dict)
    timers: dict[str, int] = Field(default_factory=dict)  # every *EndsAt / *ExpiresAt field, camelCase keys


class GameSnapshot(WireModel):
    ok: bool = True
    room: GameRoom | None = None
    must_haves_by_player: dict[str, list[str]] = Field(default_factory=dict)
    surprise_by_player: dict[str, str | None] = Field(default_factory=dict)
    pitch_status_by_player: dict[str, str] = Field(default_factory=dict)
    players: list[Player] = Field(default_factory=list)
    server_now: int | None = None
    message: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "GameSnapshot":
        snapshot = cls.model_validate(data)
        raw_room = data.get("room") or {}
        if snapshot.room is not None:
            snapshot.room.timers = {
                key: value
                for key, value in raw_room.items()
                if (key.endswith("EndsAt") or key.endswith("ExpiresAt")) and isinstance(value, (int, float))
            }
        return snapshot

    @property
    def effective_server_now(self) -> int | None:
        if self.server_now is not None:
            return self.server_now
        return self.room.server_now if self.room else None

    def mascots(self) -> dict[str, str]:
        return {p.name: p.mascot for p in self.players if p.mascot}


class PitchList(WireModel):
    ok: bool = True
    pitches: list[Pitch] = Field(default_factory=list)


class PitchDraft(WireModel):
    player_name: str
    title: str
    summary: str
    voice: str = ""
    used_must_haves: list[str] = Field(default_factory=list)
    sketch_data: str | None = None
    status: str = "drafting"     # "drafting" or "ready"
    ai_generated: bool = False


class ActionResult(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    ok: bool = False
    message: str | None = None
    phase: str | None = None

    def payload(self, key: str, default: Any = None) -> Any:
        """Returns an extra field the server attached to the response."""
        extra = self.model_extra or {}
        return extra.get(key, default)
