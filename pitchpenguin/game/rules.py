from pitchpenguin.game.models import Pitch, Player

ROOM_CAPACITY = 8
MIN_MUST_HAVES = 1
MIN_FINAL_ROUND_MUST_HAVES = 2


def same_name(a: str | None, b: str | None) -> bool:
    """Player names are unique per room, ignoring case and outer whitespace."""
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def find_player(players: list[Player], name: str | None) -> Player | None:
    return next((p for p in players if same_name(p.name, name)), None)


def validate_host_name(name: str) -> str | None:
    if not name.strip():
        return "Enter a host name to continue."
    return None


def validate_join(code: str, player_name: str) -> str | None:
    if not code.strip():
        return "Enter a room code to continue."
    if not player_name.strip():
        return "Enter a player name to continue."
    return None


def validate_ready(
    selected_must_haves: list[str],
    title: str,
    summary: str,
    final_round: bool = False,
) -> str | None:
    """
    Advisory check before marking a pitch ready. The server enforces the
    same rules; this only saves a round trip.
    """
    minimum = MIN_FINAL_ROUND_MUST_HAVES if final_round else MIN_MUST_HAVES
    if len(selected_must_haves) < minimum:
        noun = "MUST HAVE" if minimum == 1 else "MUST HAVEs"
        return f"Select at least {minimum} {noun} before marking ready."
    if not title.strip() or not summary.strip():
        return "Add a title and pitch summary before submitting."
    return None


def challenge_blocker(
    pitch: Pitch | None,
    player_name: str | None,
    viewed_pitch_ids: list[str],
    pitches: list[Pitch],
) -> str | None:
    """
    Returns why the current player may not challenge `pitch` as AI-written,
    or None when the challenge may be sent.
    """
    if pitch is None or not player_name:
        return "No pitch selected."
    if same_name(pitch.player, player_name):
        return "You cannot challenge your own pitch."
    if pitch.id not in viewed_pitch_ids:
        return "Wait until the judge has viewed this pitch."
    if not pitch.eligible:
        return "This pitch is already disqualified."
    remaining = sum(1 for p in pitches if not p.is_disqualified)
    if remaining <= 1:
        return "Only one pitch remains."
    return None


def is_judge(judge: str | None, player_name: str | None) -> bool:
    return same_name(judge, player_name)
