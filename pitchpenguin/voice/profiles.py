MODEL_VOICES = [
    "Adam", "Alloy", "Aoede", "Bella", "Echo", "Eric", "Fenrir", "Heart", "Jessica", "Kore",
    "Liam", "Michael", "Nicole", "Nova", "Onyx", "Puck", "River", "Santa", "Sarah", "Sky",
]
ALT_VOICES = ["Aiden", "Dylan", "Eric", "Ono_Anna", "Ryan", "Serena", "Sohee", "Uncle_Fu", "Vivian"]
VOICES = MODEL_VOICES + ALT_VOICES

DEFAULT_VOICE = "Heart"

_BY_NAME = {v.lower(): v for v in VOICES}

# Display names used by older builds of the pitch screen
LEGACY_VOICES = {
    "neon announcer": "Heart",
    "calm founder": "Onyx",
    "buzzword bot": "Nova",
    "wall street hype": "Puck",
    "game show host": "Heart",
    "arcade ringleader": "Puck",
    "chaos commentator": "Nova",
    "retro robot mc": "Onyx",
    "af_heart": "Heart",
    "am_puck": "Puck",
    "af_nova": "Nova",
    "am_onyx": "Onyx",
}


def normalize_voice_name(voice_name: str | None) -> str:
    raw = (voice_name or "").strip().lower()
    if not raw:
        return DEFAULT_VOICE
    if raw in _BY_NAME:
        return _BY_NAME[raw]
    if raw in LEGACY_VOICES:
        return LEGACY_VOICES[raw]
    suffix = raw.split("_")[-1] if "_" in raw else raw
    return _BY_NAME.get(suffix, DEFAULT_VOICE)


def build_narration_text(title: str, summary: str) -> str:
    clean_title = title.strip() or "Untitled Pitch"
    clean_summary = summary.strip() or "No summary provided yet."
    return f"{clean_title}. {clean_summary}"
