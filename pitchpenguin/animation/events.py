from typing import Literal, NamedTuple

MascotState = Literal[
    "idle", "selected", "deselected", "pitching", "winner", "loser", "final-round", "judging"
]
MascotEvent = Literal[
    "select", "deselect", "win", "lose", "lose-money", "pitch", "present", "enter-final", "judge", "idle"
]


class AnimationBundle(NamedTuple):
    primary: str
    secondary: tuple[str, ...] = ()

    @property
    def classes(self) -> tuple[str, ...]:
        return (self.primary, *self.secondary)

    @property
    def class_name(self) -> str:
        return " ".join(self.classes)


IDLE = AnimationBundle("mascot-idle")

# None means the state holds until another event replaces it
EVENT_DURATIONS_MS: dict[str, int | None] = {
    "select": 600,
    "deselect": 300,
    "win": 1000,
    "lose": 800,
    "lose-money": 800,
    "pitch": None,
    "present": None,
    "enter-final": 1000,
    "judge": None,
    "idle": None,
}

EVENT_TO_STATE: dict[str, str] = {
    "select": "selected",
    "deselect": "deselected",
    "win": "winner",
    "lose": "loser",
    "lose-money": "loser",
    "pitch": "pitching",
    "present": "pitching",
    "enter-final": "final-round",
    "judge": "judging",
    "idle": "idle",
}

# Mascot catalogue: id -> (display name, badge color)
MASCOTS: dict[str, tuple[str, str]] = {
    "rocket": ("Rocket CEO", "#FFE5D4"),
    "chart": ("Chart Wizard", "#eddff4"),
    "gremlin": ("Idea Gremlin", "#E0FBF2"),
    "walrus": ("Corporate Walrus", "#eae2ff"),
    "penguin": ("Corporate Penguin", "#eae2ff"),
    "goblin": ("Growth Goblin", "#F7DFF2"),
    "robot": ("AI Founder Bot", "#E3F1F7"),
    "unicorn": ("Unicorn Founder", "#F4E2FF"),
    "shark": ("VC Shark", "#DFF0F7"),
    "octopus": ("Multitasking Octo-Founder", "#FCE1EC"),
    "llama": ("Hyper Influencer Llama", "#FFE6DC"),
    "hamster": ("Hustler Hamster", "#FFF1D6"),
    "blob": ("Brainstorm Blob", "#e2e1fa"),
    "raccoon": ("Crypto Raccoon", "#dbdbdb"),
    "scientist": ("Mad Scientist", "#F5F1EA"),
}
DEFAULT_MASCOT_COLOR = "#F5F1EA"


def mascot_name(mascot_id: str | None) -> str | None:
    if not mascot_id or mascot_id not in MASCOTS:
        return None
    return MASCOTS[mascot_id][0]


def mascot_color(mascot_id: str | None) -> str:
    if not mascot_id or mascot_id not in MASCOTS:
        return DEFAULT_MASCOT_COLOR
    return MASCOTS[mascot_id][1]


def _per_species(primary: str, suffix: str, species: list[str], extra: tuple[str, ...] = ()) -> dict[str, AnimationBundle]:
    return {s: AnimationBundle(primary, (*extra, f"{s}-{suffix}")) for s in species}


_ALL_SPECIES = [
    "blob", "chart", "gremlin", "goblin", "robot", "unicorn", "shark",
    "octopus", "llama", "hamster", "walrus", "rocket", "raccoon", "scientist",
]

WIN_ANIMATIONS: dict[str, AnimationBundle] = {
    "blob": AnimationBundle("mascot-winner", ("blob-winning", "blob-tie")),
    "chart": AnimationBundle("mascot-winner", ("chart-winning",)),
    "gremlin": AnimationBundle("mascot-winner", ("gremlin-winning", "gremlin-bulb")),
    "hamster": AnimationBundle("mascot-winner", ("hamster-winning", "hamster-coin")),
    "llama": AnimationBundle("mascot-winner"),
    "shark": AnimationBundle("mascot-winner", ("shark-winning",)),
    "unicorn": AnimationBundle("mascot-winner", ("unicorn-winning", "unicorn-horn")),
    "walrus": AnimationBundle("mascot-winner", ("walrus-winning", "walrus-monocle", "walrus-monocle-glint")),
    "octopus": AnimationBundle("mascot-winner", ("octopus-winning",)),
    "scientist": AnimationBundle("mascot-winner", ("scientist-winning", "scientist-spark")),
}
SELECT_ANIMATIONS = _per_species("mascot-selected", "select", _ALL_SPECIES, ("mascot-selected-glow",))
PITCH_ANIMATIONS = _per_species("mascot-idle", "presenting", _ALL_SPECIES)
LOSE_ANIMATIONS = _per_species("mascot-lose-money", "losing", _ALL_SPECIES)

# species -> {event -> bundle}; events missing for a species use DEFAULT_ANIMATIONS
SPECIES_ANIMATIONS: dict[str, dict[str, AnimationBundle]] = {}
for _table, _events in (
    (WIN_ANIMATIONS, ("win",)),
    (SELECT_ANIMATIONS, ("select",)),
    (PITCH_ANIMATIONS, ("pitch", "present")),
    (LOSE_ANIMATIONS, ("lose", "lose-money")),
):
    for _species, _bundle in _table.items():
        for _event in _events:
            SPECIES_ANIMATIONS.setdefault(_species, {})[_event] = _bundle
SPECIES_ANIMATIONS.setdefault("walrus", {})["judge"] = AnimationBundle("mascot-idle", ("walrus-judging",))

DEFAULT_ANIMATIONS: dict[str, AnimationBundle] = {
    "select": AnimationBundle("mascot-selected", ("mascot-selected-glow",)),
    "deselect": AnimationBundle("mascot-deselected"),
    "win": AnimationBundle("mascot-winner", ("mascot-winner-glow",)),
    "lose": AnimationBundle("mascot-lose-money"),
    "lose-money": AnimationBundle("mascot-lose-money"),
    "pitch": IDLE,
    "present": IDLE,
    "enter-final": AnimationBundle("mascot-final-round", ("mascot-final-round-spotlight",)),
    "judge": IDLE,
    "idle": IDLE,
}


def resolve_animation(species: str | None, event: str) -> AnimationBundle:
    """Looks up the class bundle a species shows for an event."""
    if event not in EVENT_TO_STATE:
        raise ValueError(f"Unknown mascot event: {event}")
    table = SPECIES_ANIMATIONS.get((species or "").lower(), {})
    return table.get(event) or DEFAULT_ANIMATIONS[event]
