from typing import Dict, List, NamedTuple
from rich.table import Table
from rich.text import Text
from pitchpenguin.animation.events import mascot_color, mascot_name


class Standing(NamedTuple):
    rank: int
    player: str
    score: float


def standings(scores: Dict[str, float]) -> List[Standing]:
    """
    Orders players by score, highest first. Ties keep the server's order and
    share a rank.
    """
    ordered = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    result = []
    for i, (player, score) in enumerate(ordered):
        rank = result[-1].rank if result and result[-1].score == score else i + 1
        result.append(Standing(rank, player, score))
    return result


def rank_moves(previous: Dict[str, float], current: Dict[str, float]) -> Dict[str, str]:
    """
    Compares two score maps and reports "up" or "down" for every player whose
    position changed. Players new to the board get no entry.
    """
    if not previous:
        return {}
    previous_order = [p for p, _ in sorted(previous.items(), key=lambda item: item[1], reverse=True)]
    next_order = [p for p, _ in sorted(current.items(), key=lambda item: item[1], reverse=True)]
    previous_index = {p: i for i, p in enumerate(previous_order)}
    moves = {}
    for i, player in enumerate(next_order):
        before = previous_index.get(player)
        if before is None or before == i:
            continue
        moves[player] = "up" if i < before else "down"
    return moves


class Leaderboard:
    """
    Keeps the latest room scores and the moves since the previous update.
    """

    def __init__(self):
        self.scores: Dict[str, float] = {}
        self.previous: Dict[str, float] = {}
        self.moves: Dict[str, str] = {}
        self.mascots: Dict[str, str] = {}

    def update(self, scores: Dict[str, float], mascots: Dict[str, str] | None = None) -> Dict[str, str]:
        self.previous = self.scores
        self.scores = dict(scores)
        self.moves = rank_moves(self.previous, self.scores)
        if mascots is not None:
            self.mascots = dict(mascots)
        return self.moves

    def format_markdown(self) -> str:
        lines = [
            "### Leaderboard",
            "",
            "| Rank | Player | Mascot | Points |",
            "|:---|:---|:---|:---|",
        ]
        for s in standings(self.scores):
            mascot = mascot_name(self.mascots.get(s.player)) or "-"
            lines.append(f"| {s.rank} | {s.player} | {mascot} | **{s.score:g}** |")
        return "\n".join(lines)

    def _badge(self, mascot_id: str | None) -> Text:
        name = mascot_name(mascot_id)
        if not name:
            return Text("-")
        return Text(name, style=f"black on {mascot_color(mascot_id)}")

    def to_table(self, title: str = "Leaderboard") -> Table:
        table = Table(title=title)
        table.add_column("Rank", justify="right")
        table.add_column("Player", style="cyan")
        table.add_column("Mascot")
        table.add_column("Points", style="bold green", justify="right")
        table.add_column("Move")

        for s in standings(self.scores):
            move = self.moves.get(s.player)
            arrow = {"up": "[green]▲[/green]", "down": "[red]▼[/red]"}.get(move, "")
            table.add_row(
                str(s.rank),
                s.player,
                self._badge(self.mascots.get(s.player)),
                f"{s.score:g}",
                arrow,
            )
        return table
