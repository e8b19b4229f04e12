import asyncio
import logging
from typing import Optional
import typer
from rich.console import Console
from rich.logging import RichHandler
from pitchpenguin.animation.events import MASCOTS
from pitchpenguin.api.client import ApiError, RoomApiClient
from pitchpenguin.config import Settings
from pitchpenguin.game.rules import validate_host_name, validate_join
from pitchpenguin.pages.base import Page, PageContext
from pitchpenguin.pages.lobby import mascot_options
from pitchpenguin.pages.reveal import RevealPage
from pitchpenguin.ranking.leaderboard import Leaderboard
from pitchpenguin.session import GameSession
from pitchpenguin.storage.local_state import LocalState
from pitchpenguin.sync.navigator import Navigator, Route

app = typer.Typer(help="Pitch Penguin: command line client for the pitch party game.")
console = Console()
logger = logging.getLogger("pitchpenguin")


@app.callback()
def main(
    ctx: typer.Context,
    api_url: Optional[str] = typer.Option(None, help="Game server base URL (overrides PITCHPENGUIN_API_BASE_URL)"),
    state_dir: Optional[str] = typer.Option(None, help="Where the client remembers rooms and names"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = Settings.from_env(api_base_url=api_url, state_dir=state_dir)


def _store(settings: Settings) -> LocalState:
    return LocalState(settings.state_dir)


@app.command()
def create(ctx: typer.Context, host_name: str = typer.Argument(..., help="Your player name")):
    """
    Creates a room and makes you its host.
    """
    problem = validate_host_name(host_name)
    if problem:
        console.print(f"[red]{problem}[/red]")
        raise typer.Exit(1)
    asyncio.run(_create(ctx.obj, host_name.strip()))


async def _create(settings: Settings, host_name: str):
    async with RoomApiClient(settings) as client:
        result = await client.create_room(host_name)
    room = result.payload("room") or {}
    if not result.ok or not room.get("code"):
        console.print(f"[red]{result.message or 'Could not create a room.'}[/red]")
        raise typer.Exit(1)
    _store(settings).remember_player(room["code"], host_name)
    console.print(f"[green]Room created:[/green] [bold]{room['code']}[/bold]")


@app.command()
def join(
    ctx: typer.Context,
    code: str = typer.Argument(..., help="Room code from your host"),
    player_name: str = typer.Argument(..., help="Your player name"),
):
    """
    Joins an existing room.
    """
    problem = validate_join(code, player_name)
    if problem:
        console.print(f"[red]{problem}[/red]")
        raise typer.Exit(1)
    asyncio.run(_join(ctx.obj, code.strip().upper(), player_name.strip()))


async def _join(settings: Settings, code: str, player_name: str):
    async with RoomApiClient(settings) as client:
        result = await client.join_room(code, player_name)
    if not result.ok:
        console.print(f"[red]{result.message or 'Unable to join that room.'}[/red]")
        raise typer.Exit(1)
    _store(settings).remember_player(code, player_name)
    console.print(f"[green]Joined[/green] [bold]{code}[/bold] as {player_name}")


@app.command()
def leave(ctx: typer.Context, code: Optional[str] = typer.Argument(None, help="Room code (defaults to last room)")):
    """
    Leaves a room and forgets the stored player name for it.
    """
    asyncio.run(_leave(ctx.obj, code))


async def _leave(settings: Settings, code: Optional[str]):
    store = _store(settings)
    room_code = store.resolve_room(code)
    player_name = store.player_for_room(room_code)
    if not room_code or not player_name:
        console.print("[red]No stored player for that room.[/red]")
        raise typer.Exit(1)
    async with RoomApiClient(settings) as client:
        result = await client.leave_room(room_code, player_name)
    if not result.ok:
        console.print(f"[red]{result.message or 'Could not leave the room.'}[/red]")
        raise typer.Exit(1)
    store.forget_room(room_code)
    console.print(f"Left {room_code}.")


@app.command()
def mascot(
    ctx: typer.Context,
    mascot_id: str = typer.Argument(..., help=f"One of: {', '.join(MASCOTS)}"),
    code: Optional[str] = typer.Option(None, help="Room code (defaults to last room)"),
):
    """
    Picks your mascot. Mascots already taken by another player are refused.
    """
    asyncio.run(_mascot(ctx.obj, mascot_id.lower(), code))


async def _mascot(settings: Settings, mascot_id: str, code: Optional[str]):
    store = _store(settings)
    room_code = store.resolve_room(code)
    player_name = store.player_for_room(room_code)
    if not room_code or not player_name:
        console.print("[red]Join a room first.[/red]")
        raise typer.Exit(1)
    async with RoomApiClient(settings) as client:
        try:
            room = await client.get_room(room_code)
        except ApiError as e:
            console.print(f"[red]Unable to load the room: {e.message}[/red]")
            raise typer.Exit(1)
        option = next((o for o in mascot_options(room.players, player_name) if o.id == mascot_id), None)
        if option is None:
            console.print(f"[red]Unknown mascot {mascot_id}.[/red]")
            raise typer.Exit(1)
        if option.disabled:
            console.print(f"[yellow]{option.name} is taken by {option.taken_by}.[/yellow]")
            raise typer.Exit(1)
        result = await client.select_mascot(room_code, player_name, mascot_id)
    if not result.ok:
        console.print(f"[red]{result.message or 'Could not pick that mascot.'}[/red]")
        raise typer.Exit(1)
    console.print(f"You are now the [bold]{option.name}[/bold].")


@app.command()
def scores(
    ctx: typer.Context,
    code: Optional[str] = typer.Argument(None, help="Room code (defaults to last room)"),
    markdown: bool = typer.Option(False, "--markdown", help="Print a Markdown table instead"),
):
    """
    Shows the room leaderboard.
    """
    asyncio.run(_scores(ctx.obj, code, markdown))


async def _scores(settings: Settings, code: Optional[str], markdown: bool = False):
    room_code = _store(settings).resolve_room(code)
    if not room_code:
        console.print("[red]No room code given.[/red]")
        raise typer.Exit(1)
    async with RoomApiClient(settings) as client:
        try:
            snapshot = await client.get_game(room_code)
        except ApiError as e:
            console.print(f"[red]Unable to load scores: {e.message}[/red]")
            raise typer.Exit(1)
    board = Leaderboard()
    board.update(snapshot.room.player_scores if snapshot.room else {}, snapshot.mascots())
    if markdown:
        print(board.format_markdown())
    else:
        console.print(board.to_table(title=f"{room_code} Leaderboard"))


@app.command()
def narrate(
    ctx: typer.Context,
    pitch_id: str = typer.Argument(..., help="Pitch to read out"),
    out: str = typer.Option("pitch.mp3", help="Where to write the audio"),
    code: Optional[str] = typer.Option(None, help="Room code (defaults to last room)"),
):
    """
    Saves the robot-voice narration of a pitch.
    """
    asyncio.run(_narrate(ctx.obj, pitch_id, out, code))


async def _narrate(settings: Settings, pitch_id: str, out: str, code: Optional[str]):
    store = _store(settings)
    room_code = store.resolve_room(code)
    if not room_code:
        console.print("[red]No room code given.[/red]")
        raise typer.Exit(1)
    async with RoomApiClient(settings) as client:
        try:
            listing = await client.get_pitches(room_code)
        except ApiError as e:
            console.print(f"[red]Unable to load pitches: {e.message}[/red]")
            raise typer.Exit(1)
        pitch = next((p for p in listing.pitches if p.id == pitch_id), None)
        if pitch is None:
            console.print(f"[red]No pitch {pitch_id} in {room_code}.[/red]")
            raise typer.Exit(1)
        page = RevealPage(PageContext(
            client=client,
            code=room_code,
            navigator=Navigator(Route("reveal", room_code)),
            player_name=store.player_for_room(room_code),
            store=store,
        ))
        audio = await page.narrate(pitch)
    if audio is None:
        console.print("[yellow]Narration is unavailable right now.[/yellow]")
        raise typer.Exit(1)
    with open(out, "wb") as f:
        f.write(audio)
    console.print(f"Saved narration of [bold]{pitch.title}[/bold] to {out}")


@app.command()
def sfx(ctx: typer.Context, state: str = typer.Argument(..., help="on or off")):
    """
    Turns sound effects on or off for this machine.
    """
    if state.lower() not in ("on", "off"):
        console.print("[red]Use 'on' or 'off'.[/red]")
        raise typer.Exit(1)
    enabled = state.lower() == "on"
    store = _store(ctx.obj)
    store.sfx_enabled = enabled
    console.print(f"Sound effects {'on' if enabled else 'off'}.")


@app.command()
def watch(
    ctx: typer.Context,
    code: Optional[str] = typer.Argument(None, help="Room code (defaults to last room)"),
    socket: bool = typer.Option(True, help="Listen for room:state pushes as well as polling"),
):
    """
    Follows the room through its phases, printing page changes and timers.
    """
    try:
        asyncio.run(_watch(ctx.obj, code, socket))
    except KeyboardInterrupt:
        console.print("Stopped watching.")


async def _watch(settings: Settings, code: Optional[str], use_socket: bool):
    store = _store(settings)
    room_code = store.resolve_room(code)
    if not room_code:
        console.print("[red]No room code given.[/red]")
        raise typer.Exit(1)

    def on_page(page: Page):
        console.rule(f"[bold]{page.name}[/bold] · {room_code}")

    async with RoomApiClient(settings) as client:
        navigator = Navigator(Route("lobby", room_code))
        session = GameSession(client, navigator, store=store, use_socket=use_socket, on_page=on_page)
        async with session:
            last_line = None
            while True:
                page = session.page
                if page is not None:
                    line = _status_line(page)
                    if line != last_line:
                        console.print(line)
                        last_line = line
                await asyncio.sleep(1)


def _status_line(page: Page) -> str:
    if page.status == "error":
        return "[red]Unable to load round state. Retrying...[/red]"
    parts = [f"Round {page.round + 1}"]
    if page.judge:
        parts.append(f"Judge: {page.judge}{' (you)' if page.is_judge else ''}")
    if page.seconds_left is not None:
        parts.append(f"{page.seconds_left}s left")
    return " | ".join(parts)


if __name__ == "__main__":
    app()
