"""Command-line interface for Tajniacy.

- `tajniacy deck` - Build and show a board
- `tajniacy hint` - Generate a hint for one team
- `tajniacy turn` - Hint, card pick and reaction for one team
- `tajniacy both-teams` - Hints for Blue and Red in parallel
"""

import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from llmcore import __version__ as llmcore_version
from llmcore.adapters.scripted import ScriptedGenerator
from llmcore.config import build_generator, list_backends, load_backend_config
from llmcore.errors import GenerationExhausted, GeneratorError, ParseError
from llmcore.generator import Generator
from llmcore.utils.logging import RejectionLog, setup_logging
from tajniacy import __version__
from tajniacy.cards import Card, Deck, Team
from tajniacy.hint import Hint, HintGenerator
from tajniacy.player import LLMPlayer
from tajniacy.prompt_manager import PromptManager, PromptNotFoundError
from tajniacy.reaction import ReactionGenerator, is_proper_guess, parse_reaction
from tajniacy.settings import GameSettings, load_game_settings
from tajniacy.vocabulary import load_vocabulary

app = typer.Typer(
    help="Tajniacy - Codenames played by a language model",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)

TEAM_STYLES = {
    Team.BLUE: "bold blue",
    Team.RED: "bold red",
    Team.NEUTRAL: "dim",
    Team.ASSASSIN: "bold white on black",
}


def _setup(verbose: bool, log_path: Optional[str]) -> None:
    log_file = setup_logging("DEBUG" if verbose else "INFO", Path(log_path) if log_path else None)
    if log_file:
        console.print(f"[dim]Logging to {log_file}[/dim]")


def _parse_team(value: Optional[str], allow_none: bool = True) -> Optional[Team]:
    if value is None and allow_none:
        return None
    try:
        team = Team.parse(value)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    if team not in (Team.BLUE, Team.RED):
        console.print("[red]Error: Team must be Blue or Red[/red]")
        raise typer.Exit(1)
    return team


def _build_deck(words: Optional[str], seed: Optional[int], starting_team: Optional[str]) -> Deck:
    try:
        vocabulary = load_vocabulary(words)
        return Deck.from_vocabulary(vocabulary, _parse_team(starting_team), random.Random(seed))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error building deck: {e}[/red]")
        raise typer.Exit(1)


def _make_generator(backend: Optional[str], offline: Optional[str]) -> Generator:
    """Scripted generator when --offline is given, otherwise a configured backend."""
    try:
        if offline:
            generator = ScriptedGenerator.from_yaml(Path(offline))
            console.print(f"[yellow]Offline mode: {generator.remaining} scripted replies[/yellow]")
            return generator
        return build_generator(backend)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error creating generator: {e}[/red]")
        console.print("[yellow]You may need to `source .env` if you are running locally[/yellow]")
        raise typer.Exit(1)


def _load_settings(settings_file: Optional[str]) -> GameSettings:
    try:
        return load_game_settings(settings_file)
    except (ValueError, TypeError) as e:
        console.print(f"[red]Error loading game settings: {e}[/red]")
        raise typer.Exit(1)


def _load_prompts(prompts_dir: Optional[str]) -> PromptManager:
    prompts = PromptManager(Path(prompts_dir) if prompts_dir else None)
    try:
        prompts.require()
    except PromptNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    return prompts


def display_deck(deck: Deck, revealed: Optional[Card] = None) -> None:
    """Show the board as a 5x5 grid coloured by team."""
    table = Table(title=f"Deck (starting team: {deck.starting_team.value})", show_header=False)
    for _ in range(5):
        table.add_column(justify="center", min_width=12)

    cells = []
    for card in deck:
        text = escape(f"[{card.word}]" if revealed is not None and card == revealed else card.word)
        cells.append(f"[{TEAM_STYLES[card.team]}]{text}[/{TEAM_STYLES[card.team]}]")
    for row in range(0, len(cells), 5):
        table.add_row(*cells[row:row + 5])

    console.print(table)


def display_hint(hint: Hint, team: Team) -> None:
    table = Table(title=f"Hint for {team.value}")
    table.add_column("Hint", style="cyan")
    table.add_column("NOSW", style="magenta")
    table.add_column("Cards", style="green")
    cards = ", ".join(c.word for c in hint.cards) if hint.cards else "-"
    table.add_row(escape(hint.word), str(hint.similar_count), escape(cards))
    console.print(table)


def _report_failure(e: Exception) -> None:
    if isinstance(e, GeneratorError):
        console.print(f"[red]Generator failed ({e.kind}): {escape(str(e))}[/red]")
    else:
        console.print(f"[red]Error: {escape(str(e))}[/red]")


@app.command()
def deck(
    seed: Optional[int] = typer.Option(None, help="Random seed for a reproducible deck"),
    starting_team: Optional[str] = typer.Option(None, help="Blue or Red (random when omitted)"),
    words: Optional[str] = typer.Option(None, help="Vocabulary file (.yaml or .json)"),
    as_json: bool = typer.Option(False, "--json", help="Print the deck wire format"),
):
    """Build a deck and show it."""
    board = _build_deck(words, seed, starting_team)
    if as_json:
        console.print_json(board.to_json())
        return
    display_deck(board)


@app.command()
def hint(
    team: str = typer.Option("Blue", help="Team to give the hint for"),
    seed: Optional[int] = typer.Option(None, help="Random seed for a reproducible deck"),
    words: Optional[str] = typer.Option(None, help="Vocabulary file (.yaml or .json)"),
    backend: Optional[str] = typer.Option(None, help="Backend name from backends.yml"),
    offline: Optional[str] = typer.Option(None, help="YAML file with scripted replies"),
    previous: Optional[str] = typer.Option(None, help="Comma-separated hints already used"),
    settings_file: Optional[str] = typer.Option(None, help="Game settings YAML"),
    prompts_dir: Optional[str] = typer.Option(None, help="Directory with prompt templates"),
    log_rejections: bool = typer.Option(False, help="Write rejected replies to logs/rejections"),
    log_path: Optional[str] = typer.Option(None, help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Generate a hint for one team on a freshly built deck."""
    _setup(verbose, log_path)
    active_team = _parse_team(team, allow_none=False)
    board = _build_deck(words, seed, None)
    settings = _load_settings(settings_file)
    generator = _make_generator(backend, offline)
    on_rejected = RejectionLog() if log_rejections else None

    hint_generator = HintGenerator(
        generator,
        _load_prompts(prompts_dir),
        policy=settings.policy_for("hint", on_rejected),
        max_tokens=settings.max_tokens,
    )
    previous_hints = [w.strip() for w in previous.split(",") if w.strip()] if previous else []

    display_deck(board)
    try:
        result = hint_generator.generate(board, active_team, previous_hints)
    except (GeneratorError, GenerationExhausted) as e:
        _report_failure(e)
        raise typer.Exit(1)
    display_hint(result, active_team)


@app.command()
def turn(
    team: str = typer.Option("Blue", help="Team playing the turn"),
    seed: Optional[int] = typer.Option(None, help="Random seed for a reproducible deck"),
    words: Optional[str] = typer.Option(None, help="Vocabulary file (.yaml or .json)"),
    backend: Optional[str] = typer.Option(None, help="Backend name from backends.yml"),
    offline: Optional[str] = typer.Option(None, help="YAML file with scripted replies"),
    alt_persona: bool = typer.Option(False, help="Use the alternate reaction persona"),
    settings_file: Optional[str] = typer.Option(None, help="Game settings YAML"),
    prompts_dir: Optional[str] = typer.Option(None, help="Directory with prompt templates"),
    log_rejections: bool = typer.Option(False, help="Write rejected replies to logs/rejections"),
    log_path: Optional[str] = typer.Option(None, help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Play one turn: hint, card pick, then a reaction to the picked card."""
    _setup(verbose, log_path)
    active_team = _parse_team(team, allow_none=False)
    board = _build_deck(words, seed, None)
    settings = _load_settings(settings_file)
    generator = _make_generator(backend, offline)
    prompts = _load_prompts(prompts_dir)
    on_rejected = RejectionLog() if log_rejections else None

    hint_generator = HintGenerator(
        generator, prompts, settings.policy_for("hint", on_rejected), settings.max_tokens
    )
    player = LLMPlayer(generator, prompts, settings.policy_for("pick", on_rejected), settings.max_tokens)
    reactions = ReactionGenerator(
        generator, prompts, settings.policy_for("reaction", on_rejected), settings.max_tokens
    )

    display_deck(board)
    try:
        given_hint = hint_generator.generate(board, active_team)
        display_hint(given_hint, active_team)
        picked = player.pick_card(board, given_hint)
    except (GeneratorError, GenerationExhausted) as e:
        _report_failure(e)
        raise typer.Exit(1)

    verdict = "[green]proper guess[/green]" if is_proper_guess(active_team, picked) else "[red]wrong guess[/red]"
    console.print(f"\n[bold]{active_team.value} picked:[/bold] {picked.word} ({picked.team.value}) - {verdict}")
    display_deck(board, revealed=picked)

    try:
        span = reactions.generate(given_hint, picked, active_team, alternate_persona=alt_persona)
    except GenerationExhausted as e:
        console.print(f"[yellow]No reaction this time: {e}[/yellow]")
        return
    except GeneratorError as e:
        _report_failure(e)
        raise typer.Exit(1)

    try:
        reaction = parse_reaction(span)
        console.print(f"\n[italic]{escape(str(reaction.get('Reaction', span)))}[/italic]")
    except ParseError:
        console.print(f"\n[italic]{escape(span)}[/italic]")


@app.command(name="both-teams")
def both_teams(
    seed: Optional[int] = typer.Option(None, help="Random seed for a reproducible deck"),
    words: Optional[str] = typer.Option(None, help="Vocabulary file (.yaml or .json)"),
    backend: Optional[str] = typer.Option(None, help="Backend name from backends.yml"),
    offline: Optional[str] = typer.Option(None, help="YAML file with scripted replies"),
    settings_file: Optional[str] = typer.Option(None, help="Game settings YAML"),
    prompts_dir: Optional[str] = typer.Option(None, help="Directory with prompt templates"),
    log_rejections: bool = typer.Option(False, help="Write rejected replies to logs/rejections"),
    log_path: Optional[str] = typer.Option(None, help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Generate hints for Blue and Red concurrently on the same deck."""
    _setup(verbose, log_path)
    board = _build_deck(words, seed, None)
    settings = _load_settings(settings_file)
    generator = _make_generator(backend, offline)
    on_rejected = RejectionLog() if log_rejections else None
    hint_generator = HintGenerator(
        generator, _load_prompts(prompts_dir), settings.policy_for("hint", on_rejected), settings.max_tokens
    )

    display_deck(board)
    results: Dict[Team, Hint] = {}
    failures = 0
    with ThreadPoolExecutor(max_workers=2) as executor:
        future_to_team = {
            executor.submit(hint_generator.generate, board, team): team for team in (Team.BLUE, Team.RED)
        }
        for future in as_completed(future_to_team):
            team = future_to_team[future]
            try:
                results[team] = future.result()
            except (GeneratorError, GenerationExhausted) as e:
                logger.error(f"Hint for {team.value} failed: {e}")
                _report_failure(e)
                failures += 1

    for team in (Team.BLUE, Team.RED):
        if team in results:
            display_hint(results[team], team)

    if failures:
        raise typer.Exit(1)


@app.command(name="list-backends")
def list_backends_cmd():
    """List backends configured in backends.yml."""
    config = load_backend_config()
    default = config.get("default_backend")

    table = Table(title="Configured Backends")
    table.add_column("Name", style="cyan", min_width=12)
    table.add_column("Type", style="green")
    table.add_column("Model", style="magenta", min_width=20)
    table.add_column("Endpoint")

    for name in list_backends(config):
        settings = config["backends"][name]
        label = f"{name} (default)" if name == default else name
        table.add_row(label, settings.get("type", "chat"), settings.get("model", ""), settings.get("endpoint", ""))

    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print("[bold]Tajniacy[/bold]")
    console.print(f"  tajniacy: {__version__}")
    console.print(f"  llmcore: {llmcore_version}")


if __name__ == "__main__":
    app()
