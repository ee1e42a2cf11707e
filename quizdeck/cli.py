"""
quizdeck: terminal front-end.

A Rich terminal interface for spaced repetition study over a JSON
question bank.

Commands:
- quizdeck study    - Start an interactive study session
- quizdeck preview  - Show the next session batch
- quizdeck stats    - Show pool statistics, due forecast and the daily goal
- quizdeck export   - Write knowledge state to a JSON file
- quizdeck import   - Replace knowledge state from a JSON file
- quizdeck reset    - Clear all knowledge state
"""
from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from quizdeck.config import Settings, build_strategy, get_settings
from quizdeck.content.question_bank import Question, QuestionBank
from quizdeck.core.errors import MalformedStateError, QuestionBankError
from quizdeck.core.models import AnswerEvent, QuestionRef, SM2State, now_ms
from quizdeck.scheduling.portability import read_state_text
from quizdeck.scheduling.selector import SelectionStatus, StudyMode, filter_rating_range
from quizdeck.scheduling.state_store import JsonStateFile
from quizdeck.study.service import AnswerOutcome, StudyService

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="quizdeck",
    help="quizdeck: spaced repetition quiz trainer",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
}


# =============================================================================
# Wiring
# =============================================================================


def _load_service(settings: Settings) -> StudyService:
    strategy = build_strategy(settings.strategy)
    try:
        return StudyService.create(
            strategy,
            persistence=JsonStateFile(strategy, settings.state_path),
            recent_window=settings.recent_window,
            goal_config=settings.goal_config,
        )
    except MalformedStateError as e:
        console.print(f"[red]State file {settings.state_path} is invalid: {e}[/red]")
        raise typer.Exit(1)


def _load_bank(settings: Settings, path: Optional[Path]) -> QuestionBank:
    try:
        return QuestionBank.load(path or settings.question_bank_path)
    except QuestionBankError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _build_pool(
    service: StudyService,
    bank: QuestionBank,
    section: Optional[list[str]],
    quiz: Optional[list[str]],
    min_rating: Optional[int],
    max_rating: Optional[int],
) -> list[QuestionRef]:
    pool = bank.refs(section, quiz)
    if min_rating is None and max_rating is None:
        return pool
    try:
        return filter_rating_range(
            pool,
            service.store,
            (0 if min_rating is None else min_rating, 10 if max_rating is None else max_rating),
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


# =============================================================================
# Display Helpers
# =============================================================================


def display_question(question: Question, index: int, total: int) -> None:
    """Display a question and its options."""
    header = f"Question {index}/{total}  |  {question.section}  |  {question.quiz}"

    content = question.text
    if question.options:
        content += "\n\n"
        for i, opt in enumerate(question.options):
            content += f"  {i + 1}. {opt.text}\n"

    console.print(Panel(
        content,
        title=header,
        title_align="left",
        border_style="cyan",
        padding=(1, 2),
    ))


def display_feedback(question: Question, outcome: AnswerOutcome, is_correct: bool) -> None:
    """Show correctness, the right answer and the new knowledge state."""
    style = STYLES["correct"] if is_correct else STYLES["incorrect"]
    icon = "[green]✓[/green]" if is_correct else "[red]✗[/red]"

    answers = ", ".join(
        f"{i + 1}. {question.options[i].text}" for i in sorted(question.correct_indices)
    )
    content = f"{icon} {answers}"

    state = outcome.state
    if isinstance(state, SM2State):
        content += f"\n\n[dim]Next review in {state.interval} day(s)[/dim]"
    else:
        content += f"\n\n[dim]Rating {getattr(state, 'rating', 0)}/10[/dim]"
    if outcome.strength is not None:
        color = outcome.strength.color
        content += f"  [{color}]{outcome.strength.display_name}[/{color}]"

    console.print(Panel(content, border_style=style, padding=(1, 2)))


def display_session_summary(service: StudyService) -> None:
    session = service.tracker.session
    goal = service.tracker.goal

    table = Table(title="Session Summary", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Questions answered", str(session.questions_answered))
    table.add_row("Accuracy", f"{session.accuracy * 100:.0f}%")
    table.add_row("Current streak", str(session.streak))
    table.add_row("Daily goal", _goal_progress(goal))

    console.print()
    console.print(table)


def _goal_progress(goal) -> str:
    status = "[green]met[/green]" if goal.is_met else "[yellow]in progress[/yellow]"
    return (
        f"{goal.completed_count}/{goal.target_count} questions, "
        f"{goal.minutes_spent}/{goal.target_minutes} min ({status})"
    )


# =============================================================================
# Commands
# =============================================================================


@app.command()
def study(
    mode: StudyMode = typer.Option(
        StudyMode.MOST_NEEDED,
        "--mode", "-m",
        help="Selection mode",
    ),
    section: Optional[list[str]] = typer.Option(
        None,
        "--section", "-s",
        help="Only questions from this section (repeatable)",
    ),
    quiz: Optional[list[str]] = typer.Option(
        None,
        "--quiz", "-q",
        help="Only questions from this quiz (repeatable)",
    ),
    min_rating: Optional[int] = typer.Option(
        None,
        "--min-rating",
        help="Only questions rated at least this (rating strategy, 0-10)",
    ),
    max_rating: Optional[int] = typer.Option(
        None,
        "--max-rating",
        help="Only questions rated at most this (rating strategy, 0-10)",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit", "-l",
        help="Stop after this many questions (defaults to the session size)",
    ),
    ask_confidence: bool = typer.Option(
        False,
        "--confidence", "-c",
        help="Ask for confidence (0-3) after each answer",
    ),
    bank_path: Optional[Path] = typer.Option(
        None,
        "--bank", "-b",
        help="Question bank JSON file",
    ),
) -> None:
    """
    Start an interactive study session.

    Answer with the option number; enter 'q' to stop early.
    """
    settings = get_settings()
    bank = _load_bank(settings, bank_path)
    service = _load_service(settings)
    pool = _build_pool(service, bank, section, quiz, min_rating, max_rating)
    total = limit or settings.session_size

    console.print("\n[bold cyan]quizdeck[/bold cyan] - Study Session", style="bold")
    console.print("=" * 40)
    console.print(f"[dim]{len(pool)} questions in pool, mode {mode.value}[/dim]\n")

    answered = 0
    while answered < total:
        result = service.next_question(pool, mode)
        if result.status is SelectionStatus.EMPTY_POOL:
            console.print("[yellow]No questions match the current filters.[/yellow]")
            break
        if result.status is SelectionStatus.NONE_DUE:
            console.print("[green]Nothing is due right now. Come back later![/green]")
            break

        question = bank.get(result.question.id)
        display_question(question, answered + 1, total)

        started = time.monotonic()
        choice = Prompt.ask("Your answer", default="q")
        if choice.strip().lower() == "q":
            break
        response_ms = int((time.monotonic() - started) * 1000)

        try:
            is_correct = question.is_correct(int(choice) - 1)
        except ValueError:
            is_correct = False

        confidence = None
        if ask_confidence:
            confidence = int(Prompt.ask(
                "Confidence (0 guess, 1 unsure, 2 confident, 3 instant)",
                choices=["0", "1", "2", "3"],
                default="2",
            ))

        outcome = service.submit_answer(AnswerEvent(
            question_id=question.id,
            is_correct=is_correct,
            confidence=confidence,
            response_time_ms=response_ms,
        ))
        display_feedback(question, outcome, is_correct)
        answered += 1

    display_session_summary(service)


@app.command()
def preview(
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Batch size"),
    section: Optional[list[str]] = typer.Option(None, "--section", "-s", help="Section filter"),
    quiz: Optional[list[str]] = typer.Option(None, "--quiz", "-q", help="Quiz filter"),
    min_rating: Optional[int] = typer.Option(None, "--min-rating", help="Lowest rating (rating strategy)"),
    max_rating: Optional[int] = typer.Option(None, "--max-rating", help="Highest rating (rating strategy)"),
    bank_path: Optional[Path] = typer.Option(None, "--bank", "-b", help="Question bank JSON file"),
) -> None:
    """Preview the next session batch."""
    settings = get_settings()
    bank = _load_bank(settings, bank_path)
    service = _load_service(settings)

    now = now_ms()
    batch = service.build_session(
        _build_pool(service, bank, section, quiz, min_rating, max_rating),
        max_count=limit or settings.session_size,
        mix_new_cards=settings.mix_new_cards,
        now=now,
    )

    if not batch:
        console.print("[yellow]No questions to preview.[/yellow]")
        return

    console.print("\n[bold]Upcoming Questions[/bold]\n")

    table = Table()
    table.add_column("#", style="dim")
    table.add_column("ID")
    table.add_column("Section")
    table.add_column("Quiz")
    table.add_column("Priority", justify="right")
    table.add_column("Status")

    for i, ref in enumerate(batch, 1):
        state = service.store.get(ref.id, now)
        if service.strategy.is_new(state):
            status = "[cyan]new[/cyan]"
        elif service.strategy.is_due(state, now):
            status = "[yellow]due[/yellow]"
        else:
            status = "[dim]fill[/dim]"
        table.add_row(
            str(i),
            ref.id,
            ref.section,
            ref.quiz,
            f"{service.strategy.score(state, now):.0f}",
            status,
        )

    console.print(table)


@app.command()
def stats(
    section: Optional[list[str]] = typer.Option(None, "--section", "-s", help="Section filter"),
    quiz: Optional[list[str]] = typer.Option(None, "--quiz", "-q", help="Quiz filter"),
    min_rating: Optional[int] = typer.Option(None, "--min-rating", help="Lowest rating (rating strategy)"),
    max_rating: Optional[int] = typer.Option(None, "--max-rating", help="Highest rating (rating strategy)"),
    bank_path: Optional[Path] = typer.Option(None, "--bank", "-b", help="Question bank JSON file"),
) -> None:
    """Show learning statistics and forecast for a question pool, plus the daily goal."""
    settings = get_settings()
    bank = _load_bank(settings, bank_path)
    service = _load_service(settings)
    pool = _build_pool(service, bank, section, quiz, min_rating, max_rating)

    now = now_ms()
    learning = service.stats(pool, now)
    forecast = service.forecast(pool, now)
    goal = service.tracker.daily_goal(now)

    console.print("\n[bold cyan]Learning Statistics[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Strategy", service.strategy.name)
    table.add_row("Questions in pool", str(learning.total))
    table.add_row("Studied", str(learning.studied))
    table.add_row("Unstudied", str(learning.unstudied))
    table.add_row("New", str(learning.new))
    table.add_row("Due now", str(learning.due))
    table.add_row("Total reviews", str(learning.total_reviews))
    table.add_row("Accuracy", f"{learning.accuracy:.1f}%")
    table.add_row("Avg confidence", f"{learning.average_confidence:.2f}")
    for stage, count in sorted(learning.by_stage.items()):
        table.add_row(f"Stage: {stage}", str(count))

    console.print(table)

    if service.strategy.name == "sm2":
        console.print("\n[bold]Forecast[/bold]")
        forecast_table = Table()
        forecast_table.add_column("Now")
        forecast_table.add_column("Today")
        forecast_table.add_column("Tomorrow")
        forecast_table.add_column("This week")
        forecast_table.add_row(
            str(forecast.due_now),
            str(forecast.due_today),
            str(forecast.due_tomorrow),
            str(forecast.due_this_week),
        )
        console.print(forecast_table)

    console.print(f"\n[bold]Daily goal[/bold]: {_goal_progress(goal)}")
    console.print(f"[bold]Goal streak[/bold]: {goal.streak_days} day(s)")


@app.command("export")
def export_command(
    path: Path = typer.Argument(..., help="Destination JSON file"),
) -> None:
    """Export knowledge state, session and goal to a JSON file."""
    service = _load_service(get_settings())
    path.write_text(service.export_data(), encoding="utf-8")
    console.print(f"[green]Exported {len(service.store)} states to {path}[/green]")


@app.command("import")
def import_command(
    path: Path = typer.Argument(..., help="JSON file produced by 'quizdeck export'"),
) -> None:
    """Replace knowledge state with an exported file."""
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)

    service = _load_service(get_settings())
    try:
        count = service.import_data(read_state_text(path))
    except MalformedStateError as e:
        console.print(f"[red]Import rejected, nothing changed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Imported {count} states[/green]")


@app.command()
def reset(
    confirm: bool = typer.Option(
        False,
        "--yes", "-y",
        help="Skip confirmation",
    ),
) -> None:
    """Clear all knowledge state for a fresh start."""
    if not confirm and not Confirm.ask("Reset ALL knowledge state? This cannot be undone!", default=False):
        raise typer.Exit(0)

    service = _load_service(get_settings())
    service.reset()
    console.print("[green]All knowledge state has been reset.[/green]")


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
