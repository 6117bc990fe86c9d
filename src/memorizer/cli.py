from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.prompt import Confirm, Prompt
from rich.table import Table

from memorizer.data_models import Question, UserAnswer
from memorizer.memorize import (
    FlowController,
    InvalidConfiguration,
    MemorizeOptions,
    QuizLoadFailure,
    ViewMode,
    build_batches,
)
from memorizer.memorize.batches import filter_questions
from memorizer.memorize.summary import (
    batch_title,
    correct_answer_display,
    format_batch_result,
    format_summary,
)
from memorizer.storage.preferences import PREFERENCE_KEYS
from memorizer.system import MemorizerSystem

app = typer.Typer(help="Memorize quizzes in batches until every question is answered correctly.")
console = Console()

load_dotenv(override=False)

TRUE_WORDS = {"1", "true", "yes", "on"}
FALSE_WORDS = {"0", "false", "no", "off"}


def _load_system(config: Optional[Path], quiz_dir: Optional[Path]) -> MemorizerSystem:
    """Instantiate `MemorizerSystem`, optionally pointing it at another quiz directory."""
    system = MemorizerSystem.from_config(config)
    if quiz_dir is not None:
        system.loader.base_dir = quiz_dir
    return system


def render_question(question: Question, mode: str) -> None:
    """Print a question; in learn mode the answer key is shown alongside it."""
    console.print(f"[bold]{question.text}[/bold]")
    for choice in question.choices:
        console.print(f"  {choice.id}) {choice.text}")
    if question.type == "true_false" and mode == "assess":
        console.print("  (true / false)")
    if question.type == "fill_blank" and mode == "assess" and len(question.answers) > 1:
        console.print(f"  ({len(question.answers)} blanks, separate with '|')")
    if question.type == "dropdown" and mode == "assess":
        console.print(f"  ({len(question.answers)} dropdowns, separate choice ids with '|')")
    if question.type == "multiple_answer" and mode == "assess":
        console.print("  (select all that apply, separate ids with ',')")
    if mode == "learn":
        answer = correct_answer_display(question)
        shown = ", ".join(answer) if isinstance(answer, list) else answer
        console.print(f"  [green]Answer:[/green] {shown}")
        if question.explanation:
            console.print(f"  [dim]{question.explanation}[/dim]")
    console.print()


def parse_answer(question: Question, raw: str) -> UserAnswer:
    """Turn console input into the answer shape the grader expects for the question type."""
    text = raw.strip()
    if not text:
        return None
    if question.type == "multiple_answer":
        return [part.strip() for part in text.split(",") if part.strip()]
    if question.type in ("fill_blank", "dropdown"):
        return [part.strip() for part in text.split("|")]
    if question.type == "true_false":
        lowered = text.lower()
        if lowered in {"t", "true", "y", "yes"}:
            return True
        if lowered in {"f", "false", "n", "no"}:
            return False
        return text
    if question.type == "numeric":
        try:
            return float(text)
        except ValueError:
            return text
    return text


def _run_learn(controller: FlowController) -> bool:
    batch = controller.current_batch
    assert batch is not None
    title = batch_title(batch.batch_index, batch.source_generation, batch.chapter_name)
    console.rule(f"[bold]{title} - study[/bold]")
    for question in batch.questions:
        render_question(question, "learn")
    if not Confirm.ask("Ready for the assessment?", default=True):
        return False
    controller.complete_learn_phase()
    return True


def _run_assess(controller: FlowController) -> None:
    batch = controller.current_batch
    assert batch is not None
    console.rule("[bold]Assessment[/bold]")
    answers = {}
    for question in batch.questions:
        render_question(question, "assess")
        answers[question.id] = parse_answer(question, Prompt.ask("Your answer", default=""))
    controller.submit_assessment(answers)


def _run_results(controller: FlowController, questions: List[Question]) -> bool:
    result = controller.last_result
    assert result is not None
    console.print(format_batch_result(result, questions))
    progress = controller.results()
    console.print(f"Mastered {progress.mastered_count}/{progress.total_questions}")
    if not Confirm.ask("Continue?", default=True):
        return False
    controller.advance()
    return True


@app.command()
def run(
    quiz_id: str = typer.Argument(..., help="Quiz identifier (file stem in the quiz directory)."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    quiz_dir: Optional[Path] = typer.Option(None, help="Override the configured quiz directory."),
    batch_size: Optional[int] = typer.Option(None, help="Questions per batch."),
    requeue: Optional[bool] = typer.Option(
        None, "--requeue/--defer", help="Retry failures right away or pool them until the end."
    ),
    shuffle: Optional[bool] = typer.Option(None, "--shuffle/--no-shuffle", help="Shuffle inside each batch."),
    by_chapter: Optional[bool] = typer.Option(
        None, "--by-chapter/--fixed-size", help="Study one chapter per batch instead of fixed-size batches."
    ),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible shuffling."),
):
    """
    Run an interactive memorization session in the terminal.

    Loads the quiz through `MemorizerSystem.start_session`, then loops over the
    learn, assess and batch-results phases until every question is mastered and
    the summary is printed.
    """
    system = _load_system(config, quiz_dir)
    options = system.resolve_options(
        batch_size=batch_size,
        requeue_failed_immediately=requeue,
        shuffle_within_batch=shuffle,
        seed=seed,
        batch_by_chapter=by_chapter,
    )
    try:
        controller = asyncio.run(system.start_session(quiz_id, options))
    except (QuizLoadFailure, InvalidConfiguration) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    session = controller.store.session
    assert session is not None
    questions = list(session.questions)

    while controller.view_mode is not ViewMode.SUMMARY:
        if controller.view_mode is ViewMode.LEARN:
            keep_going = _run_learn(controller)
        elif controller.view_mode is ViewMode.ASSESS:
            _run_assess(controller)
            keep_going = True
        else:
            keep_going = _run_results(controller, questions)
        if not keep_going:
            console.print("Session abandoned.")
            controller.reset()
            raise typer.Exit()

    console.print(Markdown(format_summary(controller.results())))


@app.command()
def plan(
    quiz_id: str = typer.Argument(...),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    quiz_dir: Optional[Path] = typer.Option(None, help="Override the configured quiz directory."),
    batch_size: Optional[int] = typer.Option(None),
    shuffle: Optional[bool] = typer.Option(None, "--shuffle/--no-shuffle"),
    by_chapter: Optional[bool] = typer.Option(None, "--by-chapter/--fixed-size"),
    seed: Optional[int] = typer.Option(None),
):
    """Show how a quiz would be split into batches without starting a session."""
    system = _load_system(config, quiz_dir)
    options = system.resolve_options(
        batch_size=batch_size, shuffle_within_batch=shuffle, seed=seed, batch_by_chapter=by_chapter
    )
    try:
        quiz = asyncio.run(system.loader.load_quiz(quiz_id))
        batches = build_batches(
            filter_questions(quiz.questions, options.selected_chapters), options, chapters=quiz.chapters
        )
    except (QuizLoadFailure, InvalidConfiguration) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    table = Table(title=f"{quiz.title or quiz.id}: {len(batches)} batches")
    table.add_column("Batch", justify="right")
    table.add_column("Chapter")
    table.add_column("Questions")
    for batch in batches:
        table.add_row(str(batch.batch_index + 1), batch.chapter_name or "", ", ".join(batch.question_ids))
    console.print(table)


@app.command()
def defaults(
    set_values: List[str] = typer.Option(
        [], "--set", help="Store a default as key=value, e.g. --set batch_size=10."
    ),
    clear: bool = typer.Option(False, help="Forget all stored defaults."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Show or update the stored default memorize options."""
    system = _load_system(config, None)
    if clear:
        system.preferences.clear()
    for item in set_values:
        key, sep, raw = item.partition("=")
        if not sep or key not in PREFERENCE_KEYS:
            raise typer.BadParameter(
                f"Expected key=value with key in: {', '.join(PREFERENCE_KEYS)}", param_hint="--set"
            )
        if key == "batch_size":
            try:
                value: Any = int(raw)
            except ValueError as exc:
                raise typer.BadParameter("batch_size must be an integer", param_hint="--set") from exc
        else:
            word = raw.strip().lower()
            if word not in TRUE_WORDS | FALSE_WORDS:
                raise typer.BadParameter(f"{key} must be true or false, got '{raw}'", param_hint="--set")
            value = word in TRUE_WORDS
        system.preferences.set(key, value)

    options: MemorizeOptions = system.resolve_options()
    for key in PREFERENCE_KEYS:
        console.print(f"{key}: {getattr(options, key)}")


if __name__ == "__main__":
    app()
