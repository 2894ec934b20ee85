"""
SmartPath: adaptive tutor CLI.

A Rich terminal front end for the adaptive session layer.

Commands:
- smartpath quiz TOPIC   - Adaptive quiz with background prefetching
- smartpath plan TOPIC   - Multi-day study plan: material, quiz, completion
- smartpath streak       - Show or record the daily study streak
"""
from __future__ import annotations

import asyncio
import sys
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from config import get_settings
from smartpath.content.factory import create_content_source
from smartpath.content.models import DayStatus, Question
from smartpath.content.source import ContentSource
from smartpath.core.difficulty import describe_level
from smartpath.core.exceptions import ConfigurationError
from smartpath.session.context import LoadingMode
from smartpath.session.state_machine import SessionStateMachine
from smartpath.session.streak import StreakStore


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="smartpath",
    help="SmartPath: adaptive AI tutor",
    no_args_is_help=True,
)
console = Console()

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
}

DAY_STATUS_LABELS = {
    DayStatus.LOCKED: "[dim]locked[/dim]",
    DayStatus.CURRENT: "[bold cyan]current[/bold cyan]",
    DayStatus.COMPLETED: "[green]completed[/green]",
}


# =============================================================================
# Display Helpers
# =============================================================================


def render_question(question: Question, number: int, level: int) -> None:
    lines = [f"[bold]{question.text}[/bold]", ""]
    for index, option in enumerate(question.options, start=1):
        lines.append(f"  [cyan]{index}.[/cyan] {option}")
    console.print(
        Panel(
            "\n".join(lines),
            title=f"Q{number} - {question.sub_topic}",
            subtitle=f"level {level} ({describe_level(level)})",
            border_style="blue",
        )
    )


def render_feedback(machine: SessionStateMachine, question: Question) -> None:
    ctx = machine.context
    if ctx.last_answer_correct:
        console.print(f"[{STYLES['correct']}]正确![/{STYLES['correct']}]")
    else:
        answer = question.options[question.correct_index]
        console.print(f"[{STYLES['incorrect']}]错误[/{STYLES['incorrect']}] - 正确答案: {answer}")
    console.print(f"[{STYLES['dim']}]{question.explanation}[/{STYLES['dim']}]")

    status = f"level {ctx.level}"
    if ctx.loading == LoadingMode.BACKGROUND:
        status += " | generating more..."
    if ctx.degraded:
        status += " | content source unavailable"
    console.print(f"[{STYLES['info']}]{status}[/{STYLES['info']}]\n")


def render_summary(machine: SessionStateMachine) -> None:
    summary = machine.summary()
    table = Table(title=f"Session: {summary.topic}")
    table.add_column("Answered", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Level", justify="right")
    table.add_row(
        str(summary.answered),
        str(summary.correct),
        f"{summary.accuracy}%",
        str(summary.level),
    )
    console.print(table)
    if len(summary.trajectory) > 1:
        console.print("Learning curve: " + " -> ".join(str(v) for v in summary.trajectory))


def render_plan(machine: SessionStateMachine) -> None:
    table = Table(title=f"Study plan: {machine.context.topic}")
    table.add_column("Day", justify="right")
    table.add_column("Topic")
    table.add_column("Focus")
    table.add_column("Status")
    for day in machine.plan.days:
        table.add_row(str(day.day), day.topic, day.focus, DAY_STATUS_LABELS[day.status])
    console.print(table)


# =============================================================================
# Interactive loops
# =============================================================================


async def _ask_int(prompt: str, choices: list[str]) -> int:
    # Prompt in a worker thread so background refills keep running
    return await asyncio.to_thread(IntPrompt.ask, prompt, choices=choices, show_choices=False)


async def _await_question(machine: SessionStateMachine) -> Optional[Question]:
    if machine.current_question is None and machine.is_blocked:
        with console.status("正在生成题目..."):
            await machine.wait_for_question()
    while machine.current_question is None:
        if not await asyncio.to_thread(Confirm.ask, "题目加载失败，重试?"):
            return None
        with console.status("正在生成题目..."):
            await machine.retry()
    return machine.current_question


async def run_quiz_loop(machine: SessionStateMachine, limit: int = 0, allow_complete: bool = False) -> None:
    """Present questions until the learner quits or ``limit`` answers are given."""
    answered = 0
    while limit <= 0 or answered < limit:
        question = await _await_question(machine)
        if question is None:
            break

        render_question(question, len(machine.context.history) + 1, machine.level)
        choices = [str(i) for i in range(len(question.options) + 1)]
        choice = await _ask_int("答案 (0 退出)", choices)
        if choice == 0:
            break

        machine.submit_answer(choice - 1)
        answered += 1
        render_feedback(machine, question)

        if allow_complete and len(machine.context.history) >= machine.plan.min_answers:
            if await asyncio.to_thread(Confirm.ask, "完成今天的学习?", default=False):
                break

        await machine.next_question()


async def _close_source(source: ContentSource) -> None:
    close = getattr(source, "close", None)
    if close is not None:
        await close()


async def _quiz(topic: str, limit: int) -> None:
    settings = get_settings()
    source = create_content_source(settings)
    machine = SessionStateMachine.from_settings(source, settings)

    try:
        with console.status(f"正在为 {topic} 准备题目..."):
            await machine.start_quiz(topic)
        await run_quiz_loop(machine, limit)
        render_summary(machine)
        machine.end_quiz()
        await machine.prefetch.drain()
    finally:
        await _close_source(source)


async def _plan(topic: str) -> None:
    settings = get_settings()
    source = create_content_source(settings)
    machine = SessionStateMachine.from_settings(source, settings)

    try:
        with console.status(f"正在为 {topic} 生成学习计划..."):
            created = await machine.create_plan(topic)
        if not created:
            console.print(f"[{STYLES['incorrect']}]{machine.context.last_error}[/{STYLES['incorrect']}]")
            raise typer.Exit(1)
        await _run_plan(machine, StreakStore(settings.streak_file))
    finally:
        await _close_source(source)


async def _run_plan(machine: SessionStateMachine, streaks: StreakStore) -> None:
    while not machine.plan.is_finished:
        render_plan(machine)
        day_choices = [str(d.day) for d in machine.plan.days] + ["0"]
        day_number = await _ask_int("选择学习日 (0 退出)", day_choices)
        if day_number == 0:
            break
        with console.status("正在生成学习资料..."):
            started = await machine.start_day(day_number)
        if not started:
            console.print(f"[{STYLES['warning']}]该学习日尚未解锁[/{STYLES['warning']}]")
            continue

        console.print(Markdown(machine.context.material.markdown))
        while True:
            selection = await asyncio.to_thread(Prompt.ask, "粘贴需要解释的内容 (回车开始测验)", default="")
            if not selection.strip():
                break
            with console.status("正在解释..."):
                explanation = await machine.explain_selection(selection)
            console.print(Panel(explanation, title="解释", border_style="cyan"))

        reviewing = machine.plan.get(day_number).status == DayStatus.COMPLETED
        with console.status("正在准备测验..."):
            await machine.start_day_quiz()
        await run_quiz_loop(machine, allow_complete=not reviewing)
        render_summary(machine)

        if reviewing:
            console.print(f"[{STYLES['info']}]第 {day_number} 天已完成，本次为复习[/{STYLES['info']}]")
            machine.end_quiz()
        elif machine.complete_day():
            console.print(f"[{STYLES['correct']}]已完成![/{STYLES['correct']}]")
            streaks.check_in()
        else:
            console.print(
                f"[{STYLES['warning']}]至少回答 {machine.plan.min_answers} 道题才能完成该学习日[/{STYLES['warning']}]"
            )
            machine.end_quiz()
        await machine.prefetch.drain()

    if machine.plan.is_finished:
        console.print(f"[{STYLES['correct']}]学习计划全部完成![/{STYLES['correct']}]")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def quiz(
    topic: str = typer.Argument(..., help="Subject to study"),
    limit: int = typer.Option(0, "--limit", "-l", help="Stop after this many answers (0 = unlimited)"),
) -> None:
    """Start an adaptive quiz."""
    try:
        asyncio.run(_quiz(topic, limit))
    except ConfigurationError as e:
        console.print(f"[{STYLES['incorrect']}]Configuration error:[/{STYLES['incorrect']}] {e}")
        raise typer.Exit(1)


@app.command()
def plan(topic: str = typer.Argument(..., help="Subject to plan")) -> None:
    """Generate a study plan and work through it day by day."""
    try:
        asyncio.run(_plan(topic))
    except ConfigurationError as e:
        console.print(f"[{STYLES['incorrect']}]Configuration error:[/{STYLES['incorrect']}] {e}")
        raise typer.Exit(1)


@app.command()
def streak(
    check_in: bool = typer.Option(False, "--check-in", help="Record today's study"),
) -> None:
    """Show the daily study streak."""
    store = StreakStore(get_settings().streak_file)
    current = store.check_in() if check_in else store.load()
    last = current.last_date or "never"
    console.print(f"[{STYLES['info']}]连续学习 {current.count} 天[/{STYLES['info']}] (last: {last})")


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
        level="WARNING",
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )

    app()


if __name__ == "__main__":
    main()
