"""
Command-line interface for bookfacts.

`extract` runs up to five questions in one go; `interactive` exposes the
whole query board (credentials, slots, single and concurrent runs) as a
prompt loop.
"""

import asyncio
import json
import os
from typing import List, Optional

import typer
from rich.console import Console, Group
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from bookfacts.board import QueryBoard
from bookfacts.config import get_settings
from bookfacts.extraction import BookInfoExtractor, build_prompt
from bookfacts.models import QuerySlot, SlotStatus
from bookfacts.utils.errors import BookFactsException, ConfigurationError, ValidationError
from bookfacts.utils.logging import setup_logging

app = typer.Typer(
    name="bookfacts",
    help="Extract title, author, publisher, year, genre and language from book queries with Gemini",
    add_completion=False,
)
console = Console()

SAMPLE_QUESTION = "J.K. 롤링의 해리포터 찾아줘."

INTERACTIVE_HELP = """\
keys              list API keys
add-key [KEY]     add an API key (prompts when omitted)
use N             select API key #N (0 clears the selection)
del-key           delete the selected API key
ask N TEXT        set question #N
clear N           empty question #N
run N             run question #N
run all           run every question concurrently
show              show all questions and answers
help              show this help
quit              leave"""


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (defaults to LOG_LEVEL or INFO)",
    ),
):
    """Book fact extraction test bench."""
    try:
        setup_logging(log_level=log_level)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] 설정 오류: {e}")
        raise typer.Exit(2)


def create_board(keys: List[str], model: Optional[str] = None) -> QueryBoard:
    """Build a board with the given keys plus GEMINI_API_KEY, if set."""
    board = QueryBoard(BookInfoExtractor(model_name=model))
    env_key = os.getenv("GEMINI_API_KEY")
    for key in [*keys, *([env_key] if env_key else [])]:
        board.add_credential(key)
    if board.credentials:
        board.select_credential(board.credentials[0])
    return board


def render_slot(slot: QuerySlot) -> Panel:
    """Render one question/answer panel."""
    question = Text(slot.question or "(비어 있음)", style="bold" if slot.question else "dim")

    if slot.status == SlotStatus.LOADING:
        answer = Text("처리 중...", style="blue")
    elif slot.status == SlotStatus.FAILED:
        answer = Text(slot.error or "", style="red")
    elif slot.status == SlotStatus.SUCCEEDED:
        answer = Syntax(slot.result.to_display_json(), "json", theme="ansi_dark", background_color="default")
    else:
        answer = Text("결과가 여기에 표시됩니다", style="dim")

    border = {
        SlotStatus.SUCCEEDED: "green",
        SlotStatus.FAILED: "red",
        SlotStatus.LOADING: "blue",
    }.get(slot.status, "grey50")

    return Panel(
        Group(Text("입력:", style="cyan"), question, Text(""), Text("답변:", style="cyan"), answer),
        title=f"질문 #{slot.index + 1}",
        title_align="left",
        border_style=border,
    )


def render_board(board: QueryBoard) -> None:
    for slot in board.slots:
        console.print(render_slot(slot))


def render_keys(board: QueryBoard) -> None:
    if not board.credentials:
        console.print("[dim]등록된 API 키가 없습니다.[/dim]")
        return

    table = Table(title="Gemini API 키")
    table.add_column("#", justify="right")
    table.add_column("Key", style="cyan")
    table.add_column("Selected", justify="center")

    for number, (key, masked) in enumerate(zip(board.credentials, board.masked_credentials()), start=1):
        table.add_row(str(number), masked, "✓" if key == board.active_credential else "")

    console.print(table)


@app.command()
def extract(
    questions: List[str] = typer.Argument(..., help="Up to five questions about a book"),
    keys: List[str] = typer.Option(
        [],
        "--key",
        "-k",
        help="Gemini API key (repeatable; GEMINI_API_KEY is used as well)",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="Gemini model id (defaults to GEMINI_MODEL)",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON instead of panels",
    ),
):
    """Run every question concurrently and show the extracted facts."""
    slot_count = get_settings().slot_count
    if len(questions) > slot_count:
        console.print(f"[red]✗[/red] 질문은 최대 {slot_count}개까지 입력할 수 있습니다.")
        raise typer.Exit(2)

    board = create_board(keys, model)
    for index, question in enumerate(questions):
        board.set_question(index, question)

    try:
        with console.status("처리 중..."):
            ran = asyncio.run(board.run_all())
    except ValidationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(2)

    if as_json:
        payload = [
            {
                "index": slot.index,
                "question": slot.question,
                "result": slot.result.to_wire() if slot.result else None,
                "error": slot.error,
            }
            for slot in board.slots
            if slot.index in ran
        ]
        console.print_json(json.dumps(payload, ensure_ascii=False))
    else:
        for index in ran:
            console.print(render_slot(board.slot(index)))

    if all(board.slot(index).status == SlotStatus.FAILED for index in ran):
        raise typer.Exit(1)


@app.command()
def prompt(
    question: str = typer.Argument(..., help="Question to embed in the prompt"),
):
    """Print the exact prompt that would be sent to the model."""
    console.print(build_prompt(question), markup=False, highlight=False)


@app.command()
def interactive(
    keys: List[str] = typer.Option(
        [],
        "--key",
        "-k",
        help="Gemini API key to start with (repeatable)",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="Gemini model id (defaults to GEMINI_MODEL)",
    ),
):
    """Work with the five-question board from a prompt."""
    board = create_board(keys, model)
    board.set_question(0, SAMPLE_QUESTION)

    console.print("[bold]📚 책 정보 팩트 추출 테스트베드[/bold]")
    console.print(INTERACTIVE_HELP, style="dim")

    while True:
        try:
            line = Prompt.ask("[bold cyan]bookfacts[/bold cyan]", console=console).strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        if not line:
            continue
        if line in ("quit", "exit", "q"):
            break

        try:
            handle_command(board, line)
        except BookFactsException as e:
            console.print(f"[red]✗[/red] {e}")
        except (IndexError, ValueError) as e:
            console.print(f"[red]✗[/red] 잘못된 입력입니다: {e}")


def handle_command(board: QueryBoard, line: str) -> None:
    """Apply one interactive command to the board."""
    command, _, rest = line.partition(" ")
    rest = rest.strip()

    if command == "help":
        console.print(INTERACTIVE_HELP, style="dim")
    elif command == "keys":
        render_keys(board)
    elif command == "add-key":
        board.begin_add_credential()
        board.pending_credential = rest or Prompt.ask("새 API 키", password=True, console=console)
        if board.add_credential():
            console.print(f"[green]✓[/green] API 키 #{len(board.credentials)} 추가됨")
        else:
            board.cancel_add_credential()
            console.print("[yellow]![/yellow] 비어 있거나 이미 등록된 API 키입니다.")
    elif command == "use":
        number = int(rest)
        if not 0 <= number <= len(board.credentials):
            raise IndexError(f"API 키 #{number} 이(가) 없습니다")
        board.select_credential(board.credentials[number - 1] if number else "")
        render_keys(board)
    elif command == "del-key":
        if not board.active_credential:
            console.print("[yellow]![/yellow] 선택된 API 키가 없습니다.")
            return
        board.delete_credential(board.active_credential)
        render_keys(board)
    elif command == "ask":
        number, _, text = rest.partition(" ")
        board.set_question(int(number) - 1, text.strip())
    elif command == "clear":
        board.set_question(int(rest) - 1, "")
    elif command == "run" and rest == "all":
        if not board.can_run_all:
            console.print("[yellow]![/yellow] 처리 중인 질문이 있습니다.")
            return
        with console.status("처리 중..."):
            ran = asyncio.run(board.run_all())
        for index in ran:
            console.print(render_slot(board.slot(index)))
    elif command == "run":
        index = int(rest) - 1
        with console.status("처리 중..."):
            asyncio.run(board.run_one(index))
        console.print(render_slot(board.slot(index)))
    elif command == "show":
        render_board(board)
    else:
        console.print(f"[yellow]![/yellow] 알 수 없는 명령: {command} (help 참고)")


if __name__ == "__main__":
    app()
