"""CLI entry point.

Provides commands for exercising the Claude bridge without a chat platform:
- ask: One-shot execution with JSON output
- stream: Streaming execution with live partial output
- classify: Show which quick-reply buttons a response would get
"""

import asyncio
import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from disclaude import __version__
from disclaude.claude.process import ClaudeProcess
from disclaude.claude.request import ExecutionRequest
from disclaude.claude.streaming import StreamingBridge
from disclaude.exceptions import DisclaudeError, describe_error
from disclaude.logging_config import configure_logging
from disclaude.questions import classify_question

app = typer.Typer(
    name="disclaude",
    help="Bridge chat conversations to the Claude Code CLI",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

CwdOption = Annotated[
    Optional[str],  # noqa: UP007
    typer.Option("--cwd", "-C", help="Working directory for Claude"),
]
ResumeOption = Annotated[
    Optional[str],  # noqa: UP007
    typer.Option("--resume", "-r", help="Resume token from a previous run"),
]
ModelOption = Annotated[
    Optional[str],  # noqa: UP007
    typer.Option("--model", "-m", help="Model to use"),
]
ToolOption = Annotated[
    Optional[list[str]],  # noqa: UP007
    typer.Option("--tool", "-t", help="Allowed tool (repeatable)"),
]
TimeoutOption = Annotated[
    Optional[float],  # noqa: UP007
    typer.Option("--timeout", help="Timeout in seconds"),
]


def _build_request(
    prompt: str,
    cwd: str | None,
    resume: str | None,
    model: str | None,
    tools: list[str] | None,
    timeout: float | None,
) -> ExecutionRequest:
    return ExecutionRequest(
        prompt=prompt,
        session_id=resume,
        working_directory=cwd,
        allowed_tools=tuple(tools or ()),
        model=model,
        timeout_seconds=timeout,
    )


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    configure_logging("DEBUG" if verbose else None)


@app.command()
def ask(
    prompt: Annotated[str, typer.Argument(help="Prompt to send")],
    cwd: CwdOption = None,
    resume: ResumeOption = None,
    model: ModelOption = None,
    tool: ToolOption = None,
    timeout: TimeoutOption = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the raw validated response as JSON"),
    ] = False,
) -> None:
    """Run Claude once and print the result."""
    request = _build_request(prompt, cwd, resume, model, tool, timeout)

    try:
        response = asyncio.run(ClaudeProcess().execute(request))
    except DisclaudeError as e:
        console.print(f"[red]❌ {describe_error(e)}[/red]")
        raise typer.Exit(1) from None

    if as_json:
        console.print_json(json.dumps(response.model_dump(mode="json", by_alias=True)))
        return

    console.print(Panel(response.result, title="Claude", border_style="green"))

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Resume token", response.session_id)
    table.add_row("Turns", str(response.num_turns))
    table.add_row("Cost", f"${response.total_cost_usd:.4f}")
    table.add_row("Tokens", f"{response.usage.input_tokens} in / {response.usage.output_tokens} out")
    console.print(table)


@app.command()
def stream(
    prompt: Annotated[str, typer.Argument(help="Prompt to send")],
    cwd: CwdOption = None,
    resume: ResumeOption = None,
    model: ModelOption = None,
    tool: ToolOption = None,
    timeout: TimeoutOption = None,
) -> None:
    """Run Claude with streaming output, printing new text as it arrives."""
    request = _build_request(prompt, cwd, resume, model, tool, timeout)
    printed = 0

    async def on_update(content: str) -> None:
        nonlocal printed
        console.print(content[printed:], end="", markup=False, highlight=False)
        printed = len(content)

    try:
        result = asyncio.run(StreamingBridge().execute_streaming(request, on_update))
    except DisclaudeError as e:
        console.print(f"\n[red]❌ {describe_error(e)}[/red]")
        raise typer.Exit(1) from None

    console.print()
    if result.session_id:
        console.print(f"[green]✅ Resume token: {result.session_id}[/green]")
    else:
        console.print("[yellow]No resume token returned[/yellow]")


@app.command()
def classify(
    text: Annotated[str, typer.Argument(help="Response text to classify")],
) -> None:
    """Show the question type and buttons detected in a response."""
    classification = classify_question(text)
    if classification is None:
        console.print("[dim]No question detected[/dim]")
        return

    table = Table(title=f"Question: {classification.type}", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Label", style="cyan")
    table.add_column("Value")
    table.add_column("Style")
    for idx, action in enumerate(classification.actions):
        table.add_row(str(idx), action.label, action.value, action.style.name.lower())
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel(
            f"[bold]Disclaude[/bold] v{__version__}\nClaude Code bridge for chat",
            title="Version",
            border_style="blue",
        )
    )


if __name__ == "__main__":
    app()
