"""Entry point for chatwindow CLI."""

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from chatwindow import __version__
from chatwindow.chat.conversation import Conversation
from chatwindow.config import Config, load_config
from chatwindow.errors import CapabilityUnavailableError, ContextWindowError
from chatwindow.llm.anthropic_api import AnthropicAPIBackend
from chatwindow.logging.transcript import CompactionTranscript, create_transcript_paths
from chatwindow.memory.context import ContextManager
from chatwindow.memory.tokens import TokenAccountant
from chatwindow.memory.types import CompactionResult, ContextStrategy

app = typer.Typer(
    name="chatwindow",
    help="Fit LLM conversations into a token budget",
)
console = Console()
err_console = Console(stderr=True)

# Longest content preview shown per message
PREVIEW_CHARS = 80


def setup_logging(level: str) -> None:
    """Route library logging through rich.

    Args:
        level: Logging level name.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_conversation(path: Path) -> Conversation:
    """Load a conversation from a YAML or JSON file.

    The file holds either a list of messages or a mapping with
    "messages" and an optional "id".

    Args:
        path: Conversation file.

    Returns:
        Parsed conversation.

    Raises:
        typer.BadParameter: If the file cannot be parsed or has the wrong shape.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise typer.BadParameter(f"Invalid YAML or JSON in {path}: {e}") from None

    conversation_id = None
    if isinstance(data, dict):
        conversation_id = data.get("id")
        data = data.get("messages")

    if not isinstance(data, list):
        raise typer.BadParameter(f"{path} must contain a list of messages")

    try:
        return Conversation.from_dicts(data, conversation_id=conversation_id)
    except (TypeError, ValueError) as e:
        raise typer.BadParameter(f"Invalid message in {path}: {e}") from None


def save_conversation(conversation: Conversation, path: Path) -> None:
    """Write a conversation as JSON or YAML, chosen by file suffix.

    Args:
        conversation: Conversation to write.
        path: Destination file.
    """
    data: dict[str, Any] = {"id": conversation.id, "messages": conversation.to_dicts()}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        else:
            json.dump(data, f, indent=2, ensure_ascii=False)


def create_llm_backend(
    config: Config,
    backend_override: str | None = None,
    model_override: str | None = None,
) -> AnthropicAPIBackend | None:
    """Create the summarization backend.

    Args:
        config: Loaded configuration.
        backend_override: "anthropic_api" or "none" to override config.
        model_override: Optional model name to override config.

    Returns:
        Backend instance, or None when no backend is configured.
    """
    backend = backend_override or config.llm.backend
    if backend == "none":
        return None
    if backend != "anthropic_api":
        raise typer.BadParameter(f"Unknown LLM backend '{backend}'")

    return AnthropicAPIBackend(
        model=model_override or config.llm.model,
        max_tokens=config.llm.max_tokens,
        temperature=config.llm.temperature,
    )


def render_conversation(conversation: Conversation, accountant: TokenAccountant) -> Table:
    """Render a conversation as a table.

    Args:
        conversation: Conversation to render.
        accountant: Token accountant for the per-message counts.

    Returns:
        Rich table with one row per message.
    """
    table = Table(show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role", style="cyan")
    table.add_column("Tokens", justify="right")
    table.add_column("Content")

    for index, message in enumerate(conversation, start=1):
        text = message.text if message.text is not None else f"<{message.content_type.value}>"
        text = text.replace("\n", " ")
        if len(text) > PREVIEW_CHARS:
            text = text[:PREVIEW_CHARS] + "..."
        table.add_row(
            str(index),
            message.role.value,
            str(accountant.count_message(message)),
            text,
        )

    return table


def render_result(result: CompactionResult, manager: ContextManager) -> Panel:
    """Render the statistics of a run.

    Args:
        result: Result of the run.
        manager: Manager that produced it.

    Returns:
        Rich panel describing the run.
    """
    lines = [
        f"Strategy: {result.strategy.value}",
        f"Budget: {manager.max_context_window} tokens, reserve {manager.minimum_reserve}",
        f"Tokens: {result.input_tokens} -> {result.output_tokens}",
        f"Turns retained: {result.retained_turns}",
        f"Turns summarized: {result.summarized_turns}",
        f"Turns dropped: {result.dropped_turns}",
        f"Summarizer calls: {result.summarizer_calls}",
    ]
    style = "green"
    if result.overflow:
        lines.append("[red]Output exceeds the usable budget[/red]")
        style = "red"
    return Panel("\n".join(lines), title="[bold]Context management[/bold]", border_style=style)


@app.command()
def compact(
    conversation_path: Annotated[
        Path,
        typer.Argument(
            help="Conversation file (YAML or JSON)",
            exists=True,
            dir_okay=False,
        ),
    ],
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file"),
    ] = None,
    strategy: Annotated[
        ContextStrategy | None,
        typer.Option("--strategy", "-s", help="Context strategy"),
    ] = None,
    max_context_window: Annotated[
        int | None,
        typer.Option("--max-context-window", "-w", help="Total token budget"),
    ] = None,
    minimum_reserve: Annotated[
        int | None,
        typer.Option("--minimum-reserve", "-r", help="Tokens to keep free"),
    ] = None,
    llm_backend: Annotated[
        str | None,
        typer.Option("--llm", "-l", help="LLM backend: anthropic_api or none"),
    ] = None,
    summarize: Annotated[
        bool | None,
        typer.Option("--summarize/--no-summarize", help="Summarize turns that do not fit"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-M", help="Model name for the LLM backend"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the managed conversation here"),
    ] = None,
    transcript_dir: Annotated[
        Path | None,
        typer.Option("--transcript-dir", "-t", help="Directory for transcripts"),
    ] = None,
    no_transcript: Annotated[
        bool,
        typer.Option("--no-transcript", help="Disable transcript logging"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed output"),
    ] = False,
) -> None:
    """Fit a conversation into the context window."""
    try:
        app_config = load_config(
            config,
            strategy=strategy,
            max_context_window=max_context_window,
            minimum_reserve=minimum_reserve,
        )
    except ContextWindowError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from None

    setup_logging("DEBUG" if verbose else app_config.logging.level)

    try:
        backend = create_llm_backend(app_config, llm_backend, model)
        if summarize and backend is None:
            raise CapabilityUnavailableError("--summarize needs an LLM backend (use --llm)")
    except (ContextWindowError, typer.BadParameter) as e:
        console.print(f"[red]Error creating LLM backend:[/red] {e}")
        raise typer.Exit(1) from None

    counter = backend if backend is not None and app_config.llm.count_tokens else None
    manager = ContextManager.from_config(
        app_config.context,
        summarizer=backend if summarize is not False else None,
        token_counter=counter,
        model=model or app_config.llm.model,
    )

    conversation = load_conversation(conversation_path)

    transcript: CompactionTranscript | None = None
    if not no_transcript:
        t_dir = transcript_dir or app_config.logging.transcript_dir
        json_path, md_path = create_transcript_paths(t_dir, conversation_path.stem)
        transcript = CompactionTranscript(
            json_path=json_path if app_config.logging.enable_json else None,
            markdown_path=md_path if app_config.logging.enable_markdown else None,
            title=conversation_path.stem,
        )

    try:
        result = manager.compact(conversation)
        managed = result.conversation

        if transcript:
            transcript.log_compaction(result, label=conversation_path.name)

        console.print(render_conversation(managed, manager.accountant))
        console.print(render_result(result, manager))

        if output is not None:
            save_conversation(managed, output)
            console.print(f"[dim]Wrote {output}[/dim]")
    except ContextWindowError as e:
        if transcript:
            transcript.log_error(type(e).__name__, str(e))
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    finally:
        if transcript:
            transcript.finalize()


@app.command()
def count(
    conversation_path: Annotated[
        Path,
        typer.Argument(
            help="Conversation file (YAML or JSON)",
            exists=True,
            dir_okay=False,
        ),
    ],
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file"),
    ] = None,
    llm_backend: Annotated[
        str | None,
        typer.Option("--llm", "-l", help="LLM backend: anthropic_api or none"),
    ] = None,
) -> None:
    """Count the tokens of a conversation."""
    try:
        app_config = load_config(config)
        backend = create_llm_backend(app_config, llm_backend)
    except (ContextWindowError, typer.BadParameter) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    setup_logging(app_config.logging.level)

    counter = backend if backend is not None and app_config.llm.count_tokens else None
    accountant = TokenAccountant(counter, model=app_config.llm.model)
    conversation = load_conversation(conversation_path)

    console.print(render_conversation(conversation, accountant))
    total = accountant.count_conversation(conversation)
    usable = app_config.context.max_context_window - app_config.context.minimum_reserve
    status = "[green]fits[/green]" if total <= usable else "[red]over budget[/red]"
    console.print(f"[bold]Total:[/bold] {total} tokens ({status}, usable {usable})")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]chatwindow[/bold] {__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
