"""Transcript logging for context-management runs."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TextIO

from chatwindow.memory.types import CompactionResult


@dataclass
class TranscriptEntry:
    """A single entry in the transcript."""

    timestamp: str
    run: int
    entry_type: str  # "compaction", "error", "note"
    content: str
    metadata: dict[str, str | int | bool | None] = field(default_factory=dict)


class CompactionTranscript:
    """Dual-format transcript logger (JSON + Markdown).

    Records every context-management run in JSON (for analysis) and
    Markdown (for human reading).
    """

    def __init__(
        self,
        json_path: Path | None = None,
        markdown_path: Path | None = None,
        title: str | None = None,
    ) -> None:
        """Initialize the transcript logger.

        Args:
            json_path: Path for JSON transcript output.
            markdown_path: Path for Markdown transcript output.
            title: Title of the transcript, usually the conversation name.
        """
        self.json_path = json_path
        self.markdown_path = markdown_path
        self.title = title
        self._entries: list[TranscriptEntry] = []
        self._run = 0
        self._md_file: TextIO | None = None
        self._start_time = datetime.now()

        # Keep the markdown file open for streaming writes
        if markdown_path:
            markdown_path.parent.mkdir(parents=True, exist_ok=True)
            self._md_file = open(markdown_path, "w")  # noqa: SIM115
            self._write_markdown_header()

    def _write_markdown_header(self) -> None:
        """Write the markdown file header."""
        if self._md_file is None:
            return

        title = self.title or "Context Transcript"
        self._md_file.write(f"# {title}\n\n")
        self._md_file.write(f"Started: {self._start_time.isoformat()}\n\n")
        self._md_file.write("---\n\n")
        self._md_file.flush()

    def log_compaction(self, result: CompactionResult, label: str | None = None) -> None:
        """Log one context-management run.

        Args:
            result: Result of the run.
            label: Optional label, such as the input file name.
        """
        self._run += 1
        summary = (
            f"{result.strategy.value}: {result.input_tokens} -> {result.output_tokens} tokens"
        )
        entry = TranscriptEntry(
            timestamp=datetime.now().isoformat(),
            run=self._run,
            entry_type="compaction",
            content=summary,
            metadata={
                "label": label,
                "strategy": result.strategy.value,
                "input_tokens": result.input_tokens,
                "output_tokens": result.output_tokens,
                "retained_turns": result.retained_turns,
                "summarized_turns": result.summarized_turns,
                "dropped_turns": result.dropped_turns,
                "summarizer_calls": result.summarizer_calls,
                "compacted": result.compacted,
                "overflow": result.overflow,
                "messages": len(result.conversation),
            },
        )
        self._add_entry(entry)

        if self._md_file:
            heading = f"### Run {self._run}"
            if label:
                heading += f" - {label}"
            self._md_file.write(f"{heading}\n\n")
            self._md_file.write(f"**Strategy:** `{result.strategy.value}`\n\n")
            self._md_file.write(
                f"- Tokens: {result.input_tokens} -> {result.output_tokens}\n"
                f"- Turns retained: {result.retained_turns}\n"
                f"- Turns summarized: {result.summarized_turns}\n"
                f"- Turns dropped: {result.dropped_turns}\n"
                f"- Summarizer calls: {result.summarizer_calls}\n"
            )
            if result.overflow:
                self._md_file.write("\n> **Overflow:** output exceeds the usable budget\n")
            self._md_file.write("\n")
            self._md_file.flush()

    def log_error(self, error_type: str, message: str) -> None:
        """Log an error.

        Args:
            error_type: Type of error.
            message: Error message.
        """
        entry = TranscriptEntry(
            timestamp=datetime.now().isoformat(),
            run=self._run,
            entry_type="error",
            content=message,
            metadata={"error_type": error_type},
        )
        self._add_entry(entry)

        if self._md_file:
            self._md_file.write(f"> **Error ({error_type}):** {message}\n\n")
            self._md_file.flush()

    def log_note(self, note: str) -> None:
        """Log a free-form note.

        Args:
            note: Note content.
        """
        entry = TranscriptEntry(
            timestamp=datetime.now().isoformat(),
            run=self._run,
            entry_type="note",
            content=note,
        )
        self._add_entry(entry)

        if self._md_file:
            self._md_file.write(f"*[{note}]*\n\n")
            self._md_file.flush()

    def _add_entry(self, entry: TranscriptEntry) -> None:
        self._entries.append(entry)

    def get_entries(self) -> list[TranscriptEntry]:
        """Get all transcript entries.

        Returns:
            List of transcript entries.
        """
        return self._entries.copy()

    def finalize(self) -> None:
        """Finalize and close transcript files."""
        end_time = datetime.now()

        if self.json_path:
            self.json_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.json_path, "w") as f:
                json.dump(
                    {
                        "title": self.title,
                        "start_time": self._start_time.isoformat(),
                        "end_time": end_time.isoformat(),
                        "total_runs": self._run,
                        "entries": [asdict(e) for e in self._entries],
                    },
                    f,
                    indent=2,
                )

        if self._md_file:
            self._md_file.write("---\n\n")
            self._md_file.write(f"Completed: {end_time.isoformat()}\n")
            self._md_file.write(f"Total runs: {self._run}\n")
            self._md_file.close()
            self._md_file = None

    def __enter__(self) -> "CompactionTranscript":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.finalize()


def create_transcript_paths(
    base_dir: Path,
    name: str,
    session_id: str | None = None,
) -> tuple[Path, Path]:
    """Create paths for transcript files.

    Args:
        base_dir: Base directory for transcripts.
        name: Name of the conversation.
        session_id: Optional session identifier.

    Returns:
        Tuple of (json_path, markdown_path).
    """
    if session_id is None:
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)

    json_path = base_dir / f"{safe_name}_{session_id}.json"
    markdown_path = base_dir / f"{safe_name}_{session_id}.md"

    return json_path, markdown_path
