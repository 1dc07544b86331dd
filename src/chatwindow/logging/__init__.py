"""Transcript logging."""

from chatwindow.logging.transcript import (
    CompactionTranscript,
    TranscriptEntry,
    create_transcript_paths,
)

__all__ = [
    "CompactionTranscript",
    "TranscriptEntry",
    "create_transcript_paths",
]
