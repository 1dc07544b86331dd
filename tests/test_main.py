"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
import typer
import yaml
from typer.testing import CliRunner

from chatwindow import __version__
from chatwindow.__main__ import app, create_llm_backend, load_conversation, save_conversation
from chatwindow.chat import MessageRole
from chatwindow.config import Config, LLMConfig
from chatwindow.llm.anthropic_api import AnthropicAPIBackend

runner = CliRunner()


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test in a scratch directory so default transcripts land there."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def conversation_file(tmp_path: Path) -> Path:
    """Write a conversation of one system message and three 200-token turns."""
    messages = [{"role": "system", "content": "You are helpful."}]
    for index in range(3):
        messages.append({"role": "user", "content": f"question {index} " + "q" * 389})
        messages.append({"role": "assistant", "content": f"answer {index} " + "a" * 391})
    path = tmp_path / "chat.yaml"
    path.write_text(yaml.safe_dump({"id": "chat-1", "messages": messages}))
    return path


class TestLoadConversation:
    """Tests for conversation file loading."""

    def test_mapping(self, conversation_file: Path) -> None:
        """Test a mapping with id and messages."""
        conversation = load_conversation(conversation_file)

        assert conversation.id == "chat-1"
        assert len(conversation) == 7
        assert conversation[0].role == MessageRole.SYSTEM

    def test_plain_list(self, tmp_path: Path) -> None:
        """Test a bare list of messages, in JSON."""
        path = tmp_path / "chat.json"
        path.write_text(json.dumps([{"role": "user", "content": "Hi"}]))

        conversation = load_conversation(path)

        assert [m.text for m in conversation] == ["Hi"]

    def test_wrong_shape(self, tmp_path: Path) -> None:
        """Test a file without messages is rejected."""
        path = tmp_path / "chat.yaml"
        path.write_text("just a string")

        with pytest.raises(typer.BadParameter):
            load_conversation(path)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        """Test a file that does not parse is a usage error, not a traceback."""
        path = tmp_path / "chat.yaml"
        path.write_text("messages: [unclosed")

        with pytest.raises(typer.BadParameter, match="Invalid YAML or JSON"):
            load_conversation(path)

    def test_invalid_role(self, tmp_path: Path) -> None:
        """Test an unknown role is rejected."""
        path = tmp_path / "chat.yaml"
        path.write_text(yaml.safe_dump([{"role": "narrator", "content": "Once"}]))

        with pytest.raises(typer.BadParameter, match="Invalid message"):
            load_conversation(path)

    def test_save_round_trip(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test a saved conversation loads back with the same ids."""
        conversation = load_conversation(conversation_file)
        out = tmp_path / "out" / "managed.yaml"

        save_conversation(conversation, out)

        restored = load_conversation(out)
        assert restored.id == "chat-1"
        assert [m.id for m in restored] == [m.id for m in conversation]


class TestCreateLLMBackend:
    """Tests for backend creation."""

    def test_none(self) -> None:
        """Test no backend is created by default."""
        assert create_llm_backend(Config()) is None

    def test_anthropic(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the Anthropic backend picks up config values."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        config = Config(llm=LLMConfig(backend="anthropic_api", max_tokens=256))

        backend = create_llm_backend(config, model_override="claude-3-haiku")

        assert isinstance(backend, AnthropicAPIBackend)
        assert backend.model == "claude-3-haiku"
        assert backend.max_tokens == 256

    def test_unknown(self) -> None:
        """Test an unknown backend name is rejected."""
        with pytest.raises(typer.BadParameter):
            create_llm_backend(Config(), backend_override="openai")


class TestCompactCommand:
    """Tests for the compact command."""

    def test_rolling_window(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test older turns are dropped without a summarizer."""
        output = tmp_path / "managed.json"

        result = runner.invoke(
            app,
            ["compact", str(conversation_file), "-w", "400", "-r", "50", "-o", str(output)],
        )

        assert result.exit_code == 0
        assert "Context management" in result.output
        data = json.loads(output.read_text())
        assert data["id"] == "chat-1"
        assert [m["role"] for m in data["messages"]] == ["system", "user", "assistant"]
        assert data["messages"][1]["content"].startswith("question 2")

    def test_under_budget(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test a conversation within the default budget is kept whole."""
        output = tmp_path / "managed.json"

        result = runner.invoke(app, ["compact", str(conversation_file), "-o", str(output)])

        assert result.exit_code == 0
        assert len(json.loads(output.read_text())["messages"]) == 7

    def test_config_file(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test budget values from a config file."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            yaml.safe_dump({"context": {"max_context_window": 400, "minimum_reserve": 50}})
        )
        output = tmp_path / "managed.json"

        result = runner.invoke(
            app,
            ["compact", str(conversation_file), "-c", str(config_path), "-o", str(output)],
        )

        assert result.exit_code == 0
        assert len(json.loads(output.read_text())["messages"]) == 3

    def test_invalid_budget(self, conversation_file: Path) -> None:
        """Test an invalid budget is reported as a configuration error."""
        result = runner.invoke(app, ["compact", str(conversation_file), "-w", "100", "-r", "100"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_summarize_without_backend(self, conversation_file: Path) -> None:
        """Test --summarize fails fast when no backend is configured."""
        result = runner.invoke(app, ["compact", str(conversation_file), "--summarize"])

        assert result.exit_code == 1
        assert "Error creating LLM backend" in result.output

    def test_unknown_backend(self, conversation_file: Path) -> None:
        """Test an unknown backend name fails."""
        result = runner.invoke(app, ["compact", str(conversation_file), "--llm", "openai"])

        assert result.exit_code == 1
        assert "Error creating LLM backend" in result.output

    def test_unimplemented_strategy(self, conversation_file: Path) -> None:
        """Test an extension-point strategy reports an error."""
        result = runner.invoke(app, ["compact", str(conversation_file), "-s", "cut_middle"])

        assert result.exit_code == 1
        assert "not implemented" in result.output

    def test_summarization_without_backend(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test the summarization strategy is a no-op without a backend."""
        output = tmp_path / "managed.json"

        result = runner.invoke(
            app,
            ["compact", str(conversation_file), "-s", "summarization", "-o", str(output)],
        )

        assert result.exit_code == 0
        assert len(json.loads(output.read_text())["messages"]) == 7

    def test_transcripts(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test transcripts are written when a directory is given."""
        transcript_dir = tmp_path / "transcripts"

        result = runner.invoke(
            app,
            ["compact", str(conversation_file), "-w", "400", "-r", "50", "-t", str(transcript_dir)],
        )

        assert result.exit_code == 0
        json_files = list(transcript_dir.glob("chat_*.json"))
        assert len(json_files) == 1
        data = json.loads(json_files[0].read_text())
        assert data["total_runs"] == 1
        assert data["entries"][0]["metadata"]["dropped_turns"] == 2
        assert len(list(transcript_dir.glob("chat_*.md"))) == 1

    def test_default_transcript_dir(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test transcripts go to the configured directory by default."""
        result = runner.invoke(app, ["compact", str(conversation_file)])

        assert result.exit_code == 0
        assert len(list((tmp_path / "transcripts").glob("chat_*.json"))) == 1

    def test_no_transcript(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test --no-transcript writes nothing."""
        result = runner.invoke(app, ["compact", str(conversation_file), "--no-transcript"])

        assert result.exit_code == 0
        assert not (tmp_path / "transcripts").exists()

    def test_malformed_file(self, tmp_path: Path) -> None:
        """Test a conversation file that does not parse exits with a usage error."""
        path = tmp_path / "chat.yaml"
        path.write_text("messages: [unclosed")

        result = runner.invoke(app, ["compact", str(path)])

        assert result.exit_code == 2
        assert "Traceback" not in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing conversation file is a usage error."""
        result = runner.invoke(app, ["compact", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 2


class TestCountCommand:
    """Tests for the count command."""

    def test_count(self, conversation_file: Path) -> None:
        """Test the total uses the character heuristic."""
        result = runner.invoke(app, ["count", str(conversation_file)])

        assert result.exit_code == 0
        assert "Total: 604 tokens" in result.output

    def test_count_over_budget(self, conversation_file: Path, tmp_path: Path) -> None:
        """Test the total is compared with the configured budget."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            yaml.safe_dump({"context": {"max_context_window": 400, "minimum_reserve": 50}})
        )

        result = runner.invoke(app, ["count", str(conversation_file), "-c", str(config_path)])

        assert result.exit_code == 0
        assert "over budget" in result.output


class TestVersionCommand:
    """Tests for the version command."""

    def test_version(self) -> None:
        """Test the version is printed."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
