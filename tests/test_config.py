"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest
import yaml

from chatwindow.config import Config, ContextConfig, LLMConfig, load_config
from chatwindow.errors import ConfigurationError
from chatwindow.memory.types import ContextStrategy


class TestConfig:
    """Tests for Config class."""

    def test_context_config_defaults(self) -> None:
        """Test that the context section has sensible defaults."""
        config = Config()

        assert config.context.strategy == ContextStrategy.ROLLING_WINDOW
        assert config.context.max_context_window == 4096
        assert config.context.minimum_reserve == 512

    def test_llm_config_defaults(self) -> None:
        """Test LLM config defaults."""
        config = Config()

        assert config.llm.backend == "none"
        assert config.llm.model == "claude-sonnet-4-20250514"
        assert config.llm.max_tokens == 1024
        assert config.llm.temperature == 0.3
        assert config.llm.count_tokens is True

    def test_logging_config_defaults(self) -> None:
        """Test logging config defaults."""
        config = Config()

        assert config.logging.level == "WARNING"
        assert config.logging.enable_json is True
        assert config.logging.enable_markdown is True

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test nested settings come from prefixed environment variables."""
        monkeypatch.setenv("CHATWINDOW_CONTEXT__MAX_CONTEXT_WINDOW", "8192")
        monkeypatch.setenv("CHATWINDOW_LLM__BACKEND", "anthropic_api")

        config = Config()

        assert config.context.max_context_window == 8192
        assert config.llm.backend == "anthropic_api"


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_config_no_file(self) -> None:
        """Test loading config without a file."""
        config = load_config()

        assert config.context.max_context_window == 4096

    def test_load_config_missing_file(self) -> None:
        """Test a path that does not exist falls back to defaults."""
        config = load_config(config_path=Path("/nonexistent/chatwindow.yaml"))

        assert config.context.minimum_reserve == 512

    def test_load_config_from_yaml(self) -> None:
        """Test loading config from YAML file."""
        config_data = {
            "context": {
                "strategy": "summarization",
                "max_context_window": 2000,
            },
            "llm": {
                "backend": "anthropic_api",
                "model": "claude-3-haiku",
            },
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(config_data, f)
            config_path = Path(f.name)

        try:
            config = load_config(config_path=config_path)

            assert config.context.strategy == ContextStrategy.SUMMARIZATION
            assert config.context.max_context_window == 2000
            assert config.llm.backend == "anthropic_api"
            assert config.llm.model == "claude-3-haiku"
            # Other values should be defaults
            assert config.context.minimum_reserve == 512
        finally:
            config_path.unlink()

    def test_load_config_overrides(self, tmp_path: Path) -> None:
        """Test keyword overrides take precedence over the file."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump({"context": {"max_context_window": 2000}}))

        config = load_config(
            config_path=config_path,
            max_context_window=400,
            minimum_reserve=50,
            strategy=None,
        )

        assert config.context.max_context_window == 400
        assert config.context.minimum_reserve == 50
        assert config.context.strategy == ContextStrategy.ROLLING_WINDOW

    def test_load_config_invalid_reserve(self) -> None:
        """Test a reserve that swallows the window is rejected."""
        with pytest.raises(ConfigurationError, match="minimum_reserve"):
            load_config(max_context_window=100, minimum_reserve=100)

    def test_load_config_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML is reported as a configuration error."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("context: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid config file"):
            load_config(config_path=config_path)

    def test_load_config_not_a_mapping(self, tmp_path: Path) -> None:
        """Test a config file holding a list is a configuration error."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.safe_dump([1, 2]))

        with pytest.raises(ConfigurationError, match="expected a mapping"):
            load_config(config_path=config_path)


class TestContextConfig:
    """Tests for ContextConfig model."""

    def test_strategy_by_name(self) -> None:
        """Test strategies are parsed from their names."""
        config = ContextConfig(strategy="cut_middle")  # type: ignore[arg-type]

        assert config.strategy == ContextStrategy.CUT_MIDDLE

    def test_invalid_strategy(self) -> None:
        """Test an unknown strategy raises error."""
        with pytest.raises(ValueError):
            ContextConfig(strategy="fifo")  # type: ignore[arg-type]

    @pytest.mark.parametrize(("window", "reserve"), [(0, 0), (100, -1), (100, 200)])
    def test_invalid_budget(self, window: int, reserve: int) -> None:
        """Test invalid budgets raise error."""
        with pytest.raises(ValueError):
            ContextConfig(max_context_window=window, minimum_reserve=reserve)


class TestLLMConfig:
    """Tests for LLMConfig model."""

    def test_valid_backends(self) -> None:
        """Test valid LLM backend values."""
        for backend in ["anthropic_api", "none"]:
            config = LLMConfig(backend=backend)  # type: ignore[arg-type]
            assert config.backend == backend

    def test_invalid_backend(self) -> None:
        """Test invalid LLM backend raises error."""
        with pytest.raises(ValueError):
            LLMConfig(backend="claude_cli")  # type: ignore[arg-type]
