"""Configuration management for chatwindow."""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatwindow.errors import ConfigurationError
from chatwindow.memory.types import ContextStrategy


class ContextConfig(BaseModel):
    """Context-window budget and strategy."""

    strategy: ContextStrategy = ContextStrategy.ROLLING_WINDOW
    max_context_window: int = Field(default=4096, gt=0)
    minimum_reserve: int = Field(default=512, ge=0)

    @model_validator(mode="after")
    def check_reserve(self) -> "ContextConfig":
        if self.minimum_reserve >= self.max_context_window:
            raise ValueError(
                f"minimum_reserve ({self.minimum_reserve}) must be smaller than "
                f"max_context_window ({self.max_context_window})"
            )
        return self


class LLMConfig(BaseModel):
    """Summarization and token-counting backend settings."""

    backend: Literal["anthropic_api", "none"] = "none"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024
    temperature: float = 0.3
    count_tokens: bool = True


class LoggingConfig(BaseModel):
    """Logging and transcript settings."""

    level: str = "WARNING"
    transcript_dir: Path = Field(default_factory=lambda: Path("./transcripts"))
    enable_json: bool = True
    enable_markdown: bool = True


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHATWINDOW_",
        env_nested_delimiter="__",
    )

    context: ContextConfig = Field(default_factory=ContextConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(
    config_path: Path | None = None,
    **context_overrides: Any,
) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional path to YAML config file.
        **context_overrides: Values for the context section that take
            precedence over the file (None values are ignored).

    Returns:
        Loaded configuration.

    Raises:
        ConfigurationError: If the file or the resulting values are invalid.
    """
    config_data: dict[str, Any] = {}

    if config_path and config_path.exists():
        import yaml

        with open(config_path) as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e
            if loaded:
                if not isinstance(loaded, dict):
                    raise ConfigurationError(
                        f"Invalid config file {config_path}: expected a mapping"
                    )
                config_data = loaded

    overrides = {k: v for k, v in context_overrides.items() if v is not None}
    if overrides:
        context = dict(config_data.get("context") or {})
        context.update(overrides)
        config_data["context"] = context

    try:
        return Config(**config_data)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
