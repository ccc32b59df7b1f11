from pydantic_settings import BaseSettings
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class TerminalParserConfig:
    assistant_command: str
    shell_prompt_markers: Tuple[str, ...]
    prompt_debounce_chars: int


class Settings(BaseSettings):
    # Deployment environment
    DEPLOYMENT_ENV: str = "development"
    APP_NAME: str = "ReactAssess"
    APP_DESCRIPTION: str = "Adaptive AI-augmented technical assessment platform"

    # Storage: "memory" keeps everything in-process, "sql" uses DATABASE_URL
    STORAGE_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./reactassess.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # "json" | "text"

    # Claude / Anthropic (narrative generation only; scoring is heuristic)
    ANTHROPIC_API_KEY: str = ""
    CLAUDE_NARRATIVE_MODEL: str = "claude-sonnet-4-20250514"
    NARRATIVE_MAX_TOKENS: int = 2048
    NARRATIVE_TIMEOUT_SECONDS: float = 30.0
    NARRATIVE_ENABLED: bool = True

    # Terminal telemetry parsing
    TERMINAL_ASSISTANT_COMMAND: str = "claude"
    # Comma-separated substrings that identify the sandbox shell prompt.
    TERMINAL_SHELL_PROMPT_MARKERS: str = "candidate@sandbox"
    # Output chars that must accumulate before a prompt-like string ends an
    # assistant session. Tuned against the sandbox PS1; recalibrate for other shells.
    TERMINAL_PROMPT_DEBOUNCE_CHARS: int = 100

    # Adaptive engine
    EXERCISE_CATALOG_PATH: Optional[str] = None

    # Domain events go to the log; false drops them
    EVENTS_ENABLED: bool = True

    @property
    def terminal_parser_config(self) -> TerminalParserConfig:
        markers = tuple(
            marker.strip()
            for marker in (self.TERMINAL_SHELL_PROMPT_MARKERS or "").split(",")
            if marker.strip()
        )
        return TerminalParserConfig(
            assistant_command=(self.TERMINAL_ASSISTANT_COMMAND or "claude").strip().lower(),
            shell_prompt_markers=markers,
            prompt_debounce_chars=max(0, int(self.TERMINAL_PROMPT_DEBOUNCE_CHARS)),
        )

    @property
    def narrative_configured(self) -> bool:
        return bool(self.NARRATIVE_ENABLED and (self.ANTHROPIC_API_KEY or "").strip())

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


settings = Settings()
