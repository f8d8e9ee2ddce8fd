"""Centralised settings for SiteFAQ.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Core components never read the module-level ``settings`` themselves; they
receive a :class:`Settings` instance from the caller.  Only the outer edges
(CLI, HTTP API, :func:`sitefaq.runner.run_pipeline`) fall back to it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Chat / generation model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    generation_temperature: float = field(
        default_factory=lambda: float(os.environ.get("GENERATION_TEMPERATURE", "0.3"))
    )
    max_output_tokens: int = field(
        default_factory=lambda: int(os.environ.get("MAX_OUTPUT_TOKENS", "4000"))
    )
    chars_per_token: int = field(
        default_factory=lambda: int(os.environ.get("CHARS_PER_TOKEN", "4"))
    )

    # ------------------------------------------------------------------
    # Rendering backends
    # ------------------------------------------------------------------
    browserbase_api_key: str = field(
        default_factory=lambda: os.environ.get("BROWSERBASE_API_KEY", "")
    )
    browserbase_connect_url: str = field(
        default_factory=lambda: os.environ.get(
            "BROWSERBASE_CONNECT_URL", "wss://connect.browserbase.com"
        )
    )
    headless: bool = field(default_factory=lambda: _env_bool("HEADLESS", True))
    viewport_width: int = field(
        default_factory=lambda: int(os.environ.get("VIEWPORT_WIDTH", "1200"))
    )
    viewport_height: int = field(
        default_factory=lambda: int(os.environ.get("VIEWPORT_HEIGHT", "800"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
            "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
        )
    )
    navigation_timeout_ms: int = field(
        default_factory=lambda: int(os.environ.get("NAVIGATION_TIMEOUT_MS", "30000"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Crawler
    # ------------------------------------------------------------------
    crawl_delay_ms: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_DELAY_MS", "0"))
    )

    # ------------------------------------------------------------------
    # Retry
    # ------------------------------------------------------------------
    retry_max_attempts: int = field(
        default_factory=lambda: int(os.environ.get("RETRY_MAX_ATTEMPTS", "3"))
    )
    retry_base_delay_ms: int = field(
        default_factory=lambda: int(os.environ.get("RETRY_BASE_DELAY_MS", "1000"))
    )

    @property
    def chat_model_name(self) -> str:
        """Identifier of the chat model the configured provider will use."""
        if self.llm_provider == "ollama":
            return self.ollama_chat_model
        return self.openai_chat_model


# Module-level singleton for the CLI and API entry points:
#   from sitefaq.config import settings
settings = Settings()
