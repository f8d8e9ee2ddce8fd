"""Text-generation capability used by the FAQ pipeline.

The pipeline only needs ``complete(system, user, temperature, max_tokens)``
returning text.  :class:`LangChainGenerator` provides it on top of a LangChain
chat model picked from ``Settings.llm_provider``:

``openai`` (default)
    ``ChatOpenAI``; requires ``OPENAI_API_KEY``.  Model from
    ``OPENAI_CHAT_MODEL``.
``ollama``
    ``ChatOllama`` against ``OLLAMA_BASE_URL``.  Model from
    ``OLLAMA_CHAT_MODEL``.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any

from sitefaq.config import Settings
from sitefaq.errors import ErrorCategory, PipelineError


class TextGenerator(ABC):
    """Abstract black-box text completion."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Identifier of the model, reported in FAQ statistics."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        """Return the model's text reply."""


def _get_llm(config: Settings, temperature: float, max_output_tokens: int) -> Any:
    """Return a configured LangChain chat model based on *config*."""
    if config.llm_provider == "openai":
        if not os.environ.get("OPENAI_API_KEY"):
            raise PipelineError(
                "OPENAI_API_KEY environment variable is not set. "
                "Set it or switch to LLM_PROVIDER=ollama.",
                ErrorCategory.PERMANENT,
            )
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.openai_chat_model,
            temperature=temperature,
            max_tokens=max_output_tokens,
        )

    if config.llm_provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=config.ollama_chat_model,
            base_url=config.ollama_base_url,
            temperature=temperature,
            num_predict=max_output_tokens,
        )

    raise PipelineError(
        f"Unknown LLM_PROVIDER {config.llm_provider!r}. Use: openai | ollama",
        ErrorCategory.PERMANENT,
    )


def _message_text(response: Any) -> str:
    """Flatten a chat model reply to plain text.

    ``AIMessage.content`` is either a string or a list of content blocks
    (strings or ``{"type": "text", "text": ...}`` dicts); non-text blocks are
    ignored.
    """
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)


class LangChainGenerator(TextGenerator):
    def __init__(self, config: Settings) -> None:
        self._config = config

    @property
    def model_name(self) -> str:
        return self._config.chat_model_name

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        from langchain_core.messages import HumanMessage, SystemMessage

        llm = _get_llm(self._config, temperature, max_output_tokens)
        response = await llm.ainvoke(
            [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        )
        return _message_text(response)
