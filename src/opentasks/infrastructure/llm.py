"""
Chat completion client for OpenAI-compatible endpoints.

Defaults to a local Ollama instance through its OpenAI-compatible API.
"""

import logging
from typing import Any, cast

import openai
from openai import AsyncOpenAI

from opentasks.domain.exceptions import ExecutionError, OperationTimeout
from opentasks.domain.models import LlmSettings

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant working inside a command-line workflow. "
    "Answer with the requested content only."
)


class ChatClient:
    """Sends one prompt and returns the assistant's reply."""

    def __init__(self, settings: LlmSettings, timeout: float = 120.0):
        """
        Args:
            settings: Model, endpoint and API key
            timeout: Seconds allowed per request
        """
        self._model = settings.model
        self._timeout = timeout
        self._client = AsyncOpenAI(
            base_url=settings.base_url,
            api_key=settings.api_key,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(self, prompt: str, system: str = DEFAULT_SYSTEM_PROMPT) -> str:
        """
        Request a completion.

        Raises:
            OperationTimeout: If the endpoint did not answer in time
            ExecutionError: If the endpoint rejected the request
        """
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]
        logger.debug("Sending %d characters to %s", len(prompt), self._model)

        try:
            response = await self._client.chat.completions.create(
                model=self._model, messages=cast(Any, messages)
            )
        except openai.APITimeoutError as e:
            raise OperationTimeout("ask", self._timeout) from e
        except openai.APIError as e:
            raise ExecutionError(f"ask ({self._model})", 1, str(e)) from e

        return response.choices[0].message.content or ""
