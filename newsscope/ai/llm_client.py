"""
Thin asynchronous wrapper around the OpenAI chat completions API.
All language-model calls made by the analysis modules go through here.
"""

import re
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from newsscope.utils.errors import ConfigurationError, LLMError, LLMRateLimitError

logger = logging.getLogger(__name__)

_code_fence_open = re.compile(r'^\s*```\s*(?:json)?\s*', re.IGNORECASE)
_code_fence_close = re.compile(r'\s*```\s*$')


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code-fence wrapping from a model reply.

    Args:
        text: Raw reply, e.g. a ```json fenced block

    Returns:
        Reply body without fences or surrounding whitespace
    """
    if not text:
        return ""
    text = _code_fence_open.sub('', text)
    text = _code_fence_close.sub('', text)
    return text.replace('```', '').strip()


class LLMClient:
    """
    Chat-completion client bound to one API key and a default model.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        temperature: Optional[float] = None,
        timeout: float = 30,
        client: Optional[AsyncOpenAI] = None
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenAI API key
            model: Default model name
            temperature: Default sampling temperature, None keeps the API default
            timeout: Per-request timeout in seconds
            client: Preconfigured AsyncOpenAI instance

        Raises:
            ConfigurationError: If no API key is given
        """
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set.")

        self.model = model
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def complete(
        self,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None
    ) -> str:
        """
        Send one prompt and return the text of the first choice.

        Args:
            user_prompt: User message
            system_prompt: Optional system message sent first
            model: Model override
            temperature: Temperature override

        Returns:
            Reply text, stripped

        Raises:
            LLMRateLimitError: If the API answers 429
            LLMError: On any other transport or response failure
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        request = {
            "model": model or self.model,
            "messages": messages,
        }
        temperature = temperature if temperature is not None else self.temperature
        if temperature is not None:
            request["temperature"] = temperature

        try:
            response = await self.client.chat.completions.create(**request)
        except openai.RateLimitError as e:
            raise LLMRateLimitError(f"Rate limit exceeded (429): {e}") from e
        except openai.OpenAIError as e:
            raise LLMError(f"Request failed: {e}") from e

        if not response.choices:
            raise LLMError("Response contained no choices")

        content = response.choices[0].message.content
        if content is None:
            raise LLMError("Response message had no content")

        return content.strip()
