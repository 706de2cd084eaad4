# llm/generator.py
"""
Generation client for OpenAI chat completions.
One request per call, no streaming. Decoding parameters are fixed per use case.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger
from openai import APIError, AsyncOpenAI

from ..config import Settings
from ..utils.ai_helpers import truncate_text
from ..utils.exceptions import GenerationFailure
from .openai_client import build_openai_client, failure_from_openai


@dataclass(frozen=True)
class DecodingParams:
    """Temperature / token budget for one use case"""
    temperature: float
    max_tokens: int


# Lower temperature for single-answer tasks, higher for conversational ones
PLAN_TEXT_PARAMS = DecodingParams(temperature=0.6, max_tokens=512)
DAY_PLAN_PARAMS = DecodingParams(temperature=0.9, max_tokens=1800)
CHAT_PARAMS = DecodingParams(temperature=0.7, max_tokens=700)
REVIEW_MATCH_PARAMS = DecodingParams(temperature=0.6, max_tokens=2000)


class GenerationClient:
    """
    Chat completion client

    Usage:
        generator = GenerationClient(settings, build_openai_client(settings))
        text = await generator.complete(system_prompt, [{"role": "user", "content": "..."}], DAY_PLAN_PARAMS)
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self.model = settings.CHAT_MODEL
        self._client = client or build_openai_client(settings)

    async def complete(
        self,
        system_prompt: str,
        messages: List[Dict[str, str]],
        params: DecodingParams,
        model: Optional[str] = None,
    ) -> str:
        """
        Issue one chat completion and return the raw text

        Args:
            system_prompt: Instruction placed first as the system message
            messages: Conversation messages ({role, content}) after the system prompt
            params: Use-case decoding parameters
            model: Override for the configured chat model

        Returns:
            str: Trimmed message content

        Raises:
            GenerationFailure: on transport error, non-success status or empty content
        """
        if not self.settings.OPENAI_API_KEY:
            raise GenerationFailure("OPENAI_API_KEY is not configured")

        model_name = model or self.model
        logger.debug(f"Generation request ({model_name}): {truncate_text(system_prompt, 200)}")

        try:
            response = await self._client.chat.completions.create(
                model=model_name,
                messages=[{"role": "system", "content": system_prompt}, *messages],
                temperature=params.temperature,
                max_tokens=params.max_tokens,
            )
        except APIError as e:
            failure = failure_from_openai(e, GenerationFailure, "OpenAI chat")
            logger.error(f"Generation provider error: {failure}")
            raise failure from e

        text = self._extract_text(response)
        if not text:
            raise GenerationFailure("Empty response from model")

        logger.debug(f"Generation output: {truncate_text(text, 500)}")
        return text

    @staticmethod
    def _extract_text(response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not isinstance(choices, list) or not choices:
            return ""
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        return content.strip() if isinstance(content, str) else ""
