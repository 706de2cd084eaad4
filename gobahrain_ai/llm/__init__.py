# llm/__init__.py
"""
LLM Components Package

Contains the model-facing components:
- openai_client: The shared AsyncOpenAI client and SDK error mapping
- embeddings: Text -> vector via the embedding endpoint
- generator: One chat completion per call, fixed decoding params per use case
- prompts: Deterministic context blocks and system prompts
- response_parser: Day plan / chat reply / review match parsing
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .embeddings import EmbeddingService
    from .generator import GenerationClient, DecodingParams
    from .response_parser import parse_day_plan, parse_chat_reply, parse_response, find_ungrounded_spots

__all__ = [
    "EmbeddingService",
    "GenerationClient",
    "DecodingParams",
    "parse_day_plan",
    "parse_chat_reply",
    "parse_response",
    "find_ungrounded_spots"
]
