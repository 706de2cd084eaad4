"""
Embedding Service using the OpenAI embeddings endpoint
Turns free text into the fixed-length vector the place index was built with
"""

from typing import Any, List, Optional

from loguru import logger
from openai import APIError, AsyncOpenAI

from ..config import Settings
from ..utils.ai_helpers import truncate_text
from ..utils.constants import DEFAULT_QUERY_TEXT
from ..utils.exceptions import EmbeddingFailure
from .openai_client import build_openai_client, failure_from_openai


class EmbeddingService:
    """
    OpenAI embedding client

    Features:
    - text-embedding-3-small by default (1536 dimensions)
    - Never sends an empty string: blank input is replaced by a default phrase
    - No retries; the caller decides whether a failure is fatal

    Usage:
        embedder = EmbeddingService(settings, build_openai_client(settings))
        vector = await embedder.embed_query("seafood by the sea")
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self.model = settings.EMBEDDING_MODEL
        self.embedding_dim = settings.EMBEDDING_DIM
        self._client = client or build_openai_client(settings)

        logger.info(f"Embedding Service initialized: {self.model} ({self.embedding_dim} dimensions)")

    async def embed_query(self, query: Optional[str], default_text: str = DEFAULT_QUERY_TEXT) -> List[float]:
        """
        Generate embedding for a query string

        Args:
            query: Text to embed (trimmed; blank input uses default_text)
            default_text: Phrase appropriate to the call site

        Returns:
            List[float]: Embedding vector

        Raises:
            EmbeddingFailure: on transport error, non-success status or a malformed vector
        """
        text = (query or "").strip() or default_text.strip() or DEFAULT_QUERY_TEXT

        if not self.settings.OPENAI_API_KEY:
            raise EmbeddingFailure("OPENAI_API_KEY is not configured")

        try:
            response = await self._client.embeddings.create(
                model=self.model,
                input=text,
                encoding_format="float",
            )
        except APIError as e:
            failure = failure_from_openai(e, EmbeddingFailure, "Embedding")
            logger.error(f"Embedding provider error: {failure}")
            raise failure from e

        embedding = self._extract_vector(response)

        if len(embedding) != self.embedding_dim:
            logger.warning(
                f"Unexpected embedding dimension: {len(embedding)} "
                f"(expected {self.embedding_dim})"
            )

        logger.debug(f"Generated embedding for: '{truncate_text(text, 50)}' ({len(embedding)} dims)")
        return embedding

    @staticmethod
    def _extract_vector(response: Any) -> List[float]:
        # The SDK builds response models without validation, so a malformed
        # body shows up here as missing or mistyped fields.
        data = getattr(response, "data", None)
        if not isinstance(data, list) or not data:
            raise EmbeddingFailure("Invalid embedding response: missing data[0].embedding")

        embedding = getattr(data[0], "embedding", None)
        if not isinstance(embedding, list) or not embedding:
            raise EmbeddingFailure("Invalid embedding response: embedding is not a vector")
        if not all(isinstance(x, (int, float)) and not isinstance(x, bool) for x in embedding):
            raise EmbeddingFailure("Invalid embedding response: embedding contains non-numeric values")

        return [float(x) for x in embedding]
