"""
AI Service Configuration
Loads settings from environment variables
"""

import os
from functools import lru_cache
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .utils.exceptions import ConfigurationError

# Load environment variables
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Application settings

    Built once at process start (or per test) and passed to each client.
    Nothing downstream reads the environment directly.

    Args:
        env: Mapping to read from (default: os.environ)
    """

    REQUIRED_KEYS = ("OPENAI_API_KEY", "PINECONE_API_KEY", "PINECONE_HOST")

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        env = os.environ if env is None else env

        # OpenAI Configuration (embeddings + chat completions)
        self.OPENAI_API_KEY: str = env.get("OPENAI_API_KEY", "")
        self.OPENAI_BASE_URL: str = env.get("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        self.EMBEDDING_MODEL: str = env.get("EMBEDDING_MODEL", "text-embedding-3-small")
        self.EMBEDDING_DIM: int = int(env.get("EMBEDDING_DIM", "1536"))
        self.CHAT_MODEL: str = env.get("CHAT_MODEL", "gpt-4.1-mini")
        self.REVIEW_MODEL: str = env.get("REVIEW_MODEL", "gpt-4o-mini")

        # Pinecone Configuration (vector index)
        self.PINECONE_API_KEY: str = env.get("PINECONE_API_KEY", "")
        self.PINECONE_HOST: str = env.get("PINECONE_HOST", "").rstrip("/")
        self.PINECONE_NAMESPACE: str = env.get("PINECONE_NAMESPACE", "")
        self.VECTOR_MAX_TOP_K: int = int(env.get("VECTOR_MAX_TOP_K", "100"))

        # Supabase Configuration (community reviews)
        self.SUPABASE_URL: str = env.get("SUPABASE_URL", "").rstrip("/")
        self.SUPABASE_KEY: str = env.get("SUPABASE_KEY", "")

        # HTTP
        self.HTTP_TIMEOUT_SECONDS: float = float(env.get("HTTP_TIMEOUT_SECONDS", "30"))

        # API Configuration
        self.API_HOST: str = env.get("API_HOST", "0.0.0.0")
        self.API_PORT: int = int(env.get("API_PORT", "4000"))
        self.API_ENV: str = env.get("API_ENV", "development")
        self.CORS_ORIGINS: str = env.get("CORS_ORIGINS", "*")
        self.LOG_LEVEL: str = env.get("LOG_LEVEL", "INFO").upper()

        # Planner behaviour
        self.STRICT_PLAN_GROUNDING: bool = _as_bool(env.get("STRICT_PLAN_GROUNDING", "false"))

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_KEY)

    def missing_credentials(self) -> List[str]:
        """
        List required keys that are not set

        Returns:
            List of missing environment variable names
        """
        return [key for key in self.REQUIRED_KEYS if not getattr(self, key)]

    def validate(self) -> "Settings":
        """
        Fail fast when required credentials are missing

        Raises:
            ConfigurationError: naming every missing key
        """
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings built from the process environment, created once"""
    return Settings()
