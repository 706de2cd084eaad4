"""
Tests for config module
"""
import pytest

from gobahrain_ai.config import Settings
from gobahrain_ai.utils.exceptions import ConfigurationError
from tests.fakes import make_settings


class TestSettings:
    """Test Settings construction and validation"""

    def test_defaults(self):
        settings = Settings(env={})

        assert settings.OPENAI_BASE_URL == "https://api.openai.com/v1"
        assert settings.EMBEDDING_MODEL == "text-embedding-3-small"
        assert settings.EMBEDDING_DIM == 1536
        assert settings.CHAT_MODEL == "gpt-4.1-mini"
        assert settings.REVIEW_MODEL == "gpt-4o-mini"
        assert settings.PINECONE_NAMESPACE == ""
        assert settings.VECTOR_MAX_TOP_K == 100
        assert settings.HTTP_TIMEOUT_SECONDS == 30.0
        assert settings.API_PORT == 4000
        assert settings.CORS_ORIGINS == "*"
        assert settings.LOG_LEVEL == "INFO"
        assert settings.STRICT_PLAN_GROUNDING is False

    def test_reads_mapping_not_environment(self, monkeypatch):
        monkeypatch.setenv("CHAT_MODEL", "from-environment")
        settings = Settings(env={"CHAT_MODEL": "from-mapping"})

        assert settings.CHAT_MODEL == "from-mapping"

    def test_trailing_slashes_are_stripped(self):
        settings = Settings(env={"PINECONE_HOST": "https://index.test/", "OPENAI_BASE_URL": "https://llm.test/v1/"})

        assert settings.PINECONE_HOST == "https://index.test"
        assert settings.OPENAI_BASE_URL == "https://llm.test/v1"

    def test_cors_origins_list(self):
        settings = Settings(env={"CORS_ORIGINS": "http://a.test, http://b.test,,"})

        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("YES", True), ("false", False), ("", False)])
    def test_strict_grounding_flag(self, raw, expected):
        assert Settings(env={"STRICT_PLAN_GROUNDING": raw}).STRICT_PLAN_GROUNDING is expected

    def test_missing_credentials(self):
        settings = Settings(env={"PINECONE_HOST": "https://index.test"})

        assert settings.missing_credentials() == ["OPENAI_API_KEY", "PINECONE_API_KEY"]

    def test_validate_raises_naming_missing_keys(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(env={}).validate()

        message = exc_info.value.message
        assert "OPENAI_API_KEY" in message
        assert "PINECONE_API_KEY" in message
        assert "PINECONE_HOST" in message

    def test_validate_returns_self_when_complete(self):
        settings = make_settings()

        assert settings.validate() is settings
        assert settings.supabase_configured is True
