"""
Shared fixtures
"""
import pytest

from tests.fakes import FakeEmbedder, FakeGenerator, FakeVectorClient, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def vector_client():
    return FakeVectorClient()


@pytest.fixture
def generator():
    return FakeGenerator()
