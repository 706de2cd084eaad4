# interfaces/__init__.py
"""
Interfaces Package

Contains the external data stores:
- vector_store: Pinecone nearest-neighbour queries and record normalization
- community_store: Community reviews from the relational backend
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .vector_store import VectorSearchClient, build_filter, normalize_match
    from .community_store import CommunityStore

__all__ = [
    "VectorSearchClient",
    "build_filter",
    "normalize_match",
    "CommunityStore"
]
