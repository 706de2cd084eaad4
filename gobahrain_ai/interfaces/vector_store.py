"""
Vector Store Interface

Single nearest-neighbour query against the Pinecone place index, plus the one
normalization step that turns provider metadata into CandidateRecord.

Metadata field names vary between ingestion batches (cuisine / cuisine_type,
lat / latitude / Lat, ...). Everything downstream of normalize_match() only
sees the canonical CandidateRecord fields.
"""

import asyncio
import json
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger
from pinecone import Pinecone
from pinecone.exceptions import PineconeApiException

from ..config import Settings
from ..schemas.ai_schemas import CandidateRecord, Coordinates, QuerySpec, RecordKind, ScoredMatch
from ..utils.ai_helpers import provider_error_message, to_float
from ..utils.exceptions import VectorSearchFailure


# ============================================
# Metadata field variants
# ============================================

NAME_KEYS = ("event_name", "business_name", "name", "place_name", "title")
LAT_KEYS = ("lat", "latitude", "Lat", "LAT")
LNG_KEYS = ("long", "longitude", "lng", "Long", "LNG")
CUISINE_KEYS = ("cuisine", "cuisine_type")
LOCATION_KEYS = ("location", "area")


def build_filter(filters: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Build the wire-level metadata filter

    One clause is sent bare, two or more are wrapped in $and.

    Args:
        filters: Equality clauses {field: value}; None/empty means unfiltered

    Returns:
        Filter dict, or None when there is nothing to filter on

    Example:
        >>> build_filter({"record_type": "event"})
        {'record_type': {'$eq': 'event'}}
        >>> build_filter({"record_type": "client", "client_type": "place"})
        {'$and': [{'record_type': {'$eq': 'client'}}, {'client_type': {'$eq': 'place'}}]}
    """
    if not filters:
        return None

    clauses = [{field: {"$eq": value}} for field, value in filters.items()]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _first_present(metadata: Mapping[str, Any], keys) -> Any:
    for key in keys:
        value = metadata.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _detect_kind(metadata: Mapping[str, Any]) -> RecordKind:
    record_type = str(metadata.get("record_type") or "").strip().lower()
    client_type = str(metadata.get("client_type") or "").strip().lower()

    if record_type == "event":
        return RecordKind.EVENT
    if client_type == "restaurant":
        return RecordKind.RESTAURANT
    if client_type == "place":
        return RecordKind.PLACE
    if record_type == "client":
        return RecordKind.CLIENT
    # place-listing records carry place_name and no record_type
    return RecordKind.PLACE


def _coordinates(metadata: Mapping[str, Any]) -> Optional[Coordinates]:
    lat = to_float(_first_present(metadata, LAT_KEYS))
    lng = to_float(_first_present(metadata, LNG_KEYS))
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinates(lat=lat, lng=lng)


def normalize_match(match: ScoredMatch) -> Optional[CandidateRecord]:
    """
    Convert one scored match into a CandidateRecord

    Returns:
        CandidateRecord, or None when no display name can be resolved
    """
    metadata = match.metadata or {}
    name = _as_text(_first_present(metadata, NAME_KEYS))
    if not name:
        return None

    return CandidateRecord(
        id=match.id or name,
        kind=_detect_kind(metadata),
        name=name,
        description=_as_text(metadata.get("description")),
        category=_as_text(metadata.get("category")),
        cuisine=_as_text(_first_present(metadata, CUISINE_KEYS)),
        venue=_as_text(metadata.get("venue")),
        price_range=_as_text(metadata.get("price_range")),
        rating=to_float(metadata.get("rating")),
        location=_as_text(_first_present(metadata, LOCATION_KEYS)),
        coordinates=_coordinates(metadata),
        score=match.score,
        meta=dict(metadata),
    )


def normalize_matches(matches: List[ScoredMatch]) -> List[CandidateRecord]:
    """Normalize in provider order, dropping nameless records"""
    records = []
    for match in matches:
        record = normalize_match(match)
        if record is None:
            logger.debug(f"Dropping match {match.id}: no resolvable name")
            continue
        records.append(record)
    return records


def _field(obj: Any, name: str) -> Any:
    """Read a field from an SDK response model or a plain dict"""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _pinecone_error_message(error: PineconeApiException) -> str:
    try:
        payload = json.loads(error.body) if error.body else {}
    except (TypeError, ValueError):
        payload = {}
    return provider_error_message(payload if isinstance(payload, dict) else {}, f"Pinecone error ({error.status})")


class VectorSearchClient:
    """
    Pinecone query client

    The index handle is created on first use so a process without Pinecone
    credentials can still start; the SDK is synchronous, so queries run in a
    worker thread.

    Usage:
        client = VectorSearchClient(settings)
        matches = await client.query(vector, top_k=6, filters={"record_type": "event"})
    """

    def __init__(self, settings: Settings, index: Optional[Any] = None):
        self.settings = settings
        self.max_top_k = settings.VECTOR_MAX_TOP_K
        self.default_namespace = settings.PINECONE_NAMESPACE
        self._index = index

    def _get_index(self) -> Any:
        if self._index is None:
            pc = Pinecone(api_key=self.settings.PINECONE_API_KEY)
            self._index = pc.Index(host=self.settings.PINECONE_HOST)
            logger.info(f"Connected to Pinecone index at {self.settings.PINECONE_HOST}")
        return self._index

    async def query(
        self,
        vector: List[float],
        top_k: int,
        filters: Optional[Mapping[str, Any]] = None,
        namespace: Optional[str] = None,
    ) -> List[ScoredMatch]:
        """
        Execute one nearest-neighbour query

        Args:
            vector: Query embedding
            top_k: Result count (1..VECTOR_MAX_TOP_K)
            filters: Equality clauses, AND-ed
            namespace: Index partition (default: configured namespace)

        Returns:
            List[ScoredMatch] in provider order (descending score, never re-sorted)

        Raises:
            ValueError: top_k outside the provider range
            VectorSearchFailure: on transport error or provider error
        """
        if top_k < 1 or top_k > self.max_top_k:
            raise ValueError(f"top_k must be between 1 and {self.max_top_k}, got {top_k}")

        if not self.settings.PINECONE_API_KEY or not self.settings.PINECONE_HOST:
            raise VectorSearchFailure("PINECONE_API_KEY and PINECONE_HOST must be configured")

        try:
            index = self._get_index()
            response = await asyncio.to_thread(
                index.query,
                vector=vector,
                top_k=top_k,
                include_metadata=True,
                namespace=self.default_namespace if namespace is None else namespace,
                filter=build_filter(filters),
            )
        except PineconeApiException as e:
            message = _pinecone_error_message(e)
            logger.error(f"Pinecone error {e.status}: {message}")
            raise VectorSearchFailure(message, status_code=e.status) from e
        except Exception as e:
            logger.error(f"Pinecone request failed: {e}")
            raise VectorSearchFailure(f"Pinecone request failed: {e}") from e

        matches = []
        for raw in _field(response, "matches") or []:
            metadata = _field(raw, "metadata")
            matches.append(ScoredMatch(
                id=str(_field(raw, "id") or ""),
                score=to_float(_field(raw, "score")) or 0.0,
                metadata=metadata if isinstance(metadata, Mapping) else {},
            ))
        return matches

    async def search(self, vector: List[float], spec: QuerySpec) -> List[CandidateRecord]:
        """
        Run a QuerySpec and return normalized candidates

        top_k is clamped to the provider maximum before sending.
        """
        spec = spec.clamped(self.max_top_k)
        matches = await self.query(
            vector,
            spec.top_k,
            filters=spec.filters,
            namespace=spec.namespace or None,
        )
        return normalize_matches(matches)
