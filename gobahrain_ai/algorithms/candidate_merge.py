"""
Candidate Merge Algorithm
Concatenates category results, deduplicates and caps the merged list

Rules:
1. Categories are concatenated in a fixed priority order, whatever order the
   network calls finished in
2. Deduplication key is the trimmed, case-folded name plus the source id;
   the first occurrence wins
3. Over the cap, the first survivor of each reserved category keeps a slot,
   the rest go to the earliest other records; merged order is preserved
"""

from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from loguru import logger

from ..schemas.ai_schemas import CandidateRecord, RecordKind

CategoryGroup = Tuple[str, Sequence[CandidateRecord]]


class MergeResult(NamedTuple):
    """Merged candidates plus how many of each category survived"""
    candidates: List[CandidateRecord]
    category_counts: Dict[str, int]
    dropped_duplicates: int

    def __repr__(self) -> str:
        return (
            f"MergeResult(total={len(self.candidates)}, "
            f"counts={self.category_counts}, "
            f"duplicates={self.dropped_duplicates})"
        )


class _SeenKeys:
    """Names and ids already taken by an earlier record"""

    def __init__(self):
        self.names: Set[str] = set()
        self.ids: Set[str] = set()

    def admit(self, record: CandidateRecord) -> bool:
        """Remember the record and return True if neither its name nor its id was seen"""
        if record.dedupe_name in self.names or (record.id and record.id in self.ids):
            return False
        self.names.add(record.dedupe_name)
        if record.id:
            self.ids.add(record.id)
        return True


def dedupe_candidates(records: Iterable[CandidateRecord]) -> List[CandidateRecord]:
    """
    Drop records whose name or id was already seen

    Args:
        records: Candidates in priority order

    Returns:
        List[CandidateRecord]: First occurrences, order preserved
    """
    seen = _SeenKeys()
    return [record for record in records if seen.admit(record)]


def _label_survivors(groups: Sequence[CategoryGroup]) -> Tuple[List[Tuple[str, CandidateRecord]], int]:
    seen = _SeenKeys()
    kept = []
    duplicates = 0
    for label, records in groups:
        for record in records:
            if seen.admit(record):
                kept.append((label, record))
            else:
                duplicates += 1
    return kept, duplicates


def merge_in_order(
    groups: Sequence[CategoryGroup],
    cap: Optional[int] = None,
    reserved: Sequence[str] = (),
) -> MergeResult:
    """
    Merge labelled category groups in the given order

    Args:
        groups: (label, records) pairs in priority order
        cap: Maximum size of the merged list (None = no cap)
        reserved: Labels whose first survivor must keep a slot when truncating

    Returns:
        MergeResult

    Example:
        >>> merge_in_order([("places", p), ("breakfast", b), ("events", e)], cap=18,
        ...                reserved=("breakfast", "events"))
    """
    kept, duplicates = _label_survivors(groups)

    if cap is not None and len(kept) > cap:
        kept = _truncate_balanced(kept, cap, reserved)

    counts: Dict[str, int] = {label: 0 for label, _ in groups}
    for label, _ in kept:
        counts[label] += 1

    if duplicates:
        logger.debug(f"Merge dropped {duplicates} duplicate candidate(s)")

    return MergeResult(
        candidates=[record for _, record in kept],
        category_counts=counts,
        dropped_duplicates=duplicates,
    )


def _truncate_balanced(
    kept: List[Tuple[str, CandidateRecord]],
    cap: int,
    reserved: Sequence[str],
) -> List[Tuple[str, CandidateRecord]]:
    reserved_positions: List[int] = []
    for label in reserved:
        for i, (item_label, _) in enumerate(kept):
            if item_label == label:
                reserved_positions.append(i)
                break
    reserved_positions = sorted(reserved_positions)[:cap]

    remaining = cap - len(reserved_positions)
    chosen = set(reserved_positions)
    for i in range(len(kept)):
        if remaining <= 0:
            break
        if i not in chosen:
            chosen.add(i)
            remaining -= 1

    return [item for i, item in enumerate(kept) if i in chosen]


def exclude_kinds(records: Iterable[CandidateRecord], kinds: Sequence[RecordKind]) -> List[CandidateRecord]:
    """Records whose kind is not in `kinds`"""
    return [r for r in records if r.kind not in kinds]


def count_used_places(candidates: Sequence[CandidateRecord], text: str) -> int:
    """
    Approximate count of candidates mentioned in generated text

    Case-insensitive substring match on each candidate name, so a short name
    contained in a longer one counts too.
    """
    if not candidates or not text:
        return 0
    lowered = text.lower()
    return sum(1 for c in candidates if c.name.strip() and c.name.strip().lower() in lowered)
