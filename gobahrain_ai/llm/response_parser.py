# llm/response_parser.py
"""
Response parser for generation output.

- Day plans: direct JSON array, then the first [...] substring, else PlanParseFailure
- Chat replies: JSON object {reply, actions}, degrading to plain text; never raises
- Review matches: [{id, suggestion}], empty on anything unparseable
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger
from pydantic import ValidationError

from ..schemas.ai_schemas import (
    CandidateRecord,
    ChatAction,
    ChatReply,
    ExpectedShape,
    GeneratedPlanItem,
)
from ..utils.ai_helpers import truncate_text
from ..utils.exceptions import PlanParseFailure, UngroundedPlanError

_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)

MAX_CHAT_ACTIONS = 1


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present"""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    return match.group(1) if match else stripped


def _load_json(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None


def extract_json_array(raw_text: str) -> Optional[List[Any]]:
    """
    Find a JSON array in model output

    Tries the whole text first, then the first bracketed substring.

    Returns:
        list or None
    """
    text = strip_code_fence(raw_text or "")
    parsed = _load_json(text)
    if isinstance(parsed, list):
        return parsed

    match = _ARRAY_PATTERN.search(text)
    if match:
        parsed = _load_json(match.group(0))
        if isinstance(parsed, list):
            return parsed
    return None


# ============================================
# Day Plan
# ============================================

def parse_day_plan(raw_text: str) -> List[GeneratedPlanItem]:
    """
    Parse a day-plan JSON array into validated plan items

    Items failing validation (unknown time/type, missing spot) are dropped
    with a warning.

    Raises:
        PlanParseFailure: no array found, or no item survived validation
    """
    items = extract_json_array(raw_text)
    if items is None:
        logger.error(f"Day plan parse failed: {truncate_text(raw_text or '', 200)}")
        raise PlanParseFailure("Could not parse day plan from model response", raw_text=raw_text or "")

    plan: List[GeneratedPlanItem] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Dropping plan item {i}: not an object")
            continue
        try:
            plan.append(GeneratedPlanItem.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping plan item {i} ({item.get('spot')!r}): {e.error_count()} validation errors")

    if not plan:
        raise PlanParseFailure("Day plan contained no valid items", raw_text=raw_text or "")

    return plan


def find_ungrounded_spots(
    plan: Sequence[GeneratedPlanItem],
    candidates: Sequence[CandidateRecord],
) -> List[str]:
    """
    Plan spots that do not exactly match any candidate name

    Returns:
        Offending spot names in plan order, without duplicates
    """
    names = {c.name for c in candidates}
    ungrounded: List[str] = []
    for item in plan:
        if item.spot not in names and item.spot not in ungrounded:
            ungrounded.append(item.spot)
    return ungrounded


def validate_plan(
    plan: Sequence[GeneratedPlanItem],
    candidates: Sequence[CandidateRecord],
    strict: bool = False,
) -> List[str]:
    """
    Grounding check for a parsed plan

    Args:
        strict: Raise instead of reporting

    Returns:
        Ungrounded spot names (empty when fully grounded)

    Raises:
        UngroundedPlanError: strict mode and at least one ungrounded spot
    """
    ungrounded = find_ungrounded_spots(plan, candidates)
    if ungrounded:
        logger.warning(f"Plan references {len(ungrounded)} spot(s) outside the candidate set: {ungrounded}")
        if strict:
            raise UngroundedPlanError(ungrounded)
    return ungrounded


# ============================================
# Chat Reply
# ============================================

def _parse_actions(raw_actions: Any) -> List[ChatAction]:
    if not isinstance(raw_actions, list):
        return []

    actions: List[ChatAction] = []
    for raw in raw_actions:
        if not isinstance(raw, dict):
            continue
        try:
            actions.append(ChatAction.model_validate(raw))
        except ValidationError:
            logger.debug(f"Dropping chat action: {raw}")
            continue
        if len(actions) >= MAX_CHAT_ACTIONS:
            break
    return actions


def parse_chat_reply(raw_text: str) -> ChatReply:
    """
    Parse a chat reply, degrading to plain text

    Never raises: anything that is not a JSON object with a usable reply
    becomes ChatReply(reply=raw_text, actions=[]).
    """
    raw_text = raw_text or ""
    parsed = _load_json(strip_code_fence(raw_text))

    if not isinstance(parsed, dict):
        return ChatReply(reply=raw_text.strip(), actions=[])

    reply = parsed.get("reply")
    if not isinstance(reply, str) or not reply.strip():
        reply = raw_text.strip()

    return ChatReply(reply=reply.strip(), actions=_parse_actions(parsed.get("actions")))


# ============================================
# Review Matches
# ============================================

def parse_review_matches(raw_text: str) -> Dict[str, str]:
    """
    Parse [{id, suggestion}] into {id: suggestion}

    Unparseable output yields {}.
    """
    items = extract_json_array(raw_text or "") or []
    suggestions: Dict[str, str] = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        review_id, suggestion = item.get("id"), item.get("suggestion")
        if review_id and isinstance(suggestion, str) and suggestion.strip():
            suggestions[str(review_id)] = suggestion.strip()
    return suggestions


def parse_response(
    raw_text: str,
    shape: ExpectedShape,
) -> Union[List[GeneratedPlanItem], ChatReply, str]:
    """
    Dispatch on the expected output shape

    Returns:
        list of plan items, ChatReply, or the trimmed plain text
    """
    if shape == ExpectedShape.DAY_PLAN:
        return parse_day_plan(raw_text)
    if shape == ExpectedShape.CHAT_REPLY:
        return parse_chat_reply(raw_text)
    return (raw_text or "").strip()
