"""
Langchain Prompt Templates
Defines prompts for the day plan, the chat assistant and community review matching

Every builder here is pure: the same candidates and preferences always render
the same text. Every variant that lists candidates tells the model it may only
reference listed items.
"""

from typing import Any, Dict, List, Optional, Sequence

from langchain_core.prompts import PromptTemplate

from ..schemas.ai_schemas import CandidateRecord, ChatTurn, CommunityReview, RecordKind
from ..utils.ai_helpers import compact_whitespace, join_labels, truncate_text
from ..utils.constants import CHAT_HISTORY_TURNS, COMMUNITY_REVIEW_SNIPPET_LEN

NO_PLACES_MESSAGE = "No places were found. Suggest the user to try different preferences or a broader query."


def _fmt_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ============================================
# Context Blocks
# ============================================

def build_places_context(candidates: Sequence[CandidateRecord]) -> str:
    """
    Numbered place list for the plain-text day plan

    Optional attributes are rendered only when present.

    Example:
        Available places:
        1. Bahrain Fort — UNESCO site, sunset views. Category: History
    """
    if not candidates:
        return NO_PLACES_MESSAGE

    lines = []
    for i, c in enumerate(candidates, start=1):
        parts = [f"{i}. {c.name} — {c.description or 'No description'}"]
        if c.category:
            parts.append(f"Category: {c.category}")
        vibe = c.meta.get("vibe")
        if vibe:
            parts.append(f"Vibe: {vibe}")
        if c.price_range:
            parts.append(f"Price: {c.price_range}")
        if c.rating is not None:
            parts.append(f"Rating: {_fmt_value(c.rating)}")
        if c.location:
            parts.append(f"Location: {c.location}")
        lines.append(". ".join(parts))

    return "Available places:\n" + "\n".join(lines)


# meta keys already rendered through a canonical field or a labelled slot
_SHOWN_META_KEYS = frozenset({
    "business_name", "name", "event_name", "place_name", "title", "description",
    "client_type", "cuisine_type", "cuisine", "price_range", "rating", "openclosed_state",
    "lat", "long", "latitude", "longitude", "lng", "Lat", "Long", "LNG", "LAT",
    "record_type", "location", "area", "event_type", "start_time", "end_time",
    "start_date", "end_date", "venue", "indoor_outdoor",
})

_LABELLED_META = (
    ("openclosed_state", "Status"),
    ("event_type", "EventType"),
    ("start_time", "StartTime"),
    ("end_time", "EndTime"),
    ("start_date", "StartDate"),
    ("end_date", "EndDate"),
)


def format_candidate_line(candidate: CandidateRecord, index: int) -> str:
    """
    One pipe-separated candidate line for the day-plan and chat prompts

    Args:
        candidate: Normalized record
        index: 1-based position in the list

    Returns:
        str: e.g. "3. Jazz Night | [EVENT] | Lat: 26.2 | Lng: 50.5 | StartTime: 19:00"
    """
    meta = candidate.meta
    parts = [f"{index}. {candidate.name}"]

    if candidate.kind == RecordKind.EVENT:
        parts.append("[EVENT]")
    if candidate.coordinates is not None:
        parts.append(
            f"Lat: {_fmt_value(candidate.coordinates.lat)} | Lng: {_fmt_value(candidate.coordinates.lng)}"
        )
    if meta.get("client_type"):
        parts.append(f"Type: {meta['client_type']}")
    if candidate.description:
        parts.append(f"Desc: {candidate.description}")
    if candidate.cuisine:
        parts.append(f"Cuisine: {candidate.cuisine}")
    if candidate.price_range:
        parts.append(f"Price: {candidate.price_range}")
    if candidate.rating is not None:
        parts.append(f"Rating: {_fmt_value(candidate.rating)}")
    if meta.get("openclosed_state"):
        parts.append(f"Status: {meta['openclosed_state']}")
    if candidate.location:
        parts.append(f"Area: {candidate.location}")
    for key, label in _LABELLED_META[1:]:
        if meta.get(key):
            parts.append(f"{label}: {meta[key]}")
    if candidate.venue:
        parts.append(f"Venue: {candidate.venue}")
    if meta.get("indoor_outdoor"):
        parts.append(f"IndoorOutdoor: {meta['indoor_outdoor']}")

    for key, value in meta.items():
        if key in _SHOWN_META_KEYS or value is None or value == "":
            continue
        parts.append(f"{key}: {_fmt_value(value)}")

    return " | ".join(parts)


def build_candidate_block(candidates: Sequence[CandidateRecord]) -> str:
    """All candidate lines, numbered from 1"""
    return "\n".join(format_candidate_line(c, i) for i, c in enumerate(candidates, start=1))


# ============================================
# Plain-text Day Plan (POST /api/ai-plan)
# ============================================

PLAN_TEXT_SYSTEM_PROMPT = """You are Khalid, a tourism planner for Bahrain.

Your job is to generate a realistic ONE-DAY plan.

Rules:
- Create ONLY a one-day plan.
- Do NOT create multi-day itineraries.
- Use ONLY the provided places.
- Do NOT invent places.
- Keep the plan practical and realistic.

Output format:
Morning:
- place + short reason

Afternoon:
- place + short reason

Evening:
- place + short reason

Keep the response clear, concise, and human-readable. Output plain text with sections (Morning / Afternoon / Evening), not JSON."""

PLAN_TEXT_USER_PROMPT = PromptTemplate(
    input_variables=["places_context", "user_message"],
    template="""Context:
{places_context}

User request: {user_message}

Generate a one-day plan using only the places listed above.""",
)


def build_plan_text_user_message(user_message: str, places_context: str) -> str:
    return PLAN_TEXT_USER_PROMPT.format(places_context=places_context, user_message=user_message)


# ============================================
# Structured Day Plan (POST /api/ai-plan/day)
# ============================================

DAY_PLAN_SYSTEM_PROMPT = PromptTemplate(
    input_variables=["candidate_count", "preference_section", "food_section", "events_section"],
    template="""You are Khalid, a warm and friendly Bahraini local who loves showing visitors his island. Talk like a friend, not a brochure, with a little local flavour ("habibi", "yalla", "inshallah").

You are given {candidate_count} real places, restaurants and events in Bahrain. Build a FULL-DAY plan using ONLY items from that list. Never invent a name.

=== MANDATORY MINIMUM ===
1. BREAKFAST (Morning): a cafe, bakery or breakfast restaurant
2. LUNCH (Afternoon): a restaurant for a proper meal
3. DINNER (Evening): a restaurant for dinner
4. 3 PLACES to visit, spread across Morning, Afternoon and Evening
That is 6 stops minimum. More stops (7 to 9) are welcome when the list has good options.

=== WHAT THE USER CHOSE ===
{preference_section}

{food_section}

=== BREAKFAST SELECTION RULE ===
Some restaurants carry a "meal_type" that includes "Breakfast".
1. If a restaurant matching the user's preferred cuisine serves Breakfast, use it for breakfast.
2. Otherwise pick one of the dedicated breakfast spots (meal_type "Breakfast").
3. Never skip breakfast.

=== EVENTS ===
{events_section}

=== SCHEDULING RULES ===
Morning (roughly 08:00 to 12:00): breakfast first, then an outdoor or cultural visit.
Afternoon (roughly 12:00 to 17:00): lunch, then one or two indoor or relaxed activities.
Evening (roughly 17:00 to 22:00): a visit (seaside, souq, rooftop), then dinner.

=== SMART RULES ===
- Never recommend a place marked "closed".
- Mix hidden gems, budget spots and premium ones; do not always pick the highest rated.
- If two places serve the same purpose, pick one.
- Keep the day geographically sensible.

=== OUTPUT FORMAT ===
For each stop return:
- "spot": the exact name from the list
- "time": "Morning" | "Afternoon" | "Evening"
- "type": "place" | "restaurant" | "event"
- "lat": latitude copied exactly from the data
- "lng": longitude copied exactly from the data
- "reason": one or two warm sentences on why this spot fits this time

Reply ONLY with a valid JSON array, no markdown, no extra text:
[
  {{"spot": "Name", "time": "Morning", "type": "restaurant", "lat": 26.2, "lng": 50.5, "reason": "..."}}
]""",
)

DAY_PLAN_USER_PROMPT = PromptTemplate(
    input_variables=["preference_line", "food_line", "candidate_count", "candidate_block"],
    template="""{preference_line}
{food_line}

Here are {candidate_count} available places, restaurants and events in Bahrain:
{candidate_block}

Build Khalid's perfect day. The selected preferences and food types are required. Minimum 3 meals (breakfast, lunch, dinner) and 3 places. Include 1-2 events if their timing fits.""",
)


def build_day_plan_system_prompt(
    candidates: Sequence[CandidateRecord],
    activities: Sequence[str],
    food: Sequence[str],
) -> str:
    """
    System prompt for structured day-plan generation

    Encodes the minimum composition, time-of-day windows, event timing,
    breakfast priority and the JSON output contract.
    """
    activity_labels = join_labels(activities)
    food_labels = join_labels(food)
    has_events = any(c.kind == RecordKind.EVENT for c in candidates)

    if activity_labels:
        preference_section = (
            f"Activity preferences: {activity_labels}\n"
            "You MUST pick places that match these interests."
        )
    else:
        preference_section = (
            "No activity preferences: choose a diverse mix (culture, shopping, sightseeing, nature)."
        )

    if food_labels:
        food_section = (
            f"Food preferences: {food_labels}\n"
            "Some restaurants in the list are EXACT cuisine matches. Include AT LEAST 1 of them; "
            "other restaurants may be added for variety."
        )
    else:
        food_section = "No food preference: offer a nice variety across breakfast, lunch and dinner."

    if has_events:
        events_section = (
            "Items marked [EVENT] are real events. Fit 1-2 into the day if they match the user's vibe.\n"
            "EVENT TIMING RULES:\n"
            "- Each event has a StartTime and EndTime. Schedule it only inside that window.\n"
            "- An event starting at 14:00 belongs in the Afternoon, never the Morning.\n"
            "- An event starting at 19:00 belongs in the Evening, never the Afternoon.\n"
            "- Never move an event to a different time of day than its StartTime implies.\n"
            "- Use the event's venue and coordinates for its location."
        )
    else:
        events_section = "No events available right now."

    return DAY_PLAN_SYSTEM_PROMPT.format(
        candidate_count=len(candidates),
        preference_section=preference_section,
        food_section=food_section,
        events_section=events_section,
    )


def build_day_plan_user_message(
    candidates: Sequence[CandidateRecord],
    activities: Sequence[str],
    food: Sequence[str],
    message: Optional[str] = None,
) -> str:
    activity_labels = join_labels(activities)
    food_labels = join_labels(food)

    preference_line = (
        f"The user selected these activity preferences: {activity_labels}. Include places matching them."
        if activity_labels
        else "No activity preferences selected: surprise me with a diverse mix!"
    )
    food_line = (
        f"The user selected these food types: {food_labels}. Include restaurants serving them."
        if food_labels
        else "No food preference selected: open to anything."
    )
    if message and message.strip():
        food_line += f"\nUser request: {message.strip()}"

    return DAY_PLAN_USER_PROMPT.format(
        preference_line=preference_line,
        food_line=food_line,
        candidate_count=len(candidates),
        candidate_block=build_candidate_block(candidates),
    )


# ============================================
# Chat Assistant (POST /api/chat)
# ============================================

CHAT_SYSTEM_PROMPT = PromptTemplate(
    input_variables=["preference_line", "allowed_section"],
    template="""You are Khalid, a friendly local guide in Bahrain chatting with a visitor inside the Go Bahrain app. Keep answers short, warm and practical.
{preference_line}
{allowed_section}
You may attach at most ONE action that the app can perform:
- {{"type": "show_posts", "query": "<keyword>"}} to highlight community posts about a keyword
- {{"type": "show_reviews", "place": "<place name>"}} to show reviews for a place

Reply ONLY with a JSON object:
{{"reply": "<your message>", "actions": []}}""",
)

CHAT_ALLOWED_SECTION = PromptTemplate(
    input_variables=["candidate_block"],
    template="""
ALLOWED PLACES. Recommend ONLY places, restaurants and events from this list. Never mention a business that is not listed:
{candidate_block}
""",
)


def build_chat_system_prompt(candidates: Sequence[CandidateRecord], preferences: Sequence[str] = ()) -> str:
    """
    Chat system prompt

    With candidates, the allowed-places list and the closed-world sentence are
    included. With no candidates the prompt carries no allowed-places constraint.
    """
    labels = join_labels(preferences)
    preference_line = f"The visitor is interested in: {labels}." if labels else ""
    allowed_section = (
        CHAT_ALLOWED_SECTION.format(candidate_block=build_candidate_block(candidates))
        if candidates
        else ""
    )
    return CHAT_SYSTEM_PROMPT.format(preference_line=preference_line, allowed_section=allowed_section)


def compose_messages(
    history: Sequence[ChatTurn],
    user_message: str,
    limit: int = CHAT_HISTORY_TURNS,
) -> List[Dict[str, str]]:
    """
    Last `limit` history turns plus the new user message, as provider messages
    """
    recent = list(history)[-limit:] if limit > 0 else []
    messages = [{"role": turn.role.value, "content": turn.text} for turn in recent if turn.text]
    messages.append({"role": "user", "content": user_message})
    return messages


# ============================================
# Community Review Matching (POST /api/community/search)
# ============================================

REVIEW_MATCH_SYSTEM_PROMPT = """You are Khalid, a friendly local guide in Bahrain. You will receive a user search query and a list of community reviews. Each review has an "id", "review_text" and "rating" (number out of 5).

Only suggest places with a good rating (4.0 or above). Never write a recommending suggestion for a low-rated place.

Your task:
1. Pick only reviews that match the user's intent AND have rating >= 4.0 (e.g. "food" matches burger, paratha, restaurants, cafes).
2. For each match, write ONE short friendly suggestion as Khalid.
3. Respond with a JSON array only, no other text. Each item: {"id": "<exact id from the list>", "suggestion": "Khalid says: <one line>"}
4. Use only the ids provided. Keep each suggestion under 100 characters."""

REVIEW_MATCH_USER_PROMPT = PromptTemplate(
    input_variables=["query", "reviews_block"],
    template="""User search: "{query}"

Reviews (id, review_text, rating):
{reviews_block}""",
)


def format_review_entry(review: CommunityReview, snippet_len: int = COMMUNITY_REVIEW_SNIPPET_LEN) -> str:
    text = compact_whitespace(review.review_text)[:snippet_len]
    rating = _fmt_value(review.rating) if review.rating is not None else "n/a"
    return f"id: {review.id}\nreview_text: {text}\nrating: {rating}"


def build_review_match_user_message(query: str, reviews: Sequence[CommunityReview]) -> str:
    escaped = query.replace('"', '\\"')
    block = "\n\n".join(format_review_entry(r) for r in reviews)
    return REVIEW_MATCH_USER_PROMPT.format(query=truncate_text(escaped, 200), reviews_block=block)
