"""
Recipe constants
Caps, default query phrases, the cuisine label table and static fallbacks
"""

from typing import Dict, List

# ============================================
# Default Query Phrases (never embed an empty string)
# ============================================

DEFAULT_QUERY_TEXT = "things to do in Bahrain"
DEFAULT_CHAT_QUERY_TEXT = "Popular places, restaurants and events in Bahrain"
DEFAULT_MATCH_QUERY_TEXT = "Things to do and food in Bahrain"

NEARBY_QUERY_TEXT = {
    "landmarks": "Landmarks and places to visit in Bahrain",
    "all": "Places, restaurants and events in Bahrain",
    "food": "Restaurants, cafes and events in Bahrain",
}

# ============================================
# Metadata Filter Values
# ============================================

RECORD_TYPE_CLIENT = "client"
RECORD_TYPE_EVENT = "event"
CLIENT_TYPE_PLACE = "place"
CLIENT_TYPE_RESTAURANT = "restaurant"
MEAL_TYPE_BREAKFAST = "Breakfast"

# ============================================
# Recipe Caps
# ============================================

CHAT_PLACES_TOP_K = 10
CHAT_RESTAURANTS_TOP_K = 10
CHAT_EVENTS_TOP_K = 6
CHAT_CONTEXT_CAP = 6

PLAN_PLACES_CAP = 6
PLAN_PLACES_BROAD_TOP_K = 12
PLAN_CUISINE_TOP_K = 10
PLAN_SIMILAR_RESTAURANTS_TOP_K = 6
PLAN_BREAKFAST_TOP_K = 2
PLAN_EVENTS_TOP_K = 4
PLAN_CANDIDATE_CAP = 18

MATCH_CLIENTS_TOP_K = 10
PLACE_LOOKUP_PLAN_TOP_K = 5
PLACE_LOOKUP_LIST_TOP_K = 15

NEARBY_TOP_K = 30
NEARBY_DEFAULT_RADIUS_KM = 10.0
NEARBY_DEFAULT_LIMIT = 20

CHAT_HISTORY_TURNS = 6

COMMUNITY_REVIEWS_LIMIT = 40
COMMUNITY_REVIEW_SNIPPET_LEN = 220
COMMUNITY_QUERY_MAX_LEN = 50
COMMUNITY_MIN_RATING = 3.5

# ============================================
# Food Category Labels -> cuisine values stored in the index
# ============================================

CUISINE_MAP: Dict[str, str] = {
    "Cuisine": "Cuisine",
    "Seafood": "Seafood",
    "American": "American",
    "International": "International",
    "Cafe": "Cafe",
    "Asian": "Asian",
    "Italian": "Italian",
    "South Asian": "SouthAsian",
    "Fast Food": "Fastfood",
}

# ============================================
# Static Fallback (place lookup / day plan)
# ============================================

FALLBACK_PLACES: List[Dict[str, str]] = [
    {"place_name": "Bahrain National Museum", "description": "Culture and history", "category": "Culture"},
    {"place_name": "Bahrain Fort", "description": "UNESCO site, sunset views", "category": "History"},
    {"place_name": "Al Fateh Grand Mosque", "description": "Stunning architecture", "category": "Culture"},
    {"place_name": "Manama Souq", "description": "Markets and local life", "category": "Shopping"},
    {"place_name": "Bahrain International Circuit", "description": "Racing and events", "category": "Adventure"},
    {"place_name": "Tree of Life", "description": "Iconic desert landmark", "category": "Nature"},
    {"place_name": "Bahrain Pearling Path", "description": "Heritage walk", "category": "History"},
    {"place_name": "Al Areen Wildlife Park", "description": "Nature and family", "category": "Nature"},
]
