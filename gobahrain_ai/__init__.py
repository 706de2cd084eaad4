# gobahrain_ai/__init__.py
"""
Go Bahrain AI Service Package

Retrieval-augmented recommendations for the Go Bahrain app:
- Structured and plain-text day plans
- Chat assistant grounded in an allowed-places list
- Client matching, place listing and nearby points of interest
- Community review search with one-line suggestions
"""

__version__ = "1.0.0"

# Package structure:
# gobahrain_ai/
# ├── __init__.py           <- This file
# ├── main.py               <- FastAPI application factory
# ├── config.py             <- Settings object
# │
# ├── agents/
# │   ├── candidate_resolver.py <- Resolution recipes (embed, query, fallback, merge)
# │   └── planner_agent.py      <- Retrieve -> prompt -> generate -> parse
# │
# ├── api/                  <- FastAPI Routers
# │   ├── ai_plan.py        <- /api/ai-plan, /day, /match-clients
# │   ├── chat.py           <- /api/chat
# │   ├── places.py         <- /api/places, /nearby
# │   └── community.py      <- /api/community/search
# │
# ├── interfaces/
# │   ├── vector_store.py   <- Pinecone queries + record normalization
# │   └── community_store.py <- Supabase community reviews
# │
# ├── llm/
# │   ├── embeddings.py     <- Embedding client
# │   ├── generator.py      <- Chat completion client
# │   ├── prompts.py        <- Prompt templates
# │   └── response_parser.py <- Output parsing + grounding check
# │
# ├── algorithms/
# │   ├── candidate_merge.py <- Dedup, ordered merge, balanced truncation
# │   └── geo.py            <- Distance / bearing (numpy)
# │
# ├── schemas/
# │   └── ai_schemas.py     <- All schemas
# │
# └── utils/                <- Errors, outcomes, constants, helpers
