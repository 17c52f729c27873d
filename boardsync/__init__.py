"""
BoardSync — Real-Time Collaborative Board Engine
=================================================
Lets several authenticated users edit a shared board (board → columns →
cards) at the same time and see each other's edits and presence within
sub-second latency, while respecting per-board roles.

Package layout::

    boardsync/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Shared constants (default columns, page sizes)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session + async helper
    │   └── models.py      # All ORM models (7 tables)
    ├── engine/
    │   ├── positions.py   # Sparse ordinal sequencer (GAP = 1000)
    │   ├── permissions.py # Role resolution + authorization gate
    │   └── events.py      # Event names, payloads, MutationOutcome
    ├── services/
    │   ├── activity_service.py # Append-only audit trail
    │   ├── board_service.py    # Boards, memberships, columns
    │   ├── card_service.py     # Cards, moves, comments
    │   ├── card_fields.py      # Due-date + assignee normalization
    │   ├── serializers.py      # ORM row → JSON dict
    │   ├── user_service.py     # User provisioning helpers
    │   └── errors.py           # Input / referential error taxonomy
    ├── realtime/
    │   ├── presence.py    # Reference-counted presence per board
    │   └── broadcaster.py # Room fan-out over WebSockets
    └── api/
        ├── main.py        # FastAPI app
        ├── security.py    # JWT secret validation, token issue/decode
        ├── deps.py        # Dependency injection
        ├── auth.py        # /auth/me
        └── routes/        # Boards, columns, cards, comments, WebSocket
"""

__version__ = "0.1.0"
