"""
Service layer

Mostly pure computation, no phase decisions of its own:
- ledger_service: bid settlement arithmetic
- bid_validator: bid admission rules
- resolution_service: applies one round's settlement
- naming_service: room codes, names, session tokens
- item_catalog: the items drawn each session
- history_service: results history and leaderboard
- broadcast_service / state_service: change notification
"""
