"""
Core business logic

This package holds the stateful game logic:
- State machine: every room phase change
- Managers: Room and Round lifecycles
- Store: record-level access to rooms, players and bids
- Locks: the round resolution claim and row locks
"""
