"""
Core business logic

This package holds the lobby engine:
- LobbyManager: every lobby state transition (create, join, start, eliminate, ...)
- Store: load/save of the per-lobby snapshot
- Locks: concurrency control
- Exceptions: typed failures mapped by the API layer
"""
