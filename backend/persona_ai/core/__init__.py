"""Core Layer — pure domain logic, no IO, no async, no network.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - Credential state is the only mutable object here, and it is injected

Design Decisions:
    - Functional core separated from imperative shell (retry loop lives in infrastructure/)
"""
