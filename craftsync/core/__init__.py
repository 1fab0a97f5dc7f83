"""Core Layer — pure domain logic, no IO, no async, no framework types.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic given their inputs

Design Decisions:
    - Functional core separated from imperative shell
"""
