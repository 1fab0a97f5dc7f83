"""Pydantic Schemas — request validation for API endpoints.

Invariants:
    - Schemas validate at the system boundary only; the store re-validates its own inputs
"""
