"""Infrastructure Layer — persistence gateways, external clients, and logging.

Invariants:
    - Infrastructure implements core/ protocols; core never imports back
    - All external calls wrapped with timeout/error mapping to core/errors.py

Design Decisions:
    - Resilient wrappers over raw clients: retry and error mapping live in one place
"""
