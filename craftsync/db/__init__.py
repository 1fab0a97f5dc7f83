"""Database Metadata — SQLAlchemy Base for the SQL persistence gateway.

Invariants:
    - Only imported when the SQL backend or alembic needs table metadata
"""
