"""ORM Models — SQLAlchemy declarative models for the SQL persistence gateway.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - Imported here so alembic autogenerate sees every table via Base.metadata
"""

from craftsync.models.combination import Combination  # noqa: F401
