"""Services Layer — combination store, change broadcaster, generator, and facade.

Invariants:
    - CombinationStore is the only owner of mutable combination state
    - Services depend on core/ protocols, never on concrete infrastructure

Design Decisions:
    - Wiring happens in main.py lifespan; services take collaborators as arguments
"""
