"""Rally — activity creation, capacity-bounded enrollment and lifecycle engine.

Layers: core (pure rules) -> services (orchestration) -> infrastructure (SQLAlchemy,
logging) -> api (FastAPI). Nothing is imported or executed at package import time.
"""
