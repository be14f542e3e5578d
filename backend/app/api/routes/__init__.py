"""Route Modules — one file per concern: activity actions, health probes.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never contain membership rules (delegate to services)
"""
