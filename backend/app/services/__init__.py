"""Services Layer — registry, membership workflow, capacity enforcer, action dispatch.

Invariants:
    - Services orchestrate IO around pure core functions; no business rule lives here
    - Action dispatch uses an explicit dict mapping (no auto-discovery)

Design Decisions:
    - One service per component for locality: registry reads, workflow writes,
      enforcer owns the retry loop, dispatcher owns delivery
"""
