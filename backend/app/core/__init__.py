"""Core Layer — activity rules as pure functions: guards, store primitives, queries, views.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Nothing here awaits: every check_* / *_ops / build_* is deterministic over its inputs

Design Decisions:
    - Functional core, imperative shell: services read, call core, then write
      (ADR: ExMA impureim sandwich)
"""
