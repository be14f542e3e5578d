"""Infrastructure Layer — database, store adapters, and cross-cutting concerns.

Invariants:
    - Adapters implement the Protocols in core/repository_protocols.py
    - All store calls wrapped with timeout and error mapping

Design Decisions:
    - One short-lived DB session per store primitive: no transaction spans a
      suspension point that another actor could interleave with
"""
