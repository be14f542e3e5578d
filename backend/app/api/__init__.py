"""API Layer — the HTTP shell around action dispatch.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every response body is a result envelope {code, message, data, timestamp}

Design Decisions:
    - Thin routes delegate to ActionDispatch (ADR: ExMA impureim sandwich)
"""
