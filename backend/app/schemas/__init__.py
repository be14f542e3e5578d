"""Pydantic Schemas — validation of the action envelope and per-action payloads.

Invariants:
    - Payloads are validated before any actor or activity lookup
    - Domain enums from core/ used where the wire value is an enum

Design Decisions:
    - Separate from models: schemas are wire contracts, models are persistence
"""
