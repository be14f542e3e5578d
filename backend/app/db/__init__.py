"""Database Metadata — the declarative Base shared by models, migrations and tests.

Design Decisions:
    - Engine and sessions live in infrastructure/database.py; this package only owns Base
"""
