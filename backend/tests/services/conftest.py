"""Service test fixtures — in-memory engine wiring, file-backed SQLite, FastAPI test client.

Invariants:
    - Every test gets a fresh database file under tmp_path (real connections, real locking)
    - db_manager patched for the duration of the client fixture
    - Engine fixtures use a fixed clock and zero backoff: retries are immediate
    - Notification tasks drained after every test so none leak into the next one

Design Decisions:
    - File-backed SQLite over :memory: so concurrent sessions use separate connections,
      which the revision-guarded UPDATE needs to be exercised for real
    - Seed users inserted through the ORM, the same rows the user directory reads
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.repository_protocols import UserRef
from app.infrastructure.database import DatabaseSessionManager
import app.infrastructure.database as db_module
from app.main import app
from app.models.user import User
from app.services.action_dispatch import ActionDispatch
from app.services.activity_registry import ActivityRegistry
from app.services.capacity_enforcer import CapacityEnforcer
from app.services.membership_workflow import MembershipWorkflow
from app.services.notification_dispatcher import NotificationDispatcher, drain_in_flight
from tests.services.fake_store import (
    CollectingSink, FakeUserDirectory, InMemoryActivityStore,
)
from tests.snapshot_factory import NOW

USERS = (
    UserRef(id="org", nickname="Organizer", is_verified=True, sports_preferences=("badminton",)),
    UserRef(id="u1", nickname="Ana", sports_preferences=("tennis",)),
    UserRef(id="u2", nickname="Bo"),
    UserRef(id="u3", nickname="Cai"),
    UserRef(id="u4", nickname="Dee"),
    UserRef(id="u5", nickname="Eli"),
)


@pytest.fixture(autouse=True)
async def drain_notifications():
    yield
    await drain_in_flight()


# ─── in-memory engine ────────────────────────────────────────────

@pytest.fixture
def store():
    return InMemoryActivityStore()


@pytest.fixture
def users():
    return FakeUserDirectory(*USERS)


@pytest.fixture
def sink():
    return CollectingSink()


@pytest.fixture
def enforcer(store):
    return CapacityEnforcer(store, max_attempts=3, base_delay_ms=0, clock=lambda: NOW)


@pytest.fixture
def workflow(enforcer, sink):
    return MembershipWorkflow(enforcer, NotificationDispatcher(sink, timeout_seconds=0.5))


@pytest.fixture
def registry(store, users):
    return ActivityRegistry(store, users, clock=lambda: NOW)


@pytest.fixture
def dispatch(registry, workflow, users):
    return ActionDispatch(registry, workflow, users)


# ─── SQL engine ──────────────────────────────────────────────────

@pytest.fixture
async def test_manager(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'rally.db'}")
    await manager.create_schema()
    async with manager.session() as db:
        db.add_all([
            User(
                id=u.id, nickname=u.nickname, is_verified=u.is_verified,
                sports_preferences=list(u.sports_preferences),
            )
            for u in USERS
        ])
        await db.commit()
    yield manager
    await drain_in_flight()
    await manager.dispose()


@pytest.fixture
async def client(test_manager):
    """FastAPI test client with db_manager pointing at the test database."""
    original_manager = db_module.db_manager
    db_module.db_manager = test_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    await drain_in_flight()
    db_module.db_manager = original_manager
