"""Activity Views — wire shape of summary, detail and owned views."""

from app.core.activity_views import detail_view, owned_view, summary_view
from app.core.repository_protocols import UserRef
from tests.snapshot_factory import ORGANIZER, make_snapshot

PROFILES = {
    ORGANIZER: UserRef(id=ORGANIZER, nickname="Org", is_verified=True),
    "u1": UserRef(id="u1", nickname="Ana"),
    "u2": UserRef(id="u2", nickname="Bo"),
}


def test_summary_view_is_camel_case_with_viewer_status():
    view = summary_view(make_snapshot(participants=("u1",)), PROFILES, "u1")
    assert view["viewerStatus"] == "joined"
    assert view["capacity"]["currentCount"] == 2
    assert view["dateTime"]["startTime"].endswith("+00:00")
    assert view["organizer"]["nickname"] == "Org"


def test_summary_view_without_profile_keeps_organizer_id():
    view = summary_view(make_snapshot(), {}, None)
    assert view["organizer"]["id"] == ORGANIZER
    assert view["viewerStatus"] == "none"


def test_detail_exposes_join_requests_to_organizer_only():
    snapshot = make_snapshot(participants=("u1",), join_requests=("u2",))
    as_organizer = detail_view(snapshot, PROFILES, ORGANIZER)
    as_member = detail_view(snapshot, PROFILES, "u1")
    assert as_organizer["isOrganizer"] is True
    assert [p["id"] for p in as_organizer["joinRequests"]] == ["u2"]
    assert as_member["joinRequests"] == []
    assert [p["id"] for p in as_member["participantsInfo"]] == [ORGANIZER, "u1"]


def test_owned_view_counts_pending_requests():
    view = owned_view(make_snapshot(join_requests=("u1", "u2")), PROFILES)
    assert view["joinRequestsCount"] == 2
