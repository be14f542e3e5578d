"""Domain Types — verifies rich type definitions and enum values.

Tests:
    - NewType wrappers exist and are callable
    - Enums serialize to their wire values
    - ResultCode carries exactly the envelope codes
"""

import json
from uuid import uuid4

from app.core.domain_types import (
    ActivityId, UserId, ActivityStatus, ViewerStatus, ResultCode, TimeRange,
)


def test_identity_types_wrap_primitives():
    uid = uuid4()
    assert ActivityId(uid) == uid
    assert UserId("u1") == "u1"


def test_activity_status_has_four_states():
    assert {s.value for s in ActivityStatus} == {
        "recruiting", "ongoing", "cancelled", "completed",
    }


def test_viewer_status_has_three_states():
    assert {s.value for s in ViewerStatus} == {"none", "requested", "joined"}


def test_result_codes_match_envelope_contract():
    assert [int(c) for c in ResultCode] == [0, 4001, 4002, 4003, 4004, 4005, 5001]


def test_str_enums_serialize_as_values():
    payload = json.dumps({"status": ActivityStatus.RECRUITING, "range": TimeRange.WEEK})
    assert payload == '{"status": "recruiting", "range": "week"}'
