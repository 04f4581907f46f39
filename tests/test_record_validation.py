"""Unit tests for raw meeting validation and normalization.

Covers the ordered rule pipeline (first failing rule wins), the accepted
timestamp and project-identity forms, and that normalize() fills every
default without raising on missing or wrongly typed fields.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.meeting_history.records.fields import parse_timestamp
from src.meeting_history.records.normalization import normalize
from src.meeting_history.records.schemas import (
    UNKNOWN_PROJECT_LABEL,
    MeetingStatus,
    MessageCounts,
    RawRecord,
    RecordSource,
    SessionKind,
)
from src.meeting_history.records.validation import (
    ACCEPTED,
    VALIDATION_RULES,
    RejectionReason,
    validate,
)


def _raw(payload, source: RecordSource = RecordSource.REMOTE) -> RawRecord:
    return RawRecord(source=source, payload=payload)


def _valid(**overrides) -> dict:
    payload = {
        "id": "m1",
        "user_id": "u1",
        "project_name": "Acme",
        "created_at": "2024-01-02T10:00:00Z",
    }
    payload.update(overrides)
    return payload


# ── Validator ────────────────────────────────────────────────────────────────


class TestValidate:
    """Rule order and per-rule behaviour."""

    def test_minimal_record_accepted(self):
        assert validate(_raw(_valid()), "u1") == ACCEPTED

    @pytest.mark.parametrize(
        "payload",
        [None, {}, {"user_id": "u1"}, {"id": "   "}, {"id": 0}, {"id": True}, {"id": 1.5}],
    )
    def test_malformed_records_rejected(self, payload):
        result = validate(_raw(payload), "u1")
        assert result.accepted is False
        assert result.reason == RejectionReason.MALFORMED_RECORD

    def test_numeric_id_accepted_and_stringified(self):
        payload = _valid(id=1712)
        assert validate(_raw(payload, RecordSource.JOURNAL), "u1").accepted
        assert normalize(_raw(payload)).id == "1712"

    def test_other_users_record_rejected(self):
        result = validate(_raw(_valid(user_id="u2")), "u1")
        assert result.reason == RejectionReason.OWNERSHIP_MISMATCH

    def test_missing_owner_rejected(self):
        payload = _valid()
        del payload["user_id"]
        result = validate(_raw(payload), "u1")
        assert result.reason == RejectionReason.OWNERSHIP_MISMATCH

    def test_camel_case_owner_accepted(self):
        payload = _valid()
        del payload["user_id"]
        payload["ownerId"] = "u1"
        assert validate(_raw(payload, RecordSource.JOURNAL), "u1").accepted

    def test_project_id_alone_is_enough(self):
        payload = _valid(project_name="", project_id="proj-7")
        assert validate(_raw(payload), "u1").accepted

    def test_blank_project_fields_rejected(self):
        payload = _valid(project_name="  ", project_id="")
        result = validate(_raw(payload), "u1")
        assert result.reason == RejectionReason.MISSING_PROJECT_IDENTITY

    def test_no_project_fields_accepted(self):
        payload = _valid()
        del payload["project_name"]
        assert validate(_raw(payload, RecordSource.JOURNAL), "u1").accepted
        assert normalize(_raw(payload)).project_label == UNKNOWN_PROJECT_LABEL

    def test_non_string_project_name_rejected(self):
        payload = _valid(project_name=42)
        result = validate(_raw(payload), "u1")
        assert result.reason == RejectionReason.MISSING_PROJECT_IDENTITY

    def test_updated_at_substitutes_for_created_at(self):
        payload = _valid(updated_at="2024-01-03T00:00:00Z")
        del payload["created_at"]
        assert validate(_raw(payload), "u1").accepted

    @pytest.mark.parametrize("value", [None, "", "not a date", [], True])
    def test_unusable_timestamp_rejected(self, value):
        payload = _valid(created_at=value)
        result = validate(_raw(payload), "u1")
        assert result.reason == RejectionReason.MISSING_TIMESTAMP

    def test_first_failing_rule_wins(self):
        # Wrong owner and no project and no timestamp: ownership is checked first
        result = validate(_raw({"id": "m1", "user_id": "u2"}), "u1")
        assert result.reason == RejectionReason.OWNERSHIP_MISMATCH
        assert result.detail == "owned_by_requester"

    def test_rule_order(self):
        assert [reason for reason, _ in VALIDATION_RULES] == [
            RejectionReason.MALFORMED_RECORD,
            RejectionReason.OWNERSHIP_MISMATCH,
            RejectionReason.MISSING_PROJECT_IDENTITY,
            RejectionReason.MISSING_TIMESTAMP,
        ]


# ── Timestamps ───────────────────────────────────────────────────────────────


class TestParseTimestamp:
    def test_iso_with_z_suffix(self):
        assert parse_timestamp("2024-01-02T10:00:00Z") == datetime(
            2024, 1, 2, 10, 0, tzinfo=timezone.utc
        )

    def test_naive_datetime_taken_as_utc(self):
        parsed = parse_timestamp(datetime(2024, 1, 2, 10, 0))
        assert parsed.tzinfo == timezone.utc

    def test_epoch_seconds_and_millis_agree(self):
        assert parse_timestamp(1704189600) == parse_timestamp(1704189600000)

    def test_garbage_returns_none(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(float("nan")) is None
        assert parse_timestamp({"at": 1}) is None


# ── Normalizer ───────────────────────────────────────────────────────────────


class TestNormalize:
    """Defaults and coercion for accepted candidates."""

    def test_all_defaults_filled(self):
        record = normalize(_raw(_valid()))

        assert record.id == "m1"
        assert record.owner_id == "u1"
        assert record.project_label == "Acme"
        assert record.created_at == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)
        assert record.session_kind == SessionKind.UNKNOWN
        assert record.status == MeetingStatus.IN_PROGRESS
        assert record.duration_seconds == 0
        assert record.message_counts == MessageCounts(total=0, user=0, counterpart=0)
        assert record.participant_names == []
        assert record.participant_roles == []
        assert record.participant_ids == []
        assert record.transcript == []
        assert record.raw_chat == []
        assert record.topics_discussed == []
        assert record.key_insights == []
        assert record.meeting_notes == ""
        assert record.summary_text == ""
        assert record.effectiveness_score is None

    def test_project_id_stands_in_for_label(self):
        record = normalize(_raw(_valid(project_name=None, project_id="proj-7")))
        assert record.project_label == "proj-7"
        assert record.project_id == "proj-7"

    def test_sentinel_label_when_no_project_content(self):
        # normalize() is total even on input validate() would reject
        payload = _valid(project_name="")
        record = normalize(_raw(payload))
        assert record.project_label == UNKNOWN_PROJECT_LABEL

    def test_created_at_falls_back_to_updated_at(self):
        payload = _valid(updated_at="2024-03-01T12:00:00+00:00")
        del payload["created_at"]
        record = normalize(_raw(payload))
        assert record.created_at == record.updated_at

    def test_wrongly_typed_fields_defaulted(self):
        record = normalize(
            _raw(
                _valid(
                    duration="abc",
                    total_messages=-4,
                    user_messages=True,
                    ai_messages="7",
                    stakeholder_names="Alice",
                    transcript=[{"speaker": "Alice", "content": "Hi"}, "noise", None],
                    topics_discussed=None,
                    meeting_summary=["not", "text"],
                    effectiveness_score="high",
                )
            )
        )
        assert record.duration_seconds == 0
        assert record.message_counts.total == 0
        assert record.message_counts.user == 0
        assert record.message_counts.counterpart == 7
        assert record.participant_names == []
        assert record.transcript == [{"speaker": "Alice", "content": "Hi"}]
        assert record.topics_discussed == []
        assert record.summary_text == ""
        assert record.effectiveness_score is None

    def test_source_columns_mapped(self):
        record = normalize(
            _raw(
                _valid(
                    meeting_type="voice-only",
                    status="completed",
                    duration=1800,
                    total_messages=12,
                    user_messages=5,
                    ai_messages=7,
                    stakeholder_names=["Priya"],
                    stakeholder_roles=["Head of Ops"],
                    stakeholder_ids=["s-1"],
                    meeting_summary="Agreed next steps",
                    meeting_notes="Follow up on KPIs",
                    effectiveness_score=8,
                )
            )
        )
        assert record.session_kind == SessionKind.VOICE_ONLY
        assert record.status == MeetingStatus.COMPLETED
        assert record.duration_seconds == 1800
        assert record.message_counts == MessageCounts(total=12, user=5, counterpart=7)
        assert record.participant_names == ["Priya"]
        assert record.participant_roles == ["Head of Ops"]
        assert record.participant_ids == ["s-1"]
        assert record.summary_text == "Agreed next steps"
        assert record.meeting_notes == "Follow up on KPIs"
        assert record.effectiveness_score == 8.0

    def test_legacy_session_kind_kept_on_record(self):
        record = normalize(_raw(_valid(meeting_type="group")))
        assert record.session_kind == SessionKind.GROUP

    def test_unknown_status_derived_from_completion(self):
        record = normalize(
            _raw(_valid(status="archived", completed_at="2024-01-02T11:00:00Z"))
        )
        assert record.status == MeetingStatus.COMPLETED

    def test_normalize_is_deterministic(self):
        raw = _raw(_valid(transcript=[{"speaker": "A", "content": "x"}]))
        assert normalize(raw) == normalize(raw)
