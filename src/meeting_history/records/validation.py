"""Validation of raw meeting candidates.

validate() runs VALIDATION_RULES in order and stops at the first failing
rule. Each rule is a named predicate over (payload, owner_id); new rules are
added to the tuple without touching the reconciler.

Only the minimum needed to place a record in the view is checked here:
identity, ownership, project identity, and a usable timestamp. Everything
else is defaulted by normalize().

Project identity fails only when project fields were written but none of
them holds a usable string (a blank or mistyped write). A record with no
project fields at all passes and is labelled UNKNOWN_PROJECT_LABEL.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.meeting_history.records.fields import lookup, non_empty_str, parse_timestamp
from src.meeting_history.records.schemas import RawRecord


class RejectionReason(str, Enum):
    MALFORMED_RECORD = "MalformedRecord"
    OWNERSHIP_MISMATCH = "OwnershipMismatch"
    MISSING_PROJECT_IDENTITY = "MissingProjectIdentity"
    MISSING_TIMESTAMP = "MissingTimestamp"


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    reason: RejectionReason | None = None
    detail: str = ""


ACCEPTED = ValidationResult(accepted=True)


# ── Rules ────────────────────────────────────────────────────────────────────


def _has_identity(payload: dict[str, Any] | None, owner_id: str) -> bool:
    if not isinstance(payload, dict) or not payload:
        return False
    meeting_id = payload.get("id")
    # Journal blobs written by older clients carry numeric ids
    if isinstance(meeting_id, int) and not isinstance(meeting_id, bool):
        return meeting_id != 0
    return non_empty_str(meeting_id) is not None


def _owned_by_requester(payload: dict[str, Any], owner_id: str) -> bool:
    return lookup(payload, "owner_id") == owner_id


def _has_project_identity(payload: dict[str, Any], owner_id: str) -> bool:
    label = lookup(payload, "project_label")
    project_id = lookup(payload, "project_id")
    if label is None and project_id is None:
        # Never assigned to a project; shown under the sentinel label
        return True
    return non_empty_str(label) is not None or non_empty_str(project_id) is not None


def _has_timestamp(payload: dict[str, Any], owner_id: str) -> bool:
    return (
        parse_timestamp(lookup(payload, "created_at")) is not None
        or parse_timestamp(lookup(payload, "updated_at")) is not None
    )


ValidationRule = tuple[RejectionReason, Callable[[Any, str], bool]]

VALIDATION_RULES: tuple[ValidationRule, ...] = (
    (RejectionReason.MALFORMED_RECORD, _has_identity),
    (RejectionReason.OWNERSHIP_MISMATCH, _owned_by_requester),
    (RejectionReason.MISSING_PROJECT_IDENTITY, _has_project_identity),
    (RejectionReason.MISSING_TIMESTAMP, _has_timestamp),
)


# ── Entry Point ──────────────────────────────────────────────────────────────


def validate(candidate: RawRecord, owner_id: str) -> ValidationResult:
    """Check a raw candidate against VALIDATION_RULES for the requesting user.

    Args:
        candidate: Raw record from either source.
        owner_id: The user whose meetings are being assembled.

    Returns:
        ACCEPTED, or a rejected ValidationResult naming the first failing rule.
    """
    payload = candidate.payload
    for reason, rule in VALIDATION_RULES:
        if not rule(payload, owner_id):
            return ValidationResult(
                accepted=False,
                reason=reason,
                detail=rule.__name__.lstrip("_"),
            )
    return ACCEPTED
