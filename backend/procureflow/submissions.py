# submissions.py
# Request rows: lookup by ID, the procurement queue, intake payloads.

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .models import Submission
from .stages import Audience, Stage, stage_ordinal, track

log = logging.getLogger(__name__)

INTAKE_STAGE = Stage.INTAKE.value
CUSTOM_COST_CENTER = "other"

PRIORITIES = ("urgent", "high", "medium", "low")
CLASSES = {"purchase": "New Purchase", "renewal": "Renewal", "cancellation": "Cancellation"}
TYPES = {"hardware": "Hardware", "software": "Software"}
COST_CENTERS = (
    "ENG-101", "ENG-102", "ENG-103", "MKT-101", "MKT-102", "MKT-103",
    "SAL-101", "SAL-102", "SAL-103", "IT-101", "IT-102", "IT-103",
    "HR-101", "HR-102", "FIN-101", "FIN-102", "FIN-103",
    "OPS-101", "OPS-102", "OPS-103", "LEG-101", "CS-101", "CS-102",
    "RND-101", "RND-102",
)


def parse_submissions(data: Any) -> List[Submission]:
    """Submissions from the fetch-submissions payload (bare list or {data: [...]})."""
    if isinstance(data, dict):
        data = data.get("data") or []
    if not isinstance(data, list):
        return []
    return [Submission.model_validate(row) for row in data if isinstance(row, dict)]


def find_submission(submissions: Iterable[Submission], request_id: str) -> Optional[Submission]:
    wanted = (request_id or "").strip()
    if not wanted:
        return None
    for sub in submissions:
        if sub.requestId == wanted or sub.id == wanted:
            return sub
    return None


def _timestamp_key(sub: Submission) -> datetime:
    raw = (sub.timestamp or "").strip()
    if raw:
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            return parsed
        except ValueError:
            log.debug("Unparseable timestamp %r on %s", raw, sub.submission_id)
    return datetime.min


def in_flight(sub: Submission) -> bool:
    """On the staff track: approved internally and not yet past PO creation."""
    index = stage_ordinal(sub.stage, Audience.STAFF)
    return 0 <= index < len(track(Audience.STAFF))


def procurement_queue(submissions: Iterable[Submission], stage: Optional[str] = None) -> List[Submission]:
    """In-flight requests, newest first; optionally only those at ``stage``."""
    queue = [s for s in submissions if in_flight(s)]
    if stage:
        # "Internal Approval" and "Intent Report" land on the same step
        wanted = stage_ordinal(stage, Audience.STAFF)
        queue = [s for s in queue if stage_ordinal(s.stage, Audience.STAFF) == wanted]
    return sorted(queue, key=_timestamp_key, reverse=True)


def priority_rank(priority: str) -> int:
    value = (priority or "").strip().lower()
    return PRIORITIES.index(value) if value in PRIORITIES else len(PRIORITIES)


def intake_payload(form: Dict[str, Any], custom_cost_center: str = "") -> Dict[str, Any]:
    """Body for submit-intake. The stage always starts at Intake."""
    payload = {k: v for k, v in form.items()}
    if payload.get("costCenter") == CUSTOM_COST_CENTER:
        payload["costCenter"] = custom_cost_center.strip()
    payload["stage"] = INTAKE_STAGE
    return payload
