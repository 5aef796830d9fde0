# stages.py
# Stage vocabulary and per-stage completion, shared by the requester tracking
# view and the procurement staff view.
#
# Both audiences read the same stored ``stage`` cell but name the steps
# differently. Each audience has an ordered track; a stored value from either
# vocabulary is mapped onto the audience's track through MAPPINGS.

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import Quotation


class Stage(str, Enum):
    INTAKE = "Intake"
    INTERNAL_APPROVAL = "Internal Approval"
    INTERNAL_REJECTED = "Internal Rejected"
    INTENT_REPORT = "Intent Report"
    SOURCING = "Sourcing"
    REVIEW = "Review"
    NEGOTIATIONS = "Negotiations"
    LEGAL_AND_COMPLIANCE = "Legal and Compliance"
    APPROVAL = "Approval"
    PURCHASE_ORDER = "Purchase Order"
    PO_CREATION = "PO Creation"
    TRACK_THE_DELIVERY = "Track the Delivery"
    COMPLETION = "Completion"
    PAYMENT_DONE = "Payment Done"


class Audience(str, Enum):
    REQUESTER = "requester"
    STAFF = "staff"


TRACKS: Dict[Audience, Tuple[Stage, ...]] = {
    Audience.REQUESTER: (
        Stage.INTAKE,
        Stage.INTERNAL_APPROVAL,
        Stage.SOURCING,
        Stage.NEGOTIATIONS,
        Stage.LEGAL_AND_COMPLIANCE,
        Stage.APPROVAL,
        Stage.PURCHASE_ORDER,
        Stage.TRACK_THE_DELIVERY,
        Stage.COMPLETION,
        Stage.PAYMENT_DONE,
    ),
    Audience.STAFF: (
        Stage.INTENT_REPORT,
        Stage.SOURCING,
        Stage.REVIEW,
        Stage.NEGOTIATIONS,
        Stage.LEGAL_AND_COMPLIANCE,
        Stage.APPROVAL,
        Stage.PO_CREATION,
    ),
}

BEFORE_TRACK = "before"
AFTER_TRACK = "after"

# stored stage -> position on the other audience's track
MAPPINGS: Dict[Audience, Dict[Stage, object]] = {
    Audience.STAFF: {
        Stage.INTAKE: BEFORE_TRACK,
        Stage.INTERNAL_APPROVAL: Stage.INTENT_REPORT,
        Stage.PURCHASE_ORDER: Stage.PO_CREATION,
        Stage.TRACK_THE_DELIVERY: AFTER_TRACK,
        Stage.COMPLETION: AFTER_TRACK,
        Stage.PAYMENT_DONE: AFTER_TRACK,
    },
    Audience.REQUESTER: {
        Stage.INTENT_REPORT: Stage.INTERNAL_APPROVAL,
        Stage.REVIEW: Stage.SOURCING,
        Stage.PO_CREATION: Stage.PURCHASE_ORDER,
    },
}

# what the staff "advance" button writes, so both views keep agreeing
STORED_FORM: Dict[Stage, Stage] = {
    Stage.INTENT_REPORT: Stage.INTERNAL_APPROVAL,
}

STAGE_MESSAGES: Dict[Stage, str] = {
    Stage.INTAKE: "Your request has been submitted and is in the intake queue.",
    Stage.INTERNAL_APPROVAL: "Your request has been approved by the manager and is now moved to sourcing.",
    Stage.INTERNAL_REJECTED: "Your request has been rejected by the internal team. The order cannot proceed at this time.",
    Stage.INTENT_REPORT: "The request has been approved internally and is waiting for sourcing.",
    Stage.SOURCING: "The procurement team is sourcing vendors and quotes for your request.",
    Stage.REVIEW: "Submitted quotations are being reviewed.",
    Stage.NEGOTIATIONS: "Negotiations are in progress with selected vendors.",
    Stage.LEGAL_AND_COMPLIANCE: "Legal and compliance review is in progress.",
    Stage.APPROVAL: "Waiting for final approval before proceeding.",
    Stage.PURCHASE_ORDER: "Purchase order is being created and processed.",
    Stage.PO_CREATION: "Purchase order is being created and processed.",
    Stage.TRACK_THE_DELIVERY: "Your order has been placed. Tracking delivery status.",
    Stage.COMPLETION: "Order has been completed and delivered.",
    Stage.PAYMENT_DONE: "Payment has been processed. Request is complete.",
}
DEFAULT_MESSAGE = "Processing your request..."

_BY_LABEL = {stage.value.lower(): stage for stage in Stage}


def parse_stage(value: Optional[str]) -> Optional[Stage]:
    if not value:
        return None
    return _BY_LABEL.get(str(value).strip().lower())


def track(audience: Audience) -> Tuple[Stage, ...]:
    return TRACKS[Audience(audience)]


def stage_for(stored: Optional[str], audience: Audience) -> Optional[Stage]:
    """The stage on ``audience``'s track that the stored value stands for."""
    stage = parse_stage(stored)
    if stage is None:
        return None
    stages = track(audience)
    if stage in stages:
        return stage
    mapped = MAPPINGS[Audience(audience)].get(stage)
    return mapped if isinstance(mapped, Stage) else None


def stage_ordinal(stored: Optional[str], audience: Audience) -> int:
    """
    Position of the stored stage on ``audience``'s track.

    -1 for unknown, rejected or not-yet-reached stages; len(track) for stages
    past the end of the track.
    """
    stage = parse_stage(stored)
    if stage is None:
        return -1
    stages = track(audience)
    mapped = stage if stage in stages else MAPPINGS[Audience(audience)].get(stage)
    if mapped == AFTER_TRACK:
        return len(stages)
    if isinstance(mapped, Stage):
        return stages.index(mapped)
    return -1


def to_stored(stage: Stage) -> str:
    return STORED_FORM.get(stage, stage).value


def next_stage(stored: Optional[str], audience: Audience = Audience.STAFF) -> Optional[Stage]:
    stages = track(audience)
    index = stage_ordinal(stored, audience)
    if 0 <= index < len(stages) - 1:
        return stages[index + 1]
    return None


def stage_message(stage) -> str:
    parsed = stage if isinstance(stage, Stage) else parse_stage(stage)
    return STAGE_MESSAGES.get(parsed, DEFAULT_MESSAGE)


def is_rejected(stored: Optional[str]) -> bool:
    return parse_stage(stored) == Stage.INTERNAL_REJECTED


# --- completion ---

@dataclass(frozen=True)
class Evidence:
    """What the sheet and the cache say about a request's quotations."""
    quotations: Tuple[Quotation, ...] = ()
    sent_to: Tuple[str, ...] = ()

    @classmethod
    def of(cls, quotations: Iterable[Quotation] = (), sent_to: Iterable[str] = ()) -> "Evidence":
        return cls(tuple(quotations), tuple(sent_to))

    @property
    def selected(self) -> List[Quotation]:
        return [q for q in self.quotations if q.is_selected]

    def counts(self) -> Dict[str, int]:
        selected = self.selected
        return {
            "sent_to": len(self.sent_to),
            "selected": len(selected),
            "negotiated": sum(1 for q in selected if q.has_negotiation),
            "agreement_accepted": sum(1 for q in selected if q.agreement_accepted == 1),
            "approved": sum(1 for q in selected if q.vendor_approved == 1),
            "po_sent": sum(1 for q in selected if q.po_sent == 1),
        }


def _predicate_holds(stage: Stage, stored: Optional[str], evidence: Evidence) -> bool:
    selected = evidence.selected
    if stage == Stage.INTERNAL_APPROVAL:
        return parse_stage(stored) in (Stage.INTERNAL_APPROVAL, Stage.INTENT_REPORT)
    if stage == Stage.SOURCING:
        return bool(evidence.sent_to) or bool(selected)
    if stage == Stage.REVIEW:
        return bool(selected)
    if stage == Stage.NEGOTIATIONS:
        return any(q.has_negotiation for q in selected)
    if stage == Stage.LEGAL_AND_COMPLIANCE:
        return any(q.agreement_accepted == 1 for q in selected)
    if stage == Stage.APPROVAL:
        return any(q.vendor_approved == 1 for q in selected)
    if stage in (Stage.PURCHASE_ORDER, Stage.PO_CREATION):
        return any(q.po_sent == 1 for q in selected)
    return False


@dataclass(frozen=True)
class StageStatus:
    stage: Stage
    index: int
    complete: bool
    current: bool
    highlighted: bool

    @property
    def label(self) -> str:
        return self.stage.value

    @property
    def state(self) -> str:
        if self.complete:
            return "complete"
        if self.current:
            return "current"
        return "upcoming"


def is_complete(stage: Stage, stored: Optional[str], evidence: Evidence,
                audience: Audience) -> bool:
    if is_rejected(stored):
        return False
    index = track(audience).index(stage)
    if stage_ordinal(stored, audience) > index:
        return True
    return _predicate_holds(stage, stored, evidence)


def compute_progress(stored: Optional[str], audience: Audience,
                     quotations: Sequence[Quotation] = (),
                     sent_to: Sequence[str] = (),
                     selected_tab: Optional[str] = None) -> List[StageStatus]:
    """
    Status of every stage on ``audience``'s track.

    A stage is complete once the stored stage has moved past it, or as soon as
    the sheet data shows its work is done. ``selected_tab`` (a manually clicked
    stage) takes the highlight without changing which stage is current.
    """
    evidence = Evidence.of(quotations, sent_to)
    current = stage_for(stored, audience)
    manual = parse_stage(selected_tab)
    highlighted = manual if manual in track(audience) else current
    return [
        StageStatus(
            stage=stage,
            index=index,
            complete=is_complete(stage, stored, evidence, audience),
            current=stage == current,
            highlighted=stage == highlighted,
        )
        for index, stage in enumerate(track(audience))
    ]


def completed_stages(progress: Sequence[StageStatus]) -> List[Stage]:
    return [s.stage for s in progress if s.complete]
