# selection.py
# Client-side vendor sets on the procurement detail view, and the
# optimistic-update bookkeeping for staff actions.
#
# A staff action flips membership immediately (PendingChange), then the caller
# commits it when the proxy call succeeds or rolls it back when it fails.

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Set

from .models import Quotation

QUOTE_TARGETS = "quote_targets"
NEGOTIATION = "negotiation"
APPROVED = "approved"
AGREED = "agreed"
_SETS = (QUOTE_TARGETS, NEGOTIATION, APPROVED, AGREED)


class ChangeState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class PendingChange:
    bucket: str
    vendor_name: str
    previous: bool
    desired: bool
    state: ChangeState = ChangeState.PENDING

    @property
    def is_noop(self) -> bool:
        return self.previous == self.desired


@dataclass
class SelectionBook:
    quote_targets: Set[str] = field(default_factory=set)
    negotiation: Set[str] = field(default_factory=set)
    approved: Set[str] = field(default_factory=set)
    agreed: Set[str] = field(default_factory=set)

    def _bucket(self, name: str) -> Set[str]:
        if name not in _SETS:
            raise KeyError(f"unknown selection set: {name}")
        return getattr(self, name)

    def has(self, bucket: str, vendor_name: str) -> bool:
        return vendor_name in self._bucket(bucket)

    def _put(self, bucket: str, vendor_name: str, member: bool) -> None:
        members = self._bucket(bucket)
        if member:
            members.add(vendor_name)
        else:
            members.discard(vendor_name)

    # --- optimistic updates ---

    def begin(self, bucket: str, vendor_name: str, desired: bool) -> PendingChange:
        change = PendingChange(bucket, vendor_name, self.has(bucket, vendor_name), desired)
        self._put(bucket, vendor_name, desired)
        return change

    def commit(self, change: PendingChange) -> None:
        if change.state != ChangeState.PENDING:
            raise ValueError(f"change already {change.state.value}")
        change.state = ChangeState.COMMITTED

    def rollback(self, change: PendingChange) -> None:
        if change.state != ChangeState.PENDING:
            raise ValueError(f"change already {change.state.value}")
        self._put(change.bucket, change.vendor_name, change.previous)
        change.state = ChangeState.ROLLED_BACK

    # --- quote targets ---

    def select_all_targets(self, vendor_names: Iterable[str]) -> None:
        self.quote_targets = set(vendor_names)

    def clear_targets(self) -> None:
        self.quote_targets = set()

    def all_quotations_selected(self, quotations: Iterable[Quotation]) -> bool:
        names = [q.vendor_name for q in quotations]
        return bool(names) and all(name in self.negotiation for name in names)

    def restore(self, quotations: Iterable[Quotation]) -> None:
        """Reset negotiation, approval and agreement sets from the sheet's flags."""
        quotations = list(quotations)
        self.negotiation = {q.vendor_name for q in quotations if q.vendor_name and q.is_selected}
        self.approved = {q.vendor_name for q in quotations if q.vendor_name and q.vendor_approved == 1}
        self.agreed = {q.vendor_name for q in quotations if q.vendor_name and q.agreement_accepted == 1}
