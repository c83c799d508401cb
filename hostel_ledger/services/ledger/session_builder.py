"""
Ledger projection: rebuild billing sessions from stored documents.

Nothing here touches the database. Billing entries, manual ledger entries
and the occupant are read through their attributes, so the functions are
exercised in tests with plain objects.

Pipeline:
    seeds -> room-shift split -> active/history flags -> matching
    -> balances -> deposit carry-forward
"""

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from hostel_ledger.config.settings import settings
from hostel_ledger.models.base import FeeKind, LedgerEntryKind, LedgerTag, OccupantStatus
from hostel_ledger.utils.date_utils import (
    as_date,
    block_start,
    blocks_touched,
    days_between,
    overlap_days,
)
from hostel_ledger.utils.money import ZERO, money_sum, split_by_weights, split_evenly, to_money

COMPONENTS = ("rent", "mess", "deposit")

# Charge kind -> component a single-line session is booked under
_CHARGE_COMPONENT = {
    FeeKind.MESS: "mess",
    FeeKind.SECURITY: "deposit",
    FeeKind.OTHER: "rent",
    FeeKind.PACKAGE: "rent",
}

_COMPONENT_TAGS = {LedgerTag.RENT, LedgerTag.MESS, LedgerTag.DEPOSIT}


def _zero_components() -> Dict[str, Decimal]:
    return {component: ZERO for component in COMPONENTS}


def _value(enum_or_str) -> Optional[str]:
    if enum_or_str is None:
        return None
    return str(getattr(enum_or_str, "value", enum_or_str))


# ---------------------------------------------------------------------------
# Data shapes
# ---------------------------------------------------------------------------


@dataclass
class LedgerLine:
    id: str
    component: str
    amount: Decimal
    start: date
    end: date
    description: str
    billing_entry_id: Optional[str] = None


@dataclass
class MatchedItem:
    """A manual ledger entry or an un-receipted billing payment."""
    id: str
    date: date
    amount: Decimal
    kind: str
    source: str
    account: Optional[str] = None
    tag: Optional[str] = None
    component: Optional[str] = None
    voucher: Optional[str] = None
    payment_method: Optional[str] = None
    description: Optional[str] = None
    billing_entry_id: Optional[str] = None


@dataclass
class Session:
    id: str
    kind: str
    start: date
    end: date
    due_date: Optional[date] = None
    billing_entry_id: Optional[str] = None
    stored_status: Optional[str] = None
    room_snapshot: Dict[str, Any] = field(default_factory=dict)
    lines: List[LedgerLine] = field(default_factory=list)
    payments: List[MatchedItem] = field(default_factory=list)
    adjustments: List[MatchedItem] = field(default_factory=list)
    payable_adjustments: List[Dict[str, Any]] = field(default_factory=list)
    refund_entries: List[Dict[str, Any]] = field(default_factory=list)
    refunds_paid_out: Decimal = ZERO
    component_totals: Dict[str, Decimal] = field(default_factory=_zero_components)
    paid_by_component: Dict[str, Decimal] = field(default_factory=_zero_components)
    due_by_component: Dict[str, Decimal] = field(default_factory=_zero_components)
    credit: Decimal = ZERO
    status: str = "pending"
    payment_status: str = "pending"
    is_active: bool = False
    is_fallback: bool = False

    @property
    def is_package(self) -> bool:
        return self.kind == FeeKind.PACKAGE.value

    @property
    def has_deposit(self) -> bool:
        return any(line.component == "deposit" and line.amount > ZERO for line in self.lines)

    @property
    def total(self) -> Decimal:
        return money_sum(self.component_totals.values())

    @property
    def total_paid(self) -> Decimal:
        return money_sum(self.paid_by_component.values())

    @property
    def total_due(self) -> Decimal:
        return money_sum(self.due_by_component.values())

    def contains(self, on: date) -> bool:
        return self.start <= on < self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "billing_entry_id": self.billing_entry_id,
            "kind": self.kind,
            "period": {"start": self.start, "end": self.end},
            "due_date": self.due_date,
            "room_snapshot": dict(self.room_snapshot),
            "component_totals": dict(self.component_totals),
            "paid_by_component": dict(self.paid_by_component),
            "due_by_component": dict(self.due_by_component),
            "credit": self.credit,
            "total": self.total,
            "total_paid": self.total_paid,
            "total_due": self.total_due,
            "lines": [asdict(line) for line in self.lines],
            "payments": [asdict(item) for item in self.payments],
            "adjustments": [asdict(item) for item in self.adjustments],
            "payable_adjustments": [dict(item) for item in self.payable_adjustments],
            "refunds": {
                "entries": [dict(item) for item in self.refund_entries],
                "total": money_sum(item["amount"] for item in self.refund_entries),
                "paid_out": self.refunds_paid_out,
            },
            "status": self.status,
            "payment_status": self.payment_status,
            "is_active": self.is_active,
            "is_fallback": self.is_fallback,
        }


# ---------------------------------------------------------------------------
# Seeds
# ---------------------------------------------------------------------------


def _snapshot(entry) -> Dict[str, Any]:
    return {
        "room_number": entry.room_number,
        "bed_label": entry.bed_label,
        "room_type": entry.room_type,
    }


def _package_session(entry, occupant) -> Session:
    """Per-month rent and mess lines over 30-day blocks, plus one deposit line."""
    days = settings.DAYS_PER_BLOCK
    anchor = entry.check_in_date or getattr(occupant, "enrollment_date", None) or entry.due_date
    duration = entry.package_duration_months or settings.DEFAULT_PACKAGE_MONTHS

    rent = to_money(entry.rent_amount)
    mess = to_money(entry.mess_amount)
    deposit = to_money(entry.deposit_amount)
    if rent + mess + deposit <= ZERO:
        rent = to_money(entry.total_amount)

    lines: List[LedgerLine] = []
    for component, total in (("rent", rent), ("mess", mess)):
        if total <= ZERO:
            continue
        for index, amount in enumerate(split_evenly(total, duration)):
            lines.append(
                LedgerLine(
                    id=f"{entry.id}:{component}:{index + 1}",
                    component=component,
                    amount=amount,
                    start=block_start(anchor, index, days),
                    end=block_start(anchor, index + 1, days),
                    description=f"{component.capitalize()} month {index + 1} of {duration}",
                    billing_entry_id=entry.id,
                )
            )
    if deposit > ZERO:
        lines.append(
            LedgerLine(
                id=f"{entry.id}:deposit",
                component="deposit",
                amount=deposit,
                start=anchor,
                end=block_start(anchor, 1, days),
                description="Security deposit",
                billing_entry_id=entry.id,
            )
        )

    return Session(
        id=entry.id,
        kind=FeeKind.PACKAGE.value,
        start=anchor,
        end=block_start(anchor, duration, days),
        due_date=entry.due_date,
        billing_entry_id=entry.id,
        stored_status=_value(entry.status),
        room_snapshot=_snapshot(entry),
        lines=lines,
    )


def _charge_session(entry) -> Session:
    """Ad hoc charges occupy a single day at their due date."""
    start = entry.due_date
    end = start + timedelta(days=1)
    parts = {
        "rent": to_money(entry.rent_amount),
        "mess": to_money(entry.mess_amount),
        "deposit": to_money(entry.deposit_amount),
    }
    if money_sum(parts.values()) <= ZERO:
        parts = {_CHARGE_COMPONENT.get(FeeKind(entry.kind), "rent"): to_money(entry.total_amount)}

    lines = [
        LedgerLine(
            id=f"{entry.id}:{component}",
            component=component,
            amount=amount,
            start=start,
            end=end,
            description=entry.description or f"{_value(entry.kind)} charge",
            billing_entry_id=entry.id,
        )
        for component, amount in parts.items()
        if amount > ZERO
    ]
    return Session(
        id=entry.id,
        kind=_value(entry.kind),
        start=start,
        end=end,
        due_date=entry.due_date,
        billing_entry_id=entry.id,
        stored_status=_value(entry.status),
        room_snapshot=_snapshot(entry),
        lines=lines,
    )


# ---------------------------------------------------------------------------
# Room-shift split
# ---------------------------------------------------------------------------


def _split_session(session: Session, markers: Sequence[Any]) -> List[Session]:
    """
    Split a package session at room-shift markers strictly inside it.

    Rent and mess lines are split by day overlap; the deposit stays on the
    first period. Each period's room snapshot comes from the marker.
    """
    inside = sorted(
        (m for m in markers if session.start < m.entry_date < session.end),
        key=lambda m: m.entry_date,
    )
    if not inside:
        return [session]

    bounds = [session.start] + [m.entry_date for m in inside] + [session.end]
    periods: List[Session] = []
    for index in range(len(bounds) - 1):
        if index == 0:
            details = inside[0].details or {}
            snapshot = {
                "room_number": details.get("from_room", session.room_snapshot.get("room_number")),
                "bed_label": details.get("from_bed", session.room_snapshot.get("bed_label")),
                "room_type": details.get("from_type", session.room_snapshot.get("room_type")),
            }
        else:
            details = inside[index - 1].details or {}
            snapshot = {
                "room_number": details.get("to_room"),
                "bed_label": details.get("to_bed"),
                "room_type": details.get("to_type"),
            }
        periods.append(
            Session(
                id=f"{session.id}:{index}",
                kind=session.kind,
                start=bounds[index],
                end=bounds[index + 1],
                due_date=session.due_date,
                billing_entry_id=session.billing_entry_id,
                stored_status=session.stored_status,
                room_snapshot=snapshot,
            )
        )

    for line in session.lines:
        if line.component == "deposit":
            periods[0].lines.append(line)
            continue
        weights = [overlap_days(line.start, line.end, p.start, p.end) for p in periods]
        for period, weight, amount in zip(periods, weights, split_by_weights(line.amount, weights)):
            if weight <= 0 and amount == ZERO:
                continue
            period.lines.append(
                LedgerLine(
                    id=f"{line.id}:{period.id.rsplit(':', 1)[-1]}",
                    component=line.component,
                    amount=amount,
                    start=max(line.start, period.start),
                    end=min(line.end, period.end),
                    description=line.description,
                    billing_entry_id=line.billing_entry_id,
                )
            )
    return periods


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def receipted_amounts(manual_entries: Iterable[Any]) -> Dict[str, Decimal]:
    """Receipts per billing entry: linked Payment entries, refunds and adjustments excluded."""
    receipted: Dict[str, Decimal] = {}
    for item in manual_entries:
        if not item.billing_entry_id or item.kind != LedgerEntryKind.PAYMENT:
            continue
        if item.tag in (LedgerTag.REFUND, LedgerTag.ADJUSTMENT):
            continue
        receipted[item.billing_entry_id] = receipted.get(item.billing_entry_id, ZERO) + to_money(item.amount)
    return receipted


def unreceipted_payment(entry, receipted: Dict[str, Decimal]) -> Decimal:
    """Part of an entry's paid amount not backed by a linked receipt."""
    if entry.kind == FeeKind.REFUND:
        return ZERO
    return max(ZERO, to_money(entry.paid_amount) - receipted.get(entry.id, ZERO))


def _manual_item(item) -> MatchedItem:
    return MatchedItem(
        id=item.id,
        date=item.entry_date,
        amount=to_money(item.amount),
        kind=_value(item.kind),
        source="manual",
        account=_value(item.account),
        tag=_value(item.tag),
        voucher=item.voucher,
        payment_method=item.payment_method,
        description=item.description,
        billing_entry_id=item.billing_entry_id,
    )


def _billing_item(entry, amount: Decimal) -> MatchedItem:
    return MatchedItem(
        id=f"{entry.id}:payment",
        date=entry.paid_date or entry.due_date,
        amount=amount,
        kind=LedgerEntryKind.PAYMENT.value,
        source="billing",
        voucher=entry.account_a_voucher or entry.account_b_voucher or entry.transaction_id,
        payment_method=entry.payment_method,
        description=f"Payment towards {entry.description or _value(entry.kind)}",
        billing_entry_id=entry.id,
    )


def _pick_period(periods: Sequence[Session], on: date) -> Session:
    for period in periods:
        if period.contains(on):
            return period
    if on < periods[0].start:
        return periods[0]
    return periods[-1]


def _match(
    item: MatchedItem,
    sessions: Sequence[Session],
    by_entry: Dict[str, List[Session]],
) -> Session:
    # (a) deposit
    if item.tag == LedgerTag.DEPOSIT.value:
        for session in sessions:
            if session.has_deposit:
                return session
    # (b) explicit billing reference
    if item.billing_entry_id and item.billing_entry_id in by_entry:
        return _pick_period(by_entry[item.billing_entry_id], item.date)
    # (c) date containment, packages first, latest start wins
    containing = [s for s in sessions if s.contains(item.date)]
    if containing:
        containing.sort(key=lambda s: (s.is_package, s.start))
        return containing[-1]
    upcoming = [s for s in sessions if s.start > item.date]
    if upcoming:
        return min(upcoming, key=lambda s: s.start)
    # (d) active, else most recent
    for session in sessions:
        if session.is_active:
            return session
    return max(sessions, key=lambda s: s.start)


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------


def _component_for(item: MatchedItem) -> str:
    if item.tag in {tag.value for tag in _COMPONENT_TAGS}:
        return item.tag
    return "mess" if item.account == "B" else "rent"


def _apply_item(session: Session, item: MatchedItem) -> None:
    """Fold one manual entry into the session totals."""
    if item.kind == LedgerEntryKind.OTHER.value:
        if item.tag == LedgerTag.ADJUSTMENT.value or item.amount > ZERO:
            item.component = _component_for(item)
            session.component_totals[item.component] += item.amount
            session.adjustments.append(item)
        return

    if item.tag == LedgerTag.REFUND.value:
        session.refunds_paid_out += item.amount
        session.payments.append(item)
        return
    if item.tag == LedgerTag.ADJUSTMENT.value:
        item.component = _component_for(item)
        session.component_totals[item.component] -= item.amount
        session.adjustments.append(item)
        return

    item.component = _component_for(item)
    session.paid_by_component[item.component] += item.amount
    session.payments.append(item)


def _fill_billing_payment(session: Session, item: MatchedItem) -> None:
    """Un-receipted gateway payments fill deposit, then rent, then mess."""
    left = item.amount
    for component in ("deposit", "rent", "mess"):
        owed = max(ZERO, session.component_totals[component] - session.paid_by_component[component])
        part = min(left, owed)
        if part > ZERO:
            session.paid_by_component[component] += part
            left -= part
    if left > ZERO:
        session.paid_by_component["rent"] += left
    item.component = "mixed"
    session.payments.append(item)


def _derive(session: Session, today: date) -> None:
    credit = ZERO
    for component in COMPONENTS:
        total = session.component_totals[component]
        paid = session.paid_by_component[component]
        session.due_by_component[component] = max(ZERO, total - paid)
        credit += max(ZERO, paid - max(ZERO, total))
    session.credit = credit

    if session.total_due <= ZERO:
        status = "paid"
    elif session.total_paid > ZERO:
        status = "partial"
    elif session.due_date is not None and session.due_date < today:
        status = "overdue"
    else:
        status = "pending"
    session.payment_status = status
    session.status = status


def _carry_forward_deposit(sessions: Sequence[Session], today: date) -> None:
    """
    Move the deposit from an earlier session to the active one after a
    resume, together with its payments.
    Periods split out of one package keep the deposit on the first period.
    """
    active = next((s for s in sessions if s.is_active), None)
    if active is None or active.has_deposit:
        return
    source = next((s for s in sessions if s.has_deposit and s is not active), None)
    if source is None or source.billing_entry_id == active.billing_entry_id:
        return

    deposit_lines = [line for line in source.lines if line.component == "deposit"]
    deposit_payments = [item for item in source.payments if item.component == "deposit"]

    source.lines = [line for line in source.lines if line.component != "deposit"]
    source.payments = [item for item in source.payments if item.component != "deposit"]
    active.lines.extend(deposit_lines)
    active.payments.extend(deposit_payments)

    active.component_totals["deposit"] += source.component_totals["deposit"]
    active.paid_by_component["deposit"] += source.paid_by_component["deposit"]
    source.component_totals["deposit"] = ZERO
    source.paid_by_component["deposit"] = ZERO

    _derive(source, today)
    _derive(active, today)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _fallback_session(occupant, today: date) -> Session:
    start = getattr(occupant, "enrollment_date", None) or today
    end = getattr(occupant, "admission_through_date", None)
    if end is None or end <= start:
        end = block_start(start, settings.DEFAULT_PACKAGE_MONTHS, settings.DAYS_PER_BLOCK)
    return Session(
        id="fallback",
        kind="history",
        start=start,
        end=end,
        due_date=None,
        is_fallback=True,
    )


def build_sessions(
    entries: Sequence[Any],
    manual_entries: Sequence[Any],
    occupant: Any,
    today: date,
) -> List[Session]:
    """
    Rebuild the occupant's sessions, newest first.

    Every non-marker manual entry and every un-receipted billing payment
    lands in exactly one session.
    """
    ordered = sorted(entries, key=lambda e: (e.due_date, as_date(getattr(e, "created_at", None)) or e.due_date))
    markers = [m for m in manual_entries if m.tag == LedgerTag.ROOM_SHIFT]

    sessions: List[Session] = []
    by_entry: Dict[str, List[Session]] = {}
    refunds = []
    adjustments = []
    for entry in ordered:
        if entry.kind == FeeKind.REFUND:
            refunds.append(entry)
            continue
        if entry.kind == FeeKind.ADJUSTMENT:
            adjustments.append(entry)
            continue
        if entry.kind == FeeKind.PACKAGE:
            periods = _split_session(_package_session(entry, occupant), markers)
        else:
            periods = [_charge_session(entry)]
        by_entry[entry.id] = periods
        sessions.extend(periods)

    if not sessions:
        sessions.append(_fallback_session(occupant, today))

    # history flags before matching so (d) can see the active session
    inactive = _value(getattr(occupant, "status", None)) == OccupantStatus.INACTIVE.value
    if not inactive and getattr(occupant, "current_room_id", None):
        packages = [s for s in sessions if s.is_package]
        if packages:
            newest_entry = max(packages, key=lambda s: s.start).billing_entry_id
            max(by_entry[newest_entry], key=lambda s: s.start).is_active = True

    for entry in refunds:
        target = _related_session(entry.related_entry_id, entry.due_date, sessions, by_entry)
        target.refund_entries.append(
            {
                "id": entry.id,
                "date": entry.paid_date or entry.due_date,
                "amount": to_money(entry.total_amount),
                "reason": entry.description,
            }
        )
    for entry in adjustments:
        target = _related_session(entry.related_entry_id, entry.due_date, sessions, by_entry)
        target.payable_adjustments.append(
            {
                "id": entry.id,
                "amount": to_money(entry.total_amount),
                "paid_amount": to_money(entry.paid_amount),
                "status": _value(entry.status),
                "due_date": entry.due_date,
            }
        )

    for session in sessions:
        for line in session.lines:
            session.component_totals[line.component] += line.amount

    receipted = receipted_amounts(manual_entries)
    for item in manual_entries:
        if item.tag == LedgerTag.ROOM_SHIFT:
            continue
        matched = _manual_item(item)
        _apply_item(_match(matched, sessions, by_entry), matched)

    for entry in ordered:
        amount = unreceipted_payment(entry, receipted)
        if amount <= ZERO:
            continue
        item = _billing_item(entry, amount)
        if entry.id in by_entry:
            target = _pick_period(by_entry[entry.id], item.date)
        else:
            target = _related_session(entry.related_entry_id, item.date, sessions, by_entry)
        _fill_billing_payment(target, item)

    for session in sessions:
        _derive(session, today)

    _carry_forward_deposit(sessions, today)

    if inactive:
        for session in sessions:
            session.status = "completed"
            session.is_active = False

    return sorted(sessions, key=lambda s: (s.start, s.id), reverse=True)


def _related_session(
    related_id: Optional[str],
    on: date,
    sessions: Sequence[Session],
    by_entry: Dict[str, List[Session]],
) -> Session:
    if related_id and related_id in by_entry:
        return _pick_period(by_entry[related_id], on)
    packages = [s for s in sessions if s.is_package]
    pool = packages or list(sessions)
    return max(pool, key=lambda s: s.start)


# ---------------------------------------------------------------------------
# Flat ledger and summary
# ---------------------------------------------------------------------------


def build_ledger(entries: Sequence[Any], manual_entries: Sequence[Any]) -> List[Dict[str, Any]]:
    """Flat date-ordered debit/credit rows with a running balance."""
    rows: List[Dict[str, Any]] = []
    receipted = receipted_amounts(manual_entries)

    def add(on, description, debit=ZERO, credit=ZERO, **extra):
        row = {
            "date": on,
            "description": description,
            "debit": to_money(debit),
            "credit": to_money(credit),
        }
        row.update(extra)
        rows.append(row)

    for entry in entries:
        kind = _value(entry.kind)
        if entry.kind == FeeKind.REFUND:
            add(
                entry.paid_date or entry.due_date,
                entry.description or "Refund",
                credit=entry.total_amount,
                source="refund",
                reference_id=entry.id,
            )
            continue
        if entry.kind != FeeKind.ADJUSTMENT:
            add(
                entry.due_date,
                entry.description or f"{kind} charge",
                debit=entry.total_amount,
                source=kind,
                reference_id=entry.id,
            )
        paid = unreceipted_payment(entry, receipted)
        if paid > ZERO:
            add(
                entry.paid_date or entry.due_date,
                f"Payment towards {entry.description or kind}",
                credit=paid,
                source="payment",
                reference_id=entry.id,
                payment_method=entry.payment_method,
                voucher=entry.transaction_id,
            )

    for item in manual_entries:
        common = {
            "source": "manual",
            "reference_id": item.id,
            "account": _value(item.account),
            "tag": _value(item.tag),
            "voucher": item.voucher,
            "payment_method": item.payment_method,
        }
        description = item.description or _value(item.kind)
        if item.tag == LedgerTag.ROOM_SHIFT:
            add(item.entry_date, description, **common)
        elif item.kind == LedgerEntryKind.PAYMENT and item.tag == LedgerTag.REFUND:
            add(item.entry_date, description, debit=item.amount, **common)
        elif item.kind == LedgerEntryKind.PAYMENT:
            add(item.entry_date, description, credit=item.amount, **common)
        else:
            add(item.entry_date, description, debit=item.amount, **common)

    # debits before credits on the same day
    rows.sort(key=lambda r: (r["date"], r["credit"] > ZERO))
    balance = ZERO
    for row in rows:
        balance += row["debit"] - row["credit"]
        row["balance"] = balance
    return rows


def build_summary(
    occupant: Any,
    entries: Sequence[Any],
    manual_entries: Sequence[Any],
    sessions: Sequence[Session],
    ledger: Sequence[Dict[str, Any]],
    today: date,
) -> Dict[str, Any]:
    real = [s for s in sessions if not s.is_fallback] or list(sessions)
    admission = getattr(occupant, "enrollment_date", None) or (min(s.start for s in real) if real else None)
    through = getattr(occupant, "admission_through_date", None) or (max(s.end for s in real) if real else None)

    stay_days = 0
    if admission is not None:
        end = min(today, through) if through is not None else today
        stay_days = max(0, days_between(admission, end))

    total_deposit = money_sum(s.component_totals["deposit"] for s in sessions)
    deposit_paid = money_sum(s.paid_by_component["deposit"] for s in sessions)
    refunded = money_sum(
        to_money(e.total_amount) for e in entries if e.kind == FeeKind.REFUND
    ) + money_sum(
        to_money(m.amount)
        for m in manual_entries
        if m.kind == LedgerEntryKind.PAYMENT and m.tag == LedgerTag.REFUND
    )
    total_pending = money_sum(s.total_due for s in sessions)

    return {
        "admission_date": admission,
        "admission_through_date": through,
        "stay_duration_days": stay_days,
        "stay_duration_months": blocks_touched(stay_days, settings.DAYS_PER_BLOCK),
        "total_fees": money_sum(s.total for s in sessions),
        "total_paid": money_sum(s.total_paid for s in sessions),
        "total_pending": total_pending,
        "total_deposit": total_deposit,
        "deposit_paid": deposit_paid,
        "refundable_deposit": max(ZERO, deposit_paid - money_sum(s.refunds_paid_out for s in sessions)),
        "total_refunded": refunded,
        "current_balance": ledger[-1]["balance"] if ledger else ZERO,
        "total_due": total_pending,
        "total_transactions": len(ledger),
    }
