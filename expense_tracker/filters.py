from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from expense_tracker.domain import Transaction
from expense_tracker.validation import FilterParams

Predicate = Callable[[Transaction], bool]


def by_kind(kind: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.kind == kind

    return _filter


def by_category(category_id: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category_id == category_id

    return _filter


def by_date_range(start: Optional[datetime], end: Optional[datetime]) -> Predicate:
    """Inclusive on both ends; a missing bound is open."""
    def _filter(t: Transaction) -> bool:
        if start is not None and t.occurred_at < start:
            return False
        if end is not None and t.occurred_at > end:
            return False
        return True

    return _filter


def by_amount_range(min: Optional[Decimal], max: Optional[Decimal]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        if min is not None and t.amount < min:
            return False
        if max is not None and t.amount > max:
            return False
        return True

    return _filter


def by_search(text: str) -> Predicate:
    needle = text.casefold()

    def _filter(t: Transaction) -> bool:
        return needle in (t.description or "").casefold() or needle in t.category_name.casefold()

    return _filter


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter


def from_params(params: FilterParams) -> Predicate:
    preds = []
    if params.kind:
        preds.append(by_kind(params.kind))
    if params.category_id:
        preds.append(by_category(params.category_id))
    if params.start_date or params.end_date:
        preds.append(by_date_range(params.start_date, params.end_date))
    if params.min_amount is not None or params.max_amount is not None:
        preds.append(by_amount_range(params.min_amount, params.max_amount))
    if params.search:
        preds.append(by_search(params.search))
    return all_of(*preds)
