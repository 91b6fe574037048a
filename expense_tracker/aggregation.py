from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from expense_tracker.domain import INCOME, CategorySummary, DateRange, Summary, Transaction
from expense_tracker.formatters import round_half_up, to_decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def percentage_of(part: Decimal, total: Decimal) -> Decimal:
    if total == 0:
        return ZERO
    return round_half_up(part / total * HUNDRED, "0.01")


def summarize(trans: Iterable[Transaction]) -> Summary:
    """Reduce transactions of one period to totals and per-category buckets.

    Buckets keep the order in which categories were first seen, so the stable
    sort below breaks equal totals by encounter order.
    """
    total_income = ZERO
    total_expense = ZERO
    count = 0
    buckets: Dict[str, Dict[str, Any]] = {}

    for t in trans:
        amount = to_decimal(t.amount)
        count += 1
        if t.kind == INCOME:
            total_income += amount
        else:
            total_expense += amount

        bucket = buckets.get(t.category_id)
        if bucket is None:
            buckets[t.category_id] = {
                "category_id": t.category_id,
                "category_name": t.category_name,
                "kind": t.kind,
                "amount": amount,
                "count": 1,
            }
        else:
            bucket["amount"] += amount
            bucket["count"] += 1

    by_category = [
        CategorySummary(
            category_id=b["category_id"],
            category_name=b["category_name"],
            kind=b["kind"],
            total_amount=b["amount"],
            transaction_count=b["count"],
            percentage=percentage_of(
                b["amount"], total_income if b["kind"] == INCOME else total_expense
            ),
        )
        for b in buckets.values()
    ]
    by_category.sort(key=lambda c: c.total_amount, reverse=True)

    return Summary(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
        transaction_count=count,
        by_category=tuple(by_category),
    )


def partition_by_kind(summary: Summary) -> Tuple[List[CategorySummary], List[CategorySummary]]:
    income = [c for c in summary.by_category if c.kind == INCOME]
    expense = [c for c in summary.by_category if c.kind != INCOME]
    return income, expense


def category_to_dict(c: CategorySummary) -> Dict[str, Any]:
    return {
        "categoryId": c.category_id,
        "categoryName": c.category_name,
        "type": c.kind,
        "amount": float(c.total_amount),
        "count": c.transaction_count,
        "percentage": float(c.percentage),
    }


def summary_to_dict(summary: Summary, period: Optional[DateRange] = None) -> Dict[str, Any]:
    """JSON-ready payload in the shape served by the summary endpoint."""
    payload: Dict[str, Any] = {
        "summary": {
            "totalIncome": float(summary.total_income),
            "totalExpenses": float(summary.total_expense),
            "netBalance": float(summary.net_balance),
            "transactionCount": summary.transaction_count,
        },
        "byCategory": [category_to_dict(c) for c in summary.by_category],
    }
    if period is not None:
        payload["dateRange"] = {
            "startDate": period.start_date.isoformat(),
            "endDate": period.end_date.isoformat(),
            "granularity": period.granularity,
        }
    return payload
