import json
from datetime import datetime
from decimal import Decimal
from typing import Tuple

from expense_tracker.domain import Category, Transaction


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Category, ...],
    Tuple[Transaction, ...],
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    categories = tuple(Category(**c) for c in data["categories"])
    names = {c.id: c.name for c in categories}
    transactions = tuple(
        Transaction(
            id=t["id"],
            amount=Decimal(str(t["amount"])),
            kind=t["kind"],
            category_id=t["category_id"],
            category_name=names[t["category_id"]],
            occurred_at=datetime.fromisoformat(t["occurred_at"]),
            description=t.get("description"),
        )
        for t in data["transactions"]
    )

    return categories, transactions


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def replace_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return tuple(t if x.id == t.id else x for x in trans)


def remove_transaction(
    trans: Tuple[Transaction, ...], transaction_id: str
) -> Tuple[Transaction, ...]:
    return tuple(x for x in trans if x.id != transaction_id)
