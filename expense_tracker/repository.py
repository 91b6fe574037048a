"""In-memory store standing in for the database.

Services receive a repository instance explicitly; nothing here is global.
"""
import math
from dataclasses import dataclass, replace
from datetime import timedelta
from decimal import Decimal
from typing import Optional, Tuple
from uuid import uuid4

from expense_tracker.domain import Category, DateRange, Transaction
from expense_tracker.filters import by_date_range, from_params
from expense_tracker.logger import get_logger
from expense_tracker.transforms import add_transaction, load_seed, remove_transaction, replace_transaction
from expense_tracker.validation import CategoryInput, FilterParams, TransactionInput

logger = get_logger(__name__)

DUPLICATE_WINDOW = timedelta(minutes=1)


@dataclass(frozen=True)
class Page:
    items: Tuple[Transaction, ...]
    total: int
    page: int
    limit: int
    total_pages: int


class TransactionRepository:

    def __init__(self, categories: Tuple[Category, ...] = (), transactions: Tuple[Transaction, ...] = ()):
        self._categories = tuple(categories)
        self._transactions = tuple(transactions)

    @classmethod
    def from_seed(cls, path: str) -> "TransactionRepository":
        categories, transactions = load_seed(path)
        logger.info(f"Loaded {len(categories)} categories and {len(transactions)} transactions from {path}")
        return cls(categories, transactions)

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    def list_categories(self, kind: Optional[str] = None) -> Tuple[Category, ...]:
        return tuple(c for c in self._categories if kind is None or c.kind == kind)

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self._categories if c.id == category_id), None)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self._transactions if t.id == transaction_id), None)

    def add_category(self, data: CategoryInput) -> Category:
        category = Category(id=str(uuid4()), name=data.name, kind=data.kind)
        self._categories = self._categories + (category,)
        logger.info(f"Added {category.kind} category {category.name}")
        return category

    def update_category(self, category_id: str, data: CategoryInput) -> Category:
        """Rename or re-kind a category; its transactions pick up the new name."""
        if self.get_category(category_id) is None:
            raise KeyError(category_id)
        category = Category(id=category_id, name=data.name, kind=data.kind)
        self._categories = tuple(category if c.id == category_id else c for c in self._categories)
        self._transactions = tuple(
            replace(t, category_name=category.name) if t.category_id == category_id else t
            for t in self._transactions
        )
        logger.info(f"Updated category {category_id} to {category.name}")
        return category

    def remove_category(self, category_id: str) -> Category:
        category = self.get_category(category_id)
        if category is None:
            raise KeyError(category_id)
        if self.count_for_category(category_id):
            raise ValueError(f"Category {category_id} still has transactions")
        self._categories = tuple(c for c in self._categories if c.id != category_id)
        logger.info(f"Removed category {category.name}")
        return category

    def count_for_category(self, category_id: str) -> int:
        return sum(1 for t in self._transactions if t.category_id == category_id)

    def _build(self, transaction_id: str, data: TransactionInput) -> Transaction:
        category = self.get_category(data.category_id)
        if category is None:
            raise KeyError(data.category_id)
        return Transaction(
            id=transaction_id,
            amount=data.amount,
            kind=data.kind,
            category_id=category.id,
            category_name=category.name,
            occurred_at=data.occurred_at,
            description=data.description,
        )

    def add(self, data: TransactionInput) -> Transaction:
        """Store a validated transaction; the category must exist."""
        t = self._build(str(uuid4()), data)
        self._transactions = add_transaction(self._transactions, t)
        logger.info(f"Added {t.kind} {t.amount} in category {t.category_name}")
        return t

    def update(self, transaction_id: str, data: TransactionInput) -> Transaction:
        if self.get(transaction_id) is None:
            raise KeyError(transaction_id)
        t = self._build(transaction_id, data)
        self._transactions = replace_transaction(self._transactions, t)
        logger.info(f"Updated transaction {transaction_id}")
        return t

    def remove(self, transaction_id: str) -> Transaction:
        t = self.get(transaction_id)
        if t is None:
            raise KeyError(transaction_id)
        self._transactions = remove_transaction(self._transactions, transaction_id)
        logger.info(f"Removed transaction {transaction_id}")
        return t

    def find(self, params: Optional[FilterParams] = None) -> Tuple[Transaction, ...]:
        """Matching transactions, newest first."""
        pred = from_params(params or FilterParams())
        return tuple(sorted(
            (t for t in self._transactions if pred(t)),
            key=lambda t: t.occurred_at,
            reverse=True,
        ))

    def in_range(self, period: DateRange) -> Tuple[Transaction, ...]:
        pred = by_date_range(period.start_date, period.end_date)
        return tuple(t for t in self._transactions if pred(t))

    def page(self, params: FilterParams) -> Page:
        matched = self.find(params)
        start = (params.page - 1) * params.limit
        return Page(
            items=matched[start:start + params.limit],
            total=len(matched),
            page=params.page,
            limit=params.limit,
            total_pages=math.ceil(len(matched) / params.limit),
        )

    def has_duplicate(self, data: TransactionInput) -> bool:
        """Same amount and category within a minute of an existing entry."""
        amount = Decimal(data.amount)
        return any(
            t.amount == amount
            and t.category_id == data.category_id
            and abs(t.occurred_at - data.occurred_at) <= DUPLICATE_WINDOW
            for t in self._transactions
        )
