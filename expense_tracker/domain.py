from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

INCOME = "income"
EXPENSE = "expense"
KINDS = (INCOME, EXPENSE)

DAY = "day"
WEEK = "week"
MONTH = "month"
GRANULARITIES = (DAY, WEEK, MONTH)


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    kind: str  # "income" or "expense"


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Decimal        # always positive, VND
    kind: str              # "income" or "expense"
    category_id: str
    category_name: str     # resolved by the store
    occurred_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class DateRange:
    start_date: datetime
    end_date: datetime
    granularity: str


@dataclass(frozen=True)
class CategorySummary:
    category_id: str
    category_name: str
    kind: str
    total_amount: Decimal
    transaction_count: int
    percentage: Decimal    # share within its kind, 0-100


@dataclass(frozen=True)
class Summary:
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    transaction_count: int
    by_category: Tuple[CategorySummary, ...]
