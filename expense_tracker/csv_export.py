"""CSV export of transactions (RFC 4180 quoting, UTF-8 BOM for Excel)."""
from datetime import datetime
from typing import Dict, Iterable, Optional

import pandas as pd

from expense_tracker.domain import EXPENSE, INCOME, Transaction
from expense_tracker.formatters import DateInput, Number, format_display_date, group_thousands

BOM = "\ufeff"
HEADERS = ("Ngày", "Loại", "Danh mục", "Số tiền (₫)", "Mô tả")
KIND_LABELS = {INCOME: "Thu nhập", EXPENSE: "Chi tiêu"}
_SPECIAL = (",", '"', "\r", "\n")


def escape_field(value: str) -> str:
    """Quote a cell when it holds a delimiter, quote or line break."""
    if any(ch in value for ch in _SPECIAL):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_date_field(value: DateInput) -> str:
    return format_display_date(value)


def format_amount_field(amount: Number) -> str:
    return group_thousands(amount)


def transaction_cells(t: Transaction) -> tuple:
    return (
        format_date_field(t.occurred_at),
        KIND_LABELS.get(t.kind, KIND_LABELS[EXPENSE]),
        t.category_name,
        format_amount_field(t.amount),
        t.description or "",
    )


def transactions_frame(trans: Iterable[Transaction]) -> pd.DataFrame:
    """One display-formatted string cell per column, in export order."""
    return pd.DataFrame([transaction_cells(t) for t in trans], columns=list(HEADERS), dtype=str)


def _row(cells: Iterable[str]) -> str:
    return ",".join(escape_field(c) for c in cells)


def generate_csv(trans: Iterable[Transaction]) -> str:
    df = transactions_frame(trans)
    rows = [_row(cells) for cells in df.itertuples(index=False, name=None)]
    # header is always followed by "\n", even with no data rows
    return BOM + _row(df.columns) + "\n" + "\n".join(rows)


def generate_filename(prefix: str = "transactions", now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{prefix}_{now:%Y-%m-%d}_{now:%H%M}.csv"


def download_headers(filename: str) -> Dict[str, str]:
    return {
        "Content-Type": "text/csv;charset=utf-8",
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-cache",
    }
