from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from expense_tracker.aggregation import summarize, summary_to_dict
from expense_tracker.csv_export import download_headers, generate_csv, generate_filename
from expense_tracker.domain import GRANULARITIES, Category, DateRange, Summary, Transaction
from expense_tracker.errors import (
    CATEGORY_NOT_FOUND,
    DUPLICATE,
    HAS_TRANSACTIONS,
    NO_TRANSACTIONS,
    NOT_FOUND,
    AppError,
    bad_request_error,
    not_found_error,
)
from expense_tracker.formatters import DateInput, format_display_date, to_datetime
from expense_tracker.functional import Either, Left, Right, pipe
from expense_tracker.logger import get_logger
from expense_tracker.periods import date_range, end_of_day, format_period_label
from expense_tracker.repository import TransactionRepository
from expense_tracker.validation import (
    CategoryInput,
    FilterParams,
    TransactionInput,
    validate_category,
    validate_filters,
    validate_transaction,
)

logger = get_logger(__name__)

DUPLICATE_WARNING = "Giao dịch tương tự đã tồn tại"


def transaction_to_dict(t: Transaction) -> Dict[str, Any]:
    return {
        "id": t.id,
        "amount": float(t.amount),
        "type": t.kind,
        "categoryId": t.category_id,
        "categoryName": t.category_name,
        "date": t.occurred_at.isoformat(),
        "description": t.description,
    }


def category_to_dict(c: Category) -> Dict[str, Any]:
    return {"id": c.id, "name": c.name, "type": c.kind}


def _raise_left(error: Dict[str, Any]) -> None:
    raise AppError(
        error["message"],
        error.get("status", 400),
        error["error"],
        error.get("details"),
    )


def _right_or_raise(result: Either) -> Any:
    if result.is_left():
        _raise_left(result.get_error())
    return result.get_or_else(None)


def _filters_or_raise(data: Mapping[str, Any]) -> FilterParams:
    params = _right_or_raise(validate_filters(data))
    if params.end_date is not None:
        params = params.model_copy(update={"end_date": end_of_day(params.end_date)})
    return params


def period_label(period: DateRange) -> str:
    if period.granularity in GRANULARITIES:
        return format_period_label(period.start_date, period.end_date, period.granularity)
    return f"{format_display_date(period.start_date)} - {format_display_date(period.end_date)}"


class SummaryService:
    """Dashboard figures for a period, in the summary endpoint's JSON shape."""

    def __init__(self, repo: TransactionRepository):
        self.repo = repo

    def to_payload(self, period: DateRange, summary: Summary) -> Dict[str, Any]:
        payload = summary_to_dict(summary, period)
        payload["label"] = period_label(period)
        return payload

    def period_totals(self, reference: DateInput, granularity: str) -> Tuple[DateRange, Summary]:
        """The period around ``reference`` and its summary, computed once."""
        if granularity not in GRANULARITIES:
            raise bad_request_error(f"Khoảng thời gian không hợp lệ: {granularity}")
        try:
            period = date_range(to_datetime(reference), granularity)
        except ValueError:
            raise bad_request_error("Định dạng ngày không hợp lệ")
        return period, pipe(period, self.repo.in_range, summarize)

    def period_summary(self, reference: DateInput, granularity: str) -> Dict[str, Any]:
        payload = self.to_payload(*self.period_totals(reference, granularity))
        logger.info(
            f"Summary for {payload['label']}: {payload['summary']['transactionCount']} transactions"
        )
        return payload

    def range_summary(self, start: DateInput, end: DateInput) -> Dict[str, Any]:
        """Summary of an explicit range; ``end`` is widened to the end of its day."""
        try:
            start_dt = to_datetime(start)
            end_dt = end_of_day(to_datetime(end))
        except ValueError:
            raise bad_request_error("Định dạng ngày không hợp lệ")
        if start_dt > end_dt:
            raise bad_request_error("Ngày bắt đầu không được sau ngày kết thúc")
        period = DateRange(start_dt, end_dt, "custom")
        return self.to_payload(period, pipe(period, self.repo.in_range, summarize))


@dataclass(frozen=True)
class ExportResult:
    content: str
    filename: str
    headers: Dict[str, str]


class ExportService:

    def __init__(self, repo: TransactionRepository, prefix: str = "transactions"):
        self.repo = repo
        self.prefix = prefix

    def export_csv(self, filters: Mapping[str, Any], now: Optional[datetime] = None) -> ExportResult:
        """All matching transactions (no paging), newest first, as a CSV download."""
        params = _filters_or_raise(filters)
        trans = self.repo.find(params)
        if not trans:
            raise AppError("Không có giao dịch nào để xuất", 404, NO_TRANSACTIONS)

        filename = generate_filename(self.prefix, now)
        logger.info(f"Exported {len(trans)} transactions to {filename}")
        return ExportResult(generate_csv(trans), filename, download_headers(filename))


class TransactionService:

    def __init__(self, repo: TransactionRepository):
        self.repo = repo

    def _check_category(self, data: TransactionInput) -> Either[Dict[str, Any], TransactionInput]:
        if self.repo.get_category(data.category_id) is None:
            return Left({
                "error": CATEGORY_NOT_FOUND,
                "message": "Danh mục không tồn tại",
                "status": 404,
            })
        return Right(data)

    def _require(self, transaction_id: str) -> Transaction:
        t = self.repo.get(transaction_id)
        if t is None:
            raise not_found_error("Giao dịch")
        return t

    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        result = validate_transaction(payload).bind(self._check_category)
        if result.is_left():
            logger.warning(f"Rejected transaction: {result.get_error()['error']}")
            _raise_left(result.get_error())

        data = result.get_or_else(None)
        warning = DUPLICATE_WARNING if self.repo.has_duplicate(data) else None
        t = self.repo.add(data)
        return {"success": True, "data": transaction_to_dict(t), "warning": warning}

    def list(self, query: Mapping[str, Any]) -> Dict[str, Any]:
        page = self.repo.page(_filters_or_raise(query))
        return {
            "items": [transaction_to_dict(t) for t in page.items],
            "total": page.total,
            "page": page.page,
            "limit": page.limit,
            "totalPages": page.total_pages,
        }

    def get(self, transaction_id: str) -> Dict[str, Any]:
        return transaction_to_dict(self._require(transaction_id))

    def update(self, transaction_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        data = _right_or_raise(validate_transaction(payload))
        self._require(transaction_id)
        _right_or_raise(self._check_category(data))
        t = self.repo.update(transaction_id, data)
        return {"success": True, "data": transaction_to_dict(t)}

    def delete(self, transaction_id: str) -> Dict[str, Any]:
        self._require(transaction_id)
        self.repo.remove(transaction_id)
        return {"success": True, "data": {"message": "Giao dịch đã được xóa thành công"}}


class CategoryService:

    def __init__(self, repo: TransactionRepository):
        self.repo = repo

    def _require(self, category_id: str) -> Category:
        category = self.repo.get_category(category_id)
        if category is None:
            raise AppError("Không tìm thấy danh mục", 404, NOT_FOUND)
        return category

    def _check_unique(
        self, data: CategoryInput, exclude_id: Optional[str] = None
    ) -> Either[Dict[str, Any], CategoryInput]:
        taken = {
            c.name.casefold()
            for c in self.repo.list_categories(data.kind)
            if c.id != exclude_id
        }
        if data.name.casefold() in taken:
            return Left({
                "error": DUPLICATE,
                "message": "Tên danh mục đã tồn tại",
                "status": 409,
            })
        return Right(data)

    def list(self, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        return [category_to_dict(c) for c in self.repo.list_categories(kind)]

    def get(self, category_id: str) -> Dict[str, Any]:
        category = self._require(category_id)
        return {**category_to_dict(category), "transactionCount": self.repo.count_for_category(category_id)}

    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        data = _right_or_raise(validate_category(payload).bind(self._check_unique))
        return {"success": True, "data": category_to_dict(self.repo.add_category(data))}

    def update(self, category_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        data = _right_or_raise(validate_category(payload))
        self._require(category_id)
        _right_or_raise(self._check_unique(data, exclude_id=category_id))
        return {"success": True, "data": category_to_dict(self.repo.update_category(category_id, data))}

    def delete(self, category_id: str) -> Dict[str, Any]:
        """Only categories without transactions can be removed."""
        self._require(category_id)
        count = self.repo.count_for_category(category_id)
        if count:
            raise AppError(
                f"Không thể xóa danh mục có {count} giao dịch. "
                "Vui lòng chuyển các giao dịch sang danh mục khác trước.",
                409,
                HAS_TRANSACTIONS,
                {"transactionCount": count},
            )
        self.repo.remove_category(category_id)
        return {"success": True, "message": "Đã xóa danh mục thành công"}
