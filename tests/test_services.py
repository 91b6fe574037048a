from datetime import datetime
from decimal import Decimal

import pytest

from expense_tracker.csv_export import BOM
from expense_tracker.domain import Category, Transaction
from expense_tracker.errors import AppError
from expense_tracker.repository import TransactionRepository
from expense_tracker.services import CategoryService, ExportService, SummaryService, TransactionService


def make_repo():
    cats = (
        Category("salary", "Lương", "income"),
        Category("food", "Ăn uống", "expense"),
        Category("move", "Di chuyển", "expense"),
    )
    trans = (
        Transaction("t1", Decimal("2000000"), "income", "salary", "Lương", datetime(2025, 12, 15, 9, 0)),
        Transaction("t2", Decimal("500000"), "expense", "food", "Ăn uống", datetime(2025, 12, 16, 12, 0), "Tiệc, sinh nhật"),
        Transaction("t3", Decimal("300000"), "expense", "move", "Di chuyển", datetime(2025, 12, 21, 23, 59)),
        Transaction("t4", Decimal("70000"), "expense", "food", "Ăn uống", datetime(2025, 11, 30, 20, 0)),
    )
    return TransactionRepository(cats, trans)


def test_period_summary_month():
    payload = SummaryService(make_repo()).period_summary(datetime(2025, 12, 18), "month")
    assert payload["summary"] == {
        "totalIncome": 2000000.0,
        "totalExpenses": 800000.0,
        "netBalance": 1200000.0,
        "transactionCount": 3,
    }
    assert [c["categoryName"] for c in payload["byCategory"]] == ["Lương", "Ăn uống", "Di chuyển"]
    assert [c["percentage"] for c in payload["byCategory"]] == [100.0, 62.5, 37.5]
    assert payload["label"] == "Tháng 12 năm 2025"
    assert payload["dateRange"]["startDate"] == "2025-12-01T00:00:00"


def test_period_summary_week_includes_sunday_night():
    payload = SummaryService(make_repo()).period_summary("2025-12-18", "week")
    assert payload["summary"]["transactionCount"] == 3
    assert payload["label"] == "Tuần 51, 2025"


def test_period_summary_empty_day():
    payload = SummaryService(make_repo()).period_summary(datetime(2025, 12, 1), "day")
    assert payload["summary"]["transactionCount"] == 0
    assert payload["byCategory"] == []


def test_range_summary_widens_end_to_end_of_day():
    payload = SummaryService(make_repo()).range_summary("2025-11-30", "2025-12-15")
    assert payload["summary"]["transactionCount"] == 2
    assert payload["label"] == "30/11/2025 - 15/12/2025"


def test_range_summary_rejects_reversed_range():
    with pytest.raises(AppError) as exc:
        SummaryService(make_repo()).range_summary("2025-12-15", "2025-12-01")
    assert exc.value.status_code == 400


def test_range_summary_rejects_bad_date():
    with pytest.raises(AppError) as exc:
        SummaryService(make_repo()).range_summary("not-a-date", "2025-12-01")
    assert exc.value.code == "BAD_REQUEST"


def test_export_csv():
    result = ExportService(make_repo()).export_csv({"kind": "expense"}, now=datetime(2025, 12, 18, 14, 30))
    assert result.filename == "transactions_2025-12-18_1430.csv"
    assert result.headers["Content-Disposition"] == 'attachment; filename="transactions_2025-12-18_1430.csv"'
    lines = result.content.split("\n")
    assert lines[0].startswith(BOM)
    assert len(lines) == 4
    assert lines[1].startswith("21/12/2025,Chi tiêu,Di chuyển,300.000")
    assert '"Tiệc, sinh nhật"' in lines[2]


def test_export_end_date_is_inclusive_of_whole_day():
    result = ExportService(make_repo()).export_csv({"start_date": "2025-12-21T00:00:00", "end_date": "2025-12-21T00:00:00"})
    assert len(result.content.split("\n")) == 2


def test_export_nothing_found():
    with pytest.raises(AppError) as exc:
        ExportService(make_repo()).export_csv({"search": "không có"})
    assert exc.value.status_code == 404
    assert exc.value.code == "NO_TRANSACTIONS"


def test_export_invalid_filters():
    with pytest.raises(AppError) as exc:
        ExportService(make_repo()).export_csv({"kind": "transfer"})
    assert exc.value.code == "VALIDATION_ERROR"
    assert exc.value.details[0]["field"] == "kind"


def test_create_transaction():
    repo = make_repo()
    result = TransactionService(repo).create({
        "amount": "45000",
        "kind": "expense",
        "category_id": "food",
        "occurred_at": "2025-12-20T12:00:00",
    })
    assert result["success"] is True
    assert result["warning"] is None
    assert result["data"]["categoryName"] == "Ăn uống"
    assert len(repo.transactions) == 5


def test_create_transaction_warns_on_duplicate():
    result = TransactionService(make_repo()).create({
        "amount": 500000,
        "kind": "expense",
        "category_id": "food",
        "occurred_at": "2025-12-16T12:00:30",
    })
    assert result["warning"] == "Giao dịch tương tự đã tồn tại"


def test_create_transaction_unknown_category():
    with pytest.raises(AppError) as exc:
        TransactionService(make_repo()).create({
            "amount": 1000,
            "kind": "expense",
            "category_id": "missing",
            "occurred_at": "2025-12-20T12:00:00",
        })
    assert exc.value.status_code == 404
    assert exc.value.code == "CATEGORY_NOT_FOUND"


def test_create_transaction_invalid_payload():
    with pytest.raises(AppError) as exc:
        TransactionService(make_repo()).create({"amount": -5})
    assert exc.value.status_code == 400
    assert exc.value.to_dict()["details"]


def test_list_paginates_newest_first():
    listing = TransactionService(make_repo()).list({"limit": 2})
    assert [t["id"] for t in listing["items"]] == ["t3", "t2"]
    assert listing["total"] == 4
    assert listing["totalPages"] == 2


def test_get_transaction():
    assert TransactionService(make_repo()).get("t2")["description"] == "Tiệc, sinh nhật"


def test_get_missing_transaction():
    with pytest.raises(AppError) as exc:
        TransactionService(make_repo()).get("nope")
    assert exc.value.status_code == 404
    assert exc.value.code == "NOT_FOUND"


def test_list_categories():
    names = [c["name"] for c in CategoryService(make_repo()).list("expense")]
    assert names == ["Ăn uống", "Di chuyển"]


def test_create_category():
    repo = make_repo()
    result = CategoryService(repo).create({"name": "  Giáo dục ", "kind": "expense"})
    assert result["data"]["name"] == "Giáo dục"
    assert len(repo.list_categories("expense")) == 3


def test_create_category_rejects_duplicate_name():
    with pytest.raises(AppError) as exc:
        CategoryService(make_repo()).create({"name": "ăn uống", "kind": "expense"})
    assert exc.value.status_code == 409
    assert exc.value.code == "DUPLICATE"


def test_same_name_allowed_for_other_kind():
    result = CategoryService(make_repo()).create({"name": "Ăn uống", "kind": "income"})
    assert result["data"]["type"] == "income"


def test_period_summary_rejects_unknown_granularity():
    with pytest.raises(AppError) as exc:
        SummaryService(make_repo()).period_summary("2025-01-01", "year")
    assert exc.value.status_code == 400
    assert exc.value.code == "BAD_REQUEST"


def test_period_summary_rejects_bad_reference_date():
    with pytest.raises(AppError) as exc:
        SummaryService(make_repo()).period_summary("not-a-date", "month")
    assert exc.value.status_code == 400
    assert exc.value.code == "BAD_REQUEST"


def test_period_totals_matches_payload():
    service = SummaryService(make_repo())
    period, summary = service.period_totals(datetime(2025, 12, 18), "month")
    assert period.start_date == datetime(2025, 12, 1)
    assert summary.transaction_count == 3
    assert service.to_payload(period, summary) == service.period_summary(datetime(2025, 12, 18), "month")


def test_update_transaction():
    repo = make_repo()
    result = TransactionService(repo).update("t4", {
        "amount": "90000",
        "kind": "expense",
        "category_id": "move",
        "occurred_at": "2025-11-30T21:00:00",
        "description": "Taxi",
    })
    assert result["data"]["id"] == "t4"
    assert result["data"]["categoryName"] == "Di chuyển"
    assert repo.get("t4").amount == Decimal("90000")


def test_update_missing_transaction():
    with pytest.raises(AppError) as exc:
        TransactionService(make_repo()).update("nope", {
            "amount": 1000,
            "kind": "expense",
            "category_id": "food",
            "occurred_at": "2025-12-20T12:00:00",
        })
    assert exc.value.status_code == 404
    assert exc.value.code == "NOT_FOUND"


def test_update_transaction_unknown_category():
    with pytest.raises(AppError) as exc:
        TransactionService(make_repo()).update("t4", {
            "amount": 1000,
            "kind": "expense",
            "category_id": "missing",
            "occurred_at": "2025-12-20T12:00:00",
        })
    assert exc.value.status_code == 404
    assert exc.value.code == "CATEGORY_NOT_FOUND"


def test_update_transaction_invalid_payload():
    with pytest.raises(AppError) as exc:
        TransactionService(make_repo()).update("t4", {"amount": 0})
    assert exc.value.code == "VALIDATION_ERROR"


def test_delete_transaction():
    repo = make_repo()
    result = TransactionService(repo).delete("t2")
    assert result["data"]["message"] == "Giao dịch đã được xóa thành công"
    assert repo.get("t2") is None
    with pytest.raises(AppError) as exc:
        TransactionService(repo).delete("t2")
    assert exc.value.status_code == 404


def test_get_category_with_count():
    assert CategoryService(make_repo()).get("food") == {
        "id": "food",
        "name": "Ăn uống",
        "type": "expense",
        "transactionCount": 2,
    }


def test_get_missing_category():
    with pytest.raises(AppError) as exc:
        CategoryService(make_repo()).get("nope")
    assert exc.value.status_code == 404
    assert exc.value.code == "NOT_FOUND"


def test_update_category_keeps_own_name_and_renames_transactions():
    repo = make_repo()
    service = CategoryService(repo)
    assert service.update("food", {"name": "Ăn uống", "kind": "expense"})["data"]["name"] == "Ăn uống"
    service.update("food", {"name": "Ẩm thực", "kind": "expense"})
    assert repo.get("t2").category_name == "Ẩm thực"


def test_update_category_rejects_taken_name():
    with pytest.raises(AppError) as exc:
        CategoryService(make_repo()).update("food", {"name": "di chuyển", "kind": "expense"})
    assert exc.value.status_code == 409
    assert exc.value.code == "DUPLICATE"


def test_update_missing_category():
    with pytest.raises(AppError) as exc:
        CategoryService(make_repo()).update("nope", {"name": "Mới", "kind": "expense"})
    assert exc.value.status_code == 404


def test_delete_category_with_transactions_is_refused():
    with pytest.raises(AppError) as exc:
        CategoryService(make_repo()).delete("food")
    assert exc.value.status_code == 409
    assert exc.value.code == "HAS_TRANSACTIONS"
    assert exc.value.to_dict()["details"] == {"transactionCount": 2}


def test_delete_empty_category():
    repo = make_repo()
    service = CategoryService(repo)
    created = service.create({"name": "Giáo dục", "kind": "expense"})["data"]
    assert service.delete(created["id"])["success"] is True
    assert repo.get_category(created["id"]) is None
