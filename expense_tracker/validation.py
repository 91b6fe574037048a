"""Boundary validation of user input before it reaches the core."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Literal, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from expense_tracker.errors import VALIDATION_ERROR
from expense_tracker.functional import Either, Left, Right

M = TypeVar("M", bound=BaseModel)

Kind = Literal["income", "expense"]

# Vietnamese messages shown next to the offending field
FIELD_MESSAGES = {
    "amount": "Số tiền phải lớn hơn 0 và chỉ được có tối đa 2 chữ số thập phân",
    "kind": "Loại giao dịch không hợp lệ",
    "category_id": "Danh mục là bắt buộc",
    "occurred_at": "Ngày giao dịch không hợp lệ",
    "description": "Mô tả không được vượt quá 500 ký tự",
    "name": "Tên danh mục phải có từ 1 đến 50 ký tự",
    "search": "Từ khóa tìm kiếm không được vượt quá 100 ký tự",
    "page": "Số trang phải là số nguyên dương",
    "limit": "Số bản ghi mỗi trang phải từ 1 đến 100",
}


class TransactionInput(BaseModel):
    amount: Decimal = Field(gt=0, decimal_places=2)
    kind: Kind
    category_id: str = Field(min_length=1)
    occurred_at: datetime
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("occurred_at")
    @classmethod
    def _local_time(cls, v: datetime) -> datetime:
        return v.replace(tzinfo=None)


class CategoryInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=50)
    kind: Kind


class FilterParams(BaseModel):
    kind: Optional[Kind] = None
    category_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    search: Optional[str] = Field(default=None, max_length=100)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def _local_time(cls, v: Optional[datetime]) -> Optional[datetime]:
        return v.replace(tzinfo=None) if v is not None else v


def _error_payload(exc: ValidationError) -> Dict[str, Any]:
    details = []
    for err in exc.errors():
        loc = err["loc"]
        key = str(loc[0]) if loc else ""
        details.append({
            "field": ".".join(str(part) for part in loc),
            "message": FIELD_MESSAGES.get(key, err["msg"]),
        })
    return {
        "error": VALIDATION_ERROR,
        "message": "Dữ liệu không hợp lệ",
        "details": details,
    }


def validate(model: Type[M], data: Mapping[str, Any]) -> Either[Dict[str, Any], M]:
    try:
        return Right(model.model_validate(dict(data)))
    except ValidationError as e:
        return Left(_error_payload(e))


def validate_transaction(data: Mapping[str, Any]) -> Either[Dict[str, Any], TransactionInput]:
    return validate(TransactionInput, data)


def validate_category(data: Mapping[str, Any]) -> Either[Dict[str, Any], CategoryInput]:
    return validate(CategoryInput, data)


def validate_filters(data: Mapping[str, Any]) -> Either[Dict[str, Any], FilterParams]:
    # query strings send "" for untouched inputs
    cleaned = {k: v for k, v in data.items() if v not in ("", None)}
    return validate(FilterParams, cleaned)
