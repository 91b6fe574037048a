from typing import Any, Dict, List, Optional, Union

VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"
BAD_REQUEST = "BAD_REQUEST"
CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
NO_TRANSACTIONS = "NO_TRANSACTIONS"
DUPLICATE = "DUPLICATE"
HAS_TRANSACTIONS = "HAS_TRANSACTIONS"


class AppError(Exception):
    """Request-level failure carrying an HTTP status and a machine code."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Union[List[Dict[str, str]], Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        body = {"success": False, "error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


def not_found_error(resource: str) -> AppError:
    return AppError(f"{resource} không tồn tại", 404, NOT_FOUND)


def bad_request_error(message: str) -> AppError:
    return AppError(message, 400, BAD_REQUEST)
