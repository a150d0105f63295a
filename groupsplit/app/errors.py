"""
errors.py — AppError base class and error code registry.

Every error returned by the groupsplit API must use a code defined here.
Services raise AppError; anything else that escapes a request is a bug and
surfaces as INTERNAL_ERROR.

Rules:
  - Clients match on the code, never on the message. Codes stay stable;
    message wording can change.
  - The balance engine and share allocator never raise; these codes belong
    to the validation done by schemas and services before a record is stored.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Grouped by the HTTP status they are raised with. The values are the
# exact strings clients see in error.code.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_AMOUNT_PRECISION   = "INVALID_AMOUNT_PRECISION"
    INVALID_SPLIT_METHOD       = "INVALID_SPLIT_METHOD"
    INVALID_EXPENSE_TYPE       = "INVALID_EXPENSE_TYPE"
    INVALID_PAYMENT_METHOD     = "INVALID_PAYMENT_METHOD"
    INVALID_HISTORY_FILTER     = "INVALID_HISTORY_FILTER"
    INVALID_SNAPSHOT           = "INVALID_SNAPSHOT"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    GROUP_NOT_FOUND            = "GROUP_NOT_FOUND"
    PARTICIPANT_NOT_FOUND      = "PARTICIPANT_NOT_FOUND"
    TRANSACTION_NOT_FOUND      = "TRANSACTION_NOT_FOUND"

    # ── Business Rule Violations (422) ────────────────────────────────────
    PAYER_NOT_PARTICIPANT      = "PAYER_NOT_PARTICIPANT"
    SPLIT_PARTICIPANT_UNKNOWN  = "SPLIT_PARTICIPANT_UNKNOWN"
    RECIPIENT_NOT_PARTICIPANT  = "RECIPIENT_NOT_PARTICIPANT"
    SELF_PAYMENT               = "SELF_PAYMENT"
    NO_SPLIT_PARTICIPANTS      = "NO_SPLIT_PARTICIPANTS"
    NO_SPLIT_VALUES            = "NO_SPLIT_VALUES"
    SPLIT_SUM_MISMATCH         = "SPLIT_SUM_MISMATCH"
    PERCENTAGE_SUM_MISMATCH    = "PERCENTAGE_SUM_MISMATCH"
    NON_POSITIVE_TOTAL         = "NON_POSITIVE_TOTAL"
    PAYMENT_NOT_EDITABLE       = "PAYMENT_NOT_EDITABLE"
    NO_TRANSACTIONS            = "NO_TRANSACTIONS"

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


# ── Warning Code Registry ──────────────────────────────────────────────────
#
# Sent in the `warnings` array of a successful response. The request
# itself went through.
# ──────────────────────────────────────────────────────────────────────────

class WarningCode:

    # Payment amount exceeds what the sender currently owes the recipient.
    # The payment is still recorded.
    OVERPAYMENT           = "OVERPAYMENT"

    # A name passed to "add participants" is already in the group
    # (case-insensitive). The rest of the batch is still added.
    DUPLICATE_PARTICIPANT = "DUPLICATE_PARTICIPANT"
