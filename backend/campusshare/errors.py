"""
errors.py — AppError base class, error taxonomy and error code registry.

Every error returned by the CampusShare API uses a code defined here.
Do not raise strings or generic exceptions from repository, service or route code.

Taxonomy (one subclass per failure kind, each with a fixed HTTP status):
  NotFoundError          404 — entity absent
  ConflictError          409 — uniqueness / duplicate violation
  ForbiddenError         403 — actor lacks rights over the target entity
  InvalidOperationError  422 — illegal state transition or business-rule violation
  ResourceExhaustedError 409 — capacity limit reached (full study group)

Malformed input never reaches the services: marshmallow raises
ValidationError in the route and the global handler turns it into a 400.

Never conflate 401 (unauthenticated) with 403 (unauthorized).
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
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class NotFoundError(AppError):
    status = 404

    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        super().__init__(code, message, self.status, field)


class ConflictError(AppError):
    status = 409

    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        super().__init__(code, message, self.status, field)


class ForbiddenError(AppError):
    status = 403

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.FORBIDDEN, message, self.status)


class InvalidOperationError(AppError):
    status = 422

    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        super().__init__(code, message, self.status, field)


class ResourceExhaustedError(AppError):
    status = 409

    def __init__(self, code: str, message: str) -> None:
        super().__init__(code, message, self.status)


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response; treat them as a
# versioned contract.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    FREE_LISTING_PRICE         = "FREE_LISTING_PRICE"
    MALFORMED_REQUEST          = "MALFORMED_REQUEST"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"
    DUPLICATE_ITEM             = "DUPLICATE_ITEM"
    DUPLICATE_PENDING_PROPOSAL = "DUPLICATE_PENDING_PROPOSAL"
    ALREADY_FAVORITED          = "ALREADY_FAVORITED"
    ALREADY_MEMBER             = "ALREADY_MEMBER"
    GROUP_FULL                 = "GROUP_FULL"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    ITEM_NOT_FOUND             = "ITEM_NOT_FOUND"
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    LISTING_NOT_FOUND          = "LISTING_NOT_FOUND"
    PROPOSAL_NOT_FOUND         = "PROPOSAL_NOT_FOUND"
    GROUP_NOT_FOUND            = "GROUP_NOT_FOUND"
    FAVORITE_NOT_FOUND         = "FAVORITE_NOT_FOUND"
    ROUTE_NOT_FOUND            = "ROUTE_NOT_FOUND"

    # ── Method Not Allowed (405) ───────────────────────────────────────────
    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"

    # ── Business Rule Violations (422) ────────────────────────────────────
    OWN_LISTING_PROPOSAL       = "OWN_LISTING_PROPOSAL"
    LISTING_NOT_AVAILABLE      = "LISTING_NOT_AVAILABLE"
    PROPOSAL_NOT_PENDING       = "PROPOSAL_NOT_PENDING"
    PROPOSAL_ACCEPTED          = "PROPOSAL_ACCEPTED"
    NOT_A_MEMBER               = "NOT_A_MEMBER"
    ADMIN_CANNOT_LEAVE         = "ADMIN_CANNOT_LEAVE"
    GROUP_NOT_ACCEPTING        = "GROUP_NOT_ACCEPTING"
    CAPACITY_BELOW_MEMBERS     = "CAPACITY_BELOW_MEMBERS"
    SELF_RATING                = "SELF_RATING"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not allowed (unauthorized)
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"    # 401
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"
