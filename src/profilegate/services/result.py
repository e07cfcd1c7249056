"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI and any future transport binding consume this type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from profilegate.domain.errors import ProfileGateError

VALIDATION_FAILED = "VALIDATION_FAILED"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: ProfileGateError) -> ServiceError:
        """Copy a typed domain error's code, message, and detail."""
        return cls(code=exc.code, message=exc.message, detail=dict(exc.detail))


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"send_request"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: ProfileGateError) -> ServiceResult:
        """Build a failed result from a typed domain error."""
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))

    @classmethod
    def invalid(cls, op: str, exc: ValueError) -> ServiceResult:
        """Build a failed result for malformed input (empty identity, bad decision)."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=VALIDATION_FAILED, message=str(exc)),
        )
