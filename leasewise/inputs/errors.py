"""
errors.py — builders for the standard {error: {code, message, details}} envelope.

Shared by the calculator routes and the app-level exception handlers in main.py,
so a business-rule 422 has the same shape wherever the ValueError is caught.
"""
from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from fastapi.responses import JSONResponse

from leasewise.inputs.schemas import ErrorBody, ErrorDetail, ErrorResponse

VALIDATION_ERROR = "VALIDATION_ERROR"


def error_response(
    code: str,
    message: str,
    details: Optional[Iterable[dict[str, Any]]] = None,
    status_code: int = 500,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorBody(
            code=code,
            message=message,
            details=[ErrorDetail(field=d.get("field"), issue=d["issue"]) for d in details or []],
        )
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def violations_from_error(exc: ValueError) -> list[dict[str, Any]]:
    """
    Decode the validator's JSON violation list.
    Any other ValueError becomes a single field-less violation carrying its text.
    """
    text = str(exc)
    try:
        violations = json.loads(text)
    except ValueError:
        return [{"field": None, "issue": text}]
    if not isinstance(violations, list) or not all(
        isinstance(v, dict) and "issue" in v for v in violations
    ):
        return [{"field": None, "issue": text}]
    return violations


def validation_error_response(
    exc: ValueError,
    message: str = "Projection input validation failed",
) -> JSONResponse:
    """422 envelope with one detail per violation."""
    return error_response(
        code=VALIDATION_ERROR,
        message=message,
        details=violations_from_error(exc),
        status_code=422,
    )
