"""
Calculator HTTP routes — GET  /api/slabs/default,
                          POST /api/projection,
                          GET  /api/projection   (share-link query string),
                          POST /api/share-link,
                          POST /api/export

Every route resolves the slab table (default or validated custom), checks the
business rules, then calls the pure project() engine. When a Redis client is
on app.state the result is memoized by request value.
"""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from leasewise.cache import get_cached_projection, set_cached_projection
from leasewise.calculator.pdf_generator import generate_projection_report
from leasewise.calculator.projection import project
from leasewise.calculator.schemas import (
    ProjectionInput,
    ProjectionRequest,
    ProjectionResult,
)
from leasewise.calculator.tax_engine import default_slabs
from leasewise.config import settings
from leasewise.inputs.query_params import build_share_query, parse_query_params
from leasewise.inputs.errors import validation_error_response, violations_from_error
from leasewise.inputs.schemas import ShareLinkResponse
from leasewise.inputs.validator import parse_slab_table, validate_projection_input

router = APIRouter(prefix="/api", tags=["calculator"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _resolve_request(payload: ProjectionRequest) -> ProjectionRequest:
    """
    Validate inputs and slabs; return a request with the slab table filled in.
    Raises ValueError (JSON violations) — input and slab violations are merged.
    """
    violations: list[dict] = []
    try:
        validate_projection_input(payload.inputs)
    except ValueError as exc:
        violations.extend(violations_from_error(exc))

    if payload.slabs is None:
        slabs = default_slabs()
    else:
        try:
            slabs = parse_slab_table(payload.slabs, strict=settings.strict_slab_validation)
        except ValueError as exc:
            violations.extend(violations_from_error(exc))
            slabs = []

    if violations:
        raise ValueError(json.dumps(violations))
    return ProjectionRequest(inputs=payload.inputs, slabs=slabs)


async def _compute(request: Request, resolved: ProjectionRequest) -> ProjectionResult:
    """Run project(), going through the Redis memo when one is configured."""
    redis = getattr(request.app.state, "redis", None)

    if redis is not None:
        cached = await get_cached_projection(redis, resolved)
        if cached is not None:
            return ProjectionResult.model_validate(cached)

    result = project(resolved.inputs, resolved.slabs)

    if redis is not None:
        await set_cached_projection(redis, resolved, result.model_dump(mode="json"))
    return result


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/slabs/default")
async def get_default_slabs() -> JSONResponse:
    """Built-in new-regime slab table, in request-body shape."""
    return JSONResponse(
        status_code=200,
        content=[row.model_dump(mode="json") for row in default_slabs()],
    )


@router.post("/projection")
async def create_projection(request: Request, payload: ProjectionRequest) -> JSONResponse:
    """
    Run the lease vs buy projection.

    Body: {"inputs": ProjectionInput, "slabs": SlabTable | null}
    Returns:
      200: ProjectionResult
      422: VALIDATION_ERROR with every input and slab violation
    """
    try:
        resolved = _resolve_request(payload)
    except ValueError as exc:
        return validation_error_response(exc)

    result = await _compute(request, resolved)
    logger.info(
        "Projection computed years=%d recommended=%s break_even=%s",
        result.max_years,
        result.recommended_option,
        result.break_even_year,
    )
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.get("/projection")
async def projection_from_share_link(request: Request) -> JSONResponse:
    """
    Run the projection for a share-link query string with the default slab table.
    Unknown keys are ignored; unparseable values fall back to defaults.
    """
    inputs = parse_query_params(dict(request.query_params))
    try:
        resolved = _resolve_request(ProjectionRequest(inputs=inputs))
    except ValueError as exc:
        return validation_error_response(exc)

    result = await _compute(request, resolved)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/share-link")
async def create_share_link(inputs: ProjectionInput) -> JSONResponse:
    """Encode inputs as a share-link query string and full URL."""
    query = build_share_query(inputs)
    body = ShareLinkResponse(query=query, url=f"{settings.public_base_url}?{query}")
    return JSONResponse(status_code=200, content=body.model_dump())


@router.post("/export")
async def export_pdf(request: Request, payload: ProjectionRequest) -> StreamingResponse:
    """Generate and download the four-section lease vs buy PDF report."""
    try:
        resolved = _resolve_request(payload)
    except ValueError as exc:
        return validation_error_response(exc)

    result = await _compute(request, resolved)
    buffer = generate_projection_report(resolved.inputs, result, resolved.slabs)
    filename = "Car_Lease_vs_Buy_Analysis.pdf"
    logger.info("PDF exported filename=%s", filename)

    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
