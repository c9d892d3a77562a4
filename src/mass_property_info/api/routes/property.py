from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from mass_property_info.errors import PropertyLookupError
from mass_property_info.schema import PropertyQuery
from mass_property_info.session import PropertyInfoService


logger = logging.getLogger("mpi.api")

router = APIRouter(prefix="/property", tags=["property"])


def get_property_service() -> PropertyInfoService:
    return PropertyInfoService()


def _error_response(exc: PropertyLookupError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@router.post("/info")
async def property_info(
    payload: Any = Body(default=None),
    service: PropertyInfoService = Depends(get_property_service),
):
    try:
        query = PropertyQuery.from_payload(payload)
    except PropertyLookupError as exc:
        return _error_response(exc)

    try:
        record = await service.fetch(query)
    except PropertyLookupError as exc:
        logger.warning("property lookup failed: %s", exc.message)
        return _error_response(exc)
    except Exception as exc:
        logger.exception("property lookup crashed")
        wrapped = PropertyLookupError(str(exc) or "Failed to fetch property information")
        return _error_response(wrapped)

    return {"success": True, "data": record.to_json_dict()}
