"""
API v1 router: aggregates the room, student and fee endpoints.
"""
from fastapi import APIRouter

from hostel_ledger.api.v1 import fees, rooms, students
from hostel_ledger.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        404: {"description": "Not Found"},
        409: {"description": "Conflicting State"},
        422: {"description": "Validation Error"},
        429: {"description": "Retry Later"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(rooms.router)
router.include_router(students.router)
router.include_router(fees.router)

logger.debug("API v1 router initialized", extra={"total_routes": len(router.routes)})
