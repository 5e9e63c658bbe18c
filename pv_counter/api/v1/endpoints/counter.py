from fastapi import APIRouter, Depends, Query
from ....core.exceptions import MissingInput
from ....services.visit_counter import VisitCounterService
from ....schemas.counter import VisitResponse
from ...deps import check_origin, get_visit_counter_service

router = APIRouter(dependencies=[Depends(check_origin)])


@router.get("", response_model=VisitResponse)
async def record_visit(
    url: str | None = Query(default=None, description="Path of the visited page"),
    counter_service: VisitCounterService = Depends(get_visit_counter_service)
):
    """
    Record a visit for a page

    - Increments the page counter and the site-wide counter
    - Responds only after both counters are written
    - Counts are approximate when visits to the same page overlap
    """
    if not url:
        raise MissingInput("url")

    totals = await counter_service.record_visit(url)
    return VisitResponse(total=totals.site_total, page=totals.page_total)


@router.get("/count", response_model=VisitResponse)
async def get_visits(
    url: str | None = Query(default=None, description="Path of the page"),
    counter_service: VisitCounterService = Depends(get_visit_counter_service)
):
    """
    Get the current counters for a page without recording a visit
    """
    if not url:
        raise MissingInput("url")

    totals = await counter_service.get_counts(url)
    return VisitResponse(total=totals.site_total, page=totals.page_total)
