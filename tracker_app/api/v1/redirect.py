from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from starlette.background import BackgroundTask

from tracker_app.dependencies import (
    get_affiliate_service,
    get_dispatcher,
    get_qr_service,
    get_redirect_pipeline,
)
from tracker_app.services.access_log_dispatcher import AccessLogDispatcher
from tracker_app.services.affiliate_service import AffiliateLinkService
from tracker_app.services.qr_service import QRCodeService
from tracker_app.services.redirect_pipeline import RedirectDecision, RedirectPipeline

router = APIRouter(tags=["redirect"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def tracked_redirect(decision: RedirectDecision, dispatcher: AccessLogDispatcher) -> RedirectResponse:
    """
    302 to the decided location.

    The access record is written by a background task that Starlette runs
    after the response has been sent, so the visitor never waits on it.
    """
    background = None
    if decision.record is not None:
        background = BackgroundTask(dispatcher.dispatch, decision.record)

    return RedirectResponse(
        url=decision.location,
        status_code=status.HTTP_302_FOUND,
        headers=NO_CACHE_HEADERS,
        background=background,
    )


@router.get("/r/{qr_id}")
async def redirect_qr_code(
    qr_id: str,
    request: Request,
    pipeline: RedirectPipeline = Depends(get_redirect_pipeline),
    qr_service: QRCodeService = Depends(get_qr_service),
    dispatcher: AccessLogDispatcher = Depends(get_dispatcher),
):
    """Tracking URL encoded in every QR code."""
    decision = await pipeline.handle(qr_id, qr_service.find_entity, request.headers, request.query_params)
    return tracked_redirect(decision, dispatcher)


@router.get("/a/{slug}")
async def redirect_affiliate_link(
    slug: str,
    request: Request,
    pipeline: RedirectPipeline = Depends(get_redirect_pipeline),
    affiliate_service: AffiliateLinkService = Depends(get_affiliate_service),
    dispatcher: AccessLogDispatcher = Depends(get_dispatcher),
):
    """Affiliate short link. Inactive links go to the inactive page and are not tracked."""
    decision = await pipeline.handle(slug, affiliate_service.find_entity, request.headers, request.query_params)
    return tracked_redirect(decision, dispatcher)
