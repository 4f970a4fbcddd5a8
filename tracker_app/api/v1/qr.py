from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from tracker_app.dependencies import get_qr_service
from tracker_app.exceptions import EntityNotFoundError, PayloadTooLargeError
from tracker_app.rendering import RenderStyle
from tracker_app.schemas.qr import (
    QRCodeCreate,
    QRCodeResponse,
    QRPreviewRequest,
    QRStats,
    QRStylePatch,
    QRStyleResponse,
)
from tracker_app.services.qr_service import QRCodeService

router = APIRouter(prefix="/qr", tags=["qr"])

PNG = "image/png"


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found")


def _effective_style(style: RenderStyle) -> dict:
    return {
        "size": style.size,
        "margin": style.margin,
        "darkColor": style.dark_color,
        "lightColor": style.light_color,
        "logoSize": style.logo_size_percent,
        "moduleStyle": style.module_style.value,
        "hasLogo": style.logo is not None,
    }


@router.post("/", status_code=status.HTTP_201_CREATED, response_class=Response)
async def create_qr_code(
    data: QRCodeCreate,
    qr_service: QRCodeService = Depends(get_qr_service)
):
    """Create a QR code and return its PNG (id and tracking URL in headers)."""
    qr, image = await qr_service.create_qr_code(data)
    return Response(
        content=image,
        media_type=PNG,
        status_code=status.HTTP_201_CREATED,
        headers={
            "X-QR-ID": qr.id,
            "X-Tracking-URL": qr_service.tracking_url(qr.id),
        },
    )


@router.post("/preview", response_class=Response)
async def preview_qr_code(
    data: QRPreviewRequest,
    qr_service: QRCodeService = Depends(get_qr_service)
):
    """Render a style without saving anything."""
    try:
        image = await qr_service.preview(data)
    except PayloadTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return Response(
        content=image,
        media_type=PNG,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


@router.get("/", response_model=List[QRCodeResponse])
async def list_qr_codes(qr_service: QRCodeService = Depends(get_qr_service)):
    return await qr_service.list_qr_codes()


@router.get("/{qr_id}", response_class=Response)
async def get_qr_code_image(
    qr_id: str,
    request: Request,
    qr_service: QRCodeService = Depends(get_qr_service)
):
    """
    PNG of a stored code.

    The ETag changes whenever the style changes, so clients revalidate
    cheaply and get 304 until then.
    """
    qr = await qr_service.get_qr_code(qr_id)
    if not qr:
        raise _not_found()

    etag = qr_service.etag_for(qr)
    headers = {"ETag": etag, "Cache-Control": "no-cache, must-revalidate"}

    if request.headers.get("if-none-match") == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

    image = await qr_service.render_qr_code(qr)
    return Response(content=image, media_type=PNG, headers=headers)


@router.get("/{qr_id}/style", response_model=QRStyleResponse)
async def get_qr_code_style(
    qr_id: str,
    qr_service: QRCodeService = Depends(get_qr_service)
):
    qr = await qr_service.get_qr_code(qr_id)
    if not qr:
        raise _not_found()

    return QRStyleResponse(
        id=qr.id,
        name=qr.name,
        target_url=qr.target_url,
        style=qr.style or {},
        effective_style=_effective_style(qr_service.render_style_of(qr)),
        updated_at=qr.updated_at,
    )


@router.patch("/{qr_id}/style", response_class=Response)
async def update_qr_code_style(
    qr_id: str,
    patch: QRStylePatch,
    qr_service: QRCodeService = Depends(get_qr_service)
):
    """Update style fields only and return the regenerated PNG."""
    changes = patch.model_dump(by_alias=True, exclude_unset=True, mode="json")
    try:
        qr = await qr_service.update_style(qr_id, changes)
    except EntityNotFoundError:
        raise _not_found()

    image = await qr_service.render_qr_code(qr)
    return Response(
        content=image,
        media_type=PNG,
        headers={"ETag": qr_service.etag_for(qr), "Cache-Control": "no-cache, must-revalidate"},
    )


@router.get("/{qr_id}/stats", response_model=QRStats)
async def get_qr_code_stats(
    qr_id: str,
    qr_service: QRCodeService = Depends(get_qr_service)
):
    stats = await qr_service.get_stats(qr_id)
    if not stats:
        raise _not_found()
    return stats


@router.delete("/{qr_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_qr_code(
    qr_id: str,
    qr_service: QRCodeService = Depends(get_qr_service)
):
    """Delete a QR code and its access logs."""
    if not await qr_service.delete_qr_code(qr_id):
        raise _not_found()
