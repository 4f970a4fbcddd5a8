from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tracker_app.dependencies import get_affiliate_service
from tracker_app.exceptions import EntityNotFoundError, InvalidDestinationError, SlugConflictError
from tracker_app.schemas.affiliate import (
    AffiliateLinkCreate,
    AffiliateLinkDetail,
    AffiliateLinkResponse,
    AffiliateLinkUpdate,
)
from tracker_app.services.affiliate_service import AffiliateLinkService

router = APIRouter(prefix="/affiliate", tags=["affiliate"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affiliate link not found")


@router.get("/", response_model=List[AffiliateLinkResponse])
async def list_affiliate_links(
    created_by: Optional[str] = Query(None, alias="createdBy"),
    category: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    affiliate_service: AffiliateLinkService = Depends(get_affiliate_service)
):
    return await affiliate_service.list_links(created_by=created_by, category=category, is_active=is_active)


@router.post("/", response_model=AffiliateLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_affiliate_link(
    data: AffiliateLinkCreate,
    affiliate_service: AffiliateLinkService = Depends(get_affiliate_service)
):
    try:
        return await affiliate_service.create_link(data)
    except InvalidDestinationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SlugConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Slug '{e}' is already in use"
        )


@router.get("/{link_id}", response_model=AffiliateLinkDetail)
async def get_affiliate_link(
    link_id: str,
    affiliate_service: AffiliateLinkService = Depends(get_affiliate_service)
):
    """Link with click stats and the 50 most recent accesses."""
    details = await affiliate_service.get_link_details(link_id)
    if not details:
        raise _not_found()
    return details


@router.put("/{link_id}", response_model=AffiliateLinkResponse)
async def update_affiliate_link(
    link_id: str,
    data: AffiliateLinkUpdate,
    affiliate_service: AffiliateLinkService = Depends(get_affiliate_service)
):
    try:
        return await affiliate_service.update_link(link_id, data)
    except EntityNotFoundError:
        raise _not_found()
    except InvalidDestinationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_affiliate_link(
    link_id: str,
    affiliate_service: AffiliateLinkService = Depends(get_affiliate_service)
):
    if not await affiliate_service.delete_link(link_id):
        raise _not_found()
