from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session
from typing import Optional

from config import settings
from infra.database.connection import get_session
from api.schemas.share import SlugRequest, SlugResponse, ShareRequest, ShareResponse
from app.services.share_app_service import ShareAppService

router = APIRouter()

NOT_SHARED = "Setlist not found or not publicly shared"

def _snapshot(service: ShareAppService, request: ShareRequest, response: Response) -> ShareResponse:
    share_slug = (request.share_slug or "").strip()
    if not share_slug:
        raise HTTPException(status_code=400, detail="share_slug parameter is required")

    snapshot = service.get_snapshot(share_slug, request.includeMetadata, request.includeMetrics)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=NOT_SHARED)

    response.headers["Cache-Control"] = f"public, max-age={settings.SHARE_CACHE_MAX_AGE}"
    return snapshot

@router.post("/functions/share-slug-generator", response_model=SlugResponse, response_model_exclude_none=True)
def generate_share_slug(request: Optional[SlugRequest] = None, session: Session = Depends(get_session)):
    service = ShareAppService(session)
    return service.generate_slug(request or SlugRequest())

@router.post("/functions/setlist-share", response_model=ShareResponse)
def setlist_share(response: Response, request: Optional[ShareRequest] = None, session: Session = Depends(get_session)):
    """公開用セットリスト (認証不要)"""
    service = ShareAppService(session)
    return _snapshot(service, request or ShareRequest(), response)

@router.get("/api/share/{share_slug}", response_model=ShareResponse)
def get_shared_setlist(
    share_slug: str,
    response: Response,
    include_metadata: bool = False,
    include_metrics: bool = False,
    session: Session = Depends(get_session)
):
    service = ShareAppService(session)
    request = ShareRequest(
        share_slug=share_slug,
        includeMetadata=include_metadata,
        includeMetrics=include_metrics,
    )
    return _snapshot(service, request, response)
