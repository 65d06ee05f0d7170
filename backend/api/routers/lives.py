from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from typing import List

from infra.database.connection import get_session
from domain.exceptions import ConflictError
from domain.models.live import LiveRead
from api.schemas.live import LiveFormData, LiveUpdate
from app.services.live_app_service import LiveAppService

router = APIRouter()

@router.get("/api/bands/{band_id}/lives", response_model=List[LiveRead])
def get_lives(band_id: str, session: Session = Depends(get_session)):
    service = LiveAppService(session)
    return service.get_lives(band_id)

@router.get("/api/bands/{band_id}/lives/upcoming", response_model=List[LiveRead])
def get_upcoming_lives(band_id: str, session: Session = Depends(get_session)):
    service = LiveAppService(session)
    return service.get_upcoming(band_id)

@router.post("/api/bands/{band_id}/lives", response_model=LiveRead)
def create_live(band_id: str, form: LiveFormData, session: Session = Depends(get_session)):
    service = LiveAppService(session)
    try:
        return service.create_live(band_id, form)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

@router.get("/api/lives/by-slug/{share_slug}", response_model=LiveRead)
def get_live_by_slug(share_slug: str, session: Session = Depends(get_session)):
    service = LiveAppService(session)
    live = service.get_by_share_slug(share_slug)
    if not live:
        raise HTTPException(status_code=404, detail="Live not found")
    return live

@router.patch("/api/lives/{live_id}", response_model=LiveRead)
def update_live(live_id: str, updates: LiveUpdate, session: Session = Depends(get_session)):
    service = LiveAppService(session)
    try:
        live = service.update_live(live_id, updates.model_dump(exclude_unset=True))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not live:
        raise HTTPException(status_code=404, detail="Live not found")
    return live

@router.delete("/api/lives/{live_id}")
def delete_live(live_id: str, session: Session = Depends(get_session)):
    service = LiveAppService(session)
    if not service.delete_live(live_id):
        raise HTTPException(status_code=404, detail="Live not found")
    return {"ok": True}
