from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from typing import List

from infra.database.connection import get_session
from domain.exceptions import ConflictError
from domain.models.setlist import SetlistItemRead
from api.schemas.setlist import SetlistItemCreate, OrderUpdate
from app.services.setlist_app_service import SetlistAppService

router = APIRouter()

@router.get("/api/lives/{live_id}/setlist", response_model=List[SetlistItemRead])
def get_setlist(live_id: str, session: Session = Depends(get_session)):
    """ライブのセットリスト (楽曲情報付き, order_index 昇順)"""
    service = SetlistAppService(session)
    return service.get_setlist(live_id)

@router.post("/api/lives/{live_id}/setlist", response_model=SetlistItemRead)
def add_song(live_id: str, body: SetlistItemCreate, session: Session = Depends(get_session)):
    service = SetlistAppService(session)
    try:
        item = service.add_song(live_id, body.song_id, body.order_index)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not item:
        raise HTTPException(status_code=404, detail="Live not found")
    return item

@router.delete("/api/lives/{live_id}/setlist")
def clear_setlist(live_id: str, session: Session = Depends(get_session)):
    service = SetlistAppService(session)
    removed = service.clear_setlist(live_id)
    if removed is None:
        raise HTTPException(status_code=404, detail="Live not found")
    return {"ok": True, "removed": removed}

@router.patch("/api/setlist-items/{item_id}", response_model=SetlistItemRead)
def update_order(item_id: str, body: OrderUpdate, session: Session = Depends(get_session)):
    """
    並び順を変更する。移動先に別の曲があれば入れ替える。
    """
    service = SetlistAppService(session)
    try:
        item = service.update_order(item_id, body.order_index)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not item:
        raise HTTPException(status_code=404, detail="Setlist item not found")
    return item

@router.delete("/api/setlist-items/{item_id}")
def remove_song(item_id: str, session: Session = Depends(get_session)):
    service = SetlistAppService(session)
    if not service.remove_song(item_id):
        raise HTTPException(status_code=404, detail="Setlist item not found")
    return {"ok": True}
