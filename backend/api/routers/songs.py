from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session
from typing import List, Optional

from infra.database.connection import get_session
from domain.exceptions import ConflictError
from domain.models.song import SongRead
from api.schemas.song import SongFormData, SongUpdate
from app.services.song_app_service import SongAppService

router = APIRouter()

@router.get("/api/bands/{band_id}/songs", response_model=List[SongRead])
def get_songs(
    band_id: str,
    q: Optional[str] = Query(None),
    session: Session = Depends(get_session)
):
    """
    バンドの楽曲一覧 (作成日時の降順)。
    q を指定すると空白区切りの全キーワードが "title artist" に含まれる曲に絞り込む。
    """
    service = SongAppService(session)
    return service.get_songs(band_id, q)

@router.post("/api/bands/{band_id}/songs", response_model=SongRead)
def create_song(band_id: str, form: SongFormData, session: Session = Depends(get_session)):
    service = SongAppService(session)
    try:
        return service.create_song(band_id, form)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

@router.patch("/api/songs/{song_id}", response_model=SongRead)
def update_song(song_id: str, updates: SongUpdate, session: Session = Depends(get_session)):
    service = SongAppService(session)
    try:
        song = service.update_song(song_id, updates.model_dump(exclude_unset=True))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not song:
        raise HTTPException(status_code=404, detail="Song not found")
    return song

@router.delete("/api/songs/{song_id}")
def delete_song(song_id: str, session: Session = Depends(get_session)):
    service = SongAppService(session)
    if not service.delete_song(song_id):
        raise HTTPException(status_code=404, detail="Song not found")
    return {"ok": True}
