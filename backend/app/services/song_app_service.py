from typing import List, Optional, Dict, Any
from sqlmodel import Session

from domain.models.song import Song, SongRead
from domain.services.song_search import split_keywords
from infra.repositories.song_repository import SongRepository
from api.schemas.song import SongFormData
from app.services.common import integrity_guard

class SongAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = SongRepository(session)

    def get_songs(self, band_id: str, query: Optional[str] = None) -> List[SongRead]:
        keywords = split_keywords(query or "")
        if keywords:
            songs = self.repository.search(band_id, keywords)
        else:
            songs = self.repository.find_by_band(band_id)
        return [SongRead.model_validate(s) for s in songs]

    def create_song(self, band_id: str, form: SongFormData) -> SongRead:
        song = Song(band_id=band_id, **form.model_dump())
        with integrity_guard(self.session, "create song"):
            song = self.repository.create(song)
        return SongRead.model_validate(song)

    def update_song(self, song_id: str, changes: Dict[str, Any]) -> Optional[SongRead]:
        song = self.repository.get_by_id(song_id)
        if not song:
            return None
        with integrity_guard(self.session, "update song"):
            song = self.repository.update(song, changes)
        return SongRead.model_validate(song)

    def delete_song(self, song_id: str) -> bool:
        song = self.repository.get_by_id(song_id)
        if not song:
            return False
        self.repository.delete(song)
        return True
