from typing import List, Optional, Dict, Any
from sqlmodel import Session, select, desc
from sqlalchemy import func
from datetime import datetime

from domain.models.song import Song

class SongRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_band(self, band_id: str) -> List[Song]:
        query = (
            select(Song)
            .where(Song.band_id == band_id)
            .order_by(desc(Song.created_at))
        )
        return self.session.exec(query).all()

    def search(self, band_id: str, keywords: List[str]) -> List[Song]:
        """
        全キーワードが "title artist" の部分文字列に含まれる楽曲を返す (AND検索, 大文字小文字無視)
        """
        haystack = func.lower(Song.title + " " + Song.artist)
        query = select(Song).where(Song.band_id == band_id)
        for keyword in keywords:
            query = query.where(haystack.contains(keyword.lower(), autoescape=True))
        return self.session.exec(query.order_by(desc(Song.created_at))).all()

    def get_by_id(self, song_id: str) -> Optional[Song]:
        return self.session.get(Song, song_id)

    def create(self, song: Song) -> Song:
        self.session.add(song)
        self.session.commit()
        self.session.refresh(song)
        return song

    def update(self, song: Song, changes: Dict[str, Any]) -> Song:
        for key, value in changes.items():
            setattr(song, key, value)
        song.updated_at = datetime.now()
        self.session.add(song)
        self.session.commit()
        self.session.refresh(song)
        return song

    def delete(self, song: Song):
        # setlist_items は ON DELETE CASCADE で削除される
        self.session.delete(song)
        self.session.commit()
