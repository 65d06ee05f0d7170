from typing import List, Optional, Dict, Any
from sqlmodel import Session, select, desc
from datetime import datetime

from domain.models.live import Live

class LiveRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_band(self, band_id: str) -> List[Live]:
        query = select(Live).where(Live.band_id == band_id).order_by(desc(Live.date))
        return self.session.exec(query).all()

    def find_upcoming(self, band_id: str) -> List[Live]:
        query = (
            select(Live)
            .where(Live.band_id == band_id)
            .where(Live.is_upcoming == True)
            .order_by(Live.date)
        )
        return self.session.exec(query).all()

    def get_by_id(self, live_id: str) -> Optional[Live]:
        return self.session.get(Live, live_id)

    def get_by_share_slug(self, share_slug: str) -> Optional[Live]:
        return self.session.exec(select(Live).where(Live.share_slug == share_slug)).first()

    def slug_exists(self, share_slug: str) -> bool:
        return self.session.exec(select(Live.id).where(Live.share_slug == share_slug).limit(1)).first() is not None

    def create(self, live: Live) -> Live:
        self.session.add(live)
        self.session.commit()
        self.session.refresh(live)
        return live

    def update(self, live: Live, changes: Dict[str, Any]) -> Live:
        for key, value in changes.items():
            setattr(live, key, value)
        live.updated_at = datetime.now()
        self.session.add(live)
        self.session.commit()
        self.session.refresh(live)
        return live

    def delete(self, live: Live):
        # setlist_items は ON DELETE CASCADE で削除される
        self.session.delete(live)
        self.session.commit()
