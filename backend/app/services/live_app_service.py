from typing import List, Optional, Dict, Any
from sqlmodel import Session

from domain.models.live import Live, LiveRead
from infra.repositories.live_repository import LiveRepository
from api.schemas.live import LiveFormData
from app.services.common import integrity_guard

class LiveAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = LiveRepository(session)

    def get_lives(self, band_id: str) -> List[LiveRead]:
        return [LiveRead.model_validate(l) for l in self.repository.find_by_band(band_id)]

    def get_upcoming(self, band_id: str) -> List[LiveRead]:
        return [LiveRead.model_validate(l) for l in self.repository.find_upcoming(band_id)]

    def get_by_share_slug(self, share_slug: str) -> Optional[LiveRead]:
        live = self.repository.get_by_share_slug(share_slug)
        return LiveRead.model_validate(live) if live else None

    def create_live(self, band_id: str, form: LiveFormData) -> LiveRead:
        live = Live(band_id=band_id, **form.model_dump())
        with integrity_guard(self.session, "create live"):
            live = self.repository.create(live)
        return LiveRead.model_validate(live)

    def update_live(self, live_id: str, changes: Dict[str, Any]) -> Optional[LiveRead]:
        live = self.repository.get_by_id(live_id)
        if not live:
            return None
        with integrity_guard(self.session, "update live"):
            live = self.repository.update(live, changes)
        return LiveRead.model_validate(live)

    def delete_live(self, live_id: str) -> bool:
        live = self.repository.get_by_id(live_id)
        if not live:
            return False
        self.repository.delete(live)
        return True
