from typing import Optional
from sqlmodel import Session

from domain.models.band import Band

class BandRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, band_id: str) -> Optional[Band]:
        return self.session.get(Band, band_id)

    def create(self, band: Band) -> Band:
        self.session.add(band)
        self.session.commit()
        self.session.refresh(band)
        return band
