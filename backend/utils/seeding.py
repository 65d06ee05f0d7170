from sqlmodel import Session

from config import settings
from domain.models.band import Band
from infra.repositories.band_repository import BandRepository
from utils.logger import get_logger

logger = get_logger(__name__)

def seed_initial_data(session: Session):
    """既定のバンド (Songs/Lives のスコープ) が無ければ作成する"""
    repository = BandRepository(session)
    band = repository.get_by_id(settings.DEFAULT_BAND_ID)
    if band:
        return band

    band = repository.create(Band(id=settings.DEFAULT_BAND_ID, name=settings.DEFAULT_BAND_NAME))
    logger.info(f"Seeded default band {band.id}")
    return band
