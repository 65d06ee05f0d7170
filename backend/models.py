# Import moved models
from domain.models.band import Band
from domain.models.song import Song, SongRead
from domain.models.live import Live, LiveRead
from domain.models.setlist import SetlistItem, SetlistItemRead
