# Query gateway
from .base import ApiResponse, QueryGateway, SongQueries, LiveQueries, SetlistQueries, ShareQueries
from .local import LocalGateway
from .http import HttpGateway
