"""REST gateway: talks to the LiveLink API over HTTP with ``requests``."""
import asyncio
from typing import Any, Callable, Dict, List, Optional
import requests

from config import settings
from domain.models.song import SongRead
from domain.models.live import LiveRead
from domain.models.setlist import SetlistItemRead
from api.schemas.song import SongFormData, SongUpdate
from api.schemas.live import LiveFormData, LiveUpdate
from api.schemas.share import SlugResponse, ShareResponse
from gateway.base import (
    ApiResponse,
    QueryGateway,
    SongQueries,
    LiveQueries,
    SetlistQueries,
    ShareQueries,
)
from utils.logger import get_logger

logger = get_logger(__name__)

def _error_message(response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if detail:
        return detail if isinstance(detail, str) else str(detail)
    return response.text or f"HTTP {response.status_code}"

def _list_of(model) -> Callable[[Any], list]:
    return lambda payload: [model.model_validate(row) for row in payload]

class HttpGateway(QueryGateway):
    """
    requests はブロッキングなので、呼び出しは asyncio.to_thread で実行する。
    http には requests.Session 互換のオブジェクト (テストでは TestClient) を渡せる。
    """

    def __init__(self, base_url: Optional[str] = None, http=None, timeout: Optional[float] = None):
        self.base_url = (settings.API_BASE_URL if base_url is None else base_url).rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout or settings.GATEWAY_TIMEOUT
        self.songs = HttpSongQueries(self)
        self.lives = HttpLiveQueries(self)
        self.setlists = HttpSetlistQueries(self)
        self.share = HttpShareQueries(self)

    async def call(
        self,
        method: str,
        path: str,
        parse: Optional[Callable[[Any], Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        url = f"{self.base_url}{path}"

        def send():
            return self.http.request(method, url, params=params, json=json, timeout=self.timeout)

        try:
            response = await asyncio.to_thread(send)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            return ApiResponse(error=str(e))

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"{method} {url} -> {response.status_code}: {message}")
            return ApiResponse(error=message)

        return ApiResponse(data=parse(response.json()) if parse else None)

class HttpSongQueries(SongQueries):
    def __init__(self, gateway: HttpGateway):
        self.gateway = gateway

    async def get_all(self, band_id: str) -> ApiResponse[List[SongRead]]:
        return await self.gateway.call("GET", f"/api/bands/{band_id}/songs", _list_of(SongRead))

    async def search(self, band_id: str, query: str) -> ApiResponse[List[SongRead]]:
        return await self.gateway.call("GET", f"/api/bands/{band_id}/songs", _list_of(SongRead), params={"q": query})

    async def create(self, band_id: str, form: SongFormData) -> ApiResponse[SongRead]:
        return await self.gateway.call(
            "POST", f"/api/bands/{band_id}/songs", SongRead.model_validate, json=form.model_dump(mode="json")
        )

    async def update(self, song_id: str, updates: SongUpdate) -> ApiResponse[SongRead]:
        return await self.gateway.call(
            "PATCH", f"/api/songs/{song_id}", SongRead.model_validate,
            json=updates.model_dump(mode="json", exclude_unset=True),
        )

    async def delete(self, song_id: str) -> ApiResponse[None]:
        return await self.gateway.call("DELETE", f"/api/songs/{song_id}")

class HttpLiveQueries(LiveQueries):
    def __init__(self, gateway: HttpGateway):
        self.gateway = gateway

    async def get_all(self, band_id: str) -> ApiResponse[List[LiveRead]]:
        return await self.gateway.call("GET", f"/api/bands/{band_id}/lives", _list_of(LiveRead))

    async def get_upcoming(self, band_id: str) -> ApiResponse[List[LiveRead]]:
        return await self.gateway.call("GET", f"/api/bands/{band_id}/lives/upcoming", _list_of(LiveRead))

    async def get_by_share_slug(self, share_slug: str) -> ApiResponse[LiveRead]:
        return await self.gateway.call("GET", f"/api/lives/by-slug/{share_slug}", LiveRead.model_validate)

    async def create(self, band_id: str, form: LiveFormData) -> ApiResponse[LiveRead]:
        return await self.gateway.call(
            "POST", f"/api/bands/{band_id}/lives", LiveRead.model_validate, json=form.model_dump(mode="json")
        )

    async def update(self, live_id: str, updates: LiveUpdate) -> ApiResponse[LiveRead]:
        return await self.gateway.call(
            "PATCH", f"/api/lives/{live_id}", LiveRead.model_validate,
            json=updates.model_dump(mode="json", exclude_unset=True),
        )

    async def delete(self, live_id: str) -> ApiResponse[None]:
        return await self.gateway.call("DELETE", f"/api/lives/{live_id}")

class HttpSetlistQueries(SetlistQueries):
    def __init__(self, gateway: HttpGateway):
        self.gateway = gateway

    async def get_by_live_id(self, live_id: str) -> ApiResponse[List[SetlistItemRead]]:
        return await self.gateway.call("GET", f"/api/lives/{live_id}/setlist", _list_of(SetlistItemRead))

    async def add_song(self, live_id: str, song_id: str, order_index: int) -> ApiResponse[SetlistItemRead]:
        return await self.gateway.call(
            "POST", f"/api/lives/{live_id}/setlist", SetlistItemRead.model_validate,
            json={"song_id": song_id, "order_index": order_index},
        )

    async def update_order(self, item_id: str, order_index: int) -> ApiResponse[SetlistItemRead]:
        return await self.gateway.call(
            "PATCH", f"/api/setlist-items/{item_id}", SetlistItemRead.model_validate,
            json={"order_index": order_index},
        )

    async def remove_song(self, item_id: str) -> ApiResponse[None]:
        return await self.gateway.call("DELETE", f"/api/setlist-items/{item_id}")

    async def clear_setlist(self, live_id: str) -> ApiResponse[None]:
        return await self.gateway.call("DELETE", f"/api/lives/{live_id}/setlist")

class HttpShareQueries(ShareQueries):
    def __init__(self, gateway: HttpGateway):
        self.gateway = gateway

    async def generate_slug(
        self,
        check_uniqueness: bool = False,
        exclude_slug: Optional[str] = None,
        length: Optional[int] = None,
    ) -> ApiResponse[SlugResponse]:
        body = {
            "checkUniqueness": check_uniqueness,
            "excludeSlug": exclude_slug,
            "length": length or settings.SHARE_SLUG_LENGTH,
        }
        return await self.gateway.call("POST", "/functions/share-slug-generator", SlugResponse.model_validate, json=body)

    async def get_shared_setlist(
        self,
        share_slug: str,
        include_metadata: bool = False,
        include_metrics: bool = False,
    ) -> ApiResponse[ShareResponse]:
        body = {
            "share_slug": share_slug,
            "includeMetadata": include_metadata,
            "includeMetrics": include_metrics,
        }
        return await self.gateway.call("POST", "/functions/setlist-share", ShareResponse.model_validate, json=body)
