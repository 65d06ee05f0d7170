from datetime import datetime
import pytest
from sqlmodel import Session

from models import Live
from api.schemas.live import LiveFormData, LiveUpdate
from api.schemas.share import SlugResponse
from domain.exceptions import BackendError
from gateway.base import ApiResponse
from stores.base import MutationState
from stores.lives_store import LivesStore

@pytest.fixture
def store(gateway, band_id):
    return LivesStore(gateway, band_id)

@pytest.fixture
def lives(session: Session, band_id):
    rows = [
        Live(band_id=band_id, title="Winter", venue="V1", date=datetime(2024, 12, 1), is_upcoming=False),
        Live(band_id=band_id, title="Summer", venue="V2", date=datetime(2025, 8, 1), share_slug="summer-fest"),
        Live(band_id=band_id, title="Spring", venue="V3", date=datetime(2025, 4, 1)),
    ]
    for row in rows:
        session.add(row)
    session.commit()
    return [row.id for row in rows]

@pytest.mark.asyncio
async def test_load_date_descending(store, lives):
    items = await store.load()
    assert [l.title for l in items] == ["Summer", "Spring", "Winter"]
    assert store.band_id == store.state.key

@pytest.mark.asyncio
async def test_upcoming_and_slug_lookup(store, lives):
    await store.load()

    assert [l.title for l in store.upcoming()] == ["Spring", "Summer"]
    assert store.find_by_share_slug("summer-fest").title == "Summer"
    assert store.find_by_share_slug("missing") is None

@pytest.mark.asyncio
async def test_create_live(store, lives):
    await store.load()

    form = LiveFormData(title="Autumn", venue="V4", date=datetime(2025, 10, 1))
    assert await store.create_live(form) is True

    assert [l.title for l in store.items] == ["Autumn", "Summer", "Spring", "Winter"]

@pytest.mark.asyncio
async def test_create_live_duplicate_slug_rolls_back(store, lives):
    await store.load()
    before = store.items

    form = LiveFormData(title="Copy", venue="V", date=datetime(2025, 9, 1), share_slug="summer-fest")
    with pytest.raises(BackendError) as exc_info:
        await store.create_live(form)

    assert exc_info.value.operation == "lives.create_live"
    assert store.items == before

@pytest.mark.asyncio
async def test_update_live_resorts(store, lives):
    await store.load()

    await store.update_live(lives[0], LiveUpdate(date=datetime(2026, 1, 1)))

    assert [l.title for l in store.items] == ["Winter", "Summer", "Spring"]

@pytest.mark.asyncio
async def test_update_live_with_null_date_never_stays_pending(store, lives):
    await store.load()
    before = [l.id for l in store.items]
    # バリデーションを通らない更新内容でもミューテーションは確定する
    updates = LiveUpdate.model_construct(_fields_set={"date"}, date=None)

    with pytest.raises(BackendError):
        await store.update_live(lives[0], updates)

    assert [l.id for l in store.items] == before
    assert store.state.pending == 0
    assert store.last_mutation.state is MutationState.ROLLED_BACK

@pytest.mark.asyncio
async def test_update_live_gateway_exception_reverts_row(store, gateway, lives, mocker):
    await store.load()
    mocker.patch.object(
        gateway.lives, "update",
        new=mocker.AsyncMock(side_effect=ValueError("malformed response")),
    )

    with pytest.raises(BackendError):
        await store.update_live(lives[0], LiveUpdate(title="Changed"))

    assert "Changed" not in [l.title for l in store.items]
    assert store.state.pending == 0

@pytest.mark.asyncio
async def test_delete_live_failure_restores(store, gateway, lives, mocker):
    await store.load()
    before = [l.id for l in store.items]
    mocker.patch.object(
        gateway.lives, "delete",
        new=mocker.AsyncMock(return_value=ApiResponse(error="delete failed")),
    )

    with pytest.raises(BackendError):
        await store.delete_live(lives[2])
    assert [l.id for l in store.items] == before

@pytest.mark.asyncio
async def test_delete_live(store, lives):
    await store.load()
    await store.delete_live(lives[2])
    assert [l.title for l in store.items] == ["Summer", "Winter"]

@pytest.mark.asyncio
async def test_publish_assigns_new_unique_slug(store, gateway, lives, mocker):
    await store.load()
    generate = mocker.spy(gateway.share, "generate_slug")

    slug = await store.publish(lives[1])

    assert slug != "summer-fest"
    assert len(slug) == 8
    assert store.find_by_share_slug(slug).id == lives[1]
    generate.assert_called_once_with(check_uniqueness=True, exclude_slug="summer-fest")

@pytest.mark.asyncio
async def test_publish_slug_error_raises(store, gateway, lives, mocker):
    await store.load()
    mocker.patch.object(
        gateway.share, "generate_slug",
        new=mocker.AsyncMock(return_value=ApiResponse(error="function unavailable")),
    )

    with pytest.raises(BackendError):
        await store.publish(lives[2])
    assert store.find_by_share_slug("summer-fest").id == lives[1]

@pytest.mark.asyncio
async def test_publish_keeps_unverified_slug(store, gateway, lives, mocker):
    await store.load()
    mocker.patch.object(
        gateway.share, "generate_slug",
        new=mocker.AsyncMock(return_value=ApiResponse(
            data=SlugResponse(slug="fallback1", isUnique=False, fallbackMode=True)
        )),
    )

    assert await store.publish(lives[2]) == "fallback1"
    assert store.find_by_share_slug("fallback1").id == lives[2]
