import asyncio
from datetime import datetime
import pytest
from sqlmodel import Session, select

from models import Live, SetlistItem
from domain.exceptions import BackendError, FetchError
from domain.models.ids import is_temp_id
from gateway.base import ApiResponse
from stores.base import MutationState
from stores.setlist_store import SetlistStore

async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)

def _gate(event: asyncio.Event, original):
    async def wrapper(*args, **kwargs):
        await event.wait()
        return await original(*args, **kwargs)
    return wrapper

def _order(store: SetlistStore):
    return [(item.song_id, item.order_index) for item in store.items]

@pytest.fixture
def store(gateway):
    return SetlistStore(gateway)

@pytest.mark.asyncio
async def test_select_live_loads_sorted_setlist(store, live, setlist, songs):
    items = await store.set_current_live_id(live.id)

    assert store.current_live_id == live.id
    assert [item.order_index for item in items] == [1, 2, 3]
    assert items[0].song.title == "Blue Train"
    assert store.state.loading is False
    assert store.state.error is None

@pytest.mark.asyncio
async def test_select_no_live_clears_without_fetch(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    fetch = mocker.patch.object(gateway.setlists, "get_by_live_id", new=mocker.AsyncMock())

    assert await store.set_current_live_id(None) == []
    assert store.items == []
    fetch.assert_not_called()

@pytest.mark.asyncio
async def test_fetch_error_is_raised_and_kept_in_state(store, gateway, live, mocker):
    mocker.patch.object(
        gateway.setlists, "get_by_live_id",
        new=mocker.AsyncMock(return_value=ApiResponse(error="backend down")),
    )

    with pytest.raises(FetchError):
        await store.set_current_live_id(live.id)
    assert str(store.state.error) == "backend down"
    assert store.state.loading is False

@pytest.mark.asyncio
async def test_add_song_appends_after_highest_index(store, session: Session, live, songs):
    session.add(SetlistItem(live_id=live.id, song_id=songs[0].id, order_index=1))
    session.add(SetlistItem(live_id=live.id, song_id=songs[1].id, order_index=5))
    session.commit()
    await store.set_current_live_id(live.id)

    assert await store.add_song(live.id, songs[2].id) is True

    assert _order(store) == [(songs[0].id, 1), (songs[1].id, 5), (songs[2].id, 6)]
    assert not any(is_temp_id(item.id) for item in store.items)
    assert store.last_mutation.state is MutationState.COMMITTED

@pytest.mark.asyncio
async def test_add_song_to_empty_setlist_starts_at_one(store, live, songs):
    await store.set_current_live_id(live.id)
    await store.add_song(live.id, songs[1].id)
    assert _order(store) == [(songs[1].id, 1)]

@pytest.mark.asyncio
async def test_add_song_is_visible_before_backend_answers(store, gateway, live, setlist, songs, mocker):
    await store.set_current_live_id(live.id)
    release = asyncio.Event()
    mocker.patch.object(gateway.setlists, "add_song", new=_gate(release, gateway.setlists.add_song))

    task = asyncio.create_task(store.add_song(live.id, songs[0].id))
    await _settle()

    provisional = store.items[-1]
    assert is_temp_id(provisional.id)
    assert provisional.order_index == 4
    assert store.state.pending == 1
    assert store.last_mutation.state is MutationState.OPTIMISTIC

    release.set()
    assert await task is True
    assert store.state.pending == 0
    assert len(store.items) == 4
    assert not is_temp_id(store.items[-1].id)

@pytest.mark.asyncio
async def test_add_song_failure_rolls_back(store, gateway, live, setlist, songs, mocker):
    await store.set_current_live_id(live.id)
    before = store.items
    mocker.patch.object(
        gateway.setlists, "add_song",
        new=mocker.AsyncMock(return_value=ApiResponse(error="insert failed")),
    )

    with pytest.raises(BackendError) as exc_info:
        await store.add_song(live.id, songs[0].id)

    assert exc_info.value.message == "insert failed"
    assert exc_info.value.operation == "setlist.add_song"
    assert store.items == before
    assert store.last_mutation.state is MutationState.ROLLED_BACK

@pytest.mark.asyncio
async def test_add_song_to_other_live_skips_optimistic_row(store, session: Session, live, setlist, songs, band_id):
    other = Live(band_id=band_id, title="Other", venue="V", date=datetime(2025, 5, 1))
    session.add(other)
    session.commit()
    session.add(SetlistItem(live_id=other.id, song_id=songs[0].id, order_index=7))
    session.commit()

    await store.set_current_live_id(live.id)
    before = store.items

    await store.add_song(other.id, songs[1].id)

    assert store.items == before
    rows = session.exec(
        select(SetlistItem).where(SetlistItem.live_id == other.id).order_by(SetlistItem.order_index)
    ).all()
    assert [row.order_index for row in rows] == [7, 8]

@pytest.mark.asyncio
async def test_racing_adds_fail_one_with_backend_error(store, gateway, live, setlist, songs):
    # 別クライアントが同じ末尾位置を同時に取りに行く
    other_client = SetlistStore(gateway)
    await store.set_current_live_id(live.id)
    await other_client.set_current_live_id(live.id)

    results = await asyncio.gather(
        store.add_song(live.id, songs[0].id),
        other_client.add_song(live.id, songs[1].id),
        return_exceptions=True,
    )

    assert sum(1 for r in results if r is True) == 1
    errors = [r for r in results if isinstance(r, BackendError)]
    assert len(errors) == 1

    for client_store in (store, other_client):
        await client_store.refresh()
        assert [item.order_index for item in client_store.items] == [1, 2, 3, 4]
        assert not any(is_temp_id(item.id) for item in client_store.items)

@pytest.mark.asyncio
async def test_remove_song_does_not_refetch(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    fetch = mocker.patch.object(gateway.setlists, "get_by_live_id", new=mocker.AsyncMock())

    assert await store.remove_song(setlist[1].id) is True

    assert [item.id for item in store.items] == [setlist[0].id, setlist[2].id]
    fetch.assert_not_called()

@pytest.mark.asyncio
async def test_remove_song_failure_restores_position(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    mocker.patch.object(
        gateway.setlists, "remove_song",
        new=mocker.AsyncMock(return_value=ApiResponse(error="delete failed")),
    )

    with pytest.raises(BackendError):
        await store.remove_song(setlist[1].id)

    assert [item.id for item in store.items] == [item.id for item in setlist]

@pytest.mark.asyncio
async def test_update_order_scenario_ends_reversed(store, session: Session, live, songs):
    a = SetlistItem(live_id=live.id, song_id=songs[0].id, order_index=1)
    b = SetlistItem(live_id=live.id, song_id=songs[1].id, order_index=2)
    session.add(a)
    session.add(b)
    session.commit()
    await store.set_current_live_id(live.id)

    await store.update_order(a.id, 2)
    await store.update_order(b.id, 1)

    assert [(item.id, item.order_index) for item in store.items] == [(b.id, 1), (a.id, 2)]

@pytest.mark.asyncio
async def test_update_order_is_applied_optimistically(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    release = asyncio.Event()
    mocker.patch.object(gateway.setlists, "update_order", new=_gate(release, gateway.setlists.update_order))

    task = asyncio.create_task(store.update_order(setlist[2].id, 1))
    await _settle()

    assert [item.id for item in store.items] == [setlist[2].id, setlist[1].id, setlist[0].id]
    assert [item.order_index for item in store.items] == [1, 2, 3]

    release.set()
    await task
    assert [item.id for item in store.items] == [setlist[2].id, setlist[1].id, setlist[0].id]

@pytest.mark.asyncio
async def test_update_order_failure_refetches_server_state(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    mocker.patch.object(
        gateway.setlists, "update_order",
        new=mocker.AsyncMock(return_value=ApiResponse(error="conflict")),
    )

    with pytest.raises(BackendError):
        await store.update_order(setlist[0].id, 3)

    assert [item.id for item in store.items] == [item.id for item in setlist]
    assert store.last_mutation.state is MutationState.ROLLED_BACK

@pytest.mark.asyncio
async def test_move_at_boundaries_is_a_no_op(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    update = mocker.patch.object(gateway.setlists, "update_order", new=mocker.AsyncMock())

    assert await store.move_up(setlist[0].id) is False
    assert await store.move_down(setlist[2].id) is False
    update.assert_not_called()

@pytest.mark.asyncio
async def test_move_down_swaps_with_next(store, live, setlist):
    await store.set_current_live_id(live.id)

    assert await store.move_down(setlist[0].id) is True

    assert [item.id for item in store.items] == [setlist[1].id, setlist[0].id, setlist[2].id]
    assert [item.order_index for item in store.items] == [1, 2, 3]

@pytest.mark.asyncio
async def test_clear_setlist(store, live, setlist):
    await store.set_current_live_id(live.id)

    assert await store.clear_setlist(live.id) is True
    assert store.items == []
    assert await store.refresh() == []

@pytest.mark.asyncio
async def test_clear_setlist_failure_restores_items(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    before = store.items
    mocker.patch.object(
        gateway.setlists, "clear_setlist",
        new=mocker.AsyncMock(return_value=ApiResponse(error="clear failed")),
    )

    with pytest.raises(BackendError):
        await store.clear_setlist(live.id)
    assert store.items == before

@pytest.mark.asyncio
async def test_stale_fetch_is_discarded(store, gateway, session: Session, live, setlist, songs, band_id, mocker):
    other = Live(band_id=band_id, title="Other", venue="V", date=datetime(2025, 5, 1))
    session.add(other)
    session.commit()
    session.add(SetlistItem(live_id=other.id, song_id=songs[0].id, order_index=1))
    session.commit()

    other_id, live_id = other.id, live.id
    release = asyncio.Event()
    original = gateway.setlists.get_by_live_id

    async def fetch(requested):
        if requested == live_id:
            await release.wait()
        return await original(requested)

    mocker.patch.object(gateway.setlists, "get_by_live_id", new=fetch)

    slow = asyncio.create_task(store.set_current_live_id(live_id))
    await _settle()
    await store.set_current_live_id(other_id)
    release.set()
    await slow

    assert store.current_live_id == other_id
    assert [item.live_id for item in store.items] == [other_id]

@pytest.mark.asyncio
async def test_failed_remove_is_not_restored_into_another_live(store, gateway, session: Session, live, setlist, songs, band_id, mocker):
    other = Live(band_id=band_id, title="Other", venue="V", date=datetime(2025, 5, 1))
    session.add(other)
    session.commit()
    session.add(SetlistItem(live_id=other.id, song_id=songs[0].id, order_index=2))
    session.commit()

    other_id, live_id, target = other.id, live.id, setlist[1].id
    await store.set_current_live_id(live_id)

    release = asyncio.Event()

    async def remove(setlist_item_id):
        await release.wait()
        return ApiResponse(error="delete failed")

    mocker.patch.object(gateway.setlists, "remove_song", new=remove)

    removing = asyncio.create_task(store.remove_song(target))
    await _settle()
    await store.set_current_live_id(other_id)
    release.set()
    with pytest.raises(BackendError):
        await removing

    assert store.current_live_id == other_id
    assert [(item.live_id, item.order_index) for item in store.items] == [(other_id, 2)]
    assert store.state.pending == 0
    assert store.last_mutation.state is MutationState.ROLLED_BACK

@pytest.mark.asyncio
async def test_unexpected_gateway_exception_rolls_back(store, gateway, live, setlist, mocker):
    await store.set_current_live_id(live.id)
    before = _order(store)
    mocker.patch.object(
        gateway.setlists, "update_order",
        new=mocker.AsyncMock(side_effect=ValueError("malformed response")),
    )

    with pytest.raises(BackendError) as excinfo:
        await store.update_order(setlist[0].id, 3)

    assert isinstance(excinfo.value.__cause__, ValueError)
    assert _order(store) == before
    assert store.state.pending == 0
    assert store.last_mutation.state is MutationState.ROLLED_BACK

@pytest.mark.asyncio
async def test_available_songs_excludes_setlist(store, live, songs, session: Session):
    session.add(SetlistItem(live_id=live.id, song_id=songs[1].id, order_index=1))
    session.commit()
    await store.set_current_live_id(live.id)

    assert [song.id for song in store.available_songs(songs)] == [songs[0].id, songs[2].id]

@pytest.mark.asyncio
async def test_subscribers_receive_snapshots(store, live, setlist):
    seen = []
    unsubscribe = store.subscribe(seen.append)

    await store.set_current_live_id(live.id)
    assert seen[0].loading is True
    assert seen[-1].loading is False
    assert len(seen[-1].items) == 3

    unsubscribe()
    count = len(seen)
    await store.refresh()
    assert len(seen) == count
