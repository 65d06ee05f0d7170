"""
Shared machinery for the optimistic client-side stores.

A store owns one list of rows fetched for a key (current live id, search
query, band id). Reads go through ``state``/``items``; only the store's own
mutation methods write to the list.

Fetches are key-driven and superseding: each load takes a new generation
number and its result is applied only if no newer load started meanwhile.

Mutations follow ``IDLE -> OPTIMISTIC -> COMMITTED | ROLLED_BACK``: snapshot,
apply the speculative change, await the gateway, then either commit
(optionally reconciling with a refetch) or undo the caller's own change and
raise ``BackendError``.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar
import itertools

from domain.exceptions import BackendError, FetchError
from gateway.base import ApiResponse, QueryGateway
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

class MutationState(str, Enum):
    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

class Mutation(Generic[T]):
    """One optimistic change in flight, with the snapshot taken before it was applied."""

    _counter = itertools.count(1)

    def __init__(self, name: str, snapshot: Sequence[T]):
        self.id = next(self._counter)
        self.name = name
        self.snapshot: Tuple[T, ...] = tuple(snapshot)
        self.state = MutationState.IDLE
        self.error: Optional[BackendError] = None

    def _move(self, expected: MutationState, target: MutationState):
        if self.state is not expected:
            raise RuntimeError(f"{self.name}: cannot go from {self.state.value} to {target.value}")
        self.state = target

    def mark_optimistic(self):
        self._move(MutationState.IDLE, MutationState.OPTIMISTIC)

    def mark_committed(self):
        self._move(MutationState.OPTIMISTIC, MutationState.COMMITTED)

    def mark_rolled_back(self, error: BackendError):
        # 楽観的な変更を適用する前に失敗した場合は IDLE から直接戻す
        if self.state is MutationState.IDLE:
            self._move(MutationState.IDLE, MutationState.ROLLED_BACK)
        else:
            self._move(MutationState.OPTIMISTIC, MutationState.ROLLED_BACK)
        self.error = error

    @property
    def settled(self) -> bool:
        return self.state in (MutationState.COMMITTED, MutationState.ROLLED_BACK)

    def __repr__(self):
        return f"<Mutation {self.id} {self.name} {self.state.value}>"

@dataclass(frozen=True)
class StoreState(Generic[T]):
    items: Tuple[T, ...]
    loading: bool
    error: Optional[Exception]
    key: Any
    pending: int

Listener = Callable[[StoreState], None]

class ResourceStore(Generic[T]):
    name = "resource"
    # キーが変わったら、再取得の完了を待たずに一覧を空にする
    clear_on_key_change = False

    def __init__(self, gateway: QueryGateway, key: Any = None):
        self.gateway = gateway
        self._key = key
        self._items: List[T] = []
        self._generation = 0
        self._listeners: List[Listener] = []
        self.loading = False
        self.error: Optional[Exception] = None
        self.pending: Dict[int, Mutation[T]] = {}
        self.last_mutation: Optional[Mutation[T]] = None

    # --- reads ---

    @property
    def items(self) -> List[T]:
        return list(self._items)

    @property
    def key(self) -> Any:
        return self._key

    @property
    def state(self) -> StoreState[T]:
        return StoreState(
            items=tuple(self._items),
            loading=self.loading,
            error=self.error,
            key=self._key,
            pending=len(self.pending),
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        state = self.state
        for listener in list(self._listeners):
            listener(state)

    def _set_items(self, items: Sequence[T]):
        self._items = list(items)
        self._notify()

    def _sorted(self, items: Sequence[T]) -> List[T]:
        return list(items)

    # --- fetch ---

    async def _fetch(self, key: Any) -> List[T]:
        raise NotImplementedError

    def _unwrap_list(self, response: ApiResponse) -> List[T]:
        if response.error:
            raise FetchError(response.error, f"{self.name}.fetch")
        return self._sorted(response.data or [])

    async def _set_key(self, key: Any) -> List[T]:
        changed = key != self._key
        self._key = key
        if changed and self.clear_on_key_change:
            self._items = []
        return await self._load()

    async def _load(self) -> List[T]:
        self._generation += 1
        generation = self._generation
        key = self._key
        self.loading = True
        self._notify()

        try:
            items = await self._fetch(key)
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"{self.name}: dropping error from superseded fetch for {key!r}: {e}")
                return self.items
            self.error = e
            logger.error(f"{self.name}: fetch for {key!r} failed: {e}")
            raise
        else:
            if generation != self._generation:
                logger.debug(f"{self.name}: dropping superseded fetch result for {key!r}")
                return self.items
            self.error = None
            self._items = list(items)
        finally:
            # 最新の世代だけが loading を下ろす (取消し時も含む)
            if generation == self._generation:
                self.loading = False
                self._notify()
        return self.items

    async def refresh(self) -> List[T]:
        """現在のキーで再取得する"""
        return await self._load()

    async def _reconcile(self):
        """
        ミューテーション後の再取得。失敗してもミューテーション自体は成功扱いで、
        エラーは state.error に残る。
        """
        try:
            await self._load()
        except Exception as e:
            logger.warning(f"{self.name}: reconcile after mutation failed: {e}")

    # --- mutations ---

    def _begin(self, name: str) -> Mutation[T]:
        mutation = Mutation(name, self._items)
        self.pending[mutation.id] = mutation
        self.last_mutation = mutation
        return mutation

    @contextmanager
    def _guard(self, mutation: Mutation[T], restore: Optional[Callable[[List[T]], Sequence[T]]] = None):
        """
        楽観的な一覧の組み立てからゲートウェイ応答までを囲む。
        想定外の例外 (応答の解析失敗など) でもミューテーションを pending に残さず、
        ロールバックして BackendError に変換する。
        """
        try:
            yield
        except Exception as e:
            if mutation.settled:
                raise
            logger.exception(f"{self.name}: {mutation.name} failed unexpectedly")
            raise self._rollback(mutation, str(e) or type(e).__name__, restore) from e

    def _revert(self, mutation: Mutation[T], ids: Iterable[str]) -> Callable[[List[T]], List[T]]:
        """ids の行だけをミューテーション前の内容に戻す restore を作る"""
        ids = set(ids)
        before = {item.id: item for item in mutation.snapshot if item.id in ids}
        return lambda items: self._sorted([before.get(item.id, item) for item in items])

    def _apply(self, mutation: Mutation[T], items: Sequence[T]):
        mutation.mark_optimistic()
        self._set_items(items)

    def _commit(self, mutation: Mutation[T]):
        mutation.mark_committed()
        self.pending.pop(mutation.id, None)
        logger.info(f"{self.name}: {mutation.name} committed")
        self._notify()

    def _rollback(
        self,
        mutation: Mutation[T],
        message: str,
        restore: Optional[Callable[[List[T]], Sequence[T]]] = None,
    ) -> BackendError:
        """
        restore は現在の一覧に対して、このミューテーション自身の変更だけを取り消す。
        楽観的な変更をまだ適用していなければ restore は呼ばない。
        戻り値の例外は呼び出し側で raise する。
        """
        error = BackendError(message, f"{self.name}.{mutation.name}")
        applied = mutation.state is MutationState.OPTIMISTIC
        mutation.mark_rolled_back(error)
        self.pending.pop(mutation.id, None)
        logger.warning(f"{self.name}: {mutation.name} rolled back: {message}")
        if restore is not None and applied:
            self._set_items(restore(self.items))
        else:
            self._notify()
        return error
