from typing import Iterable, List, Optional, Sequence, TypeVar

from domain.models.setlist import SetlistItemRead

Item = TypeVar("Item", bound=SetlistItemRead)

def sort_by_order(items: Iterable[Item]) -> List[Item]:
    return sorted(items, key=lambda item: item.order_index)

def next_order_index(items: Iterable[SetlistItemRead]) -> int:
    """末尾に追加する曲の order_index (空なら 1)"""
    return max((item.order_index for item in items), default=0) + 1

def has_unique_order(items: Sequence[SetlistItemRead]) -> bool:
    indexes = [item.order_index for item in items]
    return len(indexes) == len(set(indexes))

def find_item(items: Iterable[Item], item_id: str) -> Optional[Item]:
    return next((item for item in items if item.id == item_id), None)

def apply_order_change(items: Sequence[Item], item_id: str, new_order_index: int) -> List[Item]:
    """
    item_id の order_index を new_order_index に書き換えて並べ直す。
    その位置を既に持つ行があれば、移動元の order_index と入れ替える (バックエンドと同じ規則)。
    """
    target = find_item(items, item_id)
    if target is None:
        return list(items)

    previous_index = target.order_index
    updated = []
    for item in items:
        if item.id == item_id:
            item = item.model_copy(update={"order_index": new_order_index})
        elif item.order_index == new_order_index and previous_index != new_order_index:
            item = item.model_copy(update={"order_index": previous_index})
        updated.append(item)
    return sort_by_order(updated)

def restore_item(items: Sequence[Item], item: Item) -> List[Item]:
    """取り除いた行を元の相対位置 (order_index 順) に戻す"""
    remaining = [existing for existing in items if existing.id != item.id]
    return sort_by_order([*remaining, item])

def neighbor(items: Sequence[Item], item_id: str, offset: int) -> Optional[Item]:
    """表示順で offset 個隣の行。範囲外なら None"""
    ordered = sort_by_order(items)
    for position, item in enumerate(ordered):
        if item.id == item_id:
            other = position + offset
            if 0 <= other < len(ordered):
                return ordered[other]
            return None
    return None
