from stores.base import Mutation, MutationState, ResourceStore, StoreState
from stores.setlist_store import SetlistStore
from stores.songs_store import SongsStore
from stores.lives_store import LivesStore
from stores.app_state import AppState

__all__ = [
    "Mutation",
    "MutationState",
    "ResourceStore",
    "StoreState",
    "SetlistStore",
    "SongsStore",
    "LivesStore",
    "AppState",
]
