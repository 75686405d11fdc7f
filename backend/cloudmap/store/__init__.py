from cloudmap.store.architecture_store import ArchitectureStore, get_store, utc_now_iso

__all__ = ["ArchitectureStore", "get_store", "utc_now_iso"]
