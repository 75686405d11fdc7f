"""
Architecture Store - process-wide in-memory storage for architectures.

Every architecture lives in a single dict keyed by its id. Saving stamps
`lastEditedAt` / `lastEditedBy` into the metadata so the editor can show
who touched the diagram last.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from cloudmap.ir.architecture import Architecture, Edge, Node

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ArchitectureStore:
    def __init__(self):
        self._items: Dict[str, Architecture] = {}
        self._lock = threading.RLock()

    def get(self, architecture_id: str) -> Optional[Architecture]:
        if not architecture_id:
            return None
        with self._lock:
            arch = self._items.get(architecture_id)
            return arch.model_copy(deep=True) if arch else None

    def save(
        self,
        architecture_id: str,
        architecture: Architecture,
        edited_by: str = "system",
    ) -> Architecture:
        if not architecture_id:
            raise ValueError("Architecture ID is required")

        updated = architecture.model_copy(deep=True)
        updated.metadata = {
            **architecture.metadata,
            "lastEditedAt": utc_now_iso(),
            "lastEditedBy": edited_by,
        }

        with self._lock:
            self._items[architecture_id] = updated

        logger.debug("[Store] Saved %s (by %s)", architecture_id, edited_by)
        return updated.model_copy(deep=True)

    def delete(self, architecture_id: str) -> bool:
        if not architecture_id:
            return False
        with self._lock:
            return self._items.pop(architecture_id, None) is not None

    def list(self) -> List[Tuple[str, Architecture]]:
        with self._lock:
            return [(aid, arch.model_copy(deep=True)) for aid, arch in self._items.items()]

    def update_fields(
        self,
        architecture_id: str,
        nodes: Optional[List[Node]] = None,
        edges: Optional[List[Edge]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        edited_by: str = "system",
    ) -> Optional[Architecture]:
        with self._lock:
            current = self.get(architecture_id)
            if current is None:
                return None

            if nodes is not None:
                current.nodes = list(nodes)
            if edges is not None:
                current.edges = list(edges)
            if metadata:
                current.metadata = {**current.metadata, **metadata}

            return self.save(architecture_id, current, edited_by)

    def clear(self):
        with self._lock:
            self._items.clear()


# Single shared instance
_store = ArchitectureStore()


def get_store() -> ArchitectureStore:
    return _store

