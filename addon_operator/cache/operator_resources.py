"""Correlation cache between dependent resources and the Addons owning them.

Watches on resources the operator does not own (CSVs resolved by OLM, the
objects it created in other namespaces) deliver events that carry no Addon
identity. The cache remembers which Addons touched which resource during
their last reconcile pass and turns such events back into reconcile keys.
"""
import logging
import threading
from typing import Dict, FrozenSet, Iterable, Mapping, NamedTuple, Optional, Set
from addon_operator.sensors import OperatorSensor


class ResourceKey(NamedTuple):
    """Identity of a Kubernetes object. ``namespace`` is empty for cluster-scoped kinds."""

    kind: str
    namespace: str
    name: str

    @classmethod
    def from_body(cls, body: Mapping) -> "ResourceKey":
        metadata = body.get("metadata") or {}
        return cls(
            kind=body.get("kind") or "",
            namespace=metadata.get("namespace") or "",
            name=metadata.get("name") or "",
        )

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


class OperatorResourceHandler:
    """Lock-protected index from dependent resources to their owning Addons.

    ``create``, ``update``, ``delete`` and ``generic`` are the entry points of
    the event dispatch layer; each one routes the event object to every owner
    by adding the owner's name to ``queue``. The remaining methods are used by
    reconcile passes to maintain ownership.
    """

    def __init__(
        self,
        sensor: Optional[OperatorSensor] = None,
        logger: logging.Logger = None,
    ) -> None:
        self.sensor = sensor
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._owners: Dict[ResourceKey, Set[str]] = {}
        self._resources: Dict[str, Set[ResourceKey]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._owners)

    def create(self, event: Mapping, queue) -> int:
        return self._route(event, queue, "create")

    def update(self, event: Mapping, queue) -> int:
        return self._route(event, queue, "update")

    def delete(self, event: Mapping, queue) -> int:
        return self._route(event, queue, "delete")

    def generic(self, event: Mapping, queue) -> int:
        return self._route(event, queue, "generic")

    def _route(self, event: Mapping, queue, event_type: str) -> int:
        body = event.get("object") or {}
        key = ResourceKey.from_body(body)
        owners = self.owners(key)
        for addon in sorted(owners):
            queue.add(addon)
        if owners:
            self.logger.debug(
                f"Routed {event_type} event on {key} to {', '.join(sorted(owners))}"
            )
        if self.sensor:
            self.sensor.on_event_routed(key.kind, event_type, len(owners))
        return len(owners)

    def owners(self, key: ResourceKey) -> FrozenSet[str]:
        """Return the names of the Addons owning ``key``."""
        with self._lock:
            return frozenset(self._owners.get(key, ()))

    def resources(self, addon: str) -> FrozenSet[ResourceKey]:
        """Return the resources currently owned by ``addon``."""
        with self._lock:
            return frozenset(self._resources.get(addon, ()))

    def update_map(self, addon: str, key: ResourceKey) -> bool:
        """Record that ``addon`` owns ``key``. Returns True if the cache changed."""
        with self._lock:
            owners = self._owners.setdefault(key, set())
            if addon in owners:
                return False
            owners.add(addon)
            self._resources.setdefault(addon, set()).add(key)
            entries = len(self._owners)
        if self.sensor:
            self.sensor.on_cache_update("update", entries)
        return True

    def retain(self, addon: str, keys: Iterable[ResourceKey]) -> bool:
        """Drop every entry of ``addon`` not in ``keys``. Returns True if the cache changed."""
        keep = set(keys)
        with self._lock:
            owned = self._resources.get(addon, set())
            stale = owned - keep
            if not stale:
                return False
            for key in stale:
                self._unlink(addon, key)
            owned -= stale
            if not owned:
                self._resources.pop(addon, None)
            entries = len(self._owners)
        if self.sensor:
            self.sensor.on_cache_update("retain", entries)
        return True

    def free(self, addon: str) -> None:
        """Forget every resource owned by ``addon``."""
        with self._lock:
            owned = self._resources.pop(addon, set())
            for key in owned:
                self._unlink(addon, key)
            entries = len(self._owners)
        if owned:
            self.logger.debug(f"Freed {len(owned)} cache entries of {addon}")
            if self.sensor:
                self.sensor.on_cache_update("free", entries)

    def _unlink(self, addon: str, key: ResourceKey) -> None:
        # caller holds the lock
        owners = self._owners.get(key)
        if owners is None:
            return
        owners.discard(addon)
        if not owners:
            del self._owners[key]
