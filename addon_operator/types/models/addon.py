from typing import Optional, List, Dict
from addon_operator.types.base import BaseModel
from addon_operator.types.models.addon_spec import AddonSpec


class AddonPhase:
    """Values of ``status.phase``."""

    PENDING = "Pending"
    INSTALLING = "Installing"
    READY = "Ready"
    ERROR = "Error"
    TERMINATING = "Terminating"


class AddonMetadata(BaseModel):
    name: Optional[str] = None
    uid: Optional[str] = None
    generation: Optional[int] = None
    resource_version: Optional[str] = None
    annotations: Optional[Dict[str, str]] = None
    labels: Optional[Dict[str, str]] = None
    finalizers: Optional[List[str]] = None
    deletion_timestamp: Optional[str] = None


class AddonStatus(BaseModel):
    phase: Optional[str] = None
    observed_generation: Optional[int] = None
    conditions: Optional[List[Dict]] = None


class Addon(BaseModel):
    """An Addon custom resource as read from the cluster."""

    api_version: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[AddonMetadata] = None
    spec: Optional[AddonSpec] = None
    status: Optional[AddonStatus] = None

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name if self.metadata else None

    @property
    def generation(self) -> int:
        if self.metadata is None or self.metadata.generation is None:
            return 0
        return self.metadata.generation

    @property
    def annotations(self) -> Dict[str, str]:
        if self.metadata is None:
            return {}
        return self.metadata.annotations or {}

    @property
    def finalizers(self) -> List[str]:
        if self.metadata is None:
            return []
        return list(self.metadata.finalizers or [])

    @property
    def being_deleted(self) -> bool:
        return self.metadata is not None and bool(self.metadata.deletion_timestamp)

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.finalizers

    def add_finalizer(self, finalizer: str) -> bool:
        """Add ``finalizer``; return True if the list changed."""
        if self.has_finalizer(finalizer):
            return False
        if self.metadata is None:
            self.metadata = AddonMetadata()
        self.metadata.finalizers = self.finalizers + [finalizer]
        return True

    def remove_finalizer(self, finalizer: str) -> bool:
        """Remove ``finalizer``; return True if the list changed."""
        if not self.has_finalizer(finalizer):
            return False
        self.metadata.finalizers = [f for f in self.finalizers if f != finalizer]
        return True

    def owner_body(self) -> Dict:
        """Minimal body kopf needs to build an owner reference to this Addon."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {
                "name": self.name,
                "uid": self.metadata.uid if self.metadata else None,
            },
        }
