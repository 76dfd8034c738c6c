"""
Replacement for kopf._cogs.helpers.thirdparty that also recognizes
kubernetes_asyncio models.

Kopf only treats objects from the synchronous `kubernetes` client as
Kubernetes models. The operator builds its Namespaces as kubernetes_asyncio
models and hands them to `kopf.append_owner_reference`, which needs the
models to be detected.

This module MUST be imported before any Kopf import; the patch installs the
replacement module in sys.modules so Kopf's own imports pick it up.
"""
import abc
import sys
import types
from typing import Any, Optional

THIRDPARTY_MODULE = "kopf._cogs.helpers.thirdparty"


def patch_kopf_thirdparty():
    """Install the kubernetes_asyncio-aware thirdparty module for Kopf."""
    existing = sys.modules.get(THIRDPARTY_MODULE)
    if existing is not None and hasattr(existing, "_addon_operator_patched"):
        return

    class _dummy:
        pass

    try:
        from pykube.objects import APIObject as PykubeObject
    except ImportError:
        PykubeObject = _dummy

    from kubernetes_asyncio.client import V1ObjectMeta, V1OwnerReference

    class KubernetesModel(abc.ABC):
        @classmethod
        def __subclasshook__(cls, subcls: Any) -> Any:
            if cls is KubernetesModel:
                if any(
                    C.__module__.startswith("kubernetes.client.models.")
                    or C.__module__.startswith("kubernetes_asyncio.client.models.")
                    for C in subcls.__mro__
                ):
                    return True
            return NotImplemented

        @property
        def metadata(self) -> Optional[V1ObjectMeta]:
            raise NotImplementedError

        @metadata.setter
        def metadata(self, _: Optional[V1ObjectMeta]) -> None:
            raise NotImplementedError

    thirdparty = types.ModuleType("thirdparty")
    thirdparty.PykubeObject = PykubeObject
    thirdparty.KubernetesModel = KubernetesModel
    thirdparty.V1ObjectMeta = V1ObjectMeta
    thirdparty.V1OwnerReference = V1OwnerReference
    thirdparty._addon_operator_patched = True

    sys.modules[THIRDPARTY_MODULE] = thirdparty
