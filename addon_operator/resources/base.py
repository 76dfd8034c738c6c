import mmh3
import hashlib
from typing import Any, Dict, Optional, Union
from addon_operator.common.models.labels import Labels
from addon_operator.utils.helpers import canonicalize_dict
from addon_operator.utils.errors import already_exists_error
from kubernetes_asyncio.client import (
    ApiException,
    CoreV1Api,
    CustomObjectsApi,
    V1Namespace,
)


class BaseResource:
    """Base resource model."""

    _addon_name: str
    _labels: Labels

    def __init__(self, addon_name: str, labels: Labels):
        self._addon_name = addon_name
        self._labels = labels

    @property
    def addon_name(self) -> str:
        return self._addon_name

    @property
    def labels(self) -> Labels:
        return self._labels

    def compute_hash(self, data: Any) -> str:
        """Compute a murmur3 hash."""
        if isinstance(data, dict):
            _data = canonicalize_dict(data)
        elif isinstance(data, str):
            _data = data.encode()
        else:
            raise ValueError(f"Hash of {type(data)} is not supported.")
        mumur_str = str(mmh3.hash128(_data))

        hash_obj = hashlib.sha256(mumur_str.encode("utf-8"))
        full_hash = hash_obj.hexdigest()

        # Truncated, only compared for equality
        return full_hash[:16]

    async def fetch_namespace(self, core_v1_api: CoreV1Api, name: str) -> V1Namespace:
        try:
            return await core_v1_api.read_namespace(name=name)
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise

    async def create_namespace(
        self, core_v1_api: CoreV1Api, namespace: V1Namespace
    ) -> None:
        try:
            await core_v1_api.create_namespace(body=namespace)
        except ApiException as ex:
            if already_exists_error(ex):
                await self.patch_namespace(
                    core_v1_api, name=namespace.metadata.name, namespace=namespace
                )
            else:
                raise

    async def patch_namespace(
        self, core_v1_api: CoreV1Api, name: str, namespace: Union[V1Namespace, Dict]
    ) -> None:
        await core_v1_api.patch_namespace(name=name, body=namespace)

    async def get_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: Optional[str],
        group: str,
        version: str,
        plural: str,
        name: str,
    ) -> Optional[Dict]:
        try:
            if not namespace:
                return await custom_objects_api.get_cluster_custom_object(
                    group=group, version=version, plural=plural, name=name
                )
            return await custom_objects_api.get_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                name=name,
            )
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise

    async def create_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        body: Dict,
    ) -> None:
        try:
            await custom_objects_api.create_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                body=body,
            )
        except ApiException as ex:
            if already_exists_error(ex):
                await self.patch_custom_object(
                    custom_objects_api,
                    namespace=namespace,
                    group=group,
                    version=version,
                    plural=plural,
                    name=body["metadata"]["name"],
                    body=body,
                )
            else:
                raise

    async def patch_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
        body: Dict,
    ) -> None:
        await custom_objects_api.patch_namespaced_custom_object(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
            body=body,
        )
