from functools import cached_property
from typing import Optional
from kubernetes_asyncio.client import ApiClient, ApiException, CustomObjectsApi
from addon_operator.common.models.kinds import ADDON
from addon_operator.types.models import Addon
from addon_operator.types.schemas import AddonSchema, AddonStatusSchema


class AddonClient:
    """Reads Addons and writes back their status and finalizers."""

    _api_client: ApiClient = None

    def __init__(self, api_client: ApiClient = None):
        self._api_client = api_client

    @cached_property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            self._api_client = ApiClient()
        return self._api_client

    @cached_property
    def custom_objects_api(self) -> CustomObjectsApi:
        return CustomObjectsApi(self.api_client)

    async def get(self, name: str) -> Optional[Addon]:
        """Fetch the latest state of an Addon, None once it is gone."""
        try:
            body = await self.custom_objects_api.get_cluster_custom_object(
                group=ADDON.group,
                version=ADDON.version,
                plural=ADDON.plural,
                name=name,
            )
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise
        return AddonSchema().load(body)

    async def update(self, addon: Addon) -> Addon:
        """Persist status and finalizers of ``addon``.

        Both writes carry the resourceVersion the Addon was read at, so a
        concurrent change of the object fails with a conflict instead of
        being overwritten. Status goes first: clearing the last finalizer of
        a deleted Addon removes the object.
        """
        resource_version = addon.metadata.resource_version
        if addon.status is not None:
            result = await self.custom_objects_api.patch_cluster_custom_object_status(
                group=ADDON.group,
                version=ADDON.version,
                plural=ADDON.plural,
                name=addon.name,
                body={
                    "metadata": {"resourceVersion": resource_version},
                    "status": AddonStatusSchema().dump(addon.status),
                },
            )
            resource_version = result["metadata"]["resourceVersion"]
        result = await self.custom_objects_api.patch_cluster_custom_object(
            group=ADDON.group,
            version=ADDON.version,
            plural=ADDON.plural,
            name=addon.name,
            body={
                "metadata": {
                    "finalizers": addon.finalizers,
                    "resourceVersion": resource_version,
                }
            },
        )
        return AddonSchema().load(result)
