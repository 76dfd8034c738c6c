from .addon_spec import (
    AdditionalCatalogSourceSchema,
    EnvObjectSchema,
    SubscriptionConfigSchema,
    AddonInstallOLMCommonSchema,
    AddonInstallOLMOwnNamespaceSchema,
    AddonInstallOLMAllNamespacesSchema,
    AddonInstallSpecSchema,
    MonitoringFederationSpecSchema,
    RemoteWriteConfigSpecSchema,
    MonitoringStackSpecSchema,
    MonitoringSpecSchema,
    AddonNamespaceSchema,
    AddonSpecSchema,
)
from .addon import AddonMetadataSchema, AddonStatusSchema, AddonSchema

__all__ = [
    "AdditionalCatalogSourceSchema",
    "EnvObjectSchema",
    "SubscriptionConfigSchema",
    "AddonInstallOLMCommonSchema",
    "AddonInstallOLMOwnNamespaceSchema",
    "AddonInstallOLMAllNamespacesSchema",
    "AddonInstallSpecSchema",
    "MonitoringFederationSpecSchema",
    "RemoteWriteConfigSpecSchema",
    "MonitoringStackSpecSchema",
    "MonitoringSpecSchema",
    "AddonNamespaceSchema",
    "AddonSpecSchema",
    "AddonMetadataSchema",
    "AddonStatusSchema",
    "AddonSchema",
]
