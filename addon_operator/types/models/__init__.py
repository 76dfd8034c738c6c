from .addon_spec import (
    AddonInstallType,
    AdditionalCatalogSource,
    EnvObject,
    SubscriptionConfig,
    AddonInstallOLMCommon,
    AddonInstallOLMOwnNamespace,
    AddonInstallOLMAllNamespaces,
    AddonInstallSpec,
    MonitoringFederationSpec,
    RemoteWriteConfigSpec,
    MonitoringStackSpec,
    MonitoringSpec,
    AddonNamespace,
    AddonSpec,
)
from .addon import AddonPhase, AddonMetadata, AddonStatus, Addon
from .addon_resources import AddonResources

__all__ = [
    "AddonInstallType",
    "AdditionalCatalogSource",
    "EnvObject",
    "SubscriptionConfig",
    "AddonInstallOLMCommon",
    "AddonInstallOLMOwnNamespace",
    "AddonInstallOLMAllNamespaces",
    "AddonInstallSpec",
    "MonitoringFederationSpec",
    "RemoteWriteConfigSpec",
    "MonitoringStackSpec",
    "MonitoringSpec",
    "AddonNamespace",
    "AddonSpec",
    "AddonPhase",
    "AddonMetadata",
    "AddonStatus",
    "Addon",
    "AddonResources",
]
