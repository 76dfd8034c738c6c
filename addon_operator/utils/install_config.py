"""Install configuration resolution for Addons.

Everything here is pure: functions read the Addon model, never mutate it,
never raise and never touch the cluster. Invalid configuration is reported
through explicit ``stop`` flags (or ``False`` for the predicates) and the
controller decides what to do with it.
"""
from typing import List, Optional, Tuple
from addon_operator.types.models import (
    Addon,
    AddonInstallType,
    AddonInstallOLMCommon,
    AdditionalCatalogSource,
)


def _install_payload(addon: Addon) -> Optional[AddonInstallOLMCommon]:
    """Return the payload of the declared install strategy, if any."""
    spec = getattr(addon, "spec", None)
    install = getattr(spec, "install", None)
    if install is None:
        return None
    if install.type == AddonInstallType.OWN_NAMESPACE:
        return install.olm_own_namespace
    if install.type == AddonInstallType.ALL_NAMESPACES:
        return install.olm_all_namespaces
    return None


def _invalid_catalog_source(sources: List[AdditionalCatalogSource]) -> Optional[str]:
    for idx, source in enumerate(sources):
        if not source.name:
            return f"additionalCatalogSources[{idx}].name is empty"
        if not source.image:
            return f"additionalCatalogSources[{idx}].image is empty"
    return None


def _base_error(addon: Addon) -> Optional[str]:
    spec = getattr(addon, "spec", None)
    install = getattr(spec, "install", None)
    install_type = getattr(install, "type", None)
    if install_type not in (
        AddonInstallType.OWN_NAMESPACE,
        AddonInstallType.ALL_NAMESPACES,
    ):
        return f"unsupported install type `{install_type}`"
    payload = _install_payload(addon)
    if payload is None:
        return f"install type `{install_type}` is set but its configuration is missing"
    if not payload.namespace:
        return "install namespace is empty"
    return None


def install_config_error(addon: Addon) -> Optional[str]:
    """Describe why the install configuration of ``addon`` is unusable.

    Returns ``None`` for a valid configuration. The checks mirror
    :func:`parse_addon_install_config` followed by
    :func:`parse_addon_install_config_for_additional_catalog_sources`.
    """
    error = _base_error(addon)
    if error:
        return error
    payload = _install_payload(addon)
    if not payload.catalog_source_image:
        return "catalogSourceImage is empty"
    return _invalid_catalog_source(payload.additional_catalog_sources or [])


def parse_addon_install_config(
    addon: Addon,
) -> Tuple[Optional[AddonInstallOLMCommon], bool]:
    """Resolve the install strategy of ``addon`` into its common payload.

    Returns:
        ``(common, stop)``. ``stop`` is True, and ``common`` None, when the
        declared strategy has no payload, or its namespace or catalog source
        image is empty.
    """
    if _base_error(addon):
        return None, True
    payload = _install_payload(addon)
    if not payload.catalog_source_image:
        return None, True
    return AddonInstallOLMCommon(**payload.__dict__), False


def parse_addon_install_config_for_additional_catalog_sources(
    addon: Addon,
) -> Tuple[List[AdditionalCatalogSource], str, str, bool]:
    """Resolve the additional catalog sources of ``addon``.

    Validation is all-or-nothing: a single entry with an empty name or image
    rejects the whole list, valid entries included.

    Returns:
        ``(sources, target_namespace, pull_secret_name, stop)``; on failure
        ``([], "", "", True)``.
    """
    if _base_error(addon):
        return [], "", "", True
    payload = _install_payload(addon)
    sources = list(payload.additional_catalog_sources or [])
    if _invalid_catalog_source(sources):
        return [], "", "", True
    return sources, payload.namespace, payload.pull_secret_name or "", False


def has_additional_catalog_sources(addon: Addon) -> bool:
    payload = _install_payload(addon)
    return bool(payload is not None and payload.additional_catalog_sources)


def has_monitoring_federation(addon: Addon) -> bool:
    monitoring = getattr(getattr(addon, "spec", None), "monitoring", None)
    return monitoring is not None and monitoring.federation is not None


def has_monitoring_stack(addon: Addon) -> bool:
    monitoring = getattr(getattr(addon, "spec", None), "monitoring", None)
    return monitoring is not None and monitoring.monitoring_stack is not None
