class AddonResources:
    """Encapsulates the naming scheme used for the resources which the Addon Operator
    manages for an Addon of the given name."""

    @classmethod
    def catalog_source_name(self, addon_name: str):
        """Returns the name of the primary `CatalogSource` of an Addon."""
        return f"addon-{addon_name}-catalog"

    @classmethod
    def operator_group_name(self, addon_name: str):
        return f"addon-{addon_name}"

    @classmethod
    def subscription_name(self, addon_name: str):
        return f"addon-{addon_name}"

    @classmethod
    def monitoring_namespace_name(self, addon_name: str):
        """Returns the namespace holding the federated `ServiceMonitor`."""
        return f"redhat-monitoring-{addon_name}"

    @classmethod
    def service_monitor_name(self, addon_name: str):
        return f"federated-sm-{addon_name}"

    @classmethod
    def monitoring_stack_name(self, addon_name: str):
        return f"{addon_name}-monitoring-stack"
