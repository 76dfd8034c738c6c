from typing import Dict


class ResourceLabels:
    ADDON_LABEL = "api.openshift.com/addon"

    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    KUBERNETES_PART_OF_LABEL = KUBERNETES_DOMAIN + "part-of"

    OPERATOR_NAME = "addon-operator"


class Labels(ResourceLabels):
    """Labels stamped on every object the operator creates for an Addon."""

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = labels if labels else dict()

    @classmethod
    def common(cls, addon_name: str) -> "Labels":
        return (
            cls()
            .include_kubernetes_managed_by(cls.OPERATOR_NAME)
            .include_kubernetes_part_of(addon_name)
            .include_addon(addon_name)
        )

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels as dictionary."""
        return self._labels.copy()

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_addon(self, addon_name: str) -> "Labels":
        return self.include(self.ADDON_LABEL, self.valid_label_value(addon_name))

    def include_kubernetes_managed_by(self, operator_name: str) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, operator_name)

    def include_kubernetes_part_of(self, addon_name: str) -> "Labels":
        return self.include(
            self.KUBERNETES_PART_OF_LABEL, self.valid_label_value(addon_name)
        )

    @staticmethod
    def valid_label_value(value: str) -> str:
        """Trim ``value`` into a valid label value:
        * (([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?
        * 63 characters max
        """
        if not value:
            return ""
        return value[:63].rstrip("-_.")

    def __str__(self):
        return f"Labels<{self._labels}>"
