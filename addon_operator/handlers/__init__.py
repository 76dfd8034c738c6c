from . import addon, operator_resources, probes

__all__ = ["addon", "operator_resources", "probes"]
