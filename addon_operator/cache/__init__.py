from .operator_resources import OperatorResourceHandler, ResourceKey

__all__ = ["OperatorResourceHandler", "ResourceKey"]
