from types import SimpleNamespace
from typing import Any, Dict
from marshmallow import INCLUDE, Schema, post_dump, post_load

JSON = Dict[str, Any]
MAX_REPR_LEN = 80


class BaseModel(SimpleNamespace):
    """BaseModel that all models should inherit from.

    Optional attributes are declared on the model class with a ``None``
    default, so a model built with no arguments still answers every
    attribute lookup. This is what keeps the deep-chain predicates
    (``addon.spec.monitoring.federation``) total.

    Args:
        **kwargs: All passed parameters as converted to instance attributes.
    """

    def __init__(self, **kwargs: Any) -> None:
        self.__dict__.update(kwargs)

    def __repr__(self) -> str:
        """Return a default repr of any Model, truncated to `MAX_REPR_LEN`."""
        repr_ = super().__repr__()
        if len(repr_) > MAX_REPR_LEN:
            return repr_[:MAX_REPR_LEN] + " ...)"
        return repr_

    def as_dict(self) -> Dict[str, Any]:
        result = {}
        for key, value in self.__dict__.items():
            if isinstance(value, BaseModel):
                result[key] = value.as_dict()
            elif isinstance(value, list):
                result[key] = [
                    item.as_dict() if isinstance(item, BaseModel) else item
                    for item in value
                ]
            else:
                result[key] = value
        return result


class UnknownModel(BaseModel):
    """A convenience class that inherits from `BaseModel`."""

    def keys(self):
        return self.__dict__.keys()

    def values(self):
        return self.__dict__.values()

    def items(self):
        return self.__dict__.items()


class BaseSchema(Schema):
    """The default schema for all models."""

    __model__: Any = UnknownModel
    """Determine the object that is created when the load method is called."""
    __skip_none__: bool = True
    """Drop keys with a ``None`` value when dumping."""

    class Meta:
        unknown = INCLUDE

    @post_load
    def make_object(self, data: JSON, **kwargs: Any) -> "__model__":
        """Build model for the given `__model__` class attribute.
        Args:
            data: The JSON dictionary to use to build the model.
            **kwargs: Unused but required to match signature of `Schema.make_object`
        Returns:
            An instance of the `__model__` class.
        """
        return self.__model__(**data)

    @post_dump
    def remove_none_values(self, data: JSON, **kwargs: Any) -> JSON:
        if not self.__skip_none__:
            return data
        return {key: value for key, value in data.items() if value is not None}
