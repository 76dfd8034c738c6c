from marshmallow import fields
from addon_operator.types.base import BaseSchema
from addon_operator.types.models import AddonMetadata, AddonStatus, Addon
from addon_operator.types.schemas.addon_spec import AddonSpecSchema


class AddonMetadataSchema(BaseSchema):
    __model__ = AddonMetadata

    name = fields.String(data_key="name", required=True)
    uid = fields.String(data_key="uid", allow_none=True, load_default=None)
    generation = fields.Integer(data_key="generation", allow_none=True, load_default=None)
    resource_version = fields.String(
        data_key="resourceVersion", allow_none=True, load_default=None
    )
    annotations = fields.Dict(
        keys=fields.String(),
        values=fields.String(),
        data_key="annotations",
        allow_none=True,
        load_default=None,
    )
    labels = fields.Dict(
        keys=fields.String(),
        values=fields.String(),
        data_key="labels",
        allow_none=True,
        load_default=None,
    )
    finalizers = fields.List(
        fields.String(), data_key="finalizers", allow_none=True, load_default=None
    )
    deletion_timestamp = fields.String(
        data_key="deletionTimestamp", allow_none=True, load_default=None
    )


class AddonStatusSchema(BaseSchema):
    __model__ = AddonStatus

    phase = fields.String(data_key="phase", allow_none=True, load_default=None)
    observed_generation = fields.Integer(
        data_key="observedGeneration", allow_none=True, load_default=None
    )
    conditions = fields.List(
        fields.Dict(), data_key="conditions", allow_none=True, load_default=None
    )


class AddonSchema(BaseSchema):
    __model__ = Addon

    api_version = fields.String(data_key="apiVersion", allow_none=True, load_default=None)
    kind = fields.String(data_key="kind", allow_none=True, load_default=None)
    metadata = fields.Nested(AddonMetadataSchema(), data_key="metadata", required=True)
    spec = fields.Nested(
        AddonSpecSchema(), data_key="spec", allow_none=True, load_default=None
    )
    status = fields.Nested(
        AddonStatusSchema(), data_key="status", allow_none=True, load_default=None
    )
