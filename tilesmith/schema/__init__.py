"""I3S document schema definitions."""
from .i3s import (
    SceneLayerInfo,
    SpatialReference,
    Store,
    GeometrySchema,
    AttributeDefinition,
    HeaderAttribute,
    NodeIndexDocument,
    NodeReference,
    Href,
    VALUE_TYPES,
)

__all__ = [
    "SceneLayerInfo",
    "SpatialReference",
    "Store",
    "GeometrySchema",
    "AttributeDefinition",
    "HeaderAttribute",
    "NodeIndexDocument",
    "NodeReference",
    "Href",
    "VALUE_TYPES",
]
