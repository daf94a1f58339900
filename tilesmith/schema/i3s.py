"""
I3S scene layer documents.

Only the subset needed to walk the node tree and decode geometry is modelled;
unknown fields are ignored.

GEOMETRY LAYOUT (defaultGeometrySchema):
Non-indexed triangle list. A header of scalar properties (vertexCount,
featureCount) is followed by one block per vertex attribute in ``ordering``
order, then one block per feature attribute.

    +-------------+---------------+-----------+-----------+---------------+
    | header      | position      | normal    | uv0       | ... region    |
    | UInt32 x 2  | Float32 x 3N  | Float32.. | Float32.. | UInt16 x 4N   |
    +-------------+---------------+-----------+-----------+---------------+

Positions are offsets from the node's minimum bounding sphere centre.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tilesmith.exceptions import DecodeError

SCENE_LAYER_DOCUMENT = '3dSceneLayer.json'
NODE_INDEX_DOCUMENT = '3dNodeIndexDocument.json'

# Only non-indexed triangle lists are decoded
GEOMETRY_TYPE = 'triangles'
TOPOLOGY = 'PerAttributeArray'

# Byte size and numpy dtype per I3S value type (little endian)
VALUE_TYPES: Dict[str, str] = {
    'Int8': '<i1',
    'UInt8': '<u1',
    'Int16': '<i2',
    'UInt16': '<u2',
    'Int32': '<i4',
    'UInt32': '<u4',
    'Int64': '<i8',
    'UInt64': '<u8',
    'Float32': '<f4',
    'Float64': '<f8',
}


class I3SModel(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class SpatialReference(I3SModel):
    wkid: Optional[int] = None
    latest_wkid: Optional[int] = Field(None, alias='latestWkid')
    wkt: Optional[str] = None

    def srs(self) -> str:
        """SRS definition usable by the converter."""
        if self.latest_wkid:
            return f"EPSG:{self.latest_wkid}"
        if self.wkid:
            return f"EPSG:{self.wkid}"
        if self.wkt:
            return self.wkt
        raise DecodeError(
            f"Spatial reference in {SCENE_LAYER_DOCUMENT} has neither wkid nor wkt",
            path=SCENE_LAYER_DOCUMENT
        )


class HeaderAttribute(I3SModel):
    property: str
    type: str


class AttributeDefinition(I3SModel):
    value_type: str = Field(..., alias='valueType')
    values_per_element: int = Field(1, alias='valuesPerElement')

    @property
    def dtype(self) -> str:
        return VALUE_TYPES[self.value_type]


class GeometrySchema(I3SModel):
    geometry_type: str = Field(GEOMETRY_TYPE, alias='geometryType')
    topology: str = TOPOLOGY
    header: List[HeaderAttribute] = Field(default_factory=lambda: [
        HeaderAttribute(property='vertexCount', type='UInt32'),
        HeaderAttribute(property='featureCount', type='UInt32'),
    ])
    ordering: List[str] = Field(default_factory=lambda: ['position', 'normal', 'uv0', 'color'])
    vertex_attributes: Dict[str, AttributeDefinition] = Field(default_factory=lambda: {
        'position': AttributeDefinition(valueType='Float32', valuesPerElement=3),
        'normal': AttributeDefinition(valueType='Float32', valuesPerElement=3),
        'uv0': AttributeDefinition(valueType='Float32', valuesPerElement=2),
        'color': AttributeDefinition(valueType='UInt8', valuesPerElement=4),
    }, alias='vertexAttributes')
    feature_attribute_order: List[str] = Field(default_factory=lambda: ['id', 'faceRange'], alias='featureAttributeOrder')
    feature_attributes: Dict[str, AttributeDefinition] = Field(default_factory=lambda: {
        'id': AttributeDefinition(valueType='UInt64', valuesPerElement=1),
        'faceRange': AttributeDefinition(valueType='UInt32', valuesPerElement=2),
    }, alias='featureAttributes')


class Store(I3SModel):
    root_node: str = Field('./nodes/root', alias='rootNode')
    default_geometry_schema: GeometrySchema = Field(default_factory=GeometrySchema, alias='defaultGeometrySchema')


class SceneLayerInfo(I3SModel):
    id: Optional[int] = None
    layer_type: Optional[str] = Field(None, alias='layerType')
    spatial_reference: SpatialReference = Field(..., alias='spatialReference')
    store: Store = Field(default_factory=Store)


class Href(I3SModel):
    href: str


class NodeReference(I3SModel):
    id: str
    href: str


class NodeIndexDocument(I3SModel):
    id: str
    level: int = 0
    mbs: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0], min_length=4, max_length=4)
    children: List[NodeReference] = Field(default_factory=list)
    geometry_data: List[Href] = Field(default_factory=list, alias='geometryData')
    texture_data: List[Href] = Field(default_factory=list, alias='textureData')
