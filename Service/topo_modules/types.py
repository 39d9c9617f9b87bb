"""
Service/topo_modules/types.py

토폴로지/레이어 메타데이터, TopoGeometry 참조, 관계(relation) 튜플 등 위상 피처 적재에 사용되는 자료형을 정의합니다.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class FeatureType(IntEnum):
    """레이어가 수용하는 피처 유형 (1:puntal, 2:lineal, 3:areal, 4:collection)"""
    PUNTAL = 1
    LINEAL = 2
    AREAL = 3
    COLLECTION = 4

    @property
    def label(self) -> str:
        return _FEATURE_TYPE_LABELS[self]


_FEATURE_TYPE_LABELS: Dict[FeatureType, str] = {
    FeatureType.PUNTAL: "puntal",
    FeatureType.LINEAL: "lineal",
    FeatureType.AREAL: "areal",
    FeatureType.COLLECTION: "mixed",
}


class GeometryClass(Enum):
    """입력 geometry의 최상위 타입 분류입니다."""
    COLLECTION = "collection"
    PUNTAL = "puntal"
    LINEAL = "lineal"
    AREAL = "areal"

    @property
    def feature_type(self) -> FeatureType:
        return _CLASS_FEATURE_TYPES[self]


_CLASS_FEATURE_TYPES: Dict[GeometryClass, FeatureType] = {
    GeometryClass.COLLECTION: FeatureType.COLLECTION,
    GeometryClass.PUNTAL: FeatureType.PUNTAL,
    GeometryClass.LINEAL: FeatureType.LINEAL,
    GeometryClass.AREAL: FeatureType.AREAL,
}

# geometry 분류별로 적재가 허용되는 레이어 유형
COMPATIBILITY: Dict[GeometryClass, FrozenSet[FeatureType]] = {
    GeometryClass.COLLECTION: frozenset({FeatureType.COLLECTION}),
    GeometryClass.PUNTAL: frozenset({FeatureType.PUNTAL, FeatureType.COLLECTION}),
    GeometryClass.LINEAL: frozenset({FeatureType.LINEAL, FeatureType.COLLECTION}),
    GeometryClass.AREAL: frozenset({FeatureType.AREAL, FeatureType.COLLECTION}),
}


class ElementType(IntEnum):
    """관계 테이블의 element_type (프리미티브 차원 + 1)"""
    NODE = 1
    EDGE = 2
    FACE = 3

    @classmethod
    def from_dimension(cls, dims: int) -> "ElementType":
        return cls(dims + 1)


@dataclass(frozen=True)
class TopologyInfo:
    id: int
    name: str
    precision: float = 0.0


@dataclass(frozen=True)
class LayerInfo:
    topology_id: int
    layer_id: int
    feature_type: FeatureType
    level: int = 0
    table_name: Optional[str] = None

    @property
    def is_hierarchical(self) -> bool:
        return self.level > 0


@dataclass(frozen=True)
class TopoGeometry:
    """메쉬 프리미티브 참조 집합으로 정의되는 피처의 식별자입니다."""
    topology_id: int
    layer_id: int
    id: int
    type: FeatureType


@dataclass(frozen=True, order=True)
class RelationTuple:
    topogeo_id: int
    layer_id: int
    element_type: int
    element_id: int


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    key: str


Lookup = Union[Found[T], NotFound]
