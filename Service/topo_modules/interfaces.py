"""
Service/topo_modules/interfaces.py

피처 적재 오케스트레이터가 호출하는 외부 협력 객체(레지스트리, 허용 오차, 프리미티브 삽입, 관계 원장)의 인터페이스입니다.
"""
from __future__ import annotations

from typing import List, Protocol

from shapely.geometry import LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry

from .types import FeatureType, LayerInfo, Lookup, TopologyInfo


class TopologyRegistry(Protocol):
    def lookup_topology(self, name: str) -> Lookup[TopologyInfo]: ...

    def lookup_layer(self, topology_id: int, layer_id: int) -> Lookup[LayerInfo]: ...


class ToleranceSource(Protocol):
    def resolve_default_tolerance(self, topology_name: str, geom: BaseGeometry) -> float: ...


class FeatureContainerFactory(Protocol):
    def create_feature_container(self, topology_name: str, feature_type: FeatureType, layer_id: int) -> int: ...


class PrimitiveInserter(Protocol):
    def insert_point(self, topology_name: str, geom: Point, tolerance: float) -> List[int]: ...

    def insert_line(self, topology_name: str, geom: LineString, tolerance: float) -> List[int]: ...

    def insert_polygon(self, topology_name: str, geom: Polygon, tolerance: float) -> List[int]: ...


class RelationLedger(Protocol):
    def relation_exists(
            self, topology_name: str, feature_id: int, layer_id: int, element_type: int, element_id: int
    ) -> bool: ...

    def write_relation(
            self, topology_name: str, feature_id: int, layer_id: int, element_type: int, element_id: int
    ) -> None: ...
