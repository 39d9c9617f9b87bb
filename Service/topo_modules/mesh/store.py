"""
Service/topo_modules/mesh/store.py

토폴로지/레이어 메타데이터, 피처 컨테이너 시퀀스, 관계 테이블, 메쉬 프리미티브를 메모리에 보관하는 저장소 모듈입니다.
"""
from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set

from shapely.geometry import GeometryCollection, LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import linemerge, unary_union

from Common.log import Log

from ..errors import DuplicateTopologyError, LayerNotFoundError, TopologyNotFoundError
from ..types import (
    ElementType,
    FeatureType,
    Found,
    LayerInfo,
    Lookup,
    NotFound,
    RelationTuple,
    TopoGeometry,
    TopologyInfo,
)


@dataclass(frozen=True)
class EdgeRecord:
    geometry: LineString
    start_node: int
    end_node: int


@dataclass
class MeshState:
    """하나의 토폴로지가 공유하는 노드/간선/면 집합입니다."""
    nodes: Dict[int, Point] = field(default_factory=dict)
    edges: Dict[int, EdgeRecord] = field(default_factory=dict)
    faces: Dict[int, Polygon] = field(default_factory=dict)
    next_node_id: int = 1
    next_edge_id: int = 1
    next_face_id: int = 1

    def add_node(self, point: Point) -> int:
        node_id = self.next_node_id
        self.next_node_id += 1
        self.nodes[node_id] = point
        return node_id

    def add_edge(self, record: EdgeRecord) -> int:
        edge_id = self.next_edge_id
        self.next_edge_id += 1
        self.edges[edge_id] = record
        return edge_id

    def add_face(self, polygon: Polygon) -> int:
        face_id = self.next_face_id
        self.next_face_id += 1
        self.faces[face_id] = polygon
        return face_id

    def copy(self) -> "MeshState":
        return MeshState(
            nodes=dict(self.nodes),
            edges=dict(self.edges),
            faces=dict(self.faces),
            next_node_id=self.next_node_id,
            next_edge_id=self.next_edge_id,
            next_face_id=self.next_face_id,
        )


@dataclass
class _TopologyRecord:
    info: TopologyInfo
    layers: Dict[int, LayerInfo] = field(default_factory=dict)
    feature_seq: Dict[int, int] = field(default_factory=dict)
    relations: Set[RelationTuple] = field(default_factory=set)
    mesh: MeshState = field(default_factory=MeshState)

    def copy(self) -> "_TopologyRecord":
        return _TopologyRecord(
            info=self.info,
            layers=dict(self.layers),
            feature_seq=dict(self.feature_seq),
            relations=set(self.relations),
            mesh=self.mesh.copy(),
        )


class TopoStore:
    """
    토폴로지 레지스트리, 피처 컨테이너 팩토리, 관계 원장을 겸하는 메모리 저장소입니다.

    transaction() 블록 안에서 예외가 발생하면 블록 진입 시점의 상태로 되돌립니다.
    """

    def __init__(self, logger: Log):
        self._logger = logger
        self._topologies: Dict[str, _TopologyRecord] = {}
        self._next_topology_id = 1

    # ------------------------------------------------------------------
    # 스키마 구성
    # ------------------------------------------------------------------
    def create_topology(self, name: str, precision: float = 0.0) -> TopologyInfo:
        if name in self._topologies:
            raise DuplicateTopologyError(f'Topology "{name}" already exists')
        precision = float(precision)
        if math.isnan(precision) or precision < 0:
            raise ValueError(f"precision must be non-negative, got {precision!r}")

        info = TopologyInfo(id=self._next_topology_id, name=name, precision=precision)
        self._next_topology_id += 1
        self._topologies[name] = _TopologyRecord(info=info)

        self._logger.log(f"[Topology:Store] 토폴로지 생성: {name} (id={info.id}, precision={info.precision})", level="INFO")
        return info

    def add_layer(
            self,
            topology_name: str,
            feature_type: FeatureType,
            level: int = 0,
            table_name: Optional[str] = None,
    ) -> LayerInfo:
        record = self._record(topology_name)
        layer_id = max(record.layers, default=0) + 1
        layer = LayerInfo(
            topology_id=record.info.id,
            layer_id=layer_id,
            feature_type=FeatureType(feature_type),
            level=int(level),
            table_name=table_name,
        )
        record.layers[layer_id] = layer
        record.feature_seq[layer_id] = 0

        self._logger.log(
            f"[Topology:Store] 레이어 추가: {topology_name}.{layer_id} type={layer.feature_type.label} level={layer.level}",
            level="INFO",
        )
        return layer

    # ------------------------------------------------------------------
    # 레지스트리 조회
    # ------------------------------------------------------------------
    def lookup_topology(self, name: str) -> Lookup[TopologyInfo]:
        record = self._topologies.get(name)
        if record is None:
            return NotFound(key=name)
        return Found(record.info)

    def lookup_layer(self, topology_id: int, layer_id: int) -> Lookup[LayerInfo]:
        for record in self._topologies.values():
            if record.info.id != topology_id:
                continue
            layer = record.layers.get(layer_id)
            if layer is not None:
                return Found(layer)
        return NotFound(key=f"{topology_id}.{layer_id}")

    # ------------------------------------------------------------------
    # 피처 컨테이너 / 관계 원장
    # ------------------------------------------------------------------
    def create_feature_container(self, topology_name: str, feature_type: FeatureType, layer_id: int) -> int:
        record = self._record(topology_name)
        if layer_id not in record.layers:
            raise LayerNotFoundError(layer_id, topology_name)

        record.feature_seq[layer_id] += 1
        return record.feature_seq[layer_id]

    def relation_exists(
            self, topology_name: str, feature_id: int, layer_id: int, element_type: int, element_id: int
    ) -> bool:
        rel = RelationTuple(int(feature_id), int(layer_id), int(element_type), int(element_id))
        return rel in self._record(topology_name).relations

    def write_relation(
            self, topology_name: str, feature_id: int, layer_id: int, element_type: int, element_id: int
    ) -> None:
        rel = RelationTuple(int(feature_id), int(layer_id), int(element_type), int(element_id))
        self._record(topology_name).relations.add(rel)

    def relations(
            self, topology_name: str, layer_id: Optional[int] = None, feature_id: Optional[int] = None
    ) -> List[RelationTuple]:
        rels = self._record(topology_name).relations
        return sorted(
            r for r in rels
            if (layer_id is None or r.layer_id == layer_id) and (feature_id is None or r.topogeo_id == feature_id)
        )

    def propagate_split(self, topology_name: str, element_type: ElementType, old_id: int, new_id: int) -> int:
        """분할된 프리미티브를 참조하던 피처가 새 프리미티브도 참조하도록 관계를 복제합니다."""
        relations = self._record(topology_name).relations
        added = {
            RelationTuple(r.topogeo_id, r.layer_id, r.element_type, new_id)
            for r in relations
            if r.element_type == int(element_type) and r.element_id == old_id
        }
        relations.update(added)
        return len(added)

    # ------------------------------------------------------------------
    # 메쉬 / 조회
    # ------------------------------------------------------------------
    def mesh(self, topology_name: str) -> MeshState:
        return self._record(topology_name).mesh

    def topology_names(self) -> List[str]:
        return sorted(self._topologies)

    def feature_geometry(self, topology_name: str, ref: TopoGeometry) -> BaseGeometry:
        """TopoGeometry를 구성하는 프리미티브들로부터 단순 geometry를 재구성합니다."""
        mesh = self.mesh(topology_name)
        points: List[Point] = []
        lines: List[LineString] = []
        polygons: List[Polygon] = []

        for rel in self.relations(topology_name, layer_id=ref.layer_id, feature_id=ref.id):
            if rel.element_type == ElementType.NODE:
                points.append(mesh.nodes[rel.element_id])
            elif rel.element_type == ElementType.EDGE:
                lines.append(mesh.edges[rel.element_id].geometry)
            elif rel.element_type == ElementType.FACE:
                polygons.append(mesh.faces[rel.element_id])

        parts: List[BaseGeometry] = []
        if polygons:
            parts.append(unary_union(polygons))
        if lines:
            parts.append(linemerge(lines))
        if points:
            parts.append(unary_union(points))

        if not parts:
            return GeometryCollection()
        if len(parts) == 1:
            return parts[0]
        return GeometryCollection(parts)

    @contextmanager
    def transaction(self) -> Iterator["TopoStore"]:
        snapshot = {name: record.copy() for name, record in self._topologies.items()}
        next_topology_id = self._next_topology_id
        try:
            yield self
        except Exception:
            self._topologies = snapshot
            self._next_topology_id = next_topology_id
            self._logger.log("[Topology:Store] 트랜잭션 롤백", level="WARNING")
            raise

    def _record(self, topology_name: str) -> _TopologyRecord:
        record = self._topologies.get(topology_name)
        if record is None:
            raise TopologyNotFoundError(topology_name)
        return record
