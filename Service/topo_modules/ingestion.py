"""
Service/topo_modules/ingestion.py

단순 geometry를 공유 위상 메쉬(노드/간선/면)에 대한 참조 집합인 TopoGeometry로 변환하는 적재 오케스트레이터 모듈입니다.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Set, Tuple

from shapely.geometry.base import BaseGeometry

from Common.log import Log
from Function.decorators import log_execution_time, safe_run

from .errors import (
    LayerNotFoundError,
    TopologyNotFoundError,
    TypeMismatchError,
    UnsupportedGeometryTypeError,
    UnsupportedOperationError,
)
from .geometry_utils import classify, decompose_parts, dimension, is_empty, top_level_type
from .interfaces import (
    FeatureContainerFactory,
    PrimitiveInserter,
    RelationLedger,
    ToleranceSource,
    TopologyRegistry,
)
from .types import (
    COMPATIBILITY,
    ElementType,
    Found,
    GeometryClass,
    LayerInfo,
    TopoGeometry,
    TopologyInfo,
)


class FeatureIngestor:
    """
    입력 geometry를 검증하고 파트별로 메쉬에 삽입한 뒤, 중복 없는 관계 튜플로 피처 구성을 기록합니다.

    트랜잭션 경계는 호출자가 소유합니다. 이 클래스는 실패 시 보상 처리를 하지 않고 예외를 그대로 전파합니다.
    """

    def __init__(
            self,
            logger: Log,
            registry: TopologyRegistry,
            tolerance_source: ToleranceSource,
            container_factory: FeatureContainerFactory,
            inserter: PrimitiveInserter,
            ledger: RelationLedger,
            trace_relations: bool = False,
    ):
        self._logger = logger
        self._registry = registry
        self._tolerance_source = tolerance_source
        self._container_factory = container_factory
        self._inserter = inserter
        self._ledger = ledger
        self._trace_relations = trace_relations

    @safe_run
    @log_execution_time
    def to_topo_geom(
            self,
            geom: BaseGeometry,
            topology_name: str,
            layer_id: int,
            tolerance: Optional[float] = 0,
    ) -> TopoGeometry:
        """
        geometry를 지정된 토폴로지 레이어의 TopoGeometry로 변환합니다.

        Args:
            geom (BaseGeometry): 변환할 geometry (혼합 타입 컬렉션 허용)
            topology_name (str): 대상 토폴로지 이름
            layer_id (int): 대상 레이어 ID
            tolerance (float): 스냅 허용 오차. 0 또는 None이면 토폴로지 기본값을 사용

        Returns:
            TopoGeometry: 새로 생성된 피처 참조

        Raises:
            NotFoundError: 토폴로지 또는 레이어가 없을 때
            UnsupportedOperationError: 계층형 레이어일 때
            TypeMismatchError: geometry 분류가 레이어 유형과 호환되지 않을 때
            UnsupportedGeometryTypeError: 분류할 수 없는 geometry 타입일 때
            ValueError: geometry가 None일 때
        """
        if geom is None:
            raise ValueError("geometry is None")

        topology, layer = self._resolve_context(topology_name, layer_id)

        resolved_tolerance = tolerance or self._tolerance_source.resolve_default_tolerance(topology.name, geom)
        self._trace(f"[Topology:Ingest] tolerance={resolved_tolerance!r} (요청값={tolerance!r})")

        geometry_class = self._check_compatibility(geom, topology, layer)
        feature_id = self._container_factory.create_feature_container(
            topology.name, geometry_class.feature_type, layer.layer_id
        )
        feature = TopoGeometry(
            topology_id=topology.id,
            layer_id=layer.layer_id,
            id=feature_id,
            type=geometry_class.feature_type,
        )

        written = self._register_parts(geom, topology.name, feature, resolved_tolerance)

        self._logger.log(
            f"[Topology:Ingest] 피처 생성 완료: topology={topology.name} layer={layer.layer_id} "
            f"id={feature_id} type={feature.type.label} relations={written}",
            level="INFO",
        )
        return feature

    def _resolve_context(self, topology_name: str, layer_id: int) -> Tuple[TopologyInfo, LayerInfo]:
        """토폴로지와 레이어 메타데이터를 조회하고 계층형 레이어를 거부합니다."""
        topology_lookup = self._registry.lookup_topology(topology_name)
        if not isinstance(topology_lookup, Found):
            raise TopologyNotFoundError(topology_name)
        topology = topology_lookup.value

        layer_lookup = self._registry.lookup_layer(topology.id, layer_id)
        if not isinstance(layer_lookup, Found):
            raise LayerNotFoundError(layer_id, topology_name)
        layer = layer_lookup.value

        if layer.is_hierarchical:
            raise UnsupportedOperationError(
                f'Layer "{layer_id}" of topology "{topology_name}" is hierarchical, cannot convert to it.'
            )
        return topology, layer

    def _check_compatibility(self, geom: BaseGeometry, topology: TopologyInfo, layer: LayerInfo) -> GeometryClass:
        geom_type = top_level_type(geom)
        geometry_class = classify(geom_type)
        if geometry_class is None:
            raise UnsupportedGeometryTypeError(geom_type)

        if layer.feature_type not in COMPATIBILITY[geometry_class]:
            raise TypeMismatchError(
                layer.layer_id, topology.name, layer.feature_type.label, geometry_class.value
            )
        return geometry_class

    def _register_parts(
            self, geom: BaseGeometry, topology_name: str, feature: TopoGeometry, tolerance: float
    ) -> int:
        """
        비어있지 않은 파트를 하나씩 메쉬에 삽입하고 결과 프리미티브를 즉시 관계로 기록합니다.

        파트 삽입이 기존 간선/면을 분할할 수 있으므로 파트마다 바로 기록해야 이후 분할이 정의에 반영됩니다.
        """
        inserters: Dict[int, Callable[..., List[int]]] = {
            0: self._inserter.insert_point,
            1: self._inserter.insert_line,
            2: self._inserter.insert_polygon,
        }

        seen: Set[Tuple[int, int]] = set()
        written = 0

        for part in decompose_parts(geom):
            if is_empty(part):
                continue
            dims = dimension(part)
            element_type = int(ElementType.from_dimension(dims))

            for primitive_id in inserters[dims](topology_name, part, tolerance):
                elem = (element_type, int(primitive_id))
                if elem in seen:
                    self._trace(f"[Topology:Ingest] 요소 {elem} 이미 등록됨 (호출 내 중복)")
                    continue
                seen.add(elem)

                if self._ledger.relation_exists(topology_name, feature.id, feature.layer_id, *elem):
                    self._trace(f"[Topology:Ingest] 요소 {elem} 이미 저장됨 (관계 테이블 중복)")
                    continue

                self._trace(f"[Topology:Ingest] 요소 {elem} 관계 추가 (feature={feature.id})")
                self._ledger.write_relation(topology_name, feature.id, feature.layer_id, *elem)
                written += 1

        return written

    def _trace(self, msg: str) -> None:
        if self._trace_relations:
            self._logger.log(msg, level="DEBUG")
