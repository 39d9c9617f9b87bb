"""
Service/topo_modules/mesh/tolerance.py

허용 오차가 지정되지 않았을 때 토폴로지 정밀도 또는 좌표 크기로부터 최소 스냅 허용 오차를 계산합니다.
"""
from __future__ import annotations

import math

from shapely.geometry.base import BaseGeometry

from Common.log import Log

from ..types import Found
from .store import TopoStore


class ToleranceResolver:
    """토폴로지 precision이 0이 아니면 그 값을, 아니면 좌표 크기 기반 최소 허용 오차를 사용합니다."""

    def __init__(self, logger: Log, store: TopoStore):
        self._logger = logger
        self._store = store

    def resolve_default_tolerance(self, topology_name: str, geom: BaseGeometry) -> float:
        lookup = self._store.lookup_topology(topology_name)
        if isinstance(lookup, Found) and lookup.value.precision > 0:
            return float(lookup.value.precision)

        tolerance = self.min_tolerance(geom)
        self._logger.log(f"[Topology:Tolerance] {topology_name} 기본 허용 오차 계산: {tolerance:.3e}", level="DEBUG")
        return tolerance

    @staticmethod
    def min_tolerance(geom: BaseGeometry) -> float:
        """배정밀도 유효 자릿수(15자리)를 기준으로 좌표 최대 절대값에 비례하는 허용 오차를 계산합니다."""
        max_coord = 0.0
        if geom is not None and not geom.is_empty:
            max_coord = max(abs(v) for v in geom.bounds)
        if not max_coord or math.isnan(max_coord):
            max_coord = 1.0
        return 3.6 * math.pow(10, -(15 - math.log10(max_coord)))
