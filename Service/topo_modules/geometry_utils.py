"""
Service/topo_modules/geometry_utils.py

입력 geometry의 타입 판별, 단일 파트 분해, 공간 차원 계산을 위한 shapely 기반 유틸리티 모듈입니다.
"""
from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

import shapely
from shapely.geometry.base import BaseGeometry, BaseMultipartGeometry

from .types import GeometryClass

_GEOMETRY_CLASSES: Dict[str, GeometryClass] = {
    "GeometryCollection": GeometryClass.COLLECTION,
    "Point": GeometryClass.PUNTAL,
    "MultiPoint": GeometryClass.PUNTAL,
    "LineString": GeometryClass.LINEAL,
    "LinearRing": GeometryClass.LINEAL,
    "MultiLineString": GeometryClass.LINEAL,
    "Polygon": GeometryClass.AREAL,
    "MultiPolygon": GeometryClass.AREAL,
}


def top_level_type(geom: Any) -> str:
    return str(geom.geom_type)


def classify(geom_type: str) -> Optional[GeometryClass]:
    """최상위 geometry 타입 문자열을 분류합니다. 지원하지 않는 타입이면 None을 반환합니다."""
    return _GEOMETRY_CLASSES.get(geom_type)


def decompose_parts(geom: BaseGeometry) -> Iterator[BaseGeometry]:
    """Multi*/GeometryCollection을 재귀적으로 풀어 단일 geometry 파트를 순서대로 반환합니다."""
    if isinstance(geom, BaseMultipartGeometry):
        for part in geom.geoms:
            yield from decompose_parts(part)
    else:
        yield geom


def is_empty(geom: BaseGeometry) -> bool:
    return geom is None or geom.is_empty


def dimension(geom: BaseGeometry) -> int:
    """위상 차원 (0: 점, 1: 선, 2: 면)"""
    return int(shapely.get_dimensions(geom))
