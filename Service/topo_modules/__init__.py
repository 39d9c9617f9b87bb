"""
Service/topo_modules/__init__.py

단순 geometry를 위상 피처(TopoGeometry)로 변환하는 적재 오케스트레이터와 협력 모듈들을 외부로 노출합니다.
"""
from .ingestion import FeatureIngestor
from .diagnostics import MeshDiagnostics
from .mesh import MeshEngine, TopoStore, ToleranceResolver
from .types import FeatureType, GeometryClass, TopoGeometry

__all__ = [
    "FeatureIngestor",
    "MeshDiagnostics",
    "MeshEngine",
    "TopoStore",
    "ToleranceResolver",
    "FeatureType",
    "GeometryClass",
    "TopoGeometry",
]
