"""
Service/topo_modules/mesh/__init__.py

메모리 기반 메쉬 저장소, 프리미티브 삽입 엔진, 허용 오차 계산기를 외부로 노출합니다.
"""
from .store import EdgeRecord, MeshState, TopoStore
from .engine import MeshEngine
from .tolerance import ToleranceResolver

__all__ = [
    "EdgeRecord",
    "MeshState",
    "TopoStore",
    "MeshEngine",
    "ToleranceResolver",
]
