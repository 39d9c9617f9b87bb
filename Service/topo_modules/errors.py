"""
Service/topo_modules/errors.py

위상 피처 적재 과정에서 발생하는 예외 계층을 정의합니다.
"""
from __future__ import annotations


class TopoError(Exception):
    """토폴로지 모듈 예외의 최상위 클래스입니다."""


class NotFoundError(TopoError):
    pass


class TopologyNotFoundError(NotFoundError):
    def __init__(self, topology_name: str):
        super().__init__(f'No topology with name "{topology_name}" in topology registry')
        self.topology_name = topology_name


class LayerNotFoundError(NotFoundError):
    def __init__(self, layer_id: int, topology_name: str):
        super().__init__(f'No layer with id "{layer_id}" in topology "{topology_name}"')
        self.layer_id = layer_id
        self.topology_name = topology_name


class UnsupportedOperationError(TopoError):
    pass


class TypeMismatchError(TopoError):
    def __init__(self, layer_id: int, topology_name: str, layer_type: str, feature_kind: str):
        article = "an" if feature_kind[:1] in "aeiou" else "a"
        super().__init__(
            f'Layer "{layer_id}" of topology "{topology_name}" is {layer_type}, '
            f"cannot hold {article} {feature_kind} feature."
        )
        self.layer_id = layer_id
        self.topology_name = topology_name
        self.layer_type = layer_type


class UnsupportedGeometryTypeError(TopoError):
    def __init__(self, geometry_type: str):
        super().__init__(f"Unsupported feature type {geometry_type}")
        self.geometry_type = geometry_type


class DuplicateTopologyError(TopoError):
    pass
