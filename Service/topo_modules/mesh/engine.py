"""
Service/topo_modules/mesh/engine.py

점/선/면을 허용 오차 내에서 공유 메쉬에 삽입하고, 그 결과를 표현하는 노드/간선/면 ID를 반환하는 프리미티브 삽입 엔진입니다.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import shapely
from shapely.geometry import LineString, MultiPoint, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import polygonize, substring, unary_union

from Common.log import Log

from ..geometry_utils import decompose_parts
from ..types import ElementType
from .store import EdgeRecord, MeshState, TopoStore


class MeshEngine:
    """
    노드 스냅, 간선 분할, 면 재구성을 수행하며 메쉬를 점진적으로 갱신합니다.

    간선/면이 분할되면 기존 ID는 첫 번째(면은 가장 큰) 조각이 유지하고,
    분할 전 프리미티브를 참조하던 피처의 관계는 새 조각 ID로도 복제됩니다.
    """

    def __init__(self, logger: Log, store: TopoStore):
        self._logger = logger
        self._store = store

    def insert_point(self, topology_name: str, geom: Point, tolerance: float) -> List[int]:
        point = self._prepare(geom)
        mesh = self._store.mesh(topology_name)
        node_id = self._add_node(topology_name, mesh, point, tolerance)
        self._logger.log(f"[Topology:Mesh] 점 삽입 -> node={node_id}", level="DEBUG")
        return [node_id]

    def insert_line(self, topology_name: str, geom: LineString, tolerance: float) -> List[int]:
        line = self._prepare(geom)
        mesh = self._store.mesh(topology_name)
        line = self._snap_to_mesh(mesh, line, tolerance)

        for pt in self._crossing_points(mesh, line):
            self._add_node(topology_name, mesh, pt, tolerance)

        edge_ids: List[int] = []
        for piece in decompose_parts(unary_union(line)):
            if piece.is_empty or piece.length <= 0:
                continue
            for edge_id in self._add_piece(topology_name, mesh, piece, tolerance):
                if edge_id not in edge_ids:
                    edge_ids.append(edge_id)

        self._refresh_faces(topology_name, mesh)
        self._logger.log(f"[Topology:Mesh] 선 삽입 -> edges={edge_ids}", level="DEBUG")
        return edge_ids

    def insert_polygon(self, topology_name: str, geom: Polygon, tolerance: float) -> List[int]:
        polygon = self._prepare(geom)
        for ring in [polygon.exterior, *polygon.interiors]:
            self.insert_line(topology_name, LineString(ring.coords), tolerance)

        mesh = self._store.mesh(topology_name)
        face_ids = sorted(
            face_id for face_id, face in mesh.faces.items()
            if polygon.contains(face.representative_point())
        )
        self._logger.log(f"[Topology:Mesh] 면 삽입 -> faces={face_ids}", level="DEBUG")
        return face_ids

    def _prepare(self, geom: BaseGeometry) -> BaseGeometry:
        if geom is None or geom.is_empty:
            raise ValueError("Cannot insert an empty geometry into the topology")
        return shapely.force_2d(geom)

    # ------------------------------------------------------------------
    # 노드
    # ------------------------------------------------------------------
    def _add_node(self, topology_name: str, mesh: MeshState, point: Point, tolerance: float) -> int:
        """허용 오차 내 기존 노드를 재사용하고, 없으면 인접 간선을 분할하거나 고립 노드를 생성합니다."""
        node_id = self._nearest(mesh.nodes, point, tolerance)
        if node_id is not None:
            return node_id

        edge_geoms = {edge_id: rec.geometry for edge_id, rec in mesh.edges.items()}
        edge_id = self._nearest(edge_geoms, point, tolerance)
        if edge_id is not None:
            return self._split_edge(topology_name, mesh, edge_id, point)

        return mesh.add_node(point)

    def _split_edge(self, topology_name: str, mesh: MeshState, edge_id: int, point: Point) -> int:
        record = mesh.edges[edge_id]
        line = record.geometry
        d = line.project(point)
        if d <= 0:
            return record.start_node
        if d >= line.length:
            return record.end_node

        split_pt = line.interpolate(d)
        node_id = mesh.add_node(split_pt)
        start_pt = mesh.nodes[record.start_node]
        end_pt = mesh.nodes[record.end_node]

        mesh.edges[edge_id] = EdgeRecord(self._cut(line, 0.0, d, start_pt, split_pt), record.start_node, node_id)
        new_edge_id = mesh.add_edge(
            EdgeRecord(self._cut(line, d, line.length, split_pt, end_pt), node_id, record.end_node)
        )
        self._store.propagate_split(topology_name, ElementType.EDGE, edge_id, new_edge_id)

        self._logger.log(
            f"[Topology:Mesh] 간선 분할: edge={edge_id} -> ({edge_id}, {new_edge_id}) node={node_id}",
            level="DEBUG",
        )
        return node_id

    @staticmethod
    def _nearest(candidates: Dict[int, BaseGeometry], point: Point, tolerance: float) -> Optional[int]:
        best: Optional[Tuple[float, int]] = None
        for key, geom in candidates.items():
            dist = geom.distance(point)
            if dist <= tolerance and (best is None or dist < best[0]):
                best = (dist, key)
        return None if best is None else best[1]

    # ------------------------------------------------------------------
    # 간선
    # ------------------------------------------------------------------
    def _snap_to_mesh(self, mesh: MeshState, line: LineString, tolerance: float) -> BaseGeometry:
        coords = [pt.coords[0] for pt in mesh.nodes.values()]
        for rec in mesh.edges.values():
            coords.extend(rec.geometry.coords)
        if not coords or tolerance <= 0:
            return line
        return shapely.snap(line, MultiPoint(coords), tolerance)

    def _crossing_points(self, mesh: MeshState, line: BaseGeometry) -> List[Point]:
        """새 선과 기존 간선의 교차점 및 중첩 구간의 끝점을 수집합니다."""
        points: List[Point] = []
        for rec in mesh.edges.values():
            if not line.intersects(rec.geometry):
                continue
            for part in decompose_parts(line.intersection(rec.geometry)):
                if part.is_empty:
                    continue
                if part.geom_type == "Point":
                    points.append(part)
                elif part.geom_type == "LineString":
                    points.append(Point(part.coords[0]))
                    points.append(Point(part.coords[-1]))
        return points

    def _add_piece(self, topology_name: str, mesh: MeshState, piece: LineString, tolerance: float) -> List[int]:
        """노드 위치에서 선 조각을 나누어 간선으로 등록합니다. 동일한 기존 간선은 재사용합니다."""
        start_id = self._add_node(topology_name, mesh, Point(piece.coords[0]), tolerance)
        end_id = self._add_node(topology_name, mesh, Point(piece.coords[-1]), tolerance)

        stops: List[Tuple[float, int]] = [(0.0, start_id)]
        for node_id, node in mesh.nodes.items():
            if node_id in (start_id, end_id) or piece.distance(node) > tolerance:
                continue
            d = piece.project(node)
            if 0.0 < d < piece.length:
                stops.append((d, node_id))
        stops.append((piece.length, end_id))
        stops.sort()

        edge_ids: List[int] = []
        for (d0, n0), (d1, n1) in zip(stops, stops[1:]):
            if d1 <= d0:
                continue
            segment = self._cut(piece, d0, d1, mesh.nodes[n0], mesh.nodes[n1])
            edge_ids.append(self._find_or_add_edge(mesh, segment, n0, n1, tolerance))
        return edge_ids

    def _find_or_add_edge(self, mesh: MeshState, segment: LineString, n0: int, n1: int, tolerance: float) -> int:
        for edge_id, rec in mesh.edges.items():
            if {rec.start_node, rec.end_node} != {n0, n1}:
                continue
            if rec.geometry.hausdorff_distance(segment) <= tolerance:
                return edge_id
        return mesh.add_edge(EdgeRecord(segment, n0, n1))

    @staticmethod
    def _cut(line: LineString, start: float, end: float, start_pt: Point, end_pt: Point) -> LineString:
        coords = list(substring(line, start, end).coords)
        if len(coords) < 2:
            coords = [start_pt.coords[0], end_pt.coords[0]]
        coords[0] = start_pt.coords[0]
        coords[-1] = end_pt.coords[0]
        return LineString(coords)

    # ------------------------------------------------------------------
    # 면
    # ------------------------------------------------------------------
    def _refresh_faces(self, topology_name: str, mesh: MeshState) -> None:
        """간선 집합을 다시 폴리곤화하여 면 목록을 갱신하고, 분할된 면의 관계를 전파합니다."""
        polygons = list(polygonize([rec.geometry for rec in mesh.edges.values()]))
        old_faces = dict(mesh.faces)

        kept: Dict[int, Polygon] = {}
        unmatched: List[Polygon] = []
        for poly in polygons:
            match = next(
                (fid for fid, face in old_faces.items() if fid not in kept and face.equals(poly)),
                None,
            )
            if match is None:
                unmatched.append(poly)
            else:
                kept[match] = poly

        children: Dict[int, List[Polygon]] = {}
        fresh: List[Polygon] = []
        for poly in unmatched:
            pt = poly.representative_point()
            parent = next(
                (fid for fid, face in old_faces.items() if fid not in kept and face.contains(pt)),
                None,
            )
            if parent is None:
                fresh.append(poly)
            else:
                children.setdefault(parent, []).append(poly)

        mesh.faces = kept
        for parent, pieces in children.items():
            pieces.sort(key=lambda p: p.area, reverse=True)
            mesh.faces[parent] = pieces[0]
            for poly in pieces[1:]:
                new_face_id = mesh.add_face(poly)
                self._store.propagate_split(topology_name, ElementType.FACE, parent, new_face_id)
                self._logger.log(f"[Topology:Mesh] 면 분할: face={parent} -> +{new_face_id}", level="DEBUG")

        for poly in fresh:
            mesh.add_face(poly)

        lost = set(old_faces) - set(mesh.faces)
        if lost:
            self._logger.log(f"[Topology:Mesh] 재구성 후 사라진 면: {sorted(lost)}", level="WARNING")
