"""
Service/topo_modules/diagnostics.py

메쉬 프리미티브 구성과 관계 테이블 통계를 분석하여 로그로 출력하는 진단 모듈입니다.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional

import networkx as nx
import pandas as pd

from Common.log import Log

from .mesh.store import MeshState, TopoStore
from .types import ElementType


@dataclass(frozen=True)
class MeshDiagnosticsPolicy:
    """진단 시 간선 길이 분포 출력과 샘플링 제한을 위한 설정입니다."""
    short_edge_threshold: float = 1e-6
    max_edges_for_length_scan: int = 50000


class MeshDiagnostics:
    """
    노드-간선 그래프의 연결 상태와 레이어별 관계 분포를 보고합니다.
    """

    def __init__(self, logger: Log, policy: Optional[MeshDiagnosticsPolicy] = None):
        self._logger = logger
        self._policy = policy or MeshDiagnosticsPolicy()

    def report(self, store: TopoStore, topology_name: str) -> Dict[str, int]:
        """
        메쉬 요약 통계, 간선 길이 분포, 관계 분포를 순차적으로 진단하여 로깅하고 요약 수치를 반환합니다.
        """
        mesh = store.mesh(topology_name)
        graph = self.build_graph(mesh)

        summary = self._log_graph_summary(topology_name, graph, mesh)

        if mesh.edges and len(mesh.edges) <= self._policy.max_edges_for_length_scan:
            self._log_edge_length_summary(mesh)

        rel_df = pd.DataFrame(
            [asdict(r) for r in store.relations(topology_name)],
            columns=["topogeo_id", "layer_id", "element_type", "element_id"],
        )
        self._log_relation_summary(rel_df)
        summary["relations"] = int(len(rel_df))
        return summary

    @staticmethod
    def build_graph(mesh: MeshState) -> nx.MultiGraph:
        graph = nx.MultiGraph()
        graph.add_nodes_from(mesh.nodes)
        for edge_id, rec in mesh.edges.items():
            graph.add_edge(rec.start_node, rec.end_node, key=edge_id, length=rec.geometry.length)
        return graph

    def _log_graph_summary(self, topology_name: str, graph: nx.MultiGraph, mesh: MeshState) -> Dict[str, int]:
        """노드 차수별 개수와 연결 컴포넌트 수를 기록합니다."""
        degrees = [d for _, d in graph.degree()]
        isolated = degrees.count(0)
        d3p = sum(1 for d in degrees if d >= 3)
        components = nx.number_connected_components(graph) if graph.number_of_nodes() else 0

        self._logger.log(
            f"[Topology:Diag][Mesh] {topology_name}: 노드={len(mesh.nodes)} 간선={len(mesh.edges)} "
            f"면={len(mesh.faces)} 그룹={components} 고립={isolated} 교차(D3+)={d3p}",
            level="INFO",
        )
        return {
            "nodes": len(mesh.nodes),
            "edges": len(mesh.edges),
            "faces": len(mesh.faces),
            "components": components,
        }

    def _log_edge_length_summary(self, mesh: MeshState) -> None:
        lengths = pd.Series([rec.geometry.length for rec in mesh.edges.values()], dtype=float)
        desc = lengths.describe(percentiles=[0.05, 0.5, 0.95]).to_dict()
        self._logger.log(
            "[Topology:Diag][EdgeLen] "
            + " ".join([f"{k}={float(v):.6f}" for k, v in desc.items() if k != "count"]),
            level="INFO",
        )

        short_cnt = int((lengths < self._policy.short_edge_threshold).sum())
        if short_cnt:
            self._logger.log(f"[Topology:Diag][EdgeLen] 초단거리 간선 {short_cnt}개 발견", level="WARNING")

    def _log_relation_summary(self, df: pd.DataFrame) -> None:
        """레이어/요소 유형별 관계 건수와 피처 수를 기록합니다."""
        if df.empty:
            self._logger.log("[Topology:Diag][Relation] 등록된 관계가 없습니다.", level="INFO")
            return

        grouped = df.groupby(["layer_id", "element_type"]).agg(
            relations=("element_id", "size"),
            features=("topogeo_id", "nunique"),
        )
        for (layer_id, element_type), row in grouped.iterrows():
            self._logger.log(
                f"[Topology:Diag][Relation] layer={int(layer_id)} "
                f"type={ElementType(int(element_type)).name.lower()} "
                f"관계={int(row['relations'])} 피처={int(row['features'])}",
                level="INFO",
            )
