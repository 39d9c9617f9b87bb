"""
Service/topo_service.py

벡터 파일 또는 geometry 목록을 토폴로지 레이어에 일괄 적재하고 관계 테이블을 내보내는 서비스 모듈입니다.
"""
from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import geopandas as gpd
import pandas as pd
from shapely.geometry.base import BaseGeometry

from Common.log import Log
from Function.decorators import log_execution_time, safe_run
from Service.config import TopoConfig
from Service.schemas import FileLoadRequest, RelationExportRequest, ToTopoGeomRequest
from Service.topo_modules import FeatureIngestor, MeshDiagnostics, TopoStore, TopoGeometry


class TopoService:
    """
    피처 단위 트랜잭션으로 적재 오케스트레이터를 호출하는 메인 서비스 클래스입니다.
    """

    def __init__(
        self,
        logger: Log,
        store: TopoStore,
        ingestor: FeatureIngestor,
        diagnostics: MeshDiagnostics,
        config: Optional[TopoConfig] = None,
    ):
        self._logger = logger
        self._store = store
        self._ingestor = ingestor
        self._diagnostics = diagnostics
        self._config = config or TopoConfig()

    @safe_run
    @log_execution_time
    def load_geometries(self, request: FileLoadRequest) -> gpd.GeoSeries:
        """
        벡터 파일을 로드하여 geometry 시리즈를 반환합니다.

        Args:
            request (FileLoadRequest): 파일 경로를 포함한 로드 요청 객체

        Returns:
            gpd.GeoSeries: 로드된 geometry 목록
        """
        read_kwargs = {"encoding": request.encoding} if request.encoding else {}
        gdf = gpd.read_file(request.file_path, **read_kwargs)

        if gdf.empty:
            raise ValueError(f"로드된 데이터가 비어있습니다: {request.file_path}")

        crs_name = getattr(gdf.crs, "name", None) or "Unknown"
        self._logger.log(
            f"데이터 로드 상세 - 객체 수: {len(gdf)}, CRS: {crs_name}, 타입: {sorted(gdf.geom_type.dropna().unique())}",
            level="INFO",
        )
        return gdf.geometry

    @safe_run
    @log_execution_time
    def ingest_geometries(self, geoms: Iterable[BaseGeometry], request: ToTopoGeomRequest) -> List[TopoGeometry]:
        """
        geometry마다 별도 트랜잭션으로 적재합니다. 실패한 피처는 롤백되고 예외가 전파됩니다.
        """
        tolerance = request.tolerance or self._config.default_tolerance
        features: List[TopoGeometry] = []
        skipped = 0

        for idx, geom in enumerate(geoms):
            if geom is None:
                skipped += 1
                self._logger.log(f"[Topology:Service] {idx}번 행 geometry 없음 (스킵)", level="WARNING")
                continue

            with self._store.transaction():
                feature = self._ingestor.to_topo_geom(geom, request.topology_name, request.layer_id, tolerance)
            features.append(feature)

        self._logger.log(
            f"[Topology:Service] 적재 완료: {len(features)}개 피처 생성, {skipped}개 스킵 "
            f"(topology={request.topology_name}, layer={request.layer_id})",
            level="INFO",
        )
        return features

    def ingest_file(self, load_request: FileLoadRequest, request: ToTopoGeomRequest) -> List[TopoGeometry]:
        return self.ingest_geometries(self.load_geometries(load_request), request)

    @safe_run
    @log_execution_time
    def export_relations(self, topology_name: str, request: RelationExportRequest) -> Path:
        """관계 테이블을 CSV로 저장합니다."""
        rows = [asdict(r) for r in self._store.relations(topology_name)]
        df = pd.DataFrame(rows, columns=["topogeo_id", "layer_id", "element_type", "element_id"])

        output_path = request.output_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False, encoding=self._config.export_encoding)

        self._logger.log(f"관계 테이블 저장 완료: {output_path} ({len(df)}행)", level="INFO")
        return output_path

    def report(self, topology_name: str) -> Dict[str, int]:
        return self._diagnostics.report(self._store, topology_name)
