"""
Service/container.py

토폴로지 적재에 필요한 저장소, 엔진, 오케스트레이터, 서비스 객체를 생성하고 의존성을 주입하여 조립합니다.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from Common.log import Log

from Service.config import TopoConfig
from Service.topo_modules import (
    FeatureIngestor,
    MeshDiagnostics,
    MeshEngine,
    TopoStore,
    ToleranceResolver,
)
from Service.topo_service import TopoService


@dataclass(frozen=True)
class BuiltApp:
    """조립이 완료된 서비스 객체 묶음입니다."""
    config: TopoConfig
    store: TopoStore
    ingestor: FeatureIngestor
    topo_service: TopoService


def build_app(logger: Log, config: Optional[TopoConfig] = None) -> BuiltApp:
    """
    설정 로드 및 모든 내부 모듈의 의존성을 주입하여 BuiltApp 객체를 생성합니다.
    """
    topo_config = config or TopoConfig()

    store = TopoStore(logger)
    engine = MeshEngine(logger, store)
    tolerance_resolver = ToleranceResolver(logger, store)

    ingestor = FeatureIngestor(
        logger=logger,
        registry=store,
        tolerance_source=tolerance_resolver,
        container_factory=store,
        inserter=engine,
        ledger=store,
        trace_relations=topo_config.trace_relations,
    )

    topo_service = TopoService(
        logger=logger,
        store=store,
        ingestor=ingestor,
        diagnostics=MeshDiagnostics(logger),
        config=topo_config,
    )

    return BuiltApp(config=topo_config, store=store, ingestor=ingestor, topo_service=topo_service)
