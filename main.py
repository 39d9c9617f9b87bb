"""
main.py

벡터 파일을 새 토폴로지 레이어에 적재하는 CLI 진입점이며 객체 생성 및 의존성 주입(Composition Root)을 담당합니다.
"""
from __future__ import annotations

import argparse
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from Common.log import Log
from Function.log_cleanup import clean_old_logs
from Function.utils import get_result_path
from Service.container import build_app
from Service.schemas import FileLoadRequest, RelationExportRequest, ToTopoGeomRequest
from Service.topo_modules import FeatureType


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load a vector file into a topology layer as TopoGeometries.")
    parser.add_argument("--input", required=True, help="Input SHP/GeoJSON/GPKG path")
    parser.add_argument("--topology", default="topo", help="Topology name to create")
    parser.add_argument(
        "--layer-type",
        choices=[t.name.lower() for t in FeatureType],
        default="collection",
        help="Feature type of the target layer",
    )
    parser.add_argument("--tolerance", type=float, default=0.0, help="Snapping tolerance (0: computed)")
    parser.add_argument("--precision", type=float, default=None, help="Topology precision (default: config)")
    parser.add_argument("--output", required=False, help="Relation table CSV path (default: Result/<stem>_relation.csv)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = Log()

    try:
        logger.log("=== 토폴로지 적재 시작 ===", level="INFO")

        built = build_app(logger)
        clean_old_logs(logger.log_dir, logger, built.config.log_retention_days)

        precision = built.config.topology_precision if args.precision is None else args.precision
        built.store.create_topology(args.topology, precision=precision)
        layer = built.store.add_layer(args.topology, FeatureType[args.layer_type.upper()])

        service = built.topo_service
        features = service.ingest_file(
            FileLoadRequest(file_path=Path(args.input)),
            ToTopoGeomRequest(topology_name=args.topology, layer_id=layer.layer_id, tolerance=args.tolerance),
        )
        service.report(args.topology)

        output = Path(args.output) if args.output else (
            get_result_path(f"{Path(args.input).stem}_relation.csv")
        )
        service.export_relations(args.topology, RelationExportRequest(output_path=output))

        logger.log(f"=== 토폴로지 적재 완료 ({len(features)}개 피처) ===", level="INFO")
        return 0

    except Exception:
        logger.log(f"적재 중 치명적 오류 발생:\n{traceback.format_exc()}", level="ERROR")
        return 1


if __name__ == "__main__":
    sys.exit(main())
