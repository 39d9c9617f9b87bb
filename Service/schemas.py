"""
Service/schemas.py

적재 요청 및 파일 입출력 요청의 구조를 정의하고 입력값의 유효성을 검증하는 스키마 모듈입니다.
"""
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

SUPPORTED_VECTOR_SUFFIXES = {".shp", ".geojson", ".json", ".gpkg"}


class FileLoadRequest(BaseModel):
    """
    벡터 파일 로드 요청을 위한 데이터 모델입니다.
    """
    file_path: Path = Field(..., description="읽어올 벡터 파일(SHP/GeoJSON/GPKG)의 경로")
    encoding: Optional[str] = Field(default=None, description="속성 인코딩 (SHP 전용)")

    @field_validator("file_path")
    @classmethod
    def validate_extension(cls, v: Path) -> Path:
        if v.suffix.lower() not in SUPPORTED_VECTOR_SUFFIXES:
            raise ValueError(f"지원하지 않는 파일 형식입니다: {v.suffix} (허용: {sorted(SUPPORTED_VECTOR_SUFFIXES)})")
        return v

    @field_validator("file_path")
    @classmethod
    def validate_existence(cls, v: Path) -> Path:
        resolved_path = v.resolve()
        if not resolved_path.is_file():
            raise ValueError(f"파일을 찾을 수 없습니다: {resolved_path}")
        return resolved_path


class ToTopoGeomRequest(BaseModel):
    """
    단일 geometry 적재 대상(토폴로지, 레이어, 허용 오차)을 기술하는 요청 모델입니다.
    """
    topology_name: str = Field(..., min_length=1, description="대상 토폴로지 이름")
    layer_id: int = Field(..., ge=1, description="대상 레이어 ID")
    tolerance: float = Field(default=0.0, ge=0.0, description="스냅 허용 오차 (0: 기본값 계산)")


class RelationExportRequest(BaseModel):
    """
    관계 테이블 내보내기 요청을 위한 데이터 모델입니다.
    """
    output_path: Path = Field(..., description="관계 테이블을 저장할 CSV 경로")

    @field_validator("output_path")
    @classmethod
    def validate_extension(cls, v: Path) -> Path:
        if v.suffix.lower() != ".csv":
            raise ValueError(f"저장 파일 형식은 .csv여야 합니다: {v.suffix}")
        return v.resolve()
