"""
Service/config.py

위상 피처 적재 동작(허용 오차, 추적 로그, 로그 보관, 내보내기)을 제어하는 설정 모듈입니다.
"""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TopoConfig(BaseSettings):
    """
    토폴로지 적재 파이프라인의 핵심 파라미터를 정의하는 설정 클래스입니다.
    """

    default_tolerance: float = Field(
        default=0.0,
        ge=0.0,
        description="적재 시 사용할 스냅 허용 오차. 0이면 토폴로지 precision 또는 좌표 크기로 계산"
    )

    topology_precision: float = Field(
        default=0.0,
        ge=0.0,
        description="새 토폴로지 생성 시 지정할 좌표 정밀도 (0: 미지정)"
    )

    trace_relations: bool = Field(
        default=False,
        description="디버그 모드: 관계 튜플 추가/중복 판단 과정을 DEBUG 로그로 기록"
    )

    log_retention_days: int = Field(
        default=3,
        ge=0,
        description="작업 로그 파일 보관 일수"
    )

    export_encoding: str = Field(
        default="utf-8",
        description="관계 테이블 CSV 내보내기 인코딩"
    )

    model_config = SettingsConfigDict(
        env_prefix="TOPO_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
