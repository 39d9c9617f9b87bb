"""
Function/utils.py

실행 위치 기준의 결과물 경로 계산을 처리하는 유틸리티 모듈입니다.
"""
from pathlib import Path
import sys

RESULT_DIR_NAME = "Result"


def get_runtime_base_path() -> Path:
    """
    실행 파일(번들형) 또는 메인 스크립트가 위치한 디렉토리를 반환합니다.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0]).resolve().parent


def get_result_path(file_name: str) -> Path:
    """
    실행 위치 하위 Result 폴더 안의 결과 파일 경로를 반환합니다. 폴더는 필요 시 생성됩니다.

    Args:
        file_name (str): 결과 파일명

    Returns:
        Path: Result/<file_name> 경로
    """
    result_dir = get_runtime_base_path() / RESULT_DIR_NAME
    result_dir.mkdir(parents=True, exist_ok=True)
    return result_dir / file_name
