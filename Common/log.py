import logging
import datetime
import os
import sys

LOG_FILE_PREFIX = "TopoLog_"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class Log:
    def __init__(self, log_dir="Log", level="DEBUG", echo=True):
        # 프로그램 실행 폴더 (번들 실행 시 실행 파일 위치)
        if getattr(sys, 'frozen', False):
            program_dir = os.path.dirname(os.path.abspath(sys.executable))
        else:
            program_dir = os.path.dirname(os.path.abspath(__file__))

        self.log_dir = log_dir if os.path.isabs(log_dir) else os.path.join(program_dir, log_dir)
        os.makedirs(self.log_dir, exist_ok=True)

        # 로그 파일명은 'TopoLog_YYYYMMDD.log' 형식
        self.log_file = os.path.join(self.log_dir, f'{LOG_FILE_PREFIX}{self._current_date_str()}.log')
        self.echo = echo

        logging.basicConfig(
            filename=self.log_file,
            level=_LEVELS.get(str(level).upper(), logging.DEBUG),
            format='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y/%m/%d %H:%M',
            encoding='utf-8'
        )

    def _current_date_str(self):
        return datetime.datetime.now().strftime("%Y%m%d")

    def log(self, msg, level='DEBUG'):
        """지정된 로그 레벨로 메시지를 기록하고 콘솔에도 출력합니다."""
        level = level.upper()
        log_level = _LEVELS.get(level)
        if log_level is None:
            print(f"알 수 없는 로그 레벨: {level}")
            return

        logging.log(log_level, msg)

        if self.echo:
            print(f"{level}: {msg}")

    def get_log_paths(self):
        """현재 로그 파일 경로를 반환하는 메서드."""
        return self.log_file
