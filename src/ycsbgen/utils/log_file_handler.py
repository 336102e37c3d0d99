"""
Run log file handler

Provides log setup for generator runs:
- Timestamped log file per run
- Simultaneous output to console and file
"""

import logging
import os
from datetime import datetime
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class RunFileHandler(logging.FileHandler):
    """File handler writing to <base_dir>/<YYYYMMDD>/<run_name>_<timestamp>.log"""

    def __init__(self, run_name: str, base_dir: str = "logs"):
        self.run_name = run_name
        self.base_dir = base_dir
        self.log_file_path = self._create_log_file_path()

        super().__init__(self.log_file_path, mode='w', encoding='utf-8')
        self.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    def _create_log_file_path(self) -> str:
        now = datetime.now()
        log_dir = os.path.join(self.base_dir, now.strftime("%Y%m%d"))
        os.makedirs(log_dir, exist_ok=True)
        return os.path.join(log_dir, f"{self.run_name}_{now.strftime('%Y%m%d_%H%M%S')}.log")

    def get_log_file_path(self) -> str:
        return self.log_file_path


class DualLoggingHandler:
    """Console output plus an optional run log file on one logger"""

    def __init__(self, logger: logging.Logger, run_name: str,
                 console_level: int = logging.INFO,
                 file_level: int = logging.DEBUG,
                 log_dir: Optional[str] = None):
        self.logger = logger
        self.run_name = run_name
        self.file_handler = None

        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)
        self.logger.setLevel(min(console_level, file_level) if log_dir else console_level)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
        self.logger.addHandler(console_handler)

        if log_dir:
            self.file_handler = RunFileHandler(run_name, log_dir)
            self.file_handler.setLevel(file_level)
            self.logger.addHandler(self.file_handler)

    def get_log_file_path(self) -> Optional[str]:
        if self.file_handler is None:
            return None
        return self.file_handler.get_log_file_path()

    def close(self):
        if self.file_handler is not None:
            self.logger.removeHandler(self.file_handler)
            self.file_handler.close()


def setup_run_logging(run_name: str, logger: Optional[logging.Logger] = None,
                      console_level: int = logging.INFO,
                      log_dir: Optional[str] = None) -> DualLoggingHandler:
    """
    Convenience function: set up logging for one generator run

    Args:
        run_name: Used in the log file name
        logger: Logger to configure, the root logger by default
        console_level: Console log level
        log_dir: Directory for the run log file, no file when None

    Returns:
        DualLoggingHandler instance
    """
    return DualLoggingHandler(
        logger=logger if logger is not None else logging.getLogger(),
        run_name=run_name,
        console_level=console_level,
        log_dir=log_dir
    )
