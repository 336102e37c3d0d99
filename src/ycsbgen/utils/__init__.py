from .log_file_handler import DualLoggingHandler, RunFileHandler, setup_run_logging

__all__ = ['DualLoggingHandler', 'RunFileHandler', 'setup_run_logging']
