"""Logging and operation monitoring for the holiday pipeline.

Log records go to the console and to rotating files under
``~/.holiday-pipeline/logs``:

- ``pipeline.log``: everything at the configured level
- ``errors.log``: ERROR and above
- ``performance.log``: one JSON line per monitored operation (fetch,
  collection, migration), with duration and RSS memory delta

Pipeline fields passed through ``extra`` (``country_code``, ``year``,
``provider``, ``batch``) are carried into the JSON formats.
"""

import functools
import json
import logging
import logging.handlers
import sys
import threading
import time
import traceback
from collections import deque
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Deque, Dict, Optional

import psutil

PIPELINE_FIELDS = ('country_code', 'year', 'provider', 'batch', 'operation')
MAX_RETAINED_METRICS = 1000


class LogLevel(Enum):
    """Log level"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class LogFormat(Enum):
    """Log format"""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
    STRUCTURED = "structured"


@dataclass
class PerformanceMetric:
    """Duration and memory use of one monitored pipeline operation"""
    operation: str
    started_at: float
    duration: float
    memory_delta_mb: float
    success: bool
    error_message: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


class StructuredFormatter(logging.Formatter):
    """Formats records as a one-line text message or as JSON."""

    def __init__(self, format_type: LogFormat = LogFormat.STRUCTURED):
        super().__init__()
        self.format_type = format_type

    def _payload(self, record: logging.LogRecord) -> Dict[str, Any]:
        payload = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}:{record.funcName}:{record.lineno}",
        }
        for field_name in PIPELINE_FIELDS:
            if hasattr(record, field_name):
                payload[field_name] = getattr(record, field_name)
        if hasattr(record, 'performance_metric'):
            payload['performance_metric'] = record.performance_metric
        if hasattr(record, 'technical_message'):
            payload['technical_message'] = record.technical_message
        if record.exc_info and record.exc_info[0]:
            payload['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info),
            }
        return payload

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        if self.format_type == LogFormat.SIMPLE:
            return f"{timestamp} [{record.levelname}] {record.getMessage()}"
        if self.format_type == LogFormat.DETAILED:
            return (f"{timestamp} [{record.levelname}] {record.name}:{record.funcName}:{record.lineno} "
                    f"- {record.getMessage()}")

        indent = 2 if self.format_type == LogFormat.STRUCTURED else None
        return json.dumps(self._payload(record), ensure_ascii=False, default=str, indent=indent)


class PerformanceMonitor:
    """Records the most recent operation metrics and logs each one."""

    def __init__(self, max_metrics: int = MAX_RETAINED_METRICS):
        self.metrics: Deque[PerformanceMetric] = deque(maxlen=max_metrics)
        self.lock = threading.Lock()
        self.logger = logging.getLogger(__name__)
        self.process = psutil.Process()

    def _rss_mb(self) -> float:
        return self.process.memory_info().rss / 1024 / 1024

    @contextmanager
    def monitor_operation(self, operation_name: str, context: Optional[Dict[str, Any]] = None):
        started_at = time.time()
        memory_before = self._rss_mb()
        error_message = None

        try:
            yield operation_name
        except Exception as e:
            error_message = str(e)
            raise
        finally:
            metric = PerformanceMetric(
                operation=operation_name,
                started_at=started_at,
                duration=time.time() - started_at,
                memory_delta_mb=self._rss_mb() - memory_before,
                success=error_message is None,
                error_message=error_message,
                context=context,
            )
            with self.lock:
                self.metrics.append(metric)

            level = logging.INFO if metric.success else logging.WARNING
            self.logger.log(
                level,
                f"{operation_name} {'finished' if metric.success else 'failed'} in {metric.duration:.3f}s "
                f"(memory {metric.memory_delta_mb:+.2f}MB)",
                extra={'performance_metric': asdict(metric), 'operation': operation_name}
            )


class LoggingManager:
    """Owns the root logger handlers and the performance monitor."""

    def __init__(self,
                 log_dir: Optional[str] = None,
                 log_level: LogLevel = LogLevel.INFO,
                 log_format: LogFormat = LogFormat.STRUCTURED,
                 enable_console: bool = True,
                 enable_file: bool = True,
                 enable_performance_monitoring: bool = True,
                 max_log_size: int = 10 * 1024 * 1024,
                 backup_count: int = 5):

        self.log_dir = Path(log_dir) if log_dir else Path.home() / '.holiday-pipeline' / 'logs'
        self.log_level = log_level
        self.log_format = log_format
        self.enable_console = enable_console
        self.enable_file = enable_file
        self.max_log_size = max_log_size
        self.backup_count = backup_count
        self.performance_monitor = PerformanceMonitor() if enable_performance_monitoring else None

        self._configure_root_logger()

    def _rotating_handler(self, file_name: str, level: int, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / file_name,
            maxBytes=self.max_log_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    def _configure_root_logger(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level.value)
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            if isinstance(handler, logging.handlers.RotatingFileHandler):
                handler.close()

        formatter = StructuredFormatter(self.log_format)

        if self.enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(self.log_level.value)
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        if not self.enable_file:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(self._rotating_handler('pipeline.log', self.log_level.value, formatter))
        root_logger.addHandler(self._rotating_handler('errors.log', logging.ERROR, formatter))

        if self.performance_monitor:
            perf_handler = self._rotating_handler('performance.log', logging.INFO, StructuredFormatter(LogFormat.JSON))
            perf_handler.addFilter(lambda record: hasattr(record, 'performance_metric'))
            root_logger.addHandler(perf_handler)

    @contextmanager
    def monitor_operation(self, operation_name: str, context: Optional[Dict[str, Any]] = None):
        """Monitor an operation when performance monitoring is enabled."""
        if not self.performance_monitor:
            yield operation_name
            return
        with self.performance_monitor.monitor_operation(operation_name, context):
            yield operation_name

    def cleanup(self):
        """Flush file handlers; called at interpreter exit."""
        for handler in logging.getLogger().handlers:
            handler.flush()


def log_performance(operation_name: Optional[str] = None,
                    context: Optional[Dict[str, Any]] = None):
    """Decorator: run the function inside ``monitor_operation``."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            name = operation_name or f"{func.__module__}.{func.__name__}"
            with get_logging_manager().monitor_operation(name, context):
                return func(*args, **kwargs)
        return wrapper
    return decorator


_global_logging_manager: Optional[LoggingManager] = None


def get_logging_manager() -> LoggingManager:
    global _global_logging_manager
    if _global_logging_manager is None:
        _global_logging_manager = LoggingManager()
    return _global_logging_manager


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: LogLevel = LogLevel.INFO,
    log_format: LogFormat = LogFormat.STRUCTURED,
    enable_console: bool = True,
    enable_file: bool = True,
    enable_performance_monitoring: bool = True,
    debug_mode: bool = False
) -> LoggingManager:
    """Configure logging for a CLI run and make it the global manager.

    ``debug_mode`` forces DEBUG regardless of ``log_level``.
    """
    global _global_logging_manager

    _global_logging_manager = LoggingManager(
        log_dir=log_dir,
        log_level=LogLevel.DEBUG if debug_mode else log_level,
        log_format=log_format,
        enable_console=enable_console,
        enable_file=enable_file,
        enable_performance_monitoring=enable_performance_monitoring
    )
    return _global_logging_manager


def cleanup_logging():
    if _global_logging_manager:
        _global_logging_manager.cleanup()
