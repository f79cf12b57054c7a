"""Error taxonomy and reporting for the holiday pipeline.

Every error raised by pipeline code derives from ``BaseApplicationError`` and
carries a severity, a category (provider network, file system, store,
migration...), recovery suggestions for the CLI and the originating
exception. ``handle_error`` turns an error into an ``ErrorReport``, logs it
at a level derived from its severity and appends it to the JSON-lines
journal ``~/.holiday-pipeline/logs/errors.jsonl``.

Errors are only wrapped for reporting; callers keep raising the original
exception object.
"""

import json
import logging
import sys
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests
from botocore.exceptions import BotoCoreError, ClientError


class ErrorSeverity(Enum):
    """Error severity level"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class ErrorCategory(Enum):
    """Pipeline area an error belongs to"""
    NETWORK = "network"
    FILE_SYSTEM = "file_system"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    STORE = "store"
    MIGRATION = "migration"
    UNKNOWN = "unknown"


SEVERITY_LOG_LEVELS = {
    ErrorSeverity.CRITICAL: logging.CRITICAL,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.INFO: logging.INFO,
}


@dataclass
class ErrorReport:
    """One reported error, as logged and journaled"""
    timestamp: datetime
    severity: ErrorSeverity
    category: ErrorCategory
    operation: str
    user_message: str
    technical_message: str
    recovery_suggestions: List[str] = field(default_factory=list)
    context_data: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def to_journal_entry(self) -> Dict[str, Any]:
        entry = asdict(self)
        entry['timestamp'] = self.timestamp.isoformat()
        entry['severity'] = self.severity.value
        entry['category'] = self.category.value
        return entry


class BaseApplicationError(Exception):
    """Base class for all pipeline errors"""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        operation: str = "",
        recovery_suggestions: Optional[List[str]] = None,
        context_data: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.severity = severity
        self.category = category
        self.operation = operation
        self.recovery_suggestions = recovery_suggestions or []
        self.context_data = context_data or {}
        self.cause = cause
        self.timestamp = datetime.now()

    def get_user_message(self) -> str:
        return str(self)

    def get_technical_message(self) -> str:
        """Class name and message, followed by the originating exception if any."""
        message = f"{type(self).__name__}: {self}"
        if self.cause is not None:
            message += f" (Caused by: {type(self.cause).__name__}: {self.cause})"
        return message

    def to_report(self) -> ErrorReport:
        return ErrorReport(
            timestamp=self.timestamp,
            severity=self.severity,
            category=self.category,
            operation=self.operation,
            user_message=self.get_user_message(),
            technical_message=self.get_technical_message(),
            recovery_suggestions=list(self.recovery_suggestions),
            context_data=dict(self.context_data),
            stack_trace=traceback.format_exc() if sys.exc_info()[0] else None
        )


# Network errors
class NetworkError(BaseApplicationError):
    """Network communication error"""

    def __init__(self, message: str, url: str = "", timeout: float = 0, **kwargs):
        kwargs.setdefault('recovery_suggestions', [
            "Check the internet connection",
            "Retry after a short wait",
            "Check proxy settings"
        ])
        context_data = {"url": url, "timeout": timeout}
        context_data.update(kwargs.pop('context_data', {}))
        super().__init__(
            message,
            severity=kwargs.pop('severity', ErrorSeverity.HIGH),
            category=ErrorCategory.NETWORK,
            context_data=context_data,
            **kwargs
        )


class ProviderFetchError(NetworkError):
    """A holiday provider request failed (network, timeout, non-2xx or bad body)"""

    def __init__(self, message: str, provider: str = "", url: str = "",
                 status_code: Optional[int] = None, **kwargs):
        super().__init__(
            message,
            url=url,
            context_data={"provider": provider, "status_code": status_code},
            **kwargs
        )
        self.provider = provider
        self.url = url
        self.status_code = status_code


# File system errors
class FileSystemError(BaseApplicationError):
    """File system error"""

    def __init__(self, message: str, file_path: str = "", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.FILE_SYSTEM,
            recovery_suggestions=[
                "Check the file path",
                "Check file permissions",
                "Check free disk space"
            ],
            context_data={"file_path": file_path},
            **kwargs
        )


# Configuration errors
class ConfigurationError(BaseApplicationError):
    """Configuration error"""

    def __init__(self, message: str, config_key: str = "", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.CONFIGURATION,
            recovery_suggestions=[
                "Check the configuration file",
                "Check environment variables",
                "Use HOLIDAY_API_PROVIDER=nager if no API key is available"
            ],
            context_data={"config_key": config_key},
            **kwargs
        )


# Validation errors
class ValidationError(BaseApplicationError):
    """Input validation error"""

    def __init__(self, message: str, field: str = "", value: Any = None, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.VALIDATION,
            recovery_suggestions=[
                "Check the input value",
                "Use the documented format"
            ],
            context_data={"field": field, "value": value},
            **kwargs
        )


# Target store errors
class StoreError(BaseApplicationError):
    """Description store (DynamoDB) error"""

    def __init__(self, message: str, table: str = "", operation: str = "", **kwargs):
        kwargs.setdefault('recovery_suggestions', [
            "Check AWS credentials",
            "Check IAM permissions for the table",
            "Check the table name and region"
        ])
        super().__init__(
            message,
            severity=kwargs.pop('severity', ErrorSeverity.HIGH),
            category=ErrorCategory.STORE,
            operation=operation,
            context_data={"table": table, "operation": operation},
            **kwargs
        )


class StoreConnectionError(StoreError):
    """The description store is unreachable"""

    def __init__(self, message: str, table: str = "", **kwargs):
        super().__init__(
            message,
            table=table,
            operation="check_connection",
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


# Migration errors
class MigrationError(BaseApplicationError):
    """Migration run error"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            severity=kwargs.pop('severity', ErrorSeverity.HIGH),
            category=ErrorCategory.MIGRATION,
            **kwargs
        )


class SourceFileNotFoundError(MigrationError):
    """The local description cache does not exist"""

    def __init__(self, file_path: str, **kwargs):
        super().__init__(
            f"Cache file not found: {file_path}",
            recovery_suggestions=[
                "Check the --source path",
                "Generate holiday descriptions before migrating"
            ],
            context_data={"file_path": file_path},
            **kwargs
        )
        self.file_path = file_path


class InvalidSourceDataError(MigrationError):
    """The local description cache is not a valid JSON object"""

    def __init__(self, file_path: str, reason: str, **kwargs):
        super().__init__(
            f"Invalid JSON in cache file {file_path}: {reason}",
            recovery_suggestions=[
                "Restore the cache file from the migration backup",
                "Check the file is a JSON object keyed by cache key"
            ],
            context_data={"file_path": file_path},
            **kwargs
        )
        self.file_path = file_path


class MigrationEnvironmentError(MigrationError):
    """Environment or target connectivity check failed"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            f"Environment validation failed: {message}",
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class BackupError(MigrationError):
    """Backup of the source data could not be written"""

    def __init__(self, message: str, **kwargs):
        super().__init__(f"Backup creation failed: {message}", **kwargs)


class MigrationRollbackError(MigrationError):
    """A batch failed and migrated records were rolled back"""

    def __init__(self, message: str = "Migration failed and was rolled back", **kwargs):
        super().__init__(message, severity=ErrorSeverity.CRITICAL, **kwargs)


class MigrationVerificationError(MigrationError):
    """Post-migration verification could not read the target"""

    def __init__(self, message: str, **kwargs):
        super().__init__(f"Migration verification failed: {message}", **kwargs)




class ErrorHandler:
    """Logs reported errors and appends them to an optional journal file."""

    def __init__(self, journal_file: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self.error_history: List[ErrorReport] = []
        self.journal_file = Path(journal_file) if journal_file else None

    def handle_error(
        self,
        error: Union[BaseApplicationError, Exception],
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorReport:
        """Report an error.

        Args:
            error: Pipeline error, or any other exception (wrapped for the report only)
            context: Extra context merged into the report

        Returns:
            ErrorReport: the recorded report
        """
        if not isinstance(error, BaseApplicationError):
            error = self._wrap(error)

        report = error.to_report()
        if context:
            report.context_data.update(context)

        self.error_history.append(report)
        self.logger.log(
            SEVERITY_LOG_LEVELS.get(report.severity, logging.ERROR),
            f"[{report.category.value.upper()}] {report.user_message}",
            extra={'technical_message': report.technical_message, 'operation': report.operation}
        )
        if self.journal_file:
            self._append_to_journal(report)
        return report

    @staticmethod
    def _wrap(error: Exception) -> BaseApplicationError:
        if isinstance(error, (requests.RequestException, ConnectionError, TimeoutError)):
            return NetworkError(str(error), cause=error)
        if isinstance(error, (ClientError, BotoCoreError)):
            return StoreError(str(error), cause=error)
        if isinstance(error, OSError):
            return FileSystemError(str(error), file_path=error.filename or '', cause=error)
        return BaseApplicationError(str(error), cause=error)

    def _append_to_journal(self, report: ErrorReport):
        try:
            self.journal_file.parent.mkdir(parents=True, exist_ok=True)
            with self.journal_file.open('a', encoding='utf-8') as f:
                f.write(json.dumps(report.to_journal_entry(), ensure_ascii=False, default=str) + '\n')
        except OSError as e:
            self.logger.error(f"Failed to append to error journal {self.journal_file}: {e}")


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Global handler journaling to ~/.holiday-pipeline/logs/errors.jsonl"""
    global _global_error_handler
    if _global_error_handler is None:
        journal = Path.home() / '.holiday-pipeline' / 'logs' / 'errors.jsonl'
        _global_error_handler = ErrorHandler(str(journal))
    return _global_error_handler


def handle_error(
    error: Union[BaseApplicationError, Exception],
    context: Optional[Dict[str, Any]] = None
) -> ErrorReport:
    """Report an error through the global handler"""
    return get_error_handler().handle_error(error, context)
