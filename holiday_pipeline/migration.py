"""Migration of the local holiday description cache into the description store.

Steps: check the store is reachable, load and decode the source map, transform
entries (invalid ones are counted, not fatal), back up the source, insert in
batches with optional skip-existing and rollback, verify, then summarize.
Dry runs stop after the transformation.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

import chardet
import click

from .datetime_handler import SystemClock, parse_timestamp, to_iso
from .error_handler import (
    BackupError,
    FileSystemError,
    InvalidSourceDataError,
    MigrationEnvironmentError,
    MigrationError,
    MigrationRollbackError,
    MigrationVerificationError,
    SourceFileNotFoundError,
    StoreError,
)
from .logging_config import log_performance
from .models import MigrationOptions, MigrationResult, MigrationSourceEntry, MigrationTargetRecord
from .storage import Storage

MIGRATION_MARKER = 'migration_script'
MIGRATION_VERSION = '1.0.0'
DEFAULT_CONFIDENCE = 0.95
DEFAULT_AI_MODEL = 'openai-gpt'
VERIFICATION_SAMPLE_SIZE = 5
MIN_DETECTION_CONFIDENCE = 0.8


class DescriptionStore(ABC):
    """Target table for migrated holiday descriptions."""

    @abstractmethod
    def check_connection(self) -> None:
        """Raise ``StoreError`` when the store cannot be reached."""

    @abstractmethod
    def find_existing(self, holiday_name: str, country_name: str, locale: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def insert(self, record: Dict[str, Any]) -> str:
        pass

    @abstractmethod
    def delete_by_modified_by(self, marker: str) -> int:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def sample(self, limit: int = VERIFICATION_SAMPLE_SIZE) -> List[Dict[str, Any]]:
        pass


class MigrationRunLog:
    """Run log: every line is echoed and appended as ``[ISO] message``."""

    def __init__(self, storage: Storage, key: str, clock: Optional[SystemClock] = None,
                 echo: Optional[Callable[[str], None]] = None):
        self.storage = storage
        self.key = key
        self.clock = clock or SystemClock()
        self.echo = echo or click.echo
        self.logger = logging.getLogger(__name__)

    def log(self, message: str) -> None:
        line = f"[{to_iso(self.clock.now())}] {message}"
        self.echo(line)
        try:
            self.storage.append(self.key, (line + '\n').encode('utf-8'))
        except FileSystemError as e:
            # The console copy is already out; a missing file line is not fatal
            self.logger.warning(f"Failed to write migration log: {e}")


class CacheToStoreMigrator:
    """Migrate the description cache map into a ``DescriptionStore``."""

    def __init__(self,
                 store: DescriptionStore,
                 storage: Storage,
                 run_log: MigrationRunLog,
                 source_key: str = 'ai-cache/holiday-descriptions.json',
                 backup_key: str = 'ai-cache/migration-backup.json',
                 options: Optional[MigrationOptions] = None,
                 clock: Optional[SystemClock] = None,
                 default_locale: str = 'ko',
                 batch_delay: float = 0.1):
        self.store = store
        self.storage = storage
        self.run_log = run_log
        self.source_key = source_key
        self.backup_key = backup_key
        self.options = options or MigrationOptions()
        self.clock = clock or SystemClock()
        self.default_locale = default_locale
        self.batch_delay = batch_delay
        self.logger = logging.getLogger(__name__)

        if self.options.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.options.batch_size}")

    def log(self, message: str) -> None:
        self.run_log.log(message)

    @log_performance("migration.migrate")
    def migrate(self) -> MigrationResult:
        """Run the migration.

        Returns:
            MigrationResult: Counts, collected error messages and duration

        Raises:
            MigrationError: On an unreachable store, a missing or invalid
                source file, a failed backup or verification, or a rollback
        """
        started = self.clock.now()
        result = MigrationResult(dry_run=self.options.dry_run)

        try:
            self.log("Starting description cache migration" + (" (dry run)" if self.options.dry_run else ""))

            self.validate_environment()

            source = self.load_source()
            self.log(f"Found {len(source)} entries in {self.storage.describe(self.source_key)}")

            records, result.invalid = self.transform(source)
            self.log(f"Transformed {len(records)} entries ({result.invalid} invalid)")

            if self.options.dry_run:
                result.success = len(records)
                self.log(f"[DRY RUN] {len(records)} entries would be migrated; target not modified")
            else:
                self.create_backup(source)
                self._run_batches(records, result)
                self.verify(len(records))

            result.duration = (self.clock.now() - started).total_seconds()
            self.log_summary(result)
            return result

        except Exception as e:
            elapsed = (self.clock.now() - started).total_seconds()
            self.log(f"Migration failed after {elapsed:.2f}s: {e}")
            raise

    def _run_batches(self, records: List[MigrationTargetRecord], result: MigrationResult) -> None:
        batches = self.create_batches(records, self.options.batch_size)
        self.log(f"Processing {len(batches)} batches of up to {self.options.batch_size}")

        for index, batch in enumerate(batches):
            self.log(f"Batch {index + 1}/{len(batches)} ({len(batch)} entries)")
            batch_result = self.process_batch(batch)
            result.success += batch_result.success
            result.failed += batch_result.failed
            result.skipped += batch_result.skipped
            result.errors.extend(batch_result.errors)

            if batch_result.failed > 0 and self.options.rollback_on_error:
                self.log("Errors in batch; rolling back")
                self.rollback()
                raise MigrationRollbackError()

            if index < len(batches) - 1:
                self.clock.sleep(self.batch_delay)

    def validate_environment(self) -> None:
        try:
            self.store.check_connection()
        except StoreError as e:
            raise MigrationEnvironmentError(str(e), cause=e)
        self.log("Environment validated")

    def load_source(self) -> Dict[str, Any]:
        """Read and parse the source map.

        Raises:
            SourceFileNotFoundError: If the source file does not exist
            InvalidSourceDataError: If it cannot be decoded or is not a JSON object
        """
        location = self.storage.describe(self.source_key)
        raw = self.storage.get(self.source_key)
        if raw is None:
            raise SourceFileNotFoundError(location)

        text = self._decode(raw, location)
        try:
            data = json.loads(text)
        except ValueError as e:
            raise InvalidSourceDataError(location, str(e), cause=e)
        if not isinstance(data, dict):
            raise InvalidSourceDataError(location, f"expected an object, got {type(data).__name__}")
        return data

    def _decode(self, raw: bytes, location: str) -> str:
        try:
            return raw.decode('utf-8-sig')
        except UnicodeDecodeError:
            pass

        detected = chardet.detect(raw)
        encoding = detected.get('encoding')
        confidence = detected.get('confidence') or 0
        if not encoding or confidence <= MIN_DETECTION_CONFIDENCE:
            raise InvalidSourceDataError(location, "file is not UTF-8 and its encoding could not be detected")

        self.logger.warning(f"{location} is not UTF-8; decoding as {encoding} (confidence {confidence:.2f})")
        try:
            return raw.decode(encoding)
        except (LookupError, UnicodeDecodeError) as e:
            raise InvalidSourceDataError(location, f"cannot decode as {encoding}: {e}", cause=e)

    def transform(self, source: Dict[str, Any]) -> Tuple[List[MigrationTargetRecord], int]:
        """Transform source entries into target records.

        Returns:
            The records in source order and the number of rejected entries
        """
        records: List[MigrationTargetRecord] = []
        invalid = 0
        now = to_iso(self.clock.now())

        for key, value in source.items():
            if not isinstance(value, dict):
                self.log(f"Skipping entry with invalid structure: {key}")
                invalid += 1
                continue

            entry = MigrationSourceEntry.from_dict(value)
            if not entry.is_complete():
                self.log(f"Skipping entry with missing required fields: {key}")
                invalid += 1
                continue

            try:
                records.append(self._to_record(key, entry, now))
            except (TypeError, ValueError) as e:
                self.log(f"Failed to transform entry {key}: {e}")
                invalid += 1

        return records, invalid

    def _to_record(self, key: str, entry: MigrationSourceEntry, now: str) -> MigrationTargetRecord:
        for field_name in ('holiday_name', 'country_name', 'description'):
            if not isinstance(getattr(entry, field_name), str):
                raise TypeError(f"{field_name} must be a string")

        confidence = DEFAULT_CONFIDENCE if entry.confidence is None else entry.confidence
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise TypeError(f"confidence must be a number, got {confidence!r}")

        return MigrationTargetRecord(
            holiday_id=str(entry.holiday_id or key),
            holiday_name=entry.holiday_name,
            country_name=entry.country_name,
            locale=entry.locale or self.default_locale,
            description=entry.description,
            confidence=float(confidence),
            generated_at=to_iso(parse_timestamp(entry.generated_at)) if entry.generated_at else now,
            last_used=to_iso(parse_timestamp(entry.last_used)) if entry.last_used else now,
            modified_at=now,
            modified_by=MIGRATION_MARKER,
            is_manual=False,
            ai_model=DEFAULT_AI_MODEL,
            created_at=now,
            updated_at=now,
        )

    def create_backup(self, source: Dict[str, Any]) -> None:
        backup = {
            'timestamp': to_iso(self.clock.now()),
            'originalData': source,
            'metadata': {
                'totalEntries': len(source),
                'migrationVersion': MIGRATION_VERSION,
            },
        }
        try:
            self.storage.put(self.backup_key, json.dumps(backup, ensure_ascii=False, indent=2).encode('utf-8'))
        except FileSystemError as e:
            raise BackupError(str(e), cause=e)
        self.log(f"Backup written: {self.storage.describe(self.backup_key)}")

    @staticmethod
    def create_batches(items: List[Any], batch_size: int) -> List[List[Any]]:
        return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]

    def process_batch(self, batch: List[MigrationTargetRecord]) -> MigrationResult:
        result = MigrationResult()

        for record in batch:
            label = f"{record.holiday_name} ({record.country_name})"
            try:
                if self.options.skip_existing:
                    existing = self.store.find_existing(record.holiday_name, record.country_name, record.locale)
                    if existing:
                        result.skipped += 1
                        if self.options.verbose:
                            self.log(f"Skipped existing: {label}")
                        continue

                self.store.insert(record.to_dict())
                result.success += 1
                if self.options.verbose:
                    self.log(f"Migrated: {label}")

            except Exception as e:
                result.failed += 1
                message = f"{label}: {e}"
                result.errors.append(message)
                self.log(f"Failed: {message}")

        return result

    def rollback(self) -> int:
        """Delete every record carrying the migration marker."""
        self.log("Starting rollback")
        try:
            deleted = self.store.delete_by_modified_by(MIGRATION_MARKER)
        except StoreError as e:
            raise MigrationError(f"Rollback failed: {e}", cause=e)
        self.log(f"Rollback complete ({deleted} records removed)")
        return deleted

    def verify(self, expected_count: int) -> None:
        """Compare the target row count with the expected count and read a sample.

        A count mismatch is only logged: the target may hold rows from
        earlier runs or skipped entries.
        """
        try:
            actual = self.store.count()
            self.log(f"Integrity check: expected {expected_count}, found {actual}")
            sample = self.store.sample(VERIFICATION_SAMPLE_SIZE)
        except StoreError as e:
            raise MigrationVerificationError(str(e), cause=e)
        if sample:
            self.log(f"Sample read verified ({len(sample)} records)")

    def log_summary(self, result: MigrationResult) -> None:
        self.log("Migration summary:")
        self.log(f"   Success: {result.success}")
        self.log(f"   Failed: {result.failed}")
        self.log(f"   Skipped (existing): {result.skipped}")
        self.log(f"   Skipped (invalid): {result.invalid}")
        self.log(f"   Duration: {result.duration:.2f}s")

        if result.errors:
            self.log("Errors:")
            for index, error in enumerate(result.errors, 1):
                self.log(f"   {index}. {error}")

        if result.dry_run:
            self.log("Dry run complete; no changes were made")
        elif result.failed == 0:
            self.log("Migration completed successfully")
        else:
            self.log("Some entries failed; check the log for details")
