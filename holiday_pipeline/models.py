"""Holiday pipeline data model.

Field names on the wire (persisted files, caches, migration source) are
camelCase; attributes are snake_case. ``to_dict``/``from_dict`` translate.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class HolidayType(Enum):
    """Internal holiday classification"""
    PUBLIC = "public"
    BANK = "bank"
    SCHOOL = "school"
    OPTIONAL = "optional"


class ProviderName(Enum):
    """Supported holiday providers"""
    CALENDARIFIC = "calendarific"  # keyed
    NAGER = "nager"  # keyless


@dataclass(frozen=True, slots=True)
class Holiday:
    """One calendar event for one country/year.

    ``name`` and ``date`` may be None on records fresh out of the normalizer;
    the validator drops those before anything is persisted.
    """
    name: Optional[str]
    date: Optional[str]
    country_code: str
    id: Optional[str] = None
    country: str = ""
    description: Optional[str] = None
    type: HolidayType = HolidayType.OPTIONAL
    global_: bool = False
    counties: Optional[List[str]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'name': self.name,
            'date': self.date,
            'country': self.country,
            'countryCode': self.country_code,
            'type': self.type.value,
            'global': self.global_,
        }
        if self.description is not None:
            data['description'] = self.description
        if self.counties is not None:
            data['counties'] = list(self.counties)
        if self.created_at is not None:
            data['createdAt'] = self.created_at
        if self.updated_at is not None:
            data['updatedAt'] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Holiday':
        try:
            holiday_type = HolidayType(data.get('type') or HolidayType.OPTIONAL.value)
        except ValueError:
            holiday_type = HolidayType.OPTIONAL
        counties = data.get('counties')
        return cls(
            id=data.get('id'),
            name=data.get('name'),
            date=data.get('date'),
            country=data.get('country') or "",
            country_code=data.get('countryCode') or "",
            description=data.get('description'),
            type=holiday_type,
            global_=bool(data.get('global', False)),
            counties=list(counties) if counties is not None else None,
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
        )


@dataclass
class HolidayDataFile:
    """Persisted artifact for one (country, year)"""
    country_code: str
    year: int
    total_holidays: int
    last_updated: str
    holidays: List[Holiday] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'countryCode': self.country_code,
            'year': self.year,
            'totalHolidays': self.total_holidays,
            'lastUpdated': self.last_updated,
            'holidays': [h.to_dict() for h in self.holidays],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HolidayDataFile':
        holidays = [Holiday.from_dict(h) for h in data.get('holidays') or []]
        return cls(
            country_code=data.get('countryCode', ''),
            year=int(data.get('year', 0)),
            total_holidays=int(data.get('totalHolidays', 0)),
            last_updated=data.get('lastUpdated', ''),
            holidays=holidays,
        )


@dataclass
class CacheEntry:
    """Timestamped cache value; valid while ``now - timestamp < ttl`` (ms)"""
    data: Any
    timestamp: int
    ttl: int
    key: str

    def is_valid(self, now_ms: int) -> bool:
        return now_ms - self.timestamp < self.ttl

    def to_dict(self) -> Dict[str, Any]:
        return {'data': self.data, 'timestamp': self.timestamp, 'ttl': self.ttl, 'key': self.key}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CacheEntry':
        return cls(
            data=data['data'],
            timestamp=int(data['timestamp']),
            ttl=int(data['ttl']),
            key=data['key'],
        )


@dataclass
class CollectionResult:
    """Outcome of a multi-country collection run"""
    success: bool = True
    holidays_collected: int = 0
    errors: List[str] = field(default_factory=list)
    duration: float = 0.0


@dataclass
class CatalogCollectionResult(CollectionResult):
    """Outcome of a multi-year, multi-country collection run"""
    successful_collections: int = 0
    failed_collections: int = 0
    skipped: int = 0


@dataclass
class DataStatistics:
    """Aggregate over all persisted holiday files"""
    total_files: int = 0
    total_holidays: int = 0
    countries: List[str] = field(default_factory=list)
    years: List[int] = field(default_factory=list)
    last_updated: str = ""


@dataclass
class MigrationSourceEntry:
    """One entry of the local description cache"""
    holiday_id: Optional[str]
    holiday_name: Optional[str]
    country_name: Optional[str]
    locale: Optional[str]
    description: Optional[str]
    confidence: Optional[float]
    generated_at: Optional[str]
    last_used: Optional[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MigrationSourceEntry':
        return cls(
            holiday_id=data.get('holidayId'),
            holiday_name=data.get('holidayName'),
            country_name=data.get('countryName'),
            locale=data.get('locale'),
            description=data.get('description'),
            confidence=data.get('confidence'),
            generated_at=data.get('generatedAt'),
            last_used=data.get('lastUsed'),
        )

    def is_complete(self) -> bool:
        return bool(self.holiday_name) and bool(self.country_name) and bool(self.description)


@dataclass
class MigrationTargetRecord:
    """Row written to the description store"""
    holiday_id: str
    holiday_name: str
    country_name: str
    locale: str
    description: str
    confidence: float
    generated_at: str
    last_used: str
    modified_at: str
    modified_by: str
    is_manual: bool
    ai_model: str
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'holiday_id': self.holiday_id,
            'holiday_name': self.holiday_name,
            'country_name': self.country_name,
            'locale': self.locale,
            'description': self.description,
            'confidence': self.confidence,
            'generated_at': self.generated_at,
            'last_used': self.last_used,
            'modified_at': self.modified_at,
            'modified_by': self.modified_by,
            'is_manual': self.is_manual,
            'ai_model': self.ai_model,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


@dataclass
class MigrationOptions:
    dry_run: bool = False
    batch_size: int = 50
    skip_existing: bool = True
    rollback_on_error: bool = False
    verbose: bool = False


@dataclass
class MigrationResult:
    """Migration summary.

    ``invalid`` counts source entries rejected before transformation; it is
    distinct from ``skipped`` (already present in the target).
    """
    success: int = 0
    failed: int = 0
    skipped: int = 0
    invalid: int = 0
    errors: List[str] = field(default_factory=list)
    duration: float = 0.0
    dry_run: bool = False
