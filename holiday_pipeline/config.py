"""Configuration management module."""

import os
import copy
import json
from typing import Dict, Optional, Any
from pathlib import Path

from .security import validate_file_path_input
from .error_handler import ValidationError, ConfigurationError


class Config:
    """Configuration management for the application."""

    DEFAULT_CONFIG = {
        'provider': {
            'name': 'nager',  # nager (keyless) or calendarific (keyed)
            'api_key': None,
            'timeout': 10
        },
        'retry': {
            'max_attempts': 3,
            'base_delay': 1.0
        },
        'data': {
            'directory': './data'
        },
        'cache': {
            'raw_ttl_days': 30,
            'collector_ttl_hours': 24
        },
        'collection': {
            'request_delay': 0.5,
            'year_delay': 5.0
        },
        'migration': {
            'source_file': 'ai-cache/holiday-descriptions.json',
            'backup_file': 'ai-cache/migration-backup.json',
            'log_file': './logs/migration.log',
            'batch_size': 50,
            'skip_existing': True,
            'rollback_on_error': False,
            'verbose': False,
            'dry_run': False,
            'batch_delay': 0.1,
            'default_locale': 'ko'
        },
        'aws': {
            'region': None,
            'profile': None,
            'table_name': 'holiday_descriptions'
        }
    }

    SUPPORTED_PROVIDERS = ('nager', 'calendarific')

    def __init__(self, config_file: Optional[str] = None):
        """Initialize configuration.

        Args:
            config_file: Path to configuration file (optional)
        """
        self.config_file = config_file or self._get_default_config_path()
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.load_config()

    def _get_default_config_path(self) -> str:
        return str(Path.home() / '.holiday-pipeline' / 'config.json')

    def load_config(self):
        """Load configuration from file and environment variables."""
        if os.path.exists(self.config_file):
            try:
                validated_path = validate_file_path_input(self.config_file, require_exists=True)
                file_config = json.loads(validated_path.read_text(encoding='utf-8'))
                if not isinstance(file_config, dict):
                    raise ValueError("top-level value must be an object")
                self._merge_config(file_config)
            except (ValueError, OSError, ValidationError) as e:
                print(f"Warning: Failed to load config file {self.config_file}: {e}")

        env_config: Dict[str, Dict[str, Any]] = {}

        def put(section: str, key: str, value: Any):
            env_config.setdefault(section, {})[key] = value

        if os.getenv('HOLIDAY_API_PROVIDER'):
            put('provider', 'name', os.getenv('HOLIDAY_API_PROVIDER').strip().lower())
        if os.getenv('CALENDARIFIC_API_KEY'):
            put('provider', 'api_key', os.getenv('CALENDARIFIC_API_KEY'))
        if os.getenv('HOLIDAY_DATA_DIR'):
            put('data', 'directory', os.getenv('HOLIDAY_DATA_DIR'))
        if os.getenv('MIGRATION_BATCH_SIZE'):
            try:
                put('migration', 'batch_size', int(os.getenv('MIGRATION_BATCH_SIZE')))
            except ValueError:
                print(f"Warning: Ignoring invalid MIGRATION_BATCH_SIZE: {os.getenv('MIGRATION_BATCH_SIZE')}")
        if os.getenv('AWS_PROFILE'):
            put('aws', 'profile', os.getenv('AWS_PROFILE'))
        if os.getenv('AWS_DEFAULT_REGION'):
            put('aws', 'region', os.getenv('AWS_DEFAULT_REGION'))
        if os.getenv('HOLIDAY_DESCRIPTIONS_TABLE'):
            put('aws', 'table_name', os.getenv('HOLIDAY_DESCRIPTIONS_TABLE'))

        if env_config:
            self._merge_config(env_config)

    def save_config(self):
        """Save current configuration to file."""
        try:
            validated_path = validate_file_path_input(self.config_file)
            validated_path.parent.mkdir(parents=True, exist_ok=True)
            validated_path.write_text(json.dumps(self.config, indent=2), encoding='utf-8')
        except (OSError, ValidationError) as e:
            print(f"Warning: Failed to save config file {self.config_file}: {e}")

    def _merge_config(self, new_config: Dict[str, Any]):
        """Merge new configuration with existing config.

        Args:
            new_config: New configuration to merge
        """
        def merge_dict(base: Dict, update: Dict):
            for key, value in update.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    merge_dict(base[key], value)
                else:
                    base[key] = value

        merge_dict(self.config, new_config)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value by key path.

        Args:
            key_path: Dot-separated key path (e.g., 'provider.name')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key_path.split('.')
        value = self.config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key_path: str, value: Any):
        """Set configuration value by key path."""
        keys = key_path.split('.')
        config = self.config

        for key in keys[:-1]:
            if key not in config:
                config[key] = {}
            config = config[key]

        config[keys[-1]] = value

    def get_provider_config(self) -> Dict[str, Any]:
        """Get provider configuration, checked for consistency.

        Raises:
            ConfigurationError: If the provider is unknown or a keyed
                provider has no API key
        """
        provider = dict(self.config.get('provider', {}))
        name = str(provider.get('name') or '').lower()
        if name not in self.SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unknown holiday provider: {provider.get('name')!r} "
                f"(supported: {', '.join(self.SUPPORTED_PROVIDERS)})",
                config_key='provider.name'
            )
        if name == 'calendarific' and not provider.get('api_key'):
            raise ConfigurationError(
                "CALENDARIFIC_API_KEY is required when using the calendarific provider",
                config_key='provider.api_key'
            )
        provider['name'] = name
        return provider

    def get_aws_config(self) -> Dict[str, Any]:
        return self.config.get('aws', {})

    def get_migration_config(self) -> Dict[str, Any]:
        return self.config.get('migration', {})

    def get_data_directory(self) -> Path:
        return Path(self.get('data.directory', './data')).expanduser()
