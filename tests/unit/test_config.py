"""
Unit tests for Configuration management.
"""

import pytest
import json
from pathlib import Path

from holiday_pipeline.config import Config
from holiday_pipeline.error_handler import ConfigurationError


def write_config(path: Path, data) -> str:
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


class TestConfig:
    """Test cases for Config class."""

    def test_init_with_defaults(self, temp_dir):
        config = Config(config_file=str(temp_dir / "missing.json"))

        assert config.get('provider.name') == 'nager'
        assert config.get('retry.max_attempts') == 3
        assert config.get('retry.base_delay') == 1.0
        assert config.get('cache.raw_ttl_days') == 30
        assert config.get('cache.collector_ttl_hours') == 24
        assert config.get('collection.request_delay') == 0.5
        assert config.get('collection.year_delay') == 5.0
        assert config.get('migration.batch_size') == 50
        assert config.get('migration.skip_existing') is True
        assert config.get('migration.rollback_on_error') is False

    def test_default_path_is_under_home(self, isolated_environment):
        config = Config()
        assert config.config_file == str(isolated_environment / '.holiday-pipeline' / 'config.json')

    def test_defaults_are_not_shared_between_instances(self, temp_dir):
        first = Config(config_file=str(temp_dir / "a.json"))
        first.set('migration.batch_size', 7)

        second = Config(config_file=str(temp_dir / "b.json"))

        assert second.get('migration.batch_size') == 50

    def test_file_values_merge_over_defaults(self, temp_dir):
        path = write_config(temp_dir / "config.json", {
            'provider': {'name': 'calendarific', 'api_key': 'file-key'},
            'migration': {'batch_size': 10},
        })

        config = Config(config_file=path)

        assert config.get('provider.name') == 'calendarific'
        assert config.get('provider.timeout') == 10
        assert config.get('migration.batch_size') == 10
        assert config.get('migration.skip_existing') is True

    def test_invalid_file_keeps_defaults(self, temp_dir, capsys):
        path = temp_dir / "config.json"
        path.write_text("{not json", encoding='utf-8')

        config = Config(config_file=str(path))

        assert config.get('provider.name') == 'nager'
        assert "Failed to load config file" in capsys.readouterr().out

    def test_non_object_file_keeps_defaults(self, temp_dir, capsys):
        config = Config(config_file=write_config(temp_dir / "config.json", [1, 2]))

        assert config.get('migration.batch_size') == 50
        assert "Warning" in capsys.readouterr().out

    def test_environment_overrides_file(self, temp_dir, monkeypatch):
        path = write_config(temp_dir / "config.json", {'provider': {'name': 'nager'}})
        monkeypatch.setenv('HOLIDAY_API_PROVIDER', ' Calendarific ')
        monkeypatch.setenv('CALENDARIFIC_API_KEY', 'env-key')
        monkeypatch.setenv('HOLIDAY_DATA_DIR', str(temp_dir / "data"))
        monkeypatch.setenv('MIGRATION_BATCH_SIZE', '25')
        monkeypatch.setenv('AWS_PROFILE', 'prod')
        monkeypatch.setenv('AWS_DEFAULT_REGION', 'ap-northeast-2')
        monkeypatch.setenv('HOLIDAY_DESCRIPTIONS_TABLE', 'descriptions')

        config = Config(config_file=path)

        assert config.get_provider_config()['name'] == 'calendarific'
        assert config.get('provider.api_key') == 'env-key'
        assert config.get_data_directory() == temp_dir / "data"
        assert config.get_migration_config()['batch_size'] == 25
        assert config.get_aws_config() == {
            'region': 'ap-northeast-2', 'profile': 'prod', 'table_name': 'descriptions'
        }

    def test_invalid_batch_size_env_is_ignored(self, temp_dir, monkeypatch, capsys):
        monkeypatch.setenv('MIGRATION_BATCH_SIZE', 'lots')

        config = Config(config_file=str(temp_dir / "missing.json"))

        assert config.get('migration.batch_size') == 50
        assert "MIGRATION_BATCH_SIZE" in capsys.readouterr().out

    def test_get_and_set(self, temp_dir):
        config = Config(config_file=str(temp_dir / "missing.json"))

        config.set('custom.nested.value', 'x')

        assert config.get('custom.nested.value') == 'x'
        assert config.get('custom.missing', 'fallback') == 'fallback'
        assert config.get('provider.name.deeper') is None

    def test_save_and_reload(self, temp_dir):
        path = str(temp_dir / "nested" / "config.json")
        config = Config(config_file=path)
        config.set('aws.table_name', 'saved_table')

        config.save_config()

        assert Config(config_file=path).get('aws.table_name') == 'saved_table'

    def test_data_directory_expands_home(self, temp_dir, isolated_environment):
        config = Config(config_file=str(temp_dir / "missing.json"))
        config.set('data.directory', '~/holidays')

        assert config.get_data_directory() == isolated_environment / 'holidays'


class TestProviderConfig:
    """Test cases for provider selection checks."""

    def test_unknown_provider(self, temp_dir):
        config = Config(config_file=str(temp_dir / "missing.json"))
        config.set('provider.name', 'google')

        with pytest.raises(ConfigurationError) as exc_info:
            config.get_provider_config()
        assert exc_info.value.context_data['config_key'] == 'provider.name'

    def test_calendarific_requires_key(self, temp_dir):
        config = Config(config_file=str(temp_dir / "missing.json"))
        config.set('provider.name', 'calendarific')

        with pytest.raises(ConfigurationError, match="CALENDARIFIC_API_KEY"):
            config.get_provider_config()

    def test_nager_needs_no_key(self, temp_dir):
        config = Config(config_file=str(temp_dir / "missing.json"))
        assert config.get_provider_config()['name'] == 'nager'
