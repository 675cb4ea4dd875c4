"""Tests for IngestConfig and TargetFormat."""

import pytest

from imgingest.config import IngestConfig, TargetFormat
from imgingest.errors import ConfigError


class TestTargetFormat:
    """Tests for TargetFormat enum."""

    def test_attributes(self):
        """Test per-format metadata."""
        assert TargetFormat.WEBP.content_type == 'image/webp'
        assert TargetFormat.JPEG.extension == '.jpg'
        assert TargetFormat.PNG.lossless is True
        assert TargetFormat.WEBP.lossless is False

    @pytest.mark.parametrize('value,expected', [
        ('webp', TargetFormat.WEBP),
        ('JPEG', TargetFormat.JPEG),
        ('jpeg', TargetFormat.JPEG),
        ('.jpg', TargetFormat.JPEG),
        ('image/png', TargetFormat.PNG),
        (TargetFormat.PNG, TargetFormat.PNG),
    ])
    def test_parse(self, value, expected):
        """Test resolving formats from names, extensions and content types."""
        assert TargetFormat.parse(value) is expected

    def test_parse_unknown(self):
        """Test unknown formats raise ConfigError."""
        with pytest.raises(ConfigError):
            TargetFormat.parse('gif')


class TestIngestConfig:
    """Tests for IngestConfig dataclass."""

    def test_defaults(self):
        """Test default values."""
        config = IngestConfig()

        assert config.max_items == 10
        assert config.max_file_size_mb == 5
        assert config.accepted_media_types == {'image/jpeg', 'image/png', 'image/webp'}
        assert config.target_format is TargetFormat.WEBP
        assert config.default_quality == 0.8
        assert config.max_width == 1280
        assert config.default_square_crop is False

    def test_max_file_size_bytes(self):
        """Test the size ceiling in bytes."""
        assert IngestConfig(max_file_size_mb=2).max_file_size_bytes == 2 * 1024 * 1024

    def test_target_format_string_is_parsed(self):
        """Test target format given as a string."""
        assert IngestConfig(target_format='png').target_format is TargetFormat.PNG

    @pytest.mark.parametrize('kwargs', [
        {'max_items': 0},
        {'max_items': -3},
        {'max_file_size_mb': 0},
        {'default_quality': 1.5},
        {'default_quality': -0.1},
        {'max_width': 0},
        {'max_items': True},
        {'max_width': True},
        {'max_file_size_mb': True},
        {'default_quality': False},
        {'accepted_media_types': set()},
    ])
    def test_out_of_range_values_raise(self, kwargs):
        """Test invalid values are rejected rather than clamped."""
        with pytest.raises(ConfigError):
            IngestConfig(**kwargs)

    def test_config_error_is_value_error(self):
        """Test ConfigError can be caught as ValueError."""
        with pytest.raises(ValueError):
            IngestConfig(max_items=0)

    def test_from_env(self, monkeypatch):
        """Test loading from INGEST_* environment variables."""
        monkeypatch.setenv('INGEST_MAX_ITEMS', '3')
        monkeypatch.setenv('INGEST_MAX_FILE_SIZE_MB', '2.5')
        monkeypatch.setenv('INGEST_TARGET_FORMAT', 'jpeg')
        monkeypatch.setenv('INGEST_QUALITY', '0.6')
        monkeypatch.setenv('INGEST_MAX_WIDTH', '800')
        monkeypatch.setenv('INGEST_SQUARE_CROP', 'true')
        monkeypatch.setenv('INGEST_ACCEPTED_TYPES', 'image/jpeg, image/png')

        config = IngestConfig.from_env()

        assert config.max_items == 3
        assert config.max_file_size_mb == 2.5
        assert config.target_format is TargetFormat.JPEG
        assert config.default_quality == 0.6
        assert config.max_width == 800
        assert config.default_square_crop is True
        assert config.accepted_media_types == {'image/jpeg', 'image/png'}

    def test_from_env_invalid(self, monkeypatch):
        """Test invalid environment values surface as ConfigError."""
        monkeypatch.setenv('INGEST_MAX_ITEMS', '0')

        with pytest.raises(ConfigError):
            IngestConfig.from_env()
