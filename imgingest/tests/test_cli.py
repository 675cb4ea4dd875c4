"""Tests for CLI module."""

import pytest
from PIL import Image

from imgingest.cli import cmd_ingest, create_parser, get_ingest_config, get_transport, main
from imgingest.config import TargetFormat
from imgingest.transport import LocalTransport, S3Transport, SimulatedTransport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep INGEST_* and S3_* settings from the host out of the tests."""
    for name in ('INGEST_MAX_ITEMS', 'INGEST_MAX_FILE_SIZE_MB', 'INGEST_TARGET_FORMAT',
                 'INGEST_QUALITY', 'INGEST_MAX_WIDTH', 'INGEST_SQUARE_CROP',
                 'INGEST_ACCEPTED_TYPES', 'S3_ENDPOINT', 'S3_BUCKET', 'S3_ACCESS_KEY',
                 'S3_SECRET_KEY', 'S3_PREFIX', 'S3_VERIFY_SSL'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def image_file(tmp_path, make_image_bytes):
    """Fixture writing an 800x600 PNG to disk."""
    path = tmp_path / 'shot.png'
    path.write_bytes(make_image_bytes(800, 600, fmt='PNG'))
    return path


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_ingest_command(self):
        """Test ingest command parsing."""
        parser = create_parser()
        args = parser.parse_args([
            'ingest', 'a.jpg', 'b.png', '-w', '800', '--quality', '0.5',
            '-f', 'jpeg', '--square', '--output-dir', 'out'
        ])

        assert args.command == 'ingest'
        assert args.files == ['a.jpg', 'b.png']
        assert args.max_width == 800
        assert args.quality == 0.5
        assert args.format == 'jpeg'
        assert args.square is True
        assert args.output_dir == 'out'
        assert args.prefix == 'products'

    def test_ingest_defaults(self):
        """Test unset options stay None so INGEST_* defaults apply."""
        args = create_parser().parse_args(['ingest', 'a.jpg'])

        assert args.max_width is None
        assert args.format is None
        assert args.simulate_interval == 0.0
        assert args.s3 is False

    def test_inspect_command(self):
        """Test inspect command parsing."""
        args = create_parser().parse_args(['inspect', 'a.jpg', '-r', '270', '--square'])

        assert args.command == 'inspect'
        assert args.rotate == 270
        assert args.square is True
        assert args.max_width == 1280

    def test_invalid_format(self):
        """Test unknown formats are rejected by argparse."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(['ingest', 'a.jpg', '-f', 'gif'])


class TestHelpers:
    """Tests for config and transport selection."""

    def test_ingest_config_overrides(self):
        """Test CLI options override the defaults."""
        args = create_parser().parse_args(['ingest', 'a.jpg', '-w', '640', '-f', 'png', '--max-items', '3'])

        config = get_ingest_config(args)

        assert config.max_width == 640
        assert config.target_format is TargetFormat.PNG
        assert config.max_items == 3
        assert config.default_quality == 0.8

    def test_transport_selection(self, tmp_path, logger):
        """Test local and simulated transports."""
        parser = create_parser()

        local = get_transport(parser.parse_args(['ingest', 'a.jpg', '--output-dir', str(tmp_path)]), logger)
        simulated = get_transport(parser.parse_args(['ingest', 'a.jpg']), logger)

        assert isinstance(local, LocalTransport)
        assert isinstance(simulated, SimulatedTransport)

    def test_s3_transport(self, monkeypatch, mocker, logger):
        """Test --s3 builds an S3 transport from S3_* settings and overrides."""
        monkeypatch.setenv('S3_ENDPOINT', 'http://minio:9000')
        monkeypatch.setenv('S3_ACCESS_KEY', 'key')
        monkeypatch.setenv('S3_SECRET_KEY', 'secret')
        mock_client = mocker.patch('imgingest.cli.S3Client')
        args = create_parser().parse_args(['ingest', 'a.jpg', '--s3', '--s3-bucket', 'images'])

        transport = get_transport(args, logger)

        assert isinstance(transport, S3Transport)
        config = mock_client.call_args.args[0]
        assert config.bucket == 'images'
        assert config.endpoint == 'http://minio:9000'

    def test_s3_requires_settings(self, logger):
        """Test --s3 without configuration is an error."""
        args = create_parser().parse_args(['ingest', 'a.jpg', '--s3'])

        with pytest.raises(ValueError):
            get_transport(args, logger)


class TestMain:
    """Tests for main entry point."""

    def test_no_command(self):
        """Test running without command shows help."""
        assert main([]) == 1


class TestCmdIngest:
    """Tests for ingest command."""

    def test_ingest_to_directory(self, image_file, tmp_path):
        """Test a successful run uploads into the output directory."""
        out = tmp_path / 'out'

        result = main(['ingest', str(image_file), '--output-dir', str(out), '-w', '400', '-q'])

        assert result == 0
        uploaded = list(out.glob('products/*/shot.webp'))
        assert len(uploaded) == 1

    def test_save_dir(self, image_file, tmp_path, capsys):
        """Test --save-dir writes each processed image under its display name."""
        saved = tmp_path / 'saved'

        result = main(['ingest', str(image_file), '-f', 'jpeg', '--save-dir', str(saved)])

        assert result == 0
        assert (saved / 'shot.jpg').exists()
        out = capsys.readouterr().out
        assert 'BATCH SUMMARY' in out
        assert 'COLLECTION' in out

    def test_rotate_after_upload(self, image_file, tmp_path):
        """Test --rotate re-derives the saved image."""
        saved = tmp_path / 'saved'

        result = main(['ingest', str(image_file), '-f', 'png', '-r', '90', '--save-dir', str(saved), '-q'])

        assert result == 0
        with Image.open(saved / 'shot.png') as img:
            assert img.size == (600, 800)

    def test_invalid_rotation(self, image_file):
        """Test non-right-angle rotations fail the run."""
        assert main(['ingest', str(image_file), '-r', '45', '-q']) == 1

    def test_rejected_batch(self, tmp_path):
        """Test an unaccepted file type fails the run."""
        path = tmp_path / 'notes.txt'
        path.write_text('hello')

        assert main(['ingest', str(path), '-q']) == 1

    def test_missing_file(self, tmp_path):
        """Test unreadable input fails the run."""
        assert main(['ingest', str(tmp_path / 'missing.jpg'), '-q']) == 1

    def test_invalid_config(self, image_file):
        """Test out-of-range options fail the run."""
        args = create_parser().parse_args(['ingest', str(image_file), '--quality', '2'])

        assert cmd_ingest(args) == 1


class TestCmdInspect:
    """Tests for inspect command."""

    def test_inspect(self, image_file, capsys):
        """Test geometry is printed without encoding."""
        result = main(['inspect', str(image_file), '-w', '400', '-r', '90'])

        assert result == 0
        out = capsys.readouterr().out
        assert 'shot.png' in out
        assert 'source:  800x600' in out
        assert 'output:  300x400' in out

    def test_inspect_invalid_rotation(self, image_file):
        """Test non-right-angle rotations are rejected."""
        assert main(['inspect', str(image_file), '-r', '45']) == 1

    def test_inspect_undecodable(self, tmp_path):
        """Test undecodable files fail the run."""
        path = tmp_path / 'broken.jpg'
        path.write_bytes(b'not an image')

        assert main(['inspect', str(path)]) == 1
