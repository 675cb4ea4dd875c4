"""Tests for S3Client and S3Config."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from imgingest.s3_client import S3Client
from imgingest.s3_config import S3Config


@pytest.fixture
def s3_config():
    """Fixture providing S3 config."""
    return S3Config(
        endpoint='https://test-endpoint.example.com:9000',
        bucket='test-bucket',
        prefix='products',
        access_key='test-access-key',
        secret_key='test-secret-key',
        region='us-east-1',
    )


class TestS3Config:
    """Tests for S3Config dataclass."""

    def test_validate_complete(self, s3_config):
        """Test a complete config has no errors."""
        assert s3_config.validate() == []

    def test_validate_missing(self):
        """Test each missing setting is reported."""
        errors = S3Config().validate()

        assert len(errors) == 4
        assert 'S3_BUCKET is not set' in errors

    def test_from_env(self, monkeypatch):
        """Test loading from S3_* environment variables."""
        monkeypatch.setenv('S3_ENDPOINT', 'http://minio:9000')
        monkeypatch.setenv('S3_BUCKET', 'images')
        monkeypatch.setenv('S3_VERIFY_SSL', 'false')
        monkeypatch.delenv('S3_PREFIX', raising=False)

        config = S3Config.from_env()

        assert config.endpoint == 'http://minio:9000'
        assert config.bucket == 'images'
        assert config.prefix == 'products'
        assert config.verify_ssl is False


class TestS3Client:
    """Tests for S3Client class."""

    @pytest.fixture
    def client_with_mock(self, s3_config):
        """Fixture providing S3Client with mocked boto3."""
        mock_boto = MagicMock()
        with patch('imgingest.s3_client.boto3.client', return_value=mock_boto) as factory:
            client = S3Client(s3_config)
            client._test_mock = mock_boto
            client._test_factory = factory
            yield client

    def test_client_settings(self, client_with_mock):
        """Test the boto3 client is built from the config."""
        kwargs = client_with_mock._test_factory.call_args.kwargs

        assert kwargs['endpoint_url'] == 'https://test-endpoint.example.com:9000'
        assert kwargs['aws_access_key_id'] == 'test-access-key'
        assert kwargs['verify'] is True

    def test_object_key(self, client_with_mock):
        """Test keys are joined under the prefix."""
        assert client_with_mock.object_key('abc', 'photo.webp') == 'products/abc/photo.webp'
        assert client_with_mock.object_key('/abc/', 'photo.webp') == 'products/abc/photo.webp'

    def test_object_key_without_prefix(self, client_with_mock):
        """Test an empty prefix is skipped."""
        client_with_mock.config.prefix = ''
        assert client_with_mock.object_key('abc', 'photo.webp') == 'abc/photo.webp'

    def test_upload_object(self, client_with_mock):
        """Test uploading a payload with its content type."""
        callback = MagicMock()

        client_with_mock.upload_object('products/abc/photo.webp', b'payload', 'image/webp', callback)

        call = client_with_mock._test_mock.upload_fileobj.call_args
        fileobj, bucket, key = call.args
        assert fileobj.read() == b'payload'
        assert bucket == 'test-bucket'
        assert key == 'products/abc/photo.webp'
        assert call.kwargs['ExtraArgs'] == {'ContentType': 'image/webp'}
        assert call.kwargs['Callback'] is callback

    def test_upload_retries_client_error(self, client_with_mock):
        """Test transient ClientErrors are retried."""
        error = ClientError({'Error': {'Code': 'SlowDown', 'Message': 'Slow down'}}, 'PutObject')
        client_with_mock._test_mock.upload_fileobj.side_effect = [error, None]

        client_with_mock.upload_object('key', b'payload', 'image/webp')

        assert client_with_mock._test_mock.upload_fileobj.call_count == 2

    def test_upload_gives_up(self, client_with_mock):
        """Test the error surfaces after the last attempt."""
        error = ClientError({'Error': {'Code': 'AccessDenied', 'Message': 'Denied'}}, 'PutObject')
        client_with_mock._test_mock.upload_fileobj.side_effect = error

        with pytest.raises(ClientError):
            client_with_mock.upload_object('key', b'payload', 'image/webp')

        assert client_with_mock._test_mock.upload_fileobj.call_count == 3

    def test_other_errors_not_retried(self, client_with_mock):
        """Test non-S3 errors fail immediately."""
        client_with_mock._test_mock.upload_fileobj.side_effect = ValueError('bad payload')

        with pytest.raises(ValueError):
            client_with_mock.upload_object('key', b'payload', 'image/webp')

        assert client_with_mock._test_mock.upload_fileobj.call_count == 1
