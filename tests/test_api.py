"""Tests for the S3 client wrapper and credential resolution."""

from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ProfileNotFound

from pys3sync.api import (
    ALLOWED_UPLOAD_PARAMS,
    AwsCredentials,
    CredentialsProvider,
    S3Client,
    create_s3_client,
)
from pys3sync.exceptions import (
    S3SyncAccessDeniedError,
    S3SyncBucketNotFoundError,
    S3SyncCredentialsError,
    S3SyncTransferError,
)


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "Operation")


class TestAllowedUploadParams:
    """Tests for the accepted parameter names."""

    def test_common_params_allowed(self):
        for name in ("ACL", "CacheControl", "ContentType", "Metadata"):
            assert name in ALLOWED_UPLOAD_PARAMS

    def test_only_for_env_not_an_upload_param(self):
        assert "OnlyForEnv" not in ALLOWED_UPLOAD_PARAMS


class TestS3Client:
    """Tests for S3Client against the in-memory store."""

    def test_transfer_config_is_single_threaded(self, s3_client):
        assert s3_client.transfer_config.use_threads is False
        assert s3_client.transfer_config.multipart_threshold == 8 * 1024 * 1024

    def test_iter_objects(self, boto_s3, s3_client):
        boto_s3.put("site", "a.txt", b"a")
        boto_s3.put("site", "b.txt", b"bb")

        objects = list(s3_client.iter_objects("site", ""))

        assert [o["Key"] for o in objects] == ["a.txt", "b.txt"]
        assert objects[1]["Size"] == 2

    def test_iter_objects_missing_bucket(self, boto_s3, s3_client):
        boto_s3.missing_buckets.add("nope")

        with pytest.raises(S3SyncBucketNotFoundError) as exc_info:
            list(s3_client.iter_objects("nope", ""))

        assert exc_info.value.operation == "list"
        assert exc_info.value.bucket == "nope"

    def test_iter_objects_generic_failure(self, boto_s3, s3_client):
        boto_s3.fail_list = True

        with pytest.raises(S3SyncTransferError, match="list failed"):
            list(s3_client.iter_objects("site", "p/"))

    def test_upload_file(self, boto_s3, s3_client, temp_dir):
        path = temp_dir / "a.txt"
        path.write_bytes(b"hello")
        sent = []

        s3_client.upload_file(
            path, "site", "p/a.txt", {"ACL": "private"}, progress_callback=sent.append
        )

        assert boto_s3.objects["site"]["p/a.txt"]["Body"] == b"hello"
        assert boto_s3.upload_calls[0]["ExtraArgs"] == {"ACL": "private"}
        assert sum(sent) == 5

    def test_upload_access_denied(self, boto_s3, s3_client, temp_dir):
        path = temp_dir / "a.txt"
        path.write_bytes(b"hello")
        boto_s3.denied_upload_keys.add("a.txt")

        with pytest.raises(S3SyncAccessDeniedError) as exc_info:
            s3_client.upload_file(path, "site", "a.txt")

        assert exc_info.value.key == "a.txt"
        assert exc_info.value.operation == "upload"

    def test_upload_connection_error(self, temp_dir):
        boto_client = Mock()
        boto_client.upload_file.side_effect = EndpointConnectionError(
            endpoint_url="https://s3.example.com"
        )

        with pytest.raises(S3SyncTransferError, match="upload failed"):
            S3Client(boto_client).upload_file(temp_dir / "a.txt", "site", "a.txt")

    def test_delete_objects(self, boto_s3, s3_client):
        boto_s3.put("site", "a", b"")
        boto_s3.put("site", "b", b"")

        deleted = s3_client.delete_objects("site", ["a", "b"])

        assert deleted == ["a", "b"]
        assert boto_s3.keys("site") == []

    def test_delete_objects_empty(self, boto_s3, s3_client):
        assert s3_client.delete_objects("site", []) == []
        assert boto_s3.delete_calls == []

    def test_delete_objects_partial_errors(self):
        boto_client = Mock()
        boto_client.delete_objects.return_value = {
            "Deleted": [{"Key": "a"}],
            "Errors": [{"Key": "b", "Code": "AccessDenied", "Message": "Denied"}],
        }

        with pytest.raises(S3SyncTransferError, match="1 of 2") as exc_info:
            S3Client(boto_client).delete_objects("site", ["a", "b"])

        assert exc_info.value.key == "b"

    def test_delete_objects_request_failure(self):
        boto_client = Mock()
        boto_client.delete_objects.side_effect = _client_error("AccessDenied")

        with pytest.raises(S3SyncAccessDeniedError):
            S3Client(boto_client).delete_objects("site", ["a"])


class TestCreateS3Client:
    """Tests for create_s3_client."""

    @patch("pys3sync.api.boto3")
    def test_passes_credentials(self, mock_boto3):
        credentials = AwsCredentials("AKIA", "secret", "token", "eu-west-1")

        client = create_s3_client(credentials, endpoint_url="http://localhost:9000")

        assert isinstance(client, S3Client)
        session = mock_boto3.Session.return_value
        kwargs = session.client.call_args.kwargs
        assert session.client.call_args.args == ("s3",)
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["aws_access_key_id"] == "AKIA"
        assert kwargs["aws_secret_access_key"] == "secret"
        assert kwargs["aws_session_token"] == "token"
        assert kwargs["endpoint_url"] == "http://localhost:9000"

    @patch("pys3sync.api.boto3")
    def test_each_client_gets_own_session(self, mock_boto3):
        credentials = AwsCredentials("AKIA", "secret", None, "eu-west-1")

        create_s3_client(credentials)
        create_s3_client(credentials)

        assert mock_boto3.Session.call_count == 2
        assert mock_boto3.Session.return_value.client.call_count == 2
        mock_boto3.client.assert_not_called()


class TestCredentialsProvider:
    """Tests for CredentialsProvider."""

    @patch("pys3sync.api.boto3.Session")
    def test_resolves_credentials(self, mock_session_cls):
        session = mock_session_cls.return_value
        session.region_name = "us-east-1"
        boto_credentials = session.get_credentials.return_value
        frozen = boto_credentials.get_frozen_credentials.return_value
        frozen.access_key = "AKIA"
        frozen.secret_key = "secret"
        frozen.token = None

        provider = CredentialsProvider(profile="dev", region="us-east-1")
        credentials = provider.get_credentials()

        mock_session_cls.assert_called_once_with(
            profile_name="dev", region_name="us-east-1"
        )
        assert credentials == AwsCredentials("AKIA", "secret", None, "us-east-1")

    @patch("pys3sync.api.boto3.Session")
    def test_no_credentials(self, mock_session_cls):
        mock_session_cls.return_value.get_credentials.return_value = None

        with pytest.raises(S3SyncCredentialsError, match="No AWS credentials"):
            CredentialsProvider(profile="dev", region="x").get_credentials()

    @patch("pys3sync.api.boto3.Session")
    def test_unknown_profile(self, mock_session_cls):
        mock_session_cls.side_effect = ProfileNotFound(profile="missing")

        with pytest.raises(S3SyncCredentialsError, match="missing"):
            CredentialsProvider(profile="missing", region="x").get_credentials()
