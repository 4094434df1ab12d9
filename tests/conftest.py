"""Test fixtures: shared adapters and a mocked S3 bucket for pytest."""

from typing import Generator

import boto3
import pytest
from moto import mock_aws

from filestore.services.memory_backend import MemoryAdapter
from filestore.services.s3_backend import S3Adapter
from tests.consts import TEST_BUCKET_NAME, TEST_REGION


@pytest.fixture()
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fake credentials so boto3 never reaches for a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)


@pytest.fixture()
def s3_client(aws_credentials) -> Generator:
    with mock_aws():
        client = boto3.client("s3", region_name=TEST_REGION)
        client.create_bucket(Bucket=TEST_BUCKET_NAME)
        yield client


@pytest.fixture()
def memory_adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture()
def s3_adapter(s3_client) -> S3Adapter:
    return S3Adapter(bucket=TEST_BUCKET_NAME, client=s3_client)


@pytest.fixture(params=["memory", "s3"])
def adapter(request: pytest.FixtureRequest):
    """Runs the test once against every adapter."""
    return request.getfixturevalue(f"{request.param}_adapter")
