#!/usr/bin/env python3
"""
S3 upload session tests

Uses botocore's Stubber so no endpoint is needed.
"""

import random

import pytest
from botocore.stub import ANY, Stubber

from uploadperf.content import ContentGenerator
from uploadperf.exceptions import SessionError, UploadError
from uploadperf.s3_client import S3Client, S3Uploader, s3_session_factory


@pytest.fixture
def s3_client():
    return S3Client(
        endpoint_url="http://localhost:9000",
        access_key="minioadmin",
        secret_key="minioadmin",
        region="us-east-1",
    )


def test_client_is_configured_for_measurement(s3_client):
    config = s3_client.client.meta.config

    assert s3_client.client.meta.endpoint_url == "http://localhost:9000"
    assert config.retries["total_max_attempts"] == 1
    assert config.s3["payload_signing_enabled"] is False


def test_upload_streams_generator(s3_client):
    uploader = S3Uploader(s3_client, "bucket")
    obj = ContentGenerator(4096, random.Random(42))

    with Stubber(s3_client.client) as stubber:
        stubber.add_response(
            "put_object",
            {"ETag": '"9b2cf535f27731c974343645a3985328"'},
            {"Bucket": "bucket", "Key": obj.name, "Body": obj, "ContentLength": 4096},
        )
        uploader.upload(obj.name, obj, obj.size())
        stubber.assert_no_pending_responses()


def test_upload_error_is_wrapped(s3_client):
    uploader = S3Uploader(s3_client, "missing-bucket")
    obj = ContentGenerator(10, random.Random(1))

    with Stubber(s3_client.client) as stubber:
        stubber.add_client_error(
            "put_object", service_error_code="NoSuchBucket", http_status_code=404
        )
        with pytest.raises(UploadError) as exc_info:
            uploader.upload(obj.name, obj, obj.size())

    assert exc_info.value.object_name == obj.name
    assert exc_info.value.cause.response["Error"]["Code"] == "NoSuchBucket"


def test_put_object_without_length(s3_client):
    with Stubber(s3_client.client) as stubber:
        stubber.add_response(
            "put_object", {}, {"Bucket": "bucket", "Key": "k", "Body": ANY}
        )
        s3_client.put_object("bucket", "k", b"data")
        stubber.assert_no_pending_responses()


def test_invalid_endpoint_is_session_error():
    with pytest.raises(SessionError):
        S3Client(endpoint_url="not a url", access_key="a", secret_key="b")


def test_session_factory_opens_unshared_sessions(make_config):
    config = make_config(endpoint="localhost:9000", bucket="perf")
    open_session = s3_session_factory(config)

    first = open_session()
    second = open_session()

    assert first is not second
    assert first.client.client is not second.client.client
    assert first.bucket == "perf"
    assert first.client.endpoint_url == "http://localhost:9000"
