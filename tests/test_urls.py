"""Tests for store host names and URL path extraction."""

import pytest

from s3direct.urls import object_url, s3_host, upload_url_path


class TestUploadUrlPath:
    """Tests for upload_url_path()."""

    def test_path_style(self):
        assert upload_url_path("https://s3.amazonaws.com/mybucket/a/b.png") == "/a/b.png"

    def test_virtual_hosted_style(self):
        assert upload_url_path("https://mybucket.s3.us-east-1.amazonaws.com/a/b.png") == "/a/b.png"

    def test_legacy_virtual_hosted_style(self):
        assert upload_url_path("https://mybucket.s3.amazonaws.com/a.png") == "/a.png"

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/x",
            "http://mybucket.s3.amazonaws.com/a.png",
            "https://s3.amazonaws.com",
            "",
            "https://mybucket.s3.amazonaws.com/a.png\nextra",
        ],
    )
    def test_not_an_s3_url(self, url):
        assert upload_url_path(url) is None

    def test_none(self):
        assert upload_url_path(None) is None


class TestHosts:
    def test_s3_host(self, config):
        assert s3_host(config) == "examplebucket.s3.us-east-1.amazonaws.com"

    def test_endpoint_override(self, config):
        custom = config.model_copy(update={"endpoint_host": "files.example.com"})
        assert s3_host(custom) == "files.example.com"

    def test_object_url(self, config):
        assert object_url(config, "/uploads/a b.png") == (
            "https://examplebucket.s3.us-east-1.amazonaws.com/uploads/a%20b.png"
        )

    def test_object_url_round_trips_through_parser(self, config):
        assert upload_url_path(object_url(config, "/uploads/a.png")) == "/uploads/a.png"
