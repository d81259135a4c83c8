"""Tests for GalleryConfig defaults, validation, and key masking."""

from __future__ import annotations

import pytest

from galleryflow.config import DEFAULT_BUCKET, GalleryConfig


class TestDefaults:
    def test_defaults_match_dashboard_behaviour(self):
        config = GalleryConfig()
        assert config.bucket == DEFAULT_BUCKET == "sellerpropertyimages"
        assert config.cache_control_seconds == 3600
        assert config.upsert is False
        assert config.compress_max_dimension == 1920
        assert config.compress_max_size_bytes == 800_000
        assert config.compress_output_format == "JPEG"
        assert config.compress_quality == 85
        assert config.debounce_seconds == 0.1
        assert config.reject_non_images is False
        assert config.delete_orphaned_uploads is True
        assert config.timeout_seconds is None


class TestValidation:
    @pytest.mark.parametrize(
        "url", ["https://proj.supabase.co", "http://localhost:54321", "http://127.0.0.1:8000"]
    )
    def test_accepted_urls(self, url):
        assert GalleryConfig(storage_url=url).storage_url == url

    def test_rejects_non_http_scheme(self):
        with pytest.raises(ValueError, match="http"):
            GalleryConfig(storage_url="ftp://proj.supabase.co")

    def test_rejects_plain_http_for_remote_host(self):
        with pytest.raises(ValueError, match="insecure HTTP"):
            GalleryConfig(storage_url="http://proj.supabase.co")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"bucket": ""},
            {"cache_control_seconds": -1},
            {"compress_max_dimension": 0},
            {"compress_max_size_bytes": 0},
            {"compress_quality": 0},
            {"compress_quality": 101},
            {"compress_quality": 50, "compress_min_quality": 60},
            {"compress_min_quality": 0},
            {"debounce_seconds": -0.1},
            {"retry_max_attempts": 0},
            {"retry_base_delay": -1},
            {"retry_max_delay": -1},
            {"timeout_seconds": 0},
        ],
    )
    def test_rejects_out_of_range(self, overrides):
        with pytest.raises(ValueError):
            GalleryConfig(**overrides)

    def test_zero_debounce_is_allowed(self):
        assert GalleryConfig(debounce_seconds=0).debounce_seconds == 0


class TestRepr:
    def test_storage_key_is_masked(self):
        text = repr(GalleryConfig(storage_key="super-secret-service-key-9f3e"))
        assert "super-secret" not in text
        assert "storage_key='...9f3e'" in text

    def test_short_key_fully_masked(self):
        text = repr(GalleryConfig(storage_key="abc"))
        assert "storage_key='****'" in text
        assert "abc" not in text.replace("bucket", "")
