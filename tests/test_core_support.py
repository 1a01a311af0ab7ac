"""Tests for configuration, credentials, result handles, requests and logging."""
import asyncio
import logging
from pathlib import Path

import pytest

from enhancer.config import Settings
from enhancer.core.credentials import SessionCredentialStore
from enhancer.core.dto import GenerationRequest, OperationStatus, normalize_aspect_ratio
from enhancer.core.http_client import HttpClientConfig, create_http_client_from_settings
from enhancer.core.media_handle import MediaHandle
from enhancer.utils.logging_config import LoggerCategory, LoggingManager


class TestSettings:
    """Tests for Settings.from_env()."""

    def test_reads_api_key(self, tmp_path):
        settings = Settings.from_env({"API_KEY": " abc "}, base_dir=tmp_path)
        assert settings.api_key == "abc"

    def test_falls_back_to_gemini_key(self, tmp_path):
        settings = Settings.from_env({"GEMINI_API_KEY": "g"}, base_dir=tmp_path)
        assert settings.api_key == "g"

    def test_missing_key_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="enhancer.config"):
            settings = Settings.from_env({}, base_dir=tmp_path)

        assert settings.api_key is None
        assert "API_KEY" in caplog.text

    def test_defaults(self, tmp_path):
        settings = Settings(base_dir=tmp_path)
        assert settings.poll_interval_seconds == 10.0
        assert settings.video_resolution == "720p"
        assert settings.log_dir == tmp_path / "logs"

    def test_http_config_from_settings(self, tmp_path):
        settings = Settings(base_dir=tmp_path, proxy_url="socks5://127.0.0.1:9050", read_timeout=60)
        http = create_http_client_from_settings(settings)

        assert http.config.uses_socks
        assert http.config.http_proxy is None
        assert http.config.read_timeout == 60

    def test_http_proxy_passed_per_request(self):
        config = HttpClientConfig(proxy_url="http://proxy:8080")
        assert not config.uses_socks
        assert config.http_proxy == "http://proxy:8080"


class TestSessionCredentialStore:
    """Tests for the in-memory credential capability."""

    def test_seeded_from_initial(self):
        store = SessionCredentialStore(initial="key")
        assert asyncio.run(store.has_credential())
        assert store.get_credential() == "key"

    def test_blank_initial_is_no_credential(self):
        store = SessionCredentialStore(initial="  ")
        assert not asyncio.run(store.has_credential())

    def test_prompt_sets_credential(self):
        async def prompt():
            return " typed-key "

        store = SessionCredentialStore(prompt=prompt)
        assert asyncio.run(store.request_credential()) is True
        assert store.get_credential() == "typed-key"

    def test_dismissed_prompt_keeps_state(self):
        async def prompt():
            return None

        store = SessionCredentialStore(initial="old", prompt=prompt)
        assert asyncio.run(store.request_credential()) is False
        assert store.get_credential() == "old"

    def test_invalidate(self):
        store = SessionCredentialStore(initial="key")
        store.invalidate()
        assert store.get_credential() is None
        assert not asyncio.run(store.has_credential())


class TestMediaHandle:
    """Tests for scratch-file result handles."""

    def test_from_bytes_and_release(self, tmp_path):
        handle = MediaHandle.from_bytes(b"data", directory=tmp_path)
        path = handle.path

        assert path.read_bytes() == b"data"
        assert path.name.startswith("enhanced-") and path.suffix == ".mp4"
        assert handle.size == 4

        handle.release()
        handle.release()

        assert handle.released
        assert not path.exists()
        with pytest.raises(RuntimeError):
            _ = handle.path

    def test_save_to(self, tmp_path):
        handle = MediaHandle.from_bytes(b"video", directory=tmp_path)
        target = handle.save_to(tmp_path / "out" / "clip.mp4")

        assert target.read_bytes() == b"video"
        handle.release()
        assert target.exists()


class TestGenerationRequest:
    """Tests for generation request construction."""

    @pytest.mark.parametrize("ratio", ["16:9", "9:16", "1:1", "4:3", "3:4"])
    def test_supported_ratios_kept(self, ratio):
        assert normalize_aspect_ratio(ratio) == ratio

    @pytest.mark.parametrize("ratio", ["683:384", "21:9", "", None])
    def test_unsupported_ratio_falls_back(self, ratio):
        assert normalize_aspect_ratio(ratio) == "16:9"

    def test_create(self):
        request = GenerationRequest.create("  glow  ", "ZnJhbWU=", "683:384", resolution="1080p")

        assert request.prompt == "glow"
        assert request.aspect_ratio == "16:9"
        assert request.number_of_outputs == 1
        assert request.resolution == "1080p"

    def test_empty_prompt_rejected(self):
        with pytest.raises(ValueError):
            GenerationRequest.create("   ", "ZnJhbWU=", "16:9")

    def test_missing_frame_rejected(self):
        with pytest.raises(ValueError):
            GenerationRequest.create("glow", "", "16:9")


class TestOperationStatus:
    def test_progress_is_clamped(self):
        assert OperationStatus("x", 150).progress == 100
        assert OperationStatus("x", -5).progress == 0


class TestLoggingManager:
    """Tests for categorized logging levels."""

    def test_env_override(self, tmp_path):
        manager = LoggingManager(tmp_path, environ={"ENHANCER_LOG_LEVEL_API": "DEBUG"})

        assert manager.get_category_level(LoggerCategory.API) == logging.DEBUG
        assert manager.get_category_level(LoggerCategory.UI) == logging.WARNING

    def test_invalid_override_uses_default(self, tmp_path):
        manager = LoggingManager(tmp_path, environ={"ENHANCER_LOG_LEVEL_CORE": "LOUD"})
        assert manager.get_category_level(LoggerCategory.CORE) == logging.INFO

    def test_set_category_level_applies_to_modules(self, tmp_path):
        manager = LoggingManager(tmp_path, environ={})
        manager.set_category_level(LoggerCategory.SESSION, logging.ERROR)

        assert logging.getLogger("enhancer.core.session").level == logging.ERROR
        manager.set_category_level(LoggerCategory.SESSION, logging.INFO)

    def test_log_file_location(self, tmp_path):
        manager = LoggingManager(tmp_path / "logs", environ={})
        assert manager.log_file.parent == Path(tmp_path / "logs")
        assert manager.log_dir.exists()
