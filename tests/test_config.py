"""Tests for option loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from painterlink.config import LinkOptions, load_options, save_options


class TestLinkOptions:
    def test_defaults(self) -> None:
        options = LinkOptions()
        assert options.quick_interval == 1000
        assert options.degraded_resolution == 1024
        assert options.hq_threshold == 2048
        assert options.hq_interval == 4000
        assert options.init_delay_on_project_creation == 5000
        assert options.auto_link is True

    def test_option_names(self) -> None:
        options = LinkOptions.model_validate({"linkHQTreshold": 4096, "linkQuickInterval": 10})
        assert options.hq_threshold == 4096
        assert options.quick_interval == 10
        assert options.to_settings()["linkHQTreshold"] == 4096

    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ValidationError):
            LinkOptions(hq_interval=0)


class TestLoadOptions:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for suffix in ("LINK_QUICK_INTERVAL", "LINK_HQ_INTERVAL", "AUTO_LINK"):
            monkeypatch.delenv(f"PAINTERLINK_{suffix}", raising=False)

    def test_no_sources(self) -> None:
        assert load_options() == LinkOptions()

    def test_settings_file(self, tmp_path: Path) -> None:
        path = tmp_path / "painterlink.json"
        path.write_text(json.dumps({
            "linkHQInterval": 8000,
            "autoLink": False,
            "unrelated": "ignored",
        }), encoding="utf-8")

        options = load_options(path)
        assert options.hq_interval == 8000
        assert options.auto_link is False

    def test_corrupt_settings_file(self, tmp_path: Path) -> None:
        path = tmp_path / "painterlink.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_options(path) == LinkOptions()

    def test_settings_file_not_an_object(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        path = tmp_path / "painterlink.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="painterlink"):
            assert load_options(path) == LinkOptions()
        assert "Could not read settings file" in caplog.text

    def test_precedence(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "painterlink.json"
        path.write_text(json.dumps({
            "linkQuickInterval": 200,
            "linkHQInterval": 300,
        }), encoding="utf-8")
        monkeypatch.setenv("PAINTERLINK_LINK_QUICK_INTERVAL", "250")
        monkeypatch.setenv("PAINTERLINK_LINK_HQ_INTERVAL", "350")

        options = load_options(path, overrides={"hq_interval": 999})
        assert options.quick_interval == 250
        assert options.hq_interval == 999

    def test_save_round_trip(self, tmp_path: Path) -> None:
        options = LinkOptions(degraded_resolution=256, auto_link=False)
        path = save_options(options, tmp_path / "cfg" / "painterlink.json")
        assert load_options(path) == options
