"""Unit tests for the archive CLI (rfa_archive.cli.archive)."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from unittest.mock import patch

import pytest

from rfa_archive.cli.archive import _build_parser, _settings_from_args, main
from rfa_archive.utils.errors import ConfigurationError


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# ─── Parser and settings ──────────────────────────────────────────

class TestParser:
    def test_crawl_flags(self):
        args = _build_parser().parse_args(
            ["crawl", "-w", "rfa-lao,rfa-khmer", "--proxy", "http://p:1", "-o", "/srv/rfa",
             "--start", "2001-01", "--end", "2001-06", "--delay", "1.5"]
        )
        assert args.command == "crawl"
        assert args.sites == "rfa-lao,rfa-khmer"
        assert args.delay == 1.5

        settings = _settings_from_args(args)
        assert settings.site_selection() == ["rfa-lao", "rfa-khmer"]
        assert settings.proxy == "http://p:1"
        assert settings.db_path == Path("/srv/rfa/rfa.db")
        assert settings.scrape_delay == 1.5

    def test_serve_address(self):
        args = _build_parser().parse_args(["serve", "-a", "0.0.0.0:8080", "-d", "/srv/rfa"])
        settings = _settings_from_args(args)
        assert settings.app_host == "0.0.0.0"
        assert settings.app_port == 8080
        assert settings.data_dir == "/srv/rfa"

    def test_bad_address(self):
        with pytest.raises(ConfigurationError):
            _settings_from_args(Namespace(address="localhost"))

    def test_no_command_prints_help(self, capsys):
        assert _run([]) == 1
        assert "crawl" in capsys.readouterr().out


# ─── Commands against a temporary archive ─────────────────────────

def test_unknown_site_exits_with_error(tmp_path, capsys):
    code = _run(["--config", str(tmp_path / "none.yaml"), "crawl", "-w", "rfa-klingon",
                 "-o", str(tmp_path / "data")])
    assert code == 2
    assert "Unknown website" in capsys.readouterr().err


def test_invalid_numeric_flag_exits_with_error(tmp_path, capsys):
    code = _run(["crawl", "--concurrency", "0", "-o", str(tmp_path / "data")])
    assert code == 2
    err = capsys.readouterr().err
    assert err.startswith("Error: Invalid settings")
    assert "site_concurrency" in err


def test_negative_delay_is_a_configuration_error(tmp_path):
    args = _build_parser().parse_args(["crawl", "--delay", "-1", "-o", str(tmp_path)])
    with pytest.raises(ConfigurationError, match="scrape_delay"):
        _settings_from_args(args)


def test_status_without_archive(tmp_path, capsys):
    assert _run(["status", "-o", str(tmp_path / "empty")]) == 1
    assert "crawl first" in capsys.readouterr().out


def test_crawl_status_verify(tmp_path, fake_feed, article_factory, capsys):
    data_dir = tmp_path / "data"
    config = str(tmp_path / "none.yaml")
    fake_feed.add(
        "rfa-lao",
        2001,
        1,
        [
            article_factory(
                path="lao/news/first",
                site="rfa-lao",
                display_date="2001-01-10T08:00:00Z",
                promo_url="https://cdn.example/lao.jpg",
            )
        ],
    )

    with patch(
        "rfa_archive.providers.source.rfa_feed_provider.RFAFeedProvider",
        return_value=fake_feed,
    ):
        code = _run(["--config", config, "crawl", "-w", "rfa-lao", "-o", str(data_dir),
                     "--start", "2001-01", "--end", "2001-02"])

    assert code == 0
    assert (data_dir / "rfa.db").exists()
    assert (data_dir / "imgs" / "lao.jpg").exists()
    out = capsys.readouterr().out
    assert "rfa-lao 2001-01] INGESTED 1 articles" in out

    assert _run(["--config", config, "status", "-o", str(data_dir)]) == 0
    out = capsys.readouterr().out
    assert "rfa-lao" in out
    # 2001-01 ingested and 2001-02 empty, so both months carry markers.
    assert "2/333" in out

    assert _run(["--config", config, "verify", "-o", str(data_dir)]) == 0
    assert "OK" in capsys.readouterr().out
