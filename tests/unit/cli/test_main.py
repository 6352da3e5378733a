"""Unit tests for the catalog cache CLI."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import build_parser, main
from store.offline_storage import OfflineStorage


@pytest.fixture(autouse=True)
def _no_remote(monkeypatch) -> None:
    monkeypatch.delenv("CATALOG_CACHE_REMOTE_URL", raising=False)
    monkeypatch.delenv("CATALOG_CACHE_LOG_LEVEL", raising=False)


def test_parser_requires_a_command() -> None:
    """Running without a subcommand should be a usage error."""
    with pytest.raises(SystemExit):
        build_parser().parse_args([])

    assert True


def test_status_reports_never_synced(tmp_path: Path, capsys) -> None:
    """A fresh data root should report never-synced with both stores."""
    exit_code = main(["--data-root", str(tmp_path), "status"])

    output = capsys.readouterr().out
    assert (
        exit_code == 0
        and "status=never-synced" in output
        and "primary_store=yes" in output
        and "fallback_store=yes" in output
    )


def test_show_offline_without_cache_reports_none(tmp_path: Path, capsys) -> None:
    """Offline show with an empty cache should report no data source."""
    exit_code = main(["--data-root", str(tmp_path), "show", "--offline"])

    output = capsys.readouterr().out
    assert exit_code == 0 and "source=none" in output and "equipments=0" in output


def test_show_offline_reads_cached_snapshot(
    storage: OfflineStorage, config, snapshot_factory, capsys
) -> None:
    """Offline show should summarize the cached snapshot."""
    storage.save_snapshot(snapshot_factory(last_sync="2026-02-02T08:00:00.000+00:00"))

    exit_code = main(["--data-root", str(config.data_root), "show", "--offline"])

    output = capsys.readouterr().out
    assert (
        exit_code == 0
        and "source=offline" in output
        and "last_sync=2026-02-02T08:00:00.000+00:00" in output
        and "accessories=1" in output
    )


def test_clear_removes_cached_snapshot(
    storage: OfflineStorage, config, snapshot_factory, capsys
) -> None:
    """Clear should remove the cache and report success."""
    storage.save_snapshot(snapshot_factory())

    exit_code = main(["--data-root", str(config.data_root), "clear"])

    assert (
        exit_code == 0
        and "cleared" in capsys.readouterr().out
        and storage.load_snapshot() is None
    )


def test_storage_info_prints_usage(tmp_path: Path, capsys) -> None:
    """Storage info should print usage lines."""
    exit_code = main(["--data-root", str(tmp_path), "storage-info"])

    output = capsys.readouterr().out
    assert exit_code == 0 and "used=" in output and "percentage=" in output


def test_sync_without_remote_fails(tmp_path: Path) -> None:
    """Sync cannot succeed without a configured remote backend."""
    exit_code = main(["--data-root", str(tmp_path), "sync"])

    assert exit_code == 1


def test_invalid_config_file_reports_error(tmp_path: Path, capsys) -> None:
    """An invalid config file should print an error and fail."""
    config_file = tmp_path / "cache.yaml"
    config_file.write_text("unknown_key: 1\n", encoding="utf-8")

    exit_code = main(["--config", str(config_file), "--data-root", str(tmp_path), "status"])

    assert exit_code == 1 and "error=" in capsys.readouterr().out
