"""Catalog cache CLI entry points.

This module exposes sync, status, and cache inspection commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from core.config import CatalogCacheConfig
from core.errors import CatalogCacheError
from sync.cache_client import CatalogCacheClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="catalog-cache",
        description="Offline cache for the phone parts catalog",
    )
    parser.add_argument("--data-root", help="Override CATALOG_CACHE_DATA_ROOT for this command")
    parser.add_argument("--config", help="YAML config file applied on top of the environment")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("sync", help="Fetch live data and store an offline snapshot")
    subparsers.add_parser("status", help="Print the current sync status")
    show_parser = subparsers.add_parser("show", help="Summarize the data the app would show")
    show_parser.add_argument(
        "--offline",
        action="store_true",
        help="Ignore connectivity and read the cached snapshot",
    )
    subparsers.add_parser("clear", help="Delete every cached snapshot and reset status")
    subparsers.add_parser("storage-info", help="Print offline storage usage")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the catalog cache CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root, args.config)
    except CatalogCacheError as error:
        print(f"error={error}")
        return 1
    if args.command == "sync":
        return _run_sync_command(client)
    if args.command == "status":
        return _run_status_command(client)
    if args.command == "show":
        return _run_show_command(client, args)
    if args.command == "clear":
        return _run_clear_command(client)
    if args.command == "storage-info":
        return _run_storage_info_command(client)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None, config_file: str | None) -> CatalogCacheClient:
    """Build SDK client with optional config file and data-root override."""
    if config_file:
        config = CatalogCacheConfig.from_file(config_file)
    else:
        config = CatalogCacheConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return CatalogCacheClient(config)


def _run_sync_command(client: CatalogCacheClient) -> int:
    try:
        synced = client.sync()
    except CatalogCacheError as error:
        print(f"sync_error={error}")
        return 1
    status = client.status()
    print(f"{status.state.value}\t{status.last_sync or '-'}")
    if status.error:
        print(f"error={status.error}")
    return 0 if synced else 1


def _run_status_command(client: CatalogCacheClient) -> int:
    status = client.status()
    print(f"status={status.state.value}")
    print(f"last_sync={status.last_sync or '-'}")
    if status.error:
        print(f"error={status.error}")
    capabilities = client.capabilities()
    print(f"primary_store={'yes' if capabilities.primary else 'no'}")
    print(f"fallback_store={'yes' if capabilities.fallback else 'no'}")
    return 0


def _run_show_command(client: CatalogCacheClient, args: argparse.Namespace) -> int:
    if args.offline:
        client.monitor.set_online(False)
    data = client.hybrid_data()
    collections = data.collections
    if data.is_loading:
        print("source=none")
    else:
        print(f"source={'offline' if data.is_offline else 'live'}")
    if data.last_sync:
        print(f"last_sync={data.last_sync}")
    print(f"equipments={len(collections.equipments)}")
    print(f"accessories={len(collections.accessories)}")
    print(f"brands={len(collections.brands)}")
    print(f"equipment_types={len(collections.equipment_types)}")
    print(f"accessory_categories={len(collections.accessory_categories)}")
    return 0


def _run_clear_command(client: CatalogCacheClient) -> int:
    if client.clear():
        print("cleared")
        return 0
    print("clear_failed")
    return 1


def _run_storage_info_command(client: CatalogCacheClient) -> int:
    info = client.storage_info()
    print(f"used={info.used}\t{info.formatted_used}")
    print(f"available={info.available}\t{info.formatted_available}")
    print(f"percentage={info.percentage:.2f}")
    return 0
