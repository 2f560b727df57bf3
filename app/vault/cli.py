"""Command line entry point -- run the server or audit storage."""

from __future__ import annotations

import argparse
import asyncio
import logging

from rich.console import Console
from rich.table import Table

from .config import settings as _settings
from .services.reconcile import AuditResult, Reconciler
from .state.asset_directory import JsonAssetDirectory
from .storage.placer import StoragePlacer

console = Console()


async def _reconcile(purge: bool) -> AuditResult:
    cfg = _settings.cfg
    directory = JsonAssetDirectory(cfg.records_dir)
    await directory.open()
    try:
        reconciler = Reconciler(
            directory, StoragePlacer(cfg.storage_root), grace_seconds=cfg.reconcile_grace,
        )
        return await reconciler.reconcile(purge=purge)
    finally:
        await directory.close()


def render_audit(result: AuditResult, *, purged: bool = False) -> Table:
    table = Table(title="Storage audit", show_lines=False)
    table.add_column("kind", style="bold")
    table.add_column("item")
    table.add_column("detail", justify="right")
    for orphan in result.orphan_files:
        table.add_row("orphan file", orphan.relative_path, f"{orphan.size} B, {orphan.age:.0f}s old")
    for asset_id in result.orphan_records:
        table.add_row("orphan record", asset_id, "file missing")
    table.caption = (
        f"{result.checked_files} file(s), {result.checked_records} record(s) checked"
        + (" -- purged" if purged else "")
    )
    return table


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mediavault", description="Media asset service")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP server")
    serve.add_argument("--port", type=int, default=None, help="listen port (default: RESOURCES_PORT or 5000)")

    rec = sub.add_parser("reconcile", help="find files without records and records without files")
    rec.add_argument("--purge", action="store_true", help="remove the orphans that were found")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "serve":
        from .server.app import main as serve_main

        serve_main(port=args.port)
        return 0

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s  %(message)s")
    result = asyncio.run(_reconcile(args.purge))
    if result.clean:
        console.print(
            f"[bold green]clean[/bold green] -- {result.checked_files} file(s), "
            f"{result.checked_records} record(s)"
        )
        return 0
    console.print(render_audit(result, purged=args.purge))
    return 0 if args.purge else 1


if __name__ == "__main__":
    raise SystemExit(main())
