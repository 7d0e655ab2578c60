from __future__ import annotations

import argparse

from printvault.application.services.project_service import ProjectService
from printvault.application.services.seed_service import SeedService
from printvault.cli.context import CLIContext
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("seed", help="Load the sample resource catalog")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Clear existing resources before seeding",
    )
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).init_project()
    summary = SeedService(ResourceRepo(ctx.paths.db_path)).seed(force=args.force)

    if summary.skipped:
        ctx.console.print("[yellow]Catalog already has resources; use --force to reseed[/yellow]")
        return 0

    if summary.cleared:
        ctx.console.print(f"[yellow]Cleared[/yellow] {summary.cleared} existing resources")
    ctx.console.print(f"[green]Inserted[/green] {summary.inserted} resources")
    for category, count in summary.by_category.items():
        ctx.console.print(f"  {category}: {count}")
    ctx.console.print("Replace SAMPLE_*_ID values with real Google Drive file IDs before publishing.")
    return 0
