from __future__ import annotations

import argparse

from rich.table import Table

from printvault.application.services.admin_service import AdminResourceService
from printvault.application.services.project_service import ProjectService
from printvault.cli.context import CLIContext
from printvault.domain.models.category import category_label
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("stats", help="Show catalog dashboard counts")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).require_initialized()
    stats = AdminResourceService(ResourceRepo(ctx.paths.db_path)).stats()

    ctx.console.print(f"Resources: [bold]{stats.total_resources}[/bold]")
    ctx.console.print(f"Featured:  [bold]{stats.featured_count}[/bold]")
    ctx.console.print(f"Downloads: [bold]{stats.total_downloads}[/bold]")

    table = Table(title="By category")
    table.add_column("Category")
    table.add_column("Label")
    table.add_column("Count", justify="right")
    for category, count in stats.category_stats:
        table.add_row(category, category_label(category), str(count))
    ctx.console.print(table)
    return 0
