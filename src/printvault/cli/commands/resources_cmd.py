from __future__ import annotations

import argparse

from rich.table import Table

from printvault.application.services.catalog_service import CatalogService
from printvault.application.services.project_service import ProjectService
from printvault.cli.context import CLIContext
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("resources", help="List catalog resources")
    parser.add_argument("--category", default=None)
    parser.add_argument("--tag", default=None)
    parser.add_argument("--query", "-q", default=None)
    parser.add_argument("--sort", default="newest")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--limit", type=int, default=50)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).require_initialized()

    service = CatalogService(
        ResourceRepo(ctx.paths.db_path),
        default_page_limit=ctx.settings.default_page_limit,
        max_page_limit=ctx.settings.max_page_limit,
    )
    page = service.list_resources(
        {
            "category": args.category,
            "tag": args.tag,
            "q": args.query,
            "sort": args.sort,
            "page": args.page,
            "limit": args.limit,
        }
    )

    table = Table(title=f"Resources (page {page.page}/{max(page.total_pages, 1)}, {page.total} total)")
    table.add_column("Slug")
    table.add_column("Category")
    table.add_column("Formats")
    table.add_column("Featured")
    table.add_column("Downloads", justify="right")
    table.add_column("ID", overflow="fold")

    for r in page.items:
        table.add_row(
            r.slug,
            r.category,
            ", ".join(r.formats) or "-",
            "yes" if r.featured else "",
            str(r.download_count),
            r.id,
        )

    ctx.console.print(table)
    return 0
