"""Command line interface for browsing, saving and submitting tools."""

import asyncio
import logging
from pathlib import Path
from typing import Optional
from typing import Tuple

import click

from toolscope import config
from toolscope.catalog import ToolCatalog
from toolscope.errors import GatewayError
from toolscope.errors import SubmissionValidationError
from toolscope.errors import ToolNotFoundError
from toolscope.export import export_filename
from toolscope.export import export_saved_tools
from toolscope.gateway import build_gateway
from toolscope.logging_config import setup_logging
from toolscope.models import DEFAULT_SORT_KEY
from toolscope.models import FilterState
from toolscope.models import SortKey
from toolscope.models import Tool
from toolscope.saved import FileStorage
from toolscope.saved import SavedToolsStore
from toolscope.submission import submit_tool

logger = logging.getLogger(__name__)


def _store() -> SavedToolsStore:
    return SavedToolsStore(FileStorage(config.saved_tools_dir()), key=config.saved_tools_key())


def _catalog() -> ToolCatalog:
    try:
        return ToolCatalog(build_gateway())
    except (GatewayError, RuntimeError) as e:
        raise click.ClickException(str(e)) from e


def _run(coro):
    try:
        return asyncio.run(coro)
    except ToolNotFoundError as e:
        raise click.ClickException(str(e)) from e
    except GatewayError as e:
        raise click.ClickException(f"Failed to load tools: {e}") from e


def _echo_tool(tool: Tool, saved: bool = False) -> None:
    marker = "*" if saved else " "
    click.echo(f"{marker} [{tool.key}] {tool.name} ({tool.category}, {tool.pricing})")


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL or INFO).")
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str]) -> None:
    """Browse, save and submit AI tools."""
    level = (log_level or config.log_level()).upper()
    # serve logs to logs/toolscope.log as well as stdout
    if ctx.invoked_subcommand == "serve":
        setup_logging(level)
        return
    logging.basicConfig(level=getattr(logging, level), format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.option("-q", "--query", default="", help="Case-insensitive search over name, description and tags.")
@click.option("--category", "categories", multiple=True, help="Restrict to a category (repeatable).")
@click.option("--pricing", "pricing", multiple=True, help="Restrict to a pricing tier (repeatable).")
@click.option("--tag", "tags", multiple=True, help="Keep tools with any of these tags (repeatable).")
@click.option(
    "--sort",
    "sort_key",
    type=click.Choice([key.value for key in SortKey]),
    default=DEFAULT_SORT_KEY.value,
    show_default=True,
)
def browse(query: str, categories: Tuple[str, ...], pricing: Tuple[str, ...], tags: Tuple[str, ...], sort_key: str):
    """List tools matching the search and facet filters."""
    state = FilterState(
        search_query=query,
        categories=frozenset(categories),
        pricing=frozenset(pricing),
        tags=frozenset(tags),
        sort_key=SortKey(sort_key),
    )
    result = _run(_catalog().browse(state))
    store = _store()
    for tool in result.tools:
        _echo_tool(tool, store.is_saved(tool.id))
    click.echo(f"Showing {len(result.tools)} of {result.total} tools")


@main.command()
def tags() -> None:
    """List every tag used in the collection."""
    for tag in _run(_catalog().gateway.get_all_tags()):
        click.echo(tag)


@main.command()
def categories() -> None:
    """List categories with their live tool counts."""
    for summary in _run(_catalog().categories()):
        click.echo(f"{summary.name}: {summary.count}")


@main.command()
@click.argument("tool_id")
def show(tool_id: str) -> None:
    """Show one tool with related tools from its category."""
    tool, related = _run(_catalog().tool_detail(tool_id))
    click.echo(f"{tool.name} [{tool.key}]")
    click.echo(f"Category: {tool.category}")
    click.echo(f"Pricing: {tool.pricing}")
    click.echo(f"Website: {tool.website}")
    click.echo(tool.description)
    if tool.features:
        click.echo("Features:")
        for feature in tool.features:
            click.echo(f"  - {feature}")
    if tool.tags:
        click.echo(f"Tags: {', '.join(tool.tags)}")
    if related:
        click.echo("Related:")
        for other in related:
            click.echo(f"  [{other.key}] {other.name}")


@main.command()
@click.argument("tool_id")
def toggle(tool_id: str) -> None:
    """Save a tool, or remove it if it is already saved."""
    if _store().toggle(tool_id):
        click.echo(f"Saved tool {tool_id}")
    else:
        click.echo(f"Removed tool {tool_id} from saved tools")


@main.command()
def saved() -> None:
    """List saved tools that are still in the collection."""
    tools = _run(_catalog().saved_tools(_store()))
    for tool in tools:
        _echo_tool(tool, saved=True)
    click.echo(f"{len(tools)} {'tool' if len(tools) == 1 else 'tools'} saved")


@main.command("clear-saved")
@click.confirmation_option(prompt="Remove all saved tools? This cannot be undone.")
def clear_saved() -> None:
    """Remove every saved tool."""
    _store().clear_all()
    click.echo("All saved tools have been removed")


@main.command()
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Output file.")
def export(output: Optional[Path]) -> None:
    """Export saved tools to a JSON file."""
    tools = _run(_catalog().saved_tools(_store()))
    path = output or Path(export_filename())
    path.write_text(export_saved_tools(tools))
    click.echo(f"Exported {len(tools)} tools to {path}")


@main.command()
@click.option("--name", default="")
@click.option("--description", default="")
@click.option("--category", default="")
@click.option("--pricing", default="")
@click.option("--website", default="")
@click.option("--logo", default="")
@click.option("--tags", default="", help="Comma-separated tags.")
@click.option("--feature", "features", multiple=True, help="One feature (repeatable).")
def submit(
    name: str,
    description: str,
    category: str,
    pricing: str,
    website: str,
    logo: str,
    tags: str,
    features: Tuple[str, ...],
) -> None:
    """Validate and submit a new tool."""
    form = {
        "name": name,
        "description": description,
        "category": category,
        "pricing": pricing,
        "website": website,
        "logo": logo,
        "tags": tags,
        "features": "\n".join(features),
    }
    try:
        tool = _run(submit_tool(_catalog().gateway, form))
    except SubmissionValidationError as e:
        for field, message in e.errors.items():
            click.echo(f"{field}: {message}", err=True)
        raise click.ClickException("Please fix the errors in the submission") from e
    click.echo(f"Submitted {tool.name} as tool {tool.key}")


@main.command()
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to WEB_PORT).")
def serve(port: Optional[int]) -> None:
    """Run the web front-end."""
    import uvicorn

    uvicorn.run("toolscope.web:create_app", factory=True, host="0.0.0.0", port=port or config.web_port())


if __name__ == "__main__":
    main()
