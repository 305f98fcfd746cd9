import logging
from typing import Dict
from typing import List
from typing import Optional
from urllib.parse import quote
from urllib.parse import urlsplit

from fasthtml.common import H1
from fasthtml.common import H2
from fasthtml.common import H3
from fasthtml.common import H5
from fasthtml.common import A
from fasthtml.common import Body
from fasthtml.common import Button
from fasthtml.common import Div
from fasthtml.common import Form
from fasthtml.common import Head
from fasthtml.common import Html
from fasthtml.common import Input
from fasthtml.common import Label
from fasthtml.common import Li
from fasthtml.common import Meta
from fasthtml.common import Option
from fasthtml.common import P
from fasthtml.common import Section
from fasthtml.common import Select
from fasthtml.common import Span
from fasthtml.common import Textarea
from fasthtml.common import Title
from fasthtml.common import Ul
from fasthtml.common import to_xml
from fasthtml.fastapp import fast_app
from starlette.responses import HTMLResponse
from starlette.responses import RedirectResponse
from starlette.responses import Response

from toolscope import config
from toolscope.catalog import ToolCatalog
from toolscope.errors import GatewayError
from toolscope.errors import SubmissionValidationError
from toolscope.errors import ToolNotFoundError
from toolscope.export import export_filename
from toolscope.export import export_saved_tools
from toolscope.gateway import ToolGateway
from toolscope.gateway import build_gateway
from toolscope.logging_config import setup_logging
from toolscope.models import DEFAULT_SORT_KEY
from toolscope.models import Category
from toolscope.models import FilterState
from toolscope.models import Pricing
from toolscope.models import SortKey
from toolscope.models import Tool
from toolscope.saved import FileStorage
from toolscope.saved import SavedToolsStore
from toolscope.submission import SUBMISSION_FIELDS
from toolscope.submission import submit_tool

logger = logging.getLogger(__name__)

SORT_LABELS = {
    SortKey.NAME: "Name A-Z",
    SortKey.CATEGORY: "Category",
    SortKey.PRICING: "Pricing",
}


def truncate_text(text: str, max_length: int = 150) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + "..."


def local_redirect_path(referer: Optional[str], host: str, default: str = "/saved") -> str:
    """Path of a same-origin referer, or the default for anything else."""
    if not referer:
        return default
    parts = urlsplit(referer)
    if parts.netloc and parts.netloc != host:
        return default
    if parts.scheme not in ("", "http", "https"):
        return default
    if not parts.path.startswith("/") or parts.path.startswith("//") or "\\" in parts.path:
        return default
    return f"{parts.path}?{parts.query}" if parts.query else parts.path


def filter_state_from_query(params) -> FilterState:
    """Build a filter state from browse query parameters (q, category, pricing, tag, sort)."""
    try:
        sort_key = SortKey(params.get("sort", DEFAULT_SORT_KEY.value))
    except ValueError:
        sort_key = DEFAULT_SORT_KEY
    return FilterState(
        search_query=params.get("q", "").strip(),
        categories=frozenset(params.getlist("category")),
        pricing=frozenset(params.getlist("pricing")),
        tags=frozenset(params.getlist("tag")),
        sort_key=sort_key,
    )


# Components
def page(title: str, *content):
    return Html(
        Head(
            Title(f"{title} - Toolscope"),
            Meta({"charset": "utf-8"}),
            Meta({"name": "viewport", "content": "width=device-width, initial-scale=1"}),
        ),
        Body(
            Div(
                Div(
                    A("Browse", href="/"),
                    A("Categories", href="/categories"),
                    A("Saved", href="/saved"),
                    A("Submit", href="/submit"),
                    _class="nav",
                ),
                *content,
                _class="main-window",
            )
        ),
    )


def save_button(tool: Tool, saved: bool):
    return Form(
        Button("Saved" if saved else "Save", type="submit", _class="save-button"),
        method="post",
        action=f"/saved/toggle/{tool.key}",
    )


def tool_card(tool: Tool, saved: bool = False):
    return Div(
        A(H5(tool.name), href=f"/tools/{tool.key}"),
        P(truncate_text(tool.description)),
        Span(tool.category, _class="category"),
        Span(tool.pricing, _class="pricing"),
        Div(*[Span(tag, _class="tag") for tag in tool.tags[:3]], _class="tags"),
        save_button(tool, saved),
        _class="tool-card",
    )


def checkbox(name: str, value: str, label: str, checked: bool):
    return Label(Input(type="checkbox", name=name, value=value, checked=checked), label)


def filter_sidebar(state: FilterState, facets: Dict[str, List[tuple]], available_tags: List[str]):
    return Form(
        Input({"type": "search", "name": "q", "value": state.search_query, "placeholder": "Search tools..."}),
        H3("Categories"),
        *[
            checkbox("category", name, f"{name} ({count})", name in state.categories)
            for name, count in facets.get("categories", [])
        ],
        H3("Pricing"),
        *[
            checkbox("pricing", name, f"{name} ({count})", name in state.pricing)
            for name, count in facets.get("pricing", [])
        ],
        H3("Tags"),
        *[checkbox("tag", tag, tag, tag in state.tags) for tag in available_tags],
        Select(
            *[Option(label, value=key.value, selected=key == state.sort_key) for key, label in SORT_LABELS.items()],
            name="sort",
        ),
        Button("Apply", type="submit"),
        method="get",
        action="/",
        _class="filter-sidebar",
    )


def submit_form(values: Optional[Dict[str, str]] = None, errors: Optional[Dict[str, str]] = None):
    values = values or {}
    errors = errors or {}

    def error_for(field: str):
        return P(errors[field], _class="field-error") if field in errors else None

    def text_field(field: str, label: str, placeholder: str = ""):
        return Div(
            Label(label, _for=field),
            Input(type="text", id=field, name=field, value=values.get(field, ""), placeholder=placeholder),
            error_for(field),
        )

    def select_field(field: str, label: str, choices: List[str], prompt: str):
        return Div(
            Label(label, _for=field),
            Select(
                Option(prompt, value=""),
                *[Option(choice, value=choice, selected=values.get(field) == choice) for choice in choices],
                id=field,
                name=field,
            ),
            error_for(field),
        )

    return Form(
        text_field("name", "Tool Name"),
        select_field("category", "Category", [c.value for c in Category], "Select a category"),
        Div(
            Label("Description", _for="description"),
            Textarea(values.get("description", ""), id="description", name="description", rows=4),
            error_for("description"),
        ),
        select_field("pricing", "Pricing", [p.value for p in Pricing], "Select pricing"),
        text_field("website", "Website", "https://example.com"),
        text_field("logo", "Logo URL", "https://example.com/logo.png"),
        text_field("tags", "Tags (comma-separated)", "writing, content, marketing"),
        Div(
            Label("Features (one per line)", _for="features"),
            Textarea(values.get("features", ""), id="features", name="features", rows=5),
            error_for("features"),
        ),
        Button("Submit Tool", type="submit"),
        method="post",
        action="/submit",
    )


def create_app(gateway: Optional[ToolGateway] = None, saved_store: Optional[SavedToolsStore] = None):
    """Build the web app over a tool gateway and a saved-tools store."""
    gateway = gateway or build_gateway()
    if saved_store is None:
        saved_store = SavedToolsStore(FileStorage(config.saved_tools_dir()), key=config.saved_tools_key())
    catalog = ToolCatalog(gateway)

    app, rt = fast_app()

    async def gateway_error(request, exc):
        logger.error(f"Gateway failure on {request.url.path}: {exc}")
        body = page(
            "Error",
            H1("Failed to load tools"),
            P(str(exc)),
            A("Try again", href=str(request.url), _class="retry"),
        )
        return HTMLResponse(to_xml(body), status_code=503)

    async def not_found(request, exc):
        body = page("Tool Not Found", H1("Tool Not Found"), P(f"No tool found with id: {exc.tool_id}"))
        return HTMLResponse(to_xml(body), status_code=404)

    app.add_exception_handler(GatewayError, gateway_error)
    app.add_exception_handler(ToolNotFoundError, not_found)

    @rt("/")
    async def get(req):
        state = filter_state_from_query(req.query_params)
        result = await catalog.browse(state)
        cards = [tool_card(tool, saved_store.is_saved(tool.id)) for tool in result.tools]
        return page(
            "Discover AI Tools",
            H1("Discover AI Tools", _class="window-title"),
            P(f"Browse {result.total} tools across all categories.", _class="intro"),
            filter_sidebar(state, result.facets, result.available_tags),
            P(f"Showing {len(result.tools)} of {result.total} tools", _class="count"),
            None if state.is_unrestricted else A("Clear filters", href="/", _class="clear-filters"),
            Div(*cards, _class="tools-grid") if cards else P("No tools match your filters.", _class="empty"),
        )

    @rt("/categories")
    async def categories_page():
        summaries = await catalog.categories()
        cards = [
            A(
                H2(summary.name),
                Span(f"{summary.count} tools", _class="count"),
                P(summary.description),
                href=f"/?category={summary.name}",
                _class="category-card",
            )
            for summary in summaries
        ]
        total = sum(summary.count for summary in summaries)
        return page(
            "Categories",
            H1("Browse by Category"),
            P(f"Explore {total} AI tools organized into {len(summaries)} categories.", _class="intro"),
            Div(*cards, _class="categories-grid"),
        )

    @rt("/tools/{tool_id}")
    async def tool_page(tool_id: str):
        tool, related = await catalog.tool_detail(tool_id)
        return page(
            tool.name,
            Div(A("Browse", href="/"), " › ", Span(tool.category), " › ", Span(tool.name), _class="breadcrumbs"),
            H1(tool.name, _class="tool-title"),
            save_button(tool, saved_store.is_saved(tool.id)),
            P(tool.description),
            Ul(Li(f"Category: {tool.category}"), Li(f"Pricing: {tool.pricing}")),
            H3("Key Features"),
            Ul(*[Li(feature) for feature in tool.features]),
            H3("Tags"),
            Div(*[A(tag, href=f"/?tag={quote(tag)}", _class="tag") for tag in tool.tags], _class="tags"),
            A("Visit Website", href=tool.website, target="_blank", _class="cta-button"),
            Section(
                H3("Related Tools"),
                *[tool_card(t, saved_store.is_saved(t.id)) for t in related],
                _class="related-tools",
            )
            if related
            else None,
        )

    @rt("/saved")
    async def saved_page():
        tools = await catalog.saved_tools(saved_store)
        noun = "tool" if len(tools) == 1 else "tools"
        if not tools:
            content = [P("No saved tools yet. Save tools while browsing to find them here.", _class="empty")]
        else:
            content = [
                P(f"{len(tools)} {noun} saved", _class="count"),
                A("Export JSON", href="/saved/export", _class="export"),
                Form(Button("Clear All", type="submit"), method="post", action="/saved/clear"),
                Div(*[tool_card(tool, True) for tool in tools], _class="tools-grid"),
            ]
        return page("Saved Tools", H1("Saved Tools"), *content)

    @rt("/saved/toggle/{tool_id}", methods=["post"])
    async def toggle_saved(req, tool_id: str):
        now_saved = saved_store.toggle(tool_id)
        logger.info(f"Tool {tool_id} {'saved' if now_saved else 'removed from saved tools'}")
        target = local_redirect_path(req.headers.get("referer"), req.url.netloc)
        return RedirectResponse(target, status_code=303)

    @rt("/saved/clear", methods=["post"])
    async def clear_saved():
        saved_store.clear_all()
        logger.info("Cleared all saved tools")
        return RedirectResponse("/saved", status_code=303)

    @rt("/saved/export")
    async def export_saved():
        tools = await catalog.saved_tools(saved_store)
        return Response(
            export_saved_tools(tools),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
        )

    @rt("/submit", methods=["get"])
    async def submit_page():
        return page("Submit a Tool", H1("Submit a Tool"), submit_form())

    @rt("/submit", methods=["post"])
    async def submit_post(req):
        form = await req.form()
        values = {field: form.get(field, "") for field in SUBMISSION_FIELDS}
        try:
            tool = await submit_tool(gateway, values)
        except SubmissionValidationError as e:
            body = page(
                "Submit a Tool",
                H1("Submit a Tool"),
                P("Please fix the errors in the form", _class="form-error"),
                submit_form(values, e.errors),
            )
            return HTMLResponse(to_xml(body), status_code=400)
        catalog.invalidate()
        return RedirectResponse(f"/tools/{tool.key}", status_code=303)

    @rt("/health")
    def health():
        return {"status": "ok"}

    return app


# For direct script execution
if __name__ == "__main__":
    import uvicorn

    setup_logging(config.log_level())
    port = config.web_port()
    print(f"Starting server on port {port}")
    uvicorn.run("toolscope.web:create_app", factory=True, host="0.0.0.0", port=port, reload=True)
