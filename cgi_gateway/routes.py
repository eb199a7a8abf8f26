import html
import logging
from typing import Dict, Iterable, List, Tuple
from urllib.parse import parse_qsl, urlencode

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response
from starlette.concurrency import run_in_threadpool

from cgi_gateway.interface import GatewayError, GatewayInterface, RequestContext
from cgi_gateway.utils.exception_logging import (
    log_exception_with_details,
    to_http_exception,
)
from cgi_gateway.vars import (
    CGI_DOCUMENT_ROOT,
    CGI_FILTER,
    CGI_INHERIT_ENVIRON,
    CGI_REQUEST_URI,
    CGI_SCRIPT_FILENAME,
    CGI_SCRIPT_NAME,
    DEBUG,
    GATEWAY_BASE_PATH,
    GATEWAY_HIGHLIGHT_ROWS,
    GATEWAY_PERSIST_PARAMS,
    GATEWAY_STYLESHEET,
    GATEWAY_TITLE,
)

router = APIRouter()

logger = logging.getLogger("uvicorn.error")

if GATEWAY_BASE_PATH:
    router.prefix = GATEWAY_BASE_PATH
    logger.info(f"Using GATEWAY_BASE_PATH: {GATEWAY_BASE_PATH}")
else:
    logger.info("No GATEWAY_BASE_PATH set, using root path")

# handled by the gateway itself, never part of the CGI query string
GATEWAY_PARAMS = {"href", "wrapper_embedded"}

PAGE_TEMPLATE = """<html>
<head>
    <title>{title}</title>
{stylesheet}</head>
<body>
{content}
</body>
</html>
"""


def render_page(content: str) -> str:
    stylesheet = ""
    if GATEWAY_STYLESHEET:
        stylesheet = (
            f'    <link rel="stylesheet" href="{html.escape(GATEWAY_STYLESHEET)}"'
            ' type="text/css">\n'
        )
    return PAGE_TEMPLATE.format(
        title=html.escape(GATEWAY_TITLE), stylesheet=stylesheet, content=content
    )


def _split_query(items: Iterable[Tuple[str, str]]) -> Tuple[str, str]:
    """Separate host page parameters that persist from those meant for the CGI."""
    persisted, forwarded = [], []
    for key, value in items:
        if key in GATEWAY_PARAMS:
            continue
        if key in GATEWAY_PERSIST_PARAMS:
            persisted.append((key, value))
        else:
            forwarded.append((key, value))
    return urlencode(persisted), urlencode(forwarded)


async def _request_items(request: Request) -> List[Tuple[str, str]]:
    """Query parameters, followed by the fields of an urlencoded POST body."""
    items = list(request.query_params.multi_items())
    if request.method == "POST":
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/x-www-form-urlencoded"):
            body = await request.body()
            items.extend(
                parse_qsl(
                    body.decode("utf-8", errors="replace"), keep_blank_values=True
                )
            )
    return items


def build_options(request: Request, persisted: str) -> Dict[str, object]:
    return {
        "SCRIPT_FILENAME": CGI_SCRIPT_FILENAME,
        "REQUEST_URI": CGI_REQUEST_URI,
        "SCRIPT_NAME": CGI_SCRIPT_NAME,
        "DOCUMENT_ROOT": CGI_DOCUMENT_ROOT,
        "PHP_SCRIPT": request.url.path,
        "GET": persisted or None,
        "FILTER": CGI_FILTER or None,
        "DEBUG": DEBUG,
    }


def build_context(
    request: Request, forwarded: str, items: Iterable[Tuple[str, str]]
) -> RequestContext:
    request_uri = request.url.path
    if request.url.query:
        request_uri = f"{request_uri}?{request.url.query}"
    return RequestContext(
        server={
            "REQUEST_URI": request_uri,
            "SCRIPT_NAME": request.url.path,
            "QUERY_STRING": forwarded,
        },
        query=dict(items),
    )


@router.api_route("/", methods=["GET", "POST"])
async def gateway_page(request: Request):
    """Run the CGI script and serve its output through the gateway."""
    items = await _request_items(request)
    persisted, forwarded = _split_query(items)
    try:
        gateway = await run_in_threadpool(
            GatewayInterface,
            build_options(request, persisted),
            build_context(request, forwarded, items),
            inherit_environ=CGI_INHERIT_ENVIRON,
        )
    except GatewayError as e:
        log_exception_with_details(logger, "[Gateway]", e)
        raise to_http_exception(e) from e

    content_type = gateway.get_content_type()
    if content_type in ("text/html", "text/plain"):
        return HTMLResponse(render_page(gateway.get_div(GATEWAY_HIGHLIGHT_ROWS)))

    body = gateway.get_div().encode("utf-8", errors="surrogateescape")
    return Response(
        content=body, media_type=content_type, headers=gateway.response_headers
    )
