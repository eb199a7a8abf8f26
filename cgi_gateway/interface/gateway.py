import logging
from typing import Any, Dict, Mapping, Optional

from lxml import etree
from opentelemetry import trace

from cgi_gateway.utils.traced_requests import traced_request

from .environment import build_environment, format_environment
from .executor import execute_script
from .options import GatewayOptions, RequestContext
from .renderer import render_div
from .response import GatewayResult, parse_response
from .rewriter import EMBEDDED_MARKER, HtmlRewriter, parse_html, serialize_html

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)


class GatewayInterface:
    """
    Front end for a CGI script.

    Construction runs the whole request: options are validated, the CGI
    environment is assembled, the script is executed and its output parsed.
    HTML output has its links, form actions and relative images rewritten so
    that they come back through `PHP_SCRIPT`.
    """

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        context: Optional[RequestContext] = None,
        inherit_environ: bool = True,
    ):
        self.context = context or RequestContext()
        self.options = GatewayOptions.resolve(options, self.context)
        self.script = self.options.SCRIPT_FILENAME
        self.env = build_environment(self.options, self.context)
        self.doc: Optional[etree._Element] = None
        self.response_headers: Dict[str, str] = {}

        with traced_request(
            tracer,
            operation="cgi_gateway_request",
            path_info=self.options.PATH_INFO,
            start_message=f"[Gateway] Running {self.script} for {self.options.REQUEST_URI}",
            extra_attrs={"cgi.script": self.script},
        ) as span:
            output = execute_script(self.script, self.env, inherit_environ)
            self.result = self._parse(output)
            span.set_attribute("cgi.content_type", self.result.content_type)

        if self.options.DEBUG:
            logger.debug(
                f"[Gateway] {self.script} answered {self.result.content_type}, "
                f"header={self.result.header!r}"
            )

    def _parse(self, output: Optional[str]) -> GatewayResult:
        result = parse_response(output, self.options.body_filter)

        if result.content_type == "text/html":
            self.doc = parse_html(result.body)
            HtmlRewriter(self.options).rewrite(self.doc)
            # a blank body stays blank rather than becoming an empty page
            if result.body.strip():
                result.body = serialize_html(self.doc)
        elif self.is_embedded:
            self.response_headers["Content-Type"] = result.content_type

        return result

    @property
    def is_embedded(self) -> bool:
        """True when a sub-resource such as an image is fetched directly."""
        return (
            EMBEDDED_MARKER in self.options.REQUEST_URI
            or self.context.query.get("wrapper_embedded") == "true"
        )

    def get_div(self, highlight_rows: bool = False) -> str:
        return render_div(self.result, self.doc, self.options, highlight_rows)

    def get_body(self) -> str:
        return self.result.body

    def get_header(self) -> str:
        return self.result.header

    def get_content_type(self) -> str:
        return self.result.content_type

    def get_env(self) -> str:
        """Environment handed to the CGI script, as KEY=value pairs."""
        return format_environment(self.env)
