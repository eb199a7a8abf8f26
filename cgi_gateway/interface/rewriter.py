import logging
import posixpath
import re
from typing import Optional
from urllib.parse import parse_qsl, quote_plus

from lxml import etree
from opentelemetry import trace

from .options import GatewayOptions

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)

EMBEDDED_MARKER = "wrapper_embedded=true"

# hrefs left alone: already absolute or not navigable through the gateway
EXTERNAL_HREF = re.compile(r"^(mailto|http)", re.IGNORECASE)
LAST_SEGMENT = re.compile(r"[^/]*/?$")


def make_path(href: str, options: GatewayOptions) -> str:
    """
    Resolve an href found in CGI output to a path below the CGI root.

    Handles root-relative hrefs, a single `..` level and hrefs relative to the
    current PATH_INFO. A relative href carrying a query or fragment is treated
    as pointing at the current document.
    """
    current = options.PATH_INFO

    if href.startswith("/"):
        script_name = options.SCRIPT_NAME or ""
        if script_name and href.startswith(script_name):
            return href[len(script_name):] or "/"
        return href

    if href.startswith(".."):
        remainder = href[2:].lstrip("/")
        # one level only, deeper climbs stop at the parent
        if ".." in remainder.split("/"):
            remainder = ""
        return (LAST_SEGMENT.sub("", current, count=1) or "/") + remainder

    if href.startswith("./"):
        href = href[2:]

    if current.endswith("/"):
        return current + href

    for marker in ("?", "#"):
        position = href.find(marker)
        if position != -1:
            return current + href[position:]

    return posixpath.dirname(current).rstrip("/") + "/" + href


def make_url(href: Optional[str], options: GatewayOptions) -> str:
    """Build a URL that routes `href` back through the proxying script."""
    url = options.PHP_SCRIPT
    if not href:
        return f"{url}?{options.GET}" if options.GET else url

    path = quote_plus(make_path(href, options))
    if options.GET:
        return f"{url}?{options.GET}&href={path}"
    return f"{url}?href={path}"


def parse_html(body: str) -> etree._Element:
    """
    Parse leniently; broken markup is repaired rather than rejected.

    Always returns a document. A blank body, or one libxml2 cannot make
    anything of, gives an empty <html><body> tree.
    """
    parser = etree.HTMLParser(recover=True, encoding="utf-8")
    root = None
    if body.strip():
        try:
            root = etree.fromstring(
                body.encode("utf-8", errors="surrogateescape"), parser
            )
        except etree.XMLSyntaxError as e:
            logger.warning(f"[Rewriter] Could not parse CGI output as HTML: {e}")
    if root is None:
        root = etree.Element("html")
        etree.SubElement(root, "body")
    return root


def serialize_html(root: etree._Element) -> str:
    return etree.tostring(root.getroottree(), method="html", encoding="unicode")


class HtmlRewriter:
    """Points links, form actions and relative images at the proxying script."""

    def __init__(self, options: GatewayOptions):
        self.options = options

    def rewrite(self, root: etree._Element) -> etree._Element:
        with tracer.start_as_current_span("rewrite_html") as span:
            span.set_attribute("gateway.path_info", self.options.PATH_INFO)
            anchors = self._rewrite_anchors(root)
            forms = self._rewrite_forms(root)
            images = self._rewrite_images(root)
            span.set_attribute("gateway.rewritten_anchors", anchors)
            span.set_attribute("gateway.rewritten_forms", forms)
            span.set_attribute("gateway.rewritten_images", images)
        logger.debug(
            f"[Rewriter] Rewrote {anchors} links, {forms} forms, {images} images"
        )
        return root

    def _rewrite_anchors(self, root: etree._Element) -> int:
        count = 0
        for anchor in root.iter("a"):
            href = anchor.get("href")
            if not href or EXTERNAL_HREF.match(href):
                continue
            anchor.set("href", make_url(href, self.options))
            count += 1
        return count

    def _rewrite_forms(self, root: etree._Element) -> int:
        forms = list(root.iter("form"))
        for form in forms:
            form.set("action", make_url(form.get("action"), self.options))
            self._add_hidden(form, "href", self.options.PATH_INFO)
            # keep the host page's own GET parameters across submissions
            if self.options.GET:
                for key, value in parse_qsl(self.options.GET, keep_blank_values=True):
                    self._add_hidden(form, key, value)
        return len(forms)

    def _rewrite_images(self, root: etree._Element) -> int:
        count = 0
        for image in root.iter("img"):
            src = image.get("src")
            if src is None or src.startswith("/"):
                continue
            url = make_url(src, self.options)
            separator = "&" if "?" in url else "?"
            image.set("src", f"{url}{separator}{EMBEDDED_MARKER}")
            count += 1
        return count

    @staticmethod
    def _add_hidden(form: etree._Element, name: str, value: str) -> None:
        etree.SubElement(form, "input", name=name, value=value, type="hidden")
