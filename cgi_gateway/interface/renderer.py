import copy
import html
from typing import Optional

import lxml.html
from lxml import etree

from .options import GatewayOptions
from .response import GatewayResult

WRAPPER_ID = "cgi_wrapper"
LIST_ID = "div_pre"
ROW_CLASSES = ("even", "odd")

# views that are already meant to be read as plain text
_NO_HIGHLIGHT_MARKERS = ("content-type=text/plain", "annotate")


def lines_to_list(text: Optional[str]) -> str:
    """
    Render text as one <li> per line with alternating even/odd classes.

    Blank lines become a non-breaking space. A single line is returned as is,
    without list markup.
    """
    text = text or ""
    rows = text.split("\n")
    if len(rows) == 1:
        return f'<div id="{LIST_ID}">{html.escape(text, quote=False)}</div>'

    items = []
    for index, row in enumerate(rows):
        content = html.escape(row, quote=False) if row.strip() else "&nbsp;"
        items.append(f'<li class="{ROW_CLASSES[index % 2]}">{content}</li>')
    return f'<div id="{LIST_ID}">' + "\n".join(items) + "</div>"


def should_highlight(highlight_rows: bool, options: GatewayOptions) -> bool:
    query_string = options.QUERY_STRING or ""
    return highlight_rows and not any(
        marker in query_string for marker in _NO_HIGHLIGHT_MARKERS
    )


def _wrap(content: str) -> str:
    return f'<div id="{WRAPPER_ID}">{content}</div>'


def _highlight_pre_blocks(body: etree._Element) -> None:
    for pre in list(body.iter("pre")):
        container = etree.Element("div")
        rows = lines_to_list("".join(pre.itertext()))
        container.append(lxml.html.fragment_fromstring(rows))
        container.tail = pre.tail
        pre.getparent().replace(pre, container)


def render_html_body(root: Optional[etree._Element], highlight: bool) -> str:
    if root is None:
        return _wrap("")
    body = root.find("body")
    if body is None:
        return _wrap("")

    body = copy.deepcopy(body)
    if highlight:
        _highlight_pre_blocks(body)

    parts = [html.escape(body.text or "", quote=False)]
    parts.extend(
        etree.tostring(child, method="html", encoding="unicode") for child in body
    )
    return _wrap("".join(parts))


def render_div(
    result: GatewayResult,
    root: Optional[etree._Element],
    options: GatewayOptions,
    highlight_rows: bool = False,
) -> str:
    """
    HTML results give the contents of <body> inside a wrapper div, plain text
    gives a <pre> block (or the row list when highlighting) inside the same
    wrapper. Anything else is returned untouched.
    """
    highlight = should_highlight(highlight_rows, options)

    if result.content_type == "text/html":
        return render_html_body(root, highlight)

    if result.content_type == "text/plain":
        if highlight:
            return _wrap(lines_to_list(result.body))
        return _wrap(f"<pre>{html.escape(result.body)}</pre>")

    return result.body
