import re
from dataclasses import dataclass
from typing import Optional

from .options import BodyFilter

DEFAULT_CONTENT_TYPE = "text/html"

CONTENT_TYPE_PATTERN = re.compile(
    r"content-type:[ ]?([a-z0-9-]*/[a-z0-9-]*)", re.IGNORECASE
)


@dataclass
class GatewayResult:
    content_type: str = DEFAULT_CONTENT_TYPE
    header: str = ""
    body: str = ""


def parse_response(
    output: Optional[str], body_filter: Optional[BodyFilter] = None
) -> GatewayResult:
    """
    Split raw CGI output into header and body.

    The header ends at the first line that is blank after trimming. Output
    without such a line is all header. A Content-Type found in the header
    replaces the text/html default.
    """
    result = GatewayResult()
    if not output:
        return result

    lines = output.split("\n")
    header_lines = []
    while lines and lines[0].strip():
        header_lines.append(lines.pop(0))
    # drop the separator itself
    lines = lines[1:]

    result.header = "\n".join(header_lines)
    match = CONTENT_TYPE_PATTERN.search(result.header)
    if match:
        result.content_type = match.group(1).lower()

    body = "\n".join(lines)
    if body_filter is not None:
        body = body_filter.apply(body)
    result.body = body
    return result
