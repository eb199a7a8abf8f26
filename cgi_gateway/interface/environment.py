import shlex
from typing import Dict, Mapping, Optional

from .options import GatewayOptions, RequestContext

# Only these reach the CGI child process. Scripts needing more must be added here.
CGI_ENVIRONMENT_WHITELIST = (
    "DOCUMENT_ROOT",
    "SCRIPT_FILENAME",
    "SCRIPT_NAME",
    "REQUEST_URI",
    "QUERY_STRING",
    "PATH_INFO",
)


def build_environment(
    options: GatewayOptions, context: Optional[RequestContext] = None
) -> Dict[str, str]:
    """
    Collect the CGI variables for the child process.

    The caller's option wins when non-empty, otherwise the request context
    value of the same name is used. Names outside the whitelist are never
    exported.
    """
    server: Mapping[str, str] = context.server if context else {}
    env: Dict[str, str] = {}
    for key in CGI_ENVIRONMENT_WHITELIST:
        value = getattr(options, key, None)
        if not value:
            value = server.get(key)
        if value:
            env[key] = str(value)
    return env


def format_environment(env: Mapping[str, str]) -> str:
    return " ".join(f"{key}={shlex.quote(value)}" for key, value in env.items())
