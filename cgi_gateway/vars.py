import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "cgi-gateway-interface")
GATEWAY_BASE_PATH = os.environ.get("GATEWAY_BASE_PATH", "")
GATEWAY_TITLE = os.environ.get("GATEWAY_TITLE", "cvsweb")
GATEWAY_STYLESHEET = os.environ.get("GATEWAY_STYLESHEET", "style.css")
GATEWAY_HIGHLIGHT_ROWS = (
    os.environ.get("GATEWAY_HIGHLIGHT_ROWS", "true").lower() == "true"
)

# CGI target, mirrors the options a host page hands to the wrapper
CGI_SCRIPT_FILENAME = os.environ.get(
    "CGI_SCRIPT_FILENAME", "/usr/lib/cgi-bin/cvsweb/cvsweb.cgi"
)
CGI_REQUEST_URI = os.environ.get("CGI_REQUEST_URI", "/cgi-bin/cvsweb/cvsweb.cgi")
CGI_SCRIPT_NAME = os.environ.get("CGI_SCRIPT_NAME", "/cgi-bin/cvsweb/cvsweb.cgi")
CGI_DOCUMENT_ROOT = os.environ.get("CGI_DOCUMENT_ROOT", "")
CGI_FILTER = os.environ.get("CGI_FILTER", "")
CGI_INHERIT_ENVIRON = (
    os.environ.get("CGI_INHERIT_ENVIRON", "true").lower() == "true"
)
DEBUG = os.environ.get("DEBUG", "false").lower() == "true"

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

# Host page query parameters that survive navigation inside the CGI
GATEWAY_PERSIST_PARAMS = [
    p.strip()
    for p in os.environ.get("GATEWAY_PERSIST_PARAMS", "").split(",")
    if p.strip()
]
