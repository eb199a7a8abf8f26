from .errors import (
    GatewayError,
    InvalidOptionError,
    MissingOptionError,
    ScriptExecutionError,
    ScriptNotFoundError,
)
from .gateway import GatewayInterface
from .options import BodyFilter, GatewayOptions, RequestContext

__all__ = [
    "BodyFilter",
    "GatewayError",
    "GatewayInterface",
    "GatewayOptions",
    "InvalidOptionError",
    "MissingOptionError",
    "RequestContext",
    "ScriptExecutionError",
    "ScriptNotFoundError",
]
