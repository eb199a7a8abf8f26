import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import InvalidOptionError, MissingOptionError

REQUIRED_OPTIONS = ("SCRIPT_FILENAME", "REQUEST_URI", "PHP_SCRIPT")

# Modifiers of a delimited /pattern/flags expression that map onto `re`
_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,
}
_DELIMITED_PATTERN = re.compile(r"^([^\w\s\\])(.*)\1([a-zA-Z]*)$", re.DOTALL)
_PAIRED_DELIMITERS = {"(": ")", "{": "}", "[": "]", "<": ">"}
_GROUP_REFERENCE = re.compile(r"\$\{(\d+)\}|\$(\d+)|\\(\d+)")


@dataclass(frozen=True)
class RequestContext:
    """Ambient values of the HTTP request that hosts the gateway."""

    server: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)


class BodyFilter(BaseModel):
    """Find/replace applied to a CGI response body before it is parsed."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    replacement: str = ""

    @classmethod
    def parse(cls, raw: Union[str, Mapping[str, Any]]) -> "BodyFilter":
        try:
            data = json.loads(raw) if isinstance(raw, str) else dict(raw)
            return cls.model_validate(data)
        except (ValueError, TypeError, ValidationError) as e:
            raise InvalidOptionError("FILTER", str(e)) from e

    def compile(self) -> "re.Pattern[str]":
        pattern, flags = self.pattern, 0
        opening = pattern[:1]
        if opening in _PAIRED_DELIMITERS:
            match = re.match(
                f"^{re.escape(opening)}(.*){re.escape(_PAIRED_DELIMITERS[opening])}"
                r"([a-zA-Z]*)$",
                pattern,
                re.DOTALL,
            )
        else:
            match = _DELIMITED_PATTERN.match(pattern)
        if match is not None:
            # last two groups are always the expression and its modifiers
            pattern = match.group(match.lastindex - 1)
            flags = self._flags(match.group(match.lastindex))
        try:
            return re.compile(pattern, flags)
        except re.error as e:
            raise InvalidOptionError(
                "FILTER", f"bad pattern {self.pattern!r}: {e}"
            ) from e

    @staticmethod
    def _flags(modifiers: str) -> int:
        flags = 0
        for modifier in modifiers:
            if modifier not in _PATTERN_FLAGS:
                raise InvalidOptionError(
                    "FILTER", f"unsupported pattern modifier {modifier!r}"
                )
            flags |= _PATTERN_FLAGS[modifier]
        return flags

    def _expand(self, match: "re.Match[str]") -> str:
        """Substitute $n, ${n} and \\n group references, everything else is literal."""

        def group(reference: "re.Match[str]") -> str:
            index = int(reference.group(reference.lastindex))
            if index > match.re.groups:
                return ""
            return match.group(index) or ""

        return _GROUP_REFERENCE.sub(group, self.replacement)

    def apply(self, body: str) -> str:
        return self.compile().sub(self._expand, body)


class GatewayOptions(BaseModel):
    """
    Validated options for one CGI invocation.

    Caller supplied values win over the ambient request context. The incoming
    `href` query parameter selects the resource below the CGI root and is
    folded into REQUEST_URI, QUERY_STRING and PATH_INFO.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    SCRIPT_FILENAME: str
    REQUEST_URI: str
    PHP_SCRIPT: str
    SCRIPT_NAME: Optional[str] = None
    QUERY_STRING: Optional[str] = None
    PATH_INFO: str = "/"
    DOCUMENT_ROOT: Optional[str] = None
    GET: Optional[str] = None
    FILTER: Optional[Union[str, Dict[str, Any]]] = None
    DEBUG: bool = False

    @classmethod
    def resolve(
        cls,
        options: Optional[Mapping[str, Any]] = None,
        context: Optional[RequestContext] = None,
    ) -> "GatewayOptions":
        context = context or RequestContext()
        merged: Dict[str, Any] = {}
        for name in cls.model_fields:
            value = (options or {}).get(name)
            if value in (None, ""):
                value = context.server.get(name)
            if value not in (None, ""):
                merged[name] = value

        for name in REQUIRED_OPTIONS:
            if not merged.get(name):
                raise MissingOptionError(name)

        href = context.query.get("href")
        if href is not None:
            href = unquote(href).split("#", 1)[0]
            merged["REQUEST_URI"] = merged["REQUEST_URI"] + href
            if "?" in href:
                href, merged["QUERY_STRING"] = href.split("?", 1)
            merged["PATH_INFO"] = href
        else:
            merged["PATH_INFO"] = "/"

        return cls.model_validate(merged)

    @property
    def body_filter(self) -> Optional[BodyFilter]:
        if self.FILTER in (None, ""):
            return None
        return BodyFilter.parse(self.FILTER)
