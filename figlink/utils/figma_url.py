"""Parsing and building of Figma file URLs.

Recognises file, design and prototype links, e.g.
``https://www.figma.com/design/aBc123/My-Screen?node-id=1-2``.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urlsplit

from figlink.domain.models.common import FileKey, NodeId
from figlink.domain.models.errors import ApiErrorType, FigmaApiError

_URL_PATTERN = re.compile(
    r"^https://(?:www\.)?figma\.com/(?P<kind>file|design|proto)/(?P<key>[a-zA-Z0-9]+)(?:/(?P<name>[^/?#]+))?/?(?:[?#].*)?$"
)
_BARE_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")


@dataclass
class ParsedFigmaUrl:
    file_key: str
    is_valid: bool
    original_url: str
    file_name: Optional[str] = None
    node_id: Optional[str] = None


def parse_figma_url(url: str) -> ParsedFigmaUrl:
    """Splits a Figma link into file key, file name and optional node id.

    Node ids are returned as written in the query string after URL
    decoding (``1:2`` stays ``1:2``; the newer ``1-2`` form is kept as is).
    """
    trimmed_url = url.strip()
    match = _URL_PATTERN.match(trimmed_url)
    if not match:
        return ParsedFigmaUrl(file_key="", is_valid=False, original_url=trimmed_url)

    name = match.group("name")
    node_values = parse_qs(urlsplit(trimmed_url).query).get("node-id")
    return ParsedFigmaUrl(
        file_key=match.group("key"),
        is_valid=True,
        original_url=trimmed_url,
        file_name=unquote(name.replace("-", " ")) if name else None,
        node_id=node_values[0] if node_values else None,
    )


def extract_file_key(url: str) -> Optional[str]:
    parsed = parse_figma_url(url)
    return parsed.file_key if parsed.is_valid else None


def is_valid_figma_url(url: str) -> bool:
    return parse_figma_url(url).is_valid


def generate_file_url(file_key: str, file_name: Optional[str] = None) -> str:
    encoded_name = quote(re.sub(r"\s+", "-", file_name)) if file_name else "Untitled"
    return f"https://www.figma.com/file/{file_key}/{encoded_name}"


def generate_node_url(file_key: str, node_id: str, file_name: Optional[str] = None) -> str:
    return f"{generate_file_url(file_key, file_name)}?node-id={quote(node_id, safe='')}"


def resolve_file_key(value: str) -> FileKey:
    """Accepts either a Figma URL or a bare file key and returns the key.

    Raises:
        FigmaApiError: PARSING_ERROR when the value is neither.
    """
    candidate = value.strip()
    if candidate.startswith("http"):
        key = extract_file_key(candidate)
        if key:
            return FileKey(key)
    elif _BARE_KEY_PATTERN.match(candidate):
        return FileKey(candidate)
    raise FigmaApiError(ApiErrorType.PARSING_ERROR, f"Not a Figma file URL or file key: {value!r}")


def to_api_node_id(node_id: str) -> NodeId:
    """Converts the ``1-2`` node id form used in newer links to the API's ``1:2`` form."""
    return NodeId(node_id.replace("-", ":"))
