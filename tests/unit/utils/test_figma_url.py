import pytest

from figlink.domain.models.errors import ApiErrorType, FigmaApiError
from figlink.utils.figma_url import (
    extract_file_key, generate_file_url, generate_node_url, is_valid_figma_url, parse_figma_url, resolve_file_key,
    to_api_node_id,
)


@pytest.mark.parametrize("url,key,name", [
    ("https://www.figma.com/file/aBc123XyZ/My-Design-File", "aBc123XyZ", "My Design File"),
    ("https://figma.com/file/aBc123XyZ/Design", "aBc123XyZ", "Design"),
    ("https://www.figma.com/design/K3y9/Mobile-App", "K3y9", "Mobile App"),
    ("https://www.figma.com/proto/K3y9/Prototype", "K3y9", "Prototype"),
    ("https://www.figma.com/file/K3y9", "K3y9", None),
    ("  https://www.figma.com/file/K3y9/Caf%C3%A9  ", "K3y9", "Café"),
])
def test_parse_valid_urls(url, key, name):
    parsed = parse_figma_url(url)

    assert parsed.is_valid
    assert parsed.file_key == key
    assert parsed.file_name == name
    assert parsed.original_url == url.strip()


def test_parse_node_id():
    parsed = parse_figma_url("https://www.figma.com/design/K3y9/Screens?node-id=12%3A34&t=abc")
    assert parsed.node_id == "12:34"


def test_parse_node_id_dash_form_kept():
    parsed = parse_figma_url("https://www.figma.com/design/K3y9/Screens?node-id=12-34")
    assert parsed.node_id == "12-34"


@pytest.mark.parametrize("url", [
    "",
    "not a url",
    "http://www.figma.com/file/K3y9/Name",
    "https://www.figma.com/community/file/123",
    "https://example.com/file/K3y9/Name",
    "https://www.figma.com/file/",
])
def test_parse_invalid_urls(url):
    parsed = parse_figma_url(url)
    assert not parsed.is_valid
    assert parsed.file_key == ""


def test_extract_file_key_and_validity():
    assert extract_file_key("https://www.figma.com/file/K3y9/Name") == "K3y9"
    assert extract_file_key("https://example.com") is None
    assert is_valid_figma_url("https://www.figma.com/file/K3y9/Name")
    assert not is_valid_figma_url("ftp://figma.com/file/K3y9")


def test_generate_file_url():
    assert generate_file_url("K3y9", "My Design File") == "https://www.figma.com/file/K3y9/My-Design-File"
    assert generate_file_url("K3y9") == "https://www.figma.com/file/K3y9/Untitled"


def test_generate_node_url_encodes_node_id():
    assert generate_node_url("K3y9", "1:2") == "https://www.figma.com/file/K3y9/Untitled?node-id=1%3A2"


def test_generated_url_parses_back():
    parsed = parse_figma_url(generate_node_url("K3y9", "5:6", "Home Screen"))

    assert parsed.file_key == "K3y9"
    assert parsed.file_name == "Home Screen"
    assert parsed.node_id == "5:6"


def test_resolve_file_key():
    assert resolve_file_key("https://www.figma.com/file/K3y9/Name") == "K3y9"
    assert resolve_file_key(" K3y9 ") == "K3y9"


@pytest.mark.parametrize("value", ["https://example.com/file/K3y9", "not/a/key", ""])
def test_resolve_file_key_rejects_garbage(value):
    with pytest.raises(FigmaApiError) as exc_info:
        resolve_file_key(value)
    assert exc_info.value.error_type is ApiErrorType.PARSING_ERROR


def test_to_api_node_id():
    assert to_api_node_id("12-34") == "12:34"
    assert to_api_node_id("12:34") == "12:34"
