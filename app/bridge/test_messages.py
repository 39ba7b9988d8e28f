import pytest

from app.bridge.messages import (
    NavigationKind,
    NavigationMessage,
    js_string,
    message_type,
    parse_navigation_message,
)


def test_message_types():
    assert message_type(NavigationKind.NAVIGATE) == "virtualbrowse:navigate"
    assert message_type(NavigationKind.LOADED) == "virtualbrowse:loaded"
    assert message_type(NavigationKind.LOADED, prefix="other") == "other:loaded"


def test_constructors_produce_wire_shape():
    assert NavigationMessage.navigate("https://example.com/x").model_dump() == {
        "type": "virtualbrowse:navigate",
        "href": "https://example.com/x",
    }
    assert NavigationMessage.loaded("https://example.com/").model_dump() == {
        "type": "virtualbrowse:loaded",
        "href": "https://example.com/",
    }


def test_kind():
    assert NavigationMessage.navigate("https://a/").kind() == NavigationKind.NAVIGATE
    assert NavigationMessage.loaded("https://a/").kind() == NavigationKind.LOADED
    assert NavigationMessage(type="virtualbrowse:other", href="x").kind() is None
    assert NavigationMessage(type="foreign:navigate", href="x").kind() is None


@pytest.mark.parametrize(
    "data, kind",
    [
        ({"type": "virtualbrowse:navigate", "href": "https://example.com/x"}, NavigationKind.NAVIGATE),
        ({"type": "virtualbrowse:loaded", "href": "https://example.com/"}, NavigationKind.LOADED),
    ],
)
def test_parse_well_formed(data, kind):
    message = parse_navigation_message(data)

    assert message is not None
    assert message.kind() == kind
    assert message.href == data["href"]


@pytest.mark.parametrize(
    "data",
    [
        None,
        "virtualbrowse:navigate",
        [],
        {},
        {"type": "virtualbrowse:navigate"},
        {"type": "virtualbrowse:navigate", "href": ""},
        {"type": "virtualbrowse:navigate", "href": 42},
        {"type": "somethingelse", "href": "https://example.com/"},
        {"type": "otherapp:navigate", "href": "https://example.com/"},
    ],
)
def test_parse_rejects_malformed(data):
    assert parse_navigation_message(data) is None


def test_parse_with_custom_prefix():
    data = {"type": "embed:loaded", "href": "https://example.com/"}

    assert parse_navigation_message(data) is None
    assert parse_navigation_message(data, prefix="embed").kind("embed") == NavigationKind.LOADED


def test_js_string_cannot_close_script():
    assert js_string("</script><script>alert(1)</script>") == '"<\\/script><script>alert(1)<\\/script>"'
    assert js_string('a"b') == '"a\\"b"'
