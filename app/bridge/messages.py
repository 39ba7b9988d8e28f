"""
Typed cross-frame navigation messages.

Framed documents talk to the host page through window.postMessage using two
message types, "<prefix>:navigate" and "<prefix>:loaded", each carrying the
fully resolved href. Delivery is fire-and-forget: no acknowledgement, no retry.
"""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator

from app.vars import BRIDGE_MESSAGE_PREFIX


class NavigationKind(str, Enum):
    NAVIGATE = "navigate"
    LOADED = "loaded"


def message_type(kind: NavigationKind, prefix: str = BRIDGE_MESSAGE_PREFIX) -> str:
    return f"{prefix}:{kind.value}"


def js_string(value: str) -> str:
    """JSON-encode value for embedding inside an inline <script>."""
    return json.dumps(value).replace("</", "<\\/")


class NavigationMessage(BaseModel):
    type: str
    href: str

    @field_validator("href")
    @classmethod
    def _href_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("href must not be empty")
        return value

    @classmethod
    def navigate(cls, href: str, prefix: str = BRIDGE_MESSAGE_PREFIX) -> "NavigationMessage":
        return cls(type=message_type(NavigationKind.NAVIGATE, prefix), href=href)

    @classmethod
    def loaded(cls, href: str, prefix: str = BRIDGE_MESSAGE_PREFIX) -> "NavigationMessage":
        return cls(type=message_type(NavigationKind.LOADED, prefix), href=href)

    def kind(self, prefix: str = BRIDGE_MESSAGE_PREFIX) -> Optional[NavigationKind]:
        namespace, _, name = self.type.partition(":")
        if namespace != prefix:
            return None
        try:
            return NavigationKind(name)
        except ValueError:
            return None


def parse_navigation_message(
    data: Any, prefix: str = BRIDGE_MESSAGE_PREFIX
) -> Optional[NavigationMessage]:
    """Return the message if data is a well-formed bridge message, else None."""
    if not isinstance(data, dict):
        return None
    try:
        message = NavigationMessage.model_validate(data)
    except ValidationError:
        return None
    if message.kind(prefix) is None:
        return None
    return message
