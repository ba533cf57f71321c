"""
Inbound webhook request abstraction.

The host framework adapts its request object to ``WebhookRequest`` once, at
the HTTP boundary. Adapters only ever see this shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class WebhookRequest:
    method: str
    # Absolute URL as the platform addressed it (scheme, host, path, query)
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    # Unparsed body bytes; raw-body HMAC schemes sign exactly these
    raw_body: bytes = b""
    # Parsed JSON object, or the form fields of a urlencoded body
    payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "headers", {k.lower(): v for k, v in self.headers.items()}
        )

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)
