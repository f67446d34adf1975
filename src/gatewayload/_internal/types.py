"""Shared type aliases for gatewayload."""

from __future__ import annotations

from collections.abc import Callable

# HTTP headers dictionary.
Headers = dict[str, str]

# Named boolean assertion evaluated against a response.
Predicate = Callable[[object], bool]
