"""Secure-route matching for eGuard.

Configured ``path_pattern`` strings are compiled ONCE, when the guard is
built. An invalid pattern is a startup failure (ConfigError naming the
pattern and the re2 error), never a per-request one.

Matching semantics:
  - The pattern is searched in the path (unanchored); anchor with ``^``/``$``
    in the pattern itself for exact matches.
  - The path is opaque text: no URL decoding, no normalization.
  - The request method is uppercased; a route with no methods (None or an
    empty list) matches every method.
  - A request is secure iff ANY route matches. Rules have no priority.

IMPORT RULES:
  - ``import re2`` ONLY: linear-time matching on attacker-controlled paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

import re2  # google-re2. NEVER: import re

from eguard.config import SecureRoute
from eguard.errors import ConfigError
from eguard.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompiledRoute:
    """A compiled SecureRoute. ``methods=None`` means any method."""

    pattern: str
    regex: Any  # compiled re2 pattern
    methods: Optional[frozenset[str]]

    def matches(self, path: str, method: str) -> bool:
        """``method`` must already be uppercased."""
        if self.regex.search(path) is None:
            return False
        return self.methods is None or method in self.methods


def _error_text(exc: Exception) -> str:
    """re2.error carries the parser message as bytes."""
    message = exc.args[0] if exc.args else exc
    if isinstance(message, bytes):
        return message.decode("utf-8", errors="replace")
    return str(message)


def compile_routes(routes: Iterable[SecureRoute]) -> tuple[CompiledRoute, ...]:
    """Compile every configured route.

    Raises:
        ConfigError: On the first pattern re2 rejects. The message names the
                     offending pattern and the underlying cause.
    """
    compiled: list[CompiledRoute] = []
    for index, route in enumerate(routes):
        try:
            regex = re2.compile(route.path_pattern)
        except re2.error as exc:
            raise ConfigError(
                f"Invalid route regex {route.path_pattern}: {_error_text(exc)}",
                field=f"secure_routes[{index}].path_pattern",
            ) from exc

        methods: Optional[frozenset[str]] = None
        if route.methods:
            methods = frozenset(m.upper() for m in route.methods)

        compiled.append(CompiledRoute(pattern=route.path_pattern, regex=regex, methods=methods))
    return tuple(compiled)


class RouteMatcher:
    """Answers "is this path+method protected?" against compiled routes.

    Read-only after construction; safe to share across concurrent callers.
    """

    def __init__(self, routes: Iterable[SecureRoute]) -> None:
        self._routes = compile_routes(routes)
        if not self._routes:
            logger.warning("No secure routes configured, every request is unprotected")

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        return self._routes

    def is_secure(self, path: str, method: str) -> bool:
        upper = method.upper()
        return any(route.matches(path, upper) for route in self._routes)
