"""
Placeholder resolution.

String values in a configuration tree may reference other values of the same
tree with ``${dotted.path}`` placeholders, optionally with a default:

```yaml
services:
  default:
    host: ${DEFAULT_DNS_NAME:localhost}
  fiat:
    baseUrl: http://${services.default.host}:7003
```

A placeholder is resolved, in order, from:

1. the value at the dotted path in the merged tree (itself resolved first),
2. the environment, under the path as written and then under its conventional
   variable name (``services.default.host`` -> ``SERVICES_DEFAULT_HOST``),
3. the default after the first ``:``.

Anything else is an error. Lookups always go to the original merged tree, so
the order in which values are visited does not matter.
"""

import copy
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import CyclicPlaceholderError, PlaceholderSyntaxError, UnresolvedPlaceholderError

logger = logging.getLogger(__name__)

PLACEHOLDER_START = "${"
PLACEHOLDER_END = "}"
DEFAULT_MAX_DEPTH = 64

_ENV_NAME_PATTERN = re.compile(r"[.\-]")


@dataclass(frozen=True)
class Placeholder:
    """A ``${path}`` or ``${path:default}`` token."""

    path: str
    default: str | None = None


def has_placeholders(value: Any) -> bool:
    return isinstance(value, str) and PLACEHOLDER_START in value


def env_var_name(path: str) -> str:
    """Return the conventional environment variable name for a dotted path."""
    return _ENV_NAME_PATTERN.sub("_", path).upper()


def split_placeholders(value: str) -> list[str | Placeholder]:
    """Split a string into literal text and placeholders, left to right.

    Raises:
        PlaceholderSyntaxError: On an unterminated or empty placeholder.
    """
    parts: list[str | Placeholder] = []
    pos = 0
    while True:
        start = value.find(PLACEHOLDER_START, pos)
        if start == -1:
            if pos < len(value):
                parts.append(value[pos:])
            return parts

        end = value.find(PLACEHOLDER_END, start + len(PLACEHOLDER_START))
        if end == -1:
            raise PlaceholderSyntaxError(f"Unterminated placeholder in {value!r}")
        if start > pos:
            parts.append(value[pos:start])

        body = value[start + len(PLACEHOLDER_START):end]
        path, sep, default = body.partition(":")
        path = path.strip()
        if not path:
            raise PlaceholderSyntaxError(f"Empty placeholder in {value!r}")
        parts.append(Placeholder(path, default if sep else None))
        pos = end + len(PLACEHOLDER_END)


def lookup_path(tree: Any, path: str) -> tuple[bool, Any]:
    """Look up a dotted path in a tree.

    List elements are addressed by decimal index segments.

    Returns:
        A ``(found, value)`` tuple.
    """
    node = tree
    for segment in path.split("."):
        if isinstance(node, Mapping):
            if segment not in node:
                return False, None
            node = node[segment]
        elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
            node = node[int(segment)]
        else:
            return False, None
    return True, node


def render(value: Any) -> str:
    """Render a scalar the way it reads in YAML."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class PlaceholderResolver:
    """Resolves every placeholder of a merged configuration tree.

    Args:
        tree: The merged tree. It is never modified.
        environ: Environment used as fallback for paths missing from the tree.
            Defaults to ``os.environ``.
        max_depth: Maximum length of a placeholder chain before it is treated
            as a cycle.

    Example:
        >>> resolver = PlaceholderResolver({"a": "${b}", "b": "${c}", "c": "value"}, {})
        >>> resolver.resolve()
        {'a': 'value', 'b': 'value', 'c': 'value'}
    """

    def __init__(
        self,
        tree: Mapping[str, Any],
        environ: Mapping[str, str] | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.tree = tree
        self.environ = os.environ if environ is None else environ
        self.max_depth = max_depth
        self._resolved_paths: dict[str, Any] = {}

    def resolve(self) -> dict[str, Any]:
        """Return a new tree with every placeholder substituted."""
        self._resolved_paths.clear()
        return self._resolve_value(self.tree, [])

    def resolve_string(self, value: str) -> Any:
        """Resolve the placeholders of a single string against the tree."""
        return self._resolve_string(value, [])

    def _resolve_value(self, value: Any, chain: list[str]) -> Any:
        if isinstance(value, Mapping):
            return {key: self._resolve_value(item, chain) for key, item in value.items()}
        if isinstance(value, list):
            return [self._resolve_value(item, chain) for item in value]
        if isinstance(value, str):
            return self._resolve_string(value, chain)
        return value

    def _resolve_string(self, value: str, chain: list[str]) -> Any:
        if not has_placeholders(value):
            return value

        parts = split_placeholders(value)

        # A lone placeholder may stand for a whole mapping or list
        if len(parts) == 1 and isinstance(parts[0], Placeholder):
            resolved = self._resolve_placeholder(parts[0], chain)
            if isinstance(resolved, (dict, list)):
                return copy.deepcopy(resolved)
            return render(resolved)

        pieces = []
        for part in parts:
            if isinstance(part, str):
                pieces.append(part)
                continue
            resolved = self._resolve_placeholder(part, chain)
            if isinstance(resolved, (dict, list)):
                raise UnresolvedPlaceholderError(
                    part.path,
                    f"Placeholder '${{{part.path}}}' refers to a {type(resolved).__name__} "
                    f"and cannot be embedded in {value!r}",
                )
            pieces.append(render(resolved))
        return "".join(pieces)

    def _resolve_placeholder(self, placeholder: Placeholder, chain: list[str]) -> Any:
        path = placeholder.path
        if path in chain:
            raise CyclicPlaceholderError(chain[chain.index(path):] + [path])
        if len(chain) >= self.max_depth:
            raise CyclicPlaceholderError(chain + [path])

        if path in self._resolved_paths:
            return self._resolved_paths[path]

        found, raw = lookup_path(self.tree, path)
        if found:
            resolved = self._resolve_value(raw, chain + [path])
            self._resolved_paths[path] = resolved
            return resolved

        env_value = self._lookup_env(path)
        if env_value is not None:
            return env_value

        if placeholder.default is not None:
            logger.debug(f"Using default value for placeholder '{path}'")
            return placeholder.default

        raise UnresolvedPlaceholderError(path)

    def _lookup_env(self, path: str) -> str | None:
        if path in self.environ:
            return self.environ[path]
        name = env_var_name(path)
        if name != path and name in self.environ:
            return self.environ[name]
        return None


def resolve_placeholders(
    tree: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Resolve every placeholder of tree, returning a new tree."""
    return PlaceholderResolver(tree, environ).resolve()
