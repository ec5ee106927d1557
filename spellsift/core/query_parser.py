"""Advanced query parser for spellsift.

Parses prefix-marked queries such as::

    ^level:3 AND damageType:fire
    ^range:*-30 AND ritual:yes

into a Conjunction of FieldLeaf nodes. Aliases and keywords are
case-insensitive. The parser never raises: malformed input yields a
ParseResult carrying a ParseError.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from typing import Optional

from spellsift.core.fields import FieldRegistry, FieldValueError
from spellsift.models.query import (
    Conjunction,
    FieldLeaf,
    ParseError,
    ParseErrorKind,
    ParseResult,
)
from spellsift.utils.log import get_logger

logger = get_logger("parser")

DEFAULT_PREFIX = "^"
DEFAULT_CACHE_SIZE = 1024

AND_SEPARATOR = re.compile(r"\s+AND\s+", re.IGNORECASE)
_DANGLING_AND = re.compile(r"(?:^|\s)AND$|^AND(?:\s|$)", re.IGNORECASE)
_QUOTED = re.compile(r"""^(["'])(.*)\1$""")


def _failure(kind: ParseErrorKind, message: str, fragment: str = "") -> ParseResult:
    return ParseResult(error=ParseError(kind=kind, message=message, fragment=fragment))


def split_conjuncts(body: str) -> list[str]:
    """Split a query body on ``AND`` keywords surrounded by whitespace."""
    return AND_SEPARATOR.split(body.strip())


class QueryParser:
    """Parser for advanced field queries with a bounded LRU cache.

    Example:
        parser = QueryParser()
        result = parser.parse("^lvl:3 AND dmg:fire")
        if result.ok:
            for leaf in result.query.children:
                print(leaf.field, leaf.value)
        else:
            print(result.error.kind, result.error.message)
    """

    def __init__(
        self,
        registry: Optional[FieldRegistry] = None,
        prefix: str = DEFAULT_PREFIX,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        """Initialize the parser.

        Args:
            registry: Field registry used for alias resolution and coercion.
            prefix: Single character marking an advanced query.
            cache_size: Maximum number of memoized bodies.
        """
        self.registry = registry or FieldRegistry()
        self.prefix = prefix
        self.cache_size = cache_size
        self._cache: OrderedDict[str, ParseResult] = OrderedDict()

    def is_advanced(self, query: str) -> bool:
        """Whether ``query`` starts with the advanced prefix."""
        return bool(query) and query.lstrip().startswith(self.prefix)

    def body(self, query: str) -> str:
        """Strip the advanced prefix from ``query``."""
        text = query.lstrip()
        if text.startswith(self.prefix):
            return text[len(self.prefix):]
        return text

    def parse(self, query: str) -> ParseResult:
        """Parse a full advanced query, prefix included.

        Args:
            query: Raw query text.

        Returns:
            ParseResult; a SYNTAX error when the prefix is missing.
        """
        if not self.is_advanced(query):
            return _failure(
                ParseErrorKind.SYNTAX,
                f"Advanced queries must start with {self.prefix!r}",
                query,
            )
        return self.parse_body(self.body(query))

    def parse_body(self, body: str) -> ParseResult:
        """Parse the text after the prefix, consulting the cache first.

        Args:
            body: Query body, e.g. ``level:3 AND school:evo``.

        Returns:
            ParseResult with either a Conjunction or a ParseError.
        """
        cached = self._cache.get(body)
        if cached is not None:
            self._cache.move_to_end(body)
            return cached

        result = self._parse_uncached(body)
        if not result.ok:
            logger.debug("Rejected query %r: %s", body, result.error.message)

        self._cache[body] = result
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return result

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache_len(self) -> int:
        return len(self._cache)

    def _parse_uncached(self, body: str) -> ParseResult:
        text = body.strip()
        if not text:
            return ParseResult(query=Conjunction())

        if _DANGLING_AND.search(text):
            return _failure(ParseErrorKind.SYNTAX, "Expected a field after AND", text)

        leaves: list[FieldLeaf] = []
        for part in split_conjuncts(text):
            fragment = part.strip()
            if not fragment:
                return _failure(ParseErrorKind.SYNTAX, "Empty condition between AND keywords")

            alias, sep, raw_value = fragment.partition(":")
            if not sep or not alias.strip():
                return _failure(
                    ParseErrorKind.SYNTAX,
                    f"Expected FIELD:VALUE, got {fragment!r}",
                    fragment,
                )

            field = self.registry.get_field_id(alias)
            if field is None:
                return _failure(
                    ParseErrorKind.UNKNOWN_FIELD,
                    f"Unknown field {alias.strip()!r}",
                    fragment,
                )

            value_text = raw_value.strip()
            quoted = _QUOTED.match(value_text)
            if quoted:
                value_text = quoted.group(2)
            if any(ch.isspace() for ch in value_text):
                return _failure(
                    ParseErrorKind.INVALID_VALUE,
                    f"Values may not contain whitespace: {raw_value!r}",
                    fragment,
                )

            try:
                value = self.registry.coerce(field, value_text)
            except FieldValueError as e:
                return ParseResult(error=e.error.model_copy(update={"fragment": fragment}))

            leaves.append(FieldLeaf(field=field, op=self.registry.op(field), value=value))

        return ParseResult(query=Conjunction(children=tuple(leaves)))
