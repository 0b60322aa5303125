"""Name matching for query segments.

Words are ANDed. Unquoted words match case-insensitively anywhere in the
name; "quoted text" matches literally and case-sensitively. A name query
that is exactly one quoted literal must equal the whole name.
"""

from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

from layer_query.config import NAME_MATCHER_CACHE_SIZE

NameMatcher = Callable[[str], bool]


@dataclass(frozen=True)
class NameToken:
    value: str
    quoted: bool


def tokenize_name_query(raw: str) -> list[NameToken]:
    """Split a name query into tokens, respecting double quotes.

    An unterminated quote runs to the end of the input.
    """
    tokens: list[NameToken] = []
    current: list[str] = []
    in_quote = False

    def push(quoted: bool) -> None:
        text = "".join(current)
        value = text if quoted else text.strip()
        if value:
            tokens.append(NameToken(value=value, quoted=quoted))
        current.clear()

    for ch in raw:
        if ch == '"':
            if in_quote:
                push(True)
                in_quote = False
            else:
                if "".join(current).strip():
                    push(False)
                current.clear()
                in_quote = True
            continue
        if not in_quote and ch.isspace():
            push(False)
            continue
        current.append(ch)

    if current:
        push(in_quote)
    return tokens


def is_fully_quoted(raw: str) -> bool:
    trimmed = raw.strip()
    return len(trimmed) >= 2 and trimmed.startswith('"') and trimmed.endswith('"')


@lru_cache(maxsize=NAME_MATCHER_CACHE_SIZE)
def build_matcher(name_query: str) -> NameMatcher:
    """Build (and memoize) a predicate over node names for ``name_query``."""
    tokens = tokenize_name_query(name_query)
    if not tokens:
        return _match_any

    if len(tokens) == 1 and tokens[0].quoted and is_fully_quoted(name_query):
        literal = tokens[0].value

        def exact(name: str) -> bool:
            return name == literal

        return exact

    literals = tuple(t.value for t in tokens if t.quoted)
    words = tuple(t.value.lower() for t in tokens if not t.quoted)

    def contains_all(name: str) -> bool:
        if not all(lit in name for lit in literals):
            return False
        lower = name.lower()
        return all(word in lower for word in words)

    return contains_all


def clear_matcher_cache() -> None:
    build_matcher.cache_clear()


def _match_any(_name: str) -> bool:
    return True
