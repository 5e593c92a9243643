"""Tolerant extraction of flat Lua tables from SavedVariables text.

SavedVariables files are Lua table constructors such as::

    raidInstances = {
        {
            id = "r-1",
            name = "Liberation of Undermine",
            scheduledAt = 1735840800, -- comment
            caps = { tank = 2 },
        }, -- [1]
    }

This is not a Lua parser. A root table is delimited by counting braces
(skipping strings and comments), its direct children are split into
sibling blocks the same way, and each block is scanned for ``key = value``
pairs whose value is a string, boolean, nil or number. Values of any other
shape (nested tables, expressions) drop that one key and scanning goes on.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from raidtrack.errors import LuaDecodeError


logger = logging.getLogger("raidtrack.ingest.lua")

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"

# ["name"] | [12] | name
_KEY_PATTERN = re.compile(
    r'\[\s*"((?:\\.|[^"\\])*)"\s*\]|\[\s*(-?\d+)\s*\]|(' + _IDENT + r")"
)
_NUMBER_PATTERN = re.compile(r"-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEX_PATTERN = re.compile(r"-?0[xX][0-9a-fA-F]+")
_WORD_CHARS = re.compile(r"[\w.]+")

_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "\\": "\\",
}


def unescape_lua_string(raw: str) -> str:
    """Resolve the escapes of a double-quoted Lua string body.

    Unknown escapes are kept verbatim (backslash included) so JSON escapes
    nested inside the Lua string survive for the JSON parser.
    """
    if "\\" not in raw:
        return raw

    out: List[str] = []
    i = 0
    length = len(raw)
    while i < length:
        char = raw[i]
        if char == "\\" and i + 1 < length:
            nxt = raw[i + 1]
            replacement = _ESCAPES.get(nxt)
            if replacement is not None:
                out.append(replacement)
            else:
                out.append(raw[i:i + 2])
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def _skip_string(text: str, pos: int) -> int:
    """Return the index after the string opening at ``pos``."""
    i = pos + 1
    length = len(text)
    while i < length:
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == '"':
            return i + 1
        i += 1
    return length


def _skip_long_string(text: str, pos: int) -> int:
    end = text.find("]]", pos + 2)
    return len(text) if end == -1 else end + 2


def _skip_comment(text: str, pos: int) -> int:
    if text.startswith("--[[", pos):
        end = text.find("]]", pos + 4)
        return len(text) if end == -1 else end + 2
    end = text.find("\n", pos)
    return len(text) if end == -1 else end + 1


def _skip_filler(text: str, pos: int) -> int:
    """Skip whitespace, separators and comments."""
    length = len(text)
    while pos < length:
        char = text[pos]
        if char.isspace() or char in ",;":
            pos += 1
        elif text.startswith("--", pos):
            pos = _skip_comment(text, pos)
        else:
            break
    return pos


def _skip_spaces(text: str, pos: int) -> int:
    length = len(text)
    while pos < length and text[pos] in " \t":
        pos += 1
    return pos


def find_block_end(text: str, open_pos: int) -> int:
    """
    Return the index of the brace closing the one at ``open_pos``.

    Braces inside strings and comments are ignored. An unbalanced block
    runs to the end of the text.
    """
    depth = 0
    i = open_pos
    length = len(text)
    while i < length:
        char = text[i]
        if char == '"':
            i = _skip_string(text, i)
            continue
        if char == "-" and text.startswith("--", i):
            i = _skip_comment(text, i)
            continue
        if char == "[" and text.startswith("[[", i):
            i = _skip_long_string(text, i)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return length


def _root_pattern(key: str) -> "re.Pattern[str]":
    escaped = re.escape(key)
    return re.compile(
        r'(?:(?<![\w])%s|\[\s*"%s"\s*\])\s*=\s*\{' % (escaped, escaped)
    )


def find_table(text: str, key: str) -> Optional[str]:
    """
    Return the inner text of the first ``key = { ... }`` table.

    Both ``key = {`` and ``["key"] = {`` are recognised. Returns None when
    the key does not occur.
    """
    match = _root_pattern(key).search(text)
    if not match:
        return None
    open_pos = match.end() - 1
    end = find_block_end(text, open_pos)
    return text[open_pos + 1:end]


def _key_from_match(match: "re.Match[str]") -> str:
    if match.group(1) is not None:
        return unescape_lua_string(match.group(1))
    return match.group(2) if match.group(2) is not None else match.group(3)


def iter_blocks(inner: str) -> Iterator[Tuple[Optional[str], str]]:
    """
    Yield ``(key, body)`` for every direct child table of a table body.

    Anonymous children (``{ ... },``) yield a None key; keyed children
    (``["name"] = { ... }``, ``[1] = { ... }``, ``name = { ... }``) yield
    their key. Anything between children is skipped.
    """
    pos = 0
    length = len(inner)
    while True:
        pos = _skip_filler(inner, pos)
        if pos >= length:
            return

        char = inner[pos]
        key: Optional[str] = None

        if char != "{":
            match = _KEY_PATTERN.match(inner, pos)
            if match:
                after = _skip_filler(inner, match.end())
                if inner.startswith("=", after) and not inner.startswith("==", after):
                    value_pos = _skip_filler(inner, after + 1)
                    if inner.startswith("{", value_pos):
                        key = _key_from_match(match)
                        pos = value_pos
                        char = "{"
                if char != "{":
                    pos = max(match.end(), pos + 1)
                    continue

        if char == "{":
            end = find_block_end(inner, pos)
            yield key, inner[pos + 1:end]
            pos = end + 1
        elif char == '"':
            pos = _skip_string(inner, pos)
        else:
            pos += 1


def _read_value(body: str, pos: int) -> Tuple[Any, int, bool]:
    """Read one value. Returns ``(value, next_pos, decoded)``."""
    length = len(body)
    if pos >= length:
        return None, length, False

    char = body[pos]
    if char == "{":
        end = find_block_end(body, pos)
        return None, end + 1, False

    if char == '"':
        end = _skip_string(body, pos)
        closed = end <= length and body[end - 1] == '"' and end - 1 > pos
        raw = body[pos + 1:end - 1] if closed else body[pos + 1:end]
        return unescape_lua_string(raw), end, True

    if body.startswith("[[", pos):
        end = _skip_long_string(body, pos)
        return body[pos + 2:max(pos + 2, end - 2)], end, True

    end = pos
    while end < length and body[end] not in ",;}\n":
        if body.startswith("--", end):
            break
        end += 1
    token = body[pos:end].strip()

    if token == "true":
        return True, end, True
    if token == "false":
        return False, end, True
    if token == "nil":
        return None, end, True
    if _HEX_PATTERN.fullmatch(token):
        return int(token, 16), end, True
    if _NUMBER_PATTERN.fullmatch(token):
        if "." in token or "e" in token or "E" in token:
            return float(token), end, True
        return int(token), end, True
    return None, end, False


def _skip_unknown(body: str, pos: int) -> int:
    char = body[pos]
    if char == "{":
        return find_block_end(body, pos) + 1
    if char == '"':
        return _skip_string(body, pos)
    match = _WORD_CHARS.match(body, pos)
    if match:
        return match.end()
    return pos + 1


def decode_pairs(body: str) -> Dict[str, Any]:
    """
    Decode the primitive ``key = value`` pairs of one table body.

    Nested tables and unrecognised values are skipped key by key; this
    never raises on malformed content.
    """
    pairs: Dict[str, Any] = {}
    pos = 0
    length = len(body)
    while True:
        pos = _skip_filler(body, pos)
        if pos >= length:
            break

        match = _KEY_PATTERN.match(body, pos)
        if not match:
            pos = _skip_unknown(body, pos)
            continue

        after = _skip_spaces(body, match.end())
        if not body.startswith("=", after) or body.startswith("==", after):
            # Bare array element or garbage, not a key.
            pos = _skip_unknown(body, pos)
            continue

        key = _key_from_match(match)
        value_pos = _skip_filler(body, after + 1)
        value, pos, decoded = _read_value(body, value_pos)
        if decoded:
            pairs[key] = value
        else:
            logger.debug("Skipping key %r with unsupported value", key)
    return pairs


def find_blocks(
    text: str,
    key: str,
    required: bool = False,
) -> List[Tuple[Optional[str], str]]:
    """Return the ``(key, body)`` children of the root table ``key``."""
    inner = find_table(text, key)
    if inner is None:
        if required:
            raise LuaDecodeError(f"Root table '{key}' not found")
        return []
    return list(iter_blocks(inner))


def decode_records(
    text: str,
    key: str,
    required: bool = False,
) -> List[Dict[str, Any]]:
    """
    Decode every sibling record of the root table ``key``.

    Returns one flat map per record in source order. Raises LuaDecodeError
    only when ``required`` is set and the root key is absent.
    """
    return [decode_pairs(body) for _, body in find_blocks(text, key, required)]
