"""Qualified symbol parsing.

A frame's function is identified by a qualified symbol: the module name,
escaped so that it contains no literal dots, followed by a dot and the
function's ``__qualname__``::

    stacktrace%2ehandler.Handler.__call__.<locals>.wrapper

``split_function_path`` separates such a symbol into its package path
(``stacktrace.handler.``) and function name (``Handler.__call__.<locals>.wrapper``).
The parser also accepts slash-delimited package paths and parenthesized
method receivers, so symbols produced by other tooling split the same way.
"""

from __future__ import annotations

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

UNKNOWN_MODULE = "<unknown>"


def split_function_path(function_path: str) -> tuple[str, str]:
    """Split a qualified symbol into ``(package_path, function_name)``.

    The package path keeps its trailing ``.`` and is percent-decoded. A symbol
    without any package qualifier is returned whole as the function name.

    Example::

        >>> split_function_path("example.com/x/y.(*T).Method")
        ('example.com/x/y.', '(*T).Method')
        >>> split_function_path("pkg%2esub.Class.method")
        ('pkg.sub.', 'Class.method')
    """
    if not function_path:
        return "", ""

    # A parenthesized receiver may itself contain path-like text, so it marks
    # the start of the function name.
    sep = function_path.find(".(")
    if sep >= 0:
        return unescape(function_path[: sep + 1]), function_path[sep + 1 :]

    # A leading "." is part of the name, never the package separator.
    offset = function_path.rfind("/") + 1 or 1
    sep = function_path.find(".", offset)
    if sep < 0:
        return "", function_path
    return unescape(function_path[: sep + 1]), function_path[sep + 1 :]


def unescape(s: str) -> str:
    """Decode ``%XX`` byte escapes as UTF-8; malformed sequences are kept literally."""
    if "%" not in s:
        return s
    raw = s.encode("utf-8", "surrogateescape")
    out = bytearray()
    i = 0
    n = len(raw)
    while i < n:
        b = raw[i]
        if b == 0x25 and _is_hex_pair(raw, i + 1):
            out.append(int(raw[i + 1 : i + 3], 16))
            i += 3
            continue
        out.append(b)
        i += 1
    return out.decode("utf-8", "surrogateescape")


def _is_hex_pair(raw: bytes, start: int) -> bool:
    pair = raw[start : start + 2]
    return len(pair) == 2 and pair[0] in _HEX_DIGITS and pair[1] in _HEX_DIGITS


def escape(module: str) -> str:
    """Escape a module name so that it holds no literal ``.``.

    ``%`` is escaped first so that ``unescape(escape(m)) == m`` for any name.
    """
    return module.replace("%", "%25").replace(".", "%2e")


def qualified_name(module: str | None, qualname: str) -> str:
    """Build the qualified symbol for ``qualname`` defined in ``module``."""
    return f"{escape(module or UNKNOWN_MODULE)}.{qualname}"


__all__ = [
    "UNKNOWN_MODULE",
    "escape",
    "qualified_name",
    "split_function_path",
    "unescape",
]
