"""Reading and writing the line-oriented ``.config`` format.

Recognised lines::

    CONFIG_FOO=y
    CONFIG_NR_CPUS=64
    CONFIG_CMDLINE="quiet \\"splash\\""
    # CONFIG_BAR is not set

Blank lines and other comments are skipped. Anything else is malformed.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from autokernel.core.errors import ConfigLoadError

_NOT_SET = re.compile(r"^#\s*(?P<name>[A-Za-z0-9_]+) is not set\s*$")
_ASSIGN = re.compile(r"^(?P<name>[A-Za-z0-9_]+)=(?P<value>.*)$")


@dataclass(frozen=True)
class ConfigEntry:
    """One assignment read from a ``.config`` file."""

    name: str
    value: str
    line: int
    quoted: bool = False


def _unquote(raw: str, source: str, line: int) -> str:
    body = raw[1:-1] if len(raw) >= 2 and raw.endswith('"') else None
    if body is None:
        raise ConfigLoadError(f"{source}:{line}: unterminated string").with_context(source=source, line=line)
    out = []
    escaped = False
    for char in body:
        if escaped:
            out.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            out.append(char)
    return "".join(out)


def parse_config(text: str, *, source: str = "<string>", prefix: str = "CONFIG_") -> Iterator[ConfigEntry]:
    """Yield the assignments of a ``.config`` document, prefix stripped."""
    for number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        match = _NOT_SET.match(line)
        if match:
            name = match.group("name")
            if name.startswith(prefix):
                yield ConfigEntry(name[len(prefix):], "n", number)
            continue
        if line.startswith("#"):
            continue

        match = _ASSIGN.match(line)
        if not match or not match.group("name").startswith(prefix):
            raise ConfigLoadError(f"{source}:{number}: malformed line {raw_line!r}").with_context(
                source=source, line=number
            )
        name = match.group("name")[len(prefix):]
        value = match.group("value").strip()
        if value.startswith('"'):
            yield ConfigEntry(name, _unquote(value, source, number), number, quoted=True)
        else:
            yield ConfigEntry(name, value, number)


def quote(text: str) -> str:
    """Quote a string value for ``.config`` output."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = ["ConfigEntry", "parse_config", "quote"]
