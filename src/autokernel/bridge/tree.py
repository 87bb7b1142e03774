"""Facts read from a kernel source tree."""

from __future__ import annotations

import re
from pathlib import Path

from autokernel.core.logging import get_logger

logger = get_logger(__name__)

_MAKEFILE_VAR = re.compile(r"^(VERSION|PATCHLEVEL|SUBLEVEL|EXTRAVERSION)\s*=[ \t]*(\S*)", re.MULTILINE)


def read_kernel_version(kernel_dir: str | Path) -> str | None:
    """Kernel release from the top-level Makefile, e.g. ``"6.6.1-rc2"``.

    Returns None when the tree has no readable Makefile or no ``VERSION``.
    """
    makefile = Path(kernel_dir) / "Makefile"
    try:
        text = makefile.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("kernel.makefile.unreadable", path=str(makefile), error=str(exc))
        return None

    fields: dict[str, str] = {}
    for key, value in _MAKEFILE_VAR.findall(text):
        fields.setdefault(key, value)
    if not fields.get("VERSION"):
        return None

    numbers = [fields[key] for key in ("VERSION", "PATCHLEVEL", "SUBLEVEL") if fields.get(key)]
    return ".".join(numbers) + fields.get("EXTRAVERSION", "")


__all__ = ["read_kernel_version"]
