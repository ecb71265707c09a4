from __future__ import annotations

from openit.platform.paths import (
    XdgDirs as XdgDirs,
    desktop_environment_names as desktop_environment_names,
)

__all__ = [
    "XdgDirs",
    "desktop_environment_names",
]
