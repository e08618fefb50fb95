"""
Extension registry.

    EXTENSIONS    factories of every known extension, in setup order
"""

from __future__ import annotations

from vhostctl.core.host import Host
from vhostctl.extensions.base import Extension, ExtensionFactory
from vhostctl.extensions.nginx import NginxExtension
from vhostctl.ui.console import ConsoleUI

EXTENSIONS: list[ExtensionFactory] = [
    NginxExtension,
]


def load_extensions(host: Host, ui: ConsoleUI) -> list[Extension]:
    """Instantiate every registered extension."""
    return [factory(host, ui) for factory in EXTENSIONS]


__all__ = ["EXTENSIONS", "Extension", "load_extensions"]
