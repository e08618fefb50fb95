"""
Config materializer: render a template and install the result.

Templates use ``{name}`` placeholders, substituted by plain string
replacement in a single pass, so braces inside a value are left
alone. Placeholders are lowercase identifiers, so nginx's own braces
and ``$variables`` pass through.

Every render is written to the instance's ``system/files`` directory;
artifacts whose final directory lies elsewhere are then copied into
place with elevated privileges. Materializing always overwrites.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from vhostctl.core.errors import HostError, InputValidationError, ProcessError
from vhostctl.core.host import Host
from vhostctl.core.models.artifact import ConfigArtifact
from vhostctl.core.models.site import Instance

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([a-z_][a-z0-9_]*)\}")


def render_template(template: str, variables: dict[str, Any]) -> str:
    """Substitute ``{var}`` placeholders with values.

    Raises:
        InputValidationError: If a placeholder has no value.
    """
    missing = sorted(set(_PLACEHOLDER.findall(template)) - set(variables))
    if missing:
        raise InputValidationError(
            f"Template variable(s) without a value: {', '.join(missing)}"
        )

    return _PLACEHOLDER.sub(lambda m: str(variables[m.group(1)]), template)


class ConfigMaterializer:
    """Writes rendered config artifacts for one instance."""

    def __init__(self, host: Host, instance: Instance, template_dir: Path):
        self.host = host
        self.instance = instance
        self.template_dir = template_dir

    def load_template(self, name: str) -> str:
        path = self.template_dir / name
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise HostError(f"Cannot read template {name}: {e}") from e

    def render(self, artifact: ConfigArtifact, variables: dict[str, Any]) -> str:
        try:
            return render_template(self.load_template(artifact.template), variables)
        except InputValidationError as e:
            raise HostError(f"Could not render {artifact.template}: {e.message}") from e

    def materialize(self, artifact: ConfigArtifact, variables: dict[str, Any]) -> Path:
        """Render ``artifact`` and install it at its final path.

        Returns:
            The final path of the artifact.
        """
        content = self.render(artifact, variables)
        local = self.instance.files_dir / artifact.name
        self.host.write_file(local, content)
        logger.info("Rendered %s → %s", artifact.description or artifact.name, local)

        if artifact.path != local:
            receipt = self.host.sudo(
                f"install:{artifact.name}",
                ["cp", str(local), str(artifact.path)],
            )
            if receipt.failed:
                raise ProcessError(
                    receipt,
                    f"Could not install {artifact.description or artifact.name} to {artifact.path}",
                )
            logger.info("Installed %s", artifact.path)

        return artifact.path

    def enable(self, artifact: ConfigArtifact) -> Path | None:
        """Symlink an installed artifact into its enabled directory."""
        enabled = artifact.enabled_path
        if enabled is None:
            return None
        receipt = self.host.sudo(
            f"link:{artifact.name}",
            ["ln", "-sf", str(artifact.path), str(enabled)],
        )
        if receipt.failed:
            raise ProcessError(receipt, f"Could not enable {artifact.name}")
        logger.info("Enabled %s", enabled)
        return enabled
