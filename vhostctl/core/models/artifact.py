"""
Config artifact model: a rendered file destined for a system directory.

The existence of an artifact at its final path is the completion
marker for the step that creates it. Artifacts with ``witness=True``
gate re-runs: if present, the creating stage skips instead of
overwriting. Artifacts with ``witness=False`` are always re-rendered.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class ConfigArtifact(BaseModel):
    """A named config file, its template, and where it is installed.

    Attributes:
        name:         File name at the destination.
        template:     Template file the content is rendered from.
        directory:    Final directory of the file.
        enabled_dir:  Directory receiving a same-named activation symlink.
        description:  Human label used in logs.
        witness:      Whether existence at ``path`` marks completion.
    """

    name: str
    template: str
    directory: Path
    enabled_dir: Path | None = None
    description: str = ""
    witness: bool = True

    @property
    def path(self) -> Path:
        return self.directory / self.name

    @property
    def enabled_path(self) -> Path | None:
        if self.enabled_dir is None:
            return None
        return self.enabled_dir / self.name

    def exists(self) -> bool:
        """Whether the artifact is installed at its final path."""
        return self.path.exists() or self.path.is_symlink()
