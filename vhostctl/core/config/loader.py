"""
site.yml loading.

The file sits in the application's install directory; whatever
directory holds it *is* the instance. Parsing is PyYAML, checking is
the pydantic ``SiteConfig`` model, and every failure surfaces as a
``ConfigError`` carrying the file path.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from vhostctl.core.errors import InputValidationError
from vhostctl.core.models.site import Instance, SiteConfig

logger = logging.getLogger(__name__)

SITE_CONFIG_FILE = "site.yml"


class ConfigError(InputValidationError):
    """site.yml is missing, unreadable or rejected by the model."""


def find_site_file(start_dir: Path | None = None) -> Path | None:
    """Nearest site.yml in ``start_dir`` (default cwd) or any parent."""
    here = (start_dir or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / SITE_CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def _read_mapping(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_site_config(path: Path) -> SiteConfig:
    """Parse and validate one site.yml.

    Raises:
        ConfigError: missing file, bad YAML, or a value the model rejects
            (including a url that is not http(s)).
    """
    logger.debug("Reading %s", path)
    data = _read_mapping(path)
    try:
        config = SiteConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid site configuration in {path}: {e}") from e
    except InputValidationError as e:
        raise ConfigError(e.message, help_text=e.help_text) from e
    logger.info("Site url is %s", config.url)
    return config


def load_instance(path: Path | None = None) -> Instance:
    """The instance a command acts on: ``path``, or the nearest site.yml."""
    path = path or find_site_file()
    if path is None:
        raise ConfigError(
            f"No {SITE_CONFIG_FILE} found. "
            "Run from the application's install directory, or specify --config."
        )
    return Instance(dir=path.parent.resolve(), config=load_site_config(path))
