"""
Site models: the configured application and the proxy target derived from it.

``SiteConfig`` is loaded from site.yml. ``Target`` is derived once per
run from the configured URL, and ``Instance`` ties a config to the
directory the application is installed in.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vhostctl.core.errors import InputValidationError


class ServerSettings(BaseModel):
    """Where the application itself listens (the proxy upstream)."""

    host: str = "127.0.0.1"
    port: int = 2368


class NginxSettings(BaseModel):
    """Reverse-proxy layout on the host."""

    sites_available: str = "/etc/nginx/sites-available"
    sites_enabled: str = "/etc/nginx/sites-enabled"
    service: str = "nginx"
    package: str = "nginx"


class SslSettings(BaseModel):
    """Certificate-authority client settings."""

    acme_home: str = "~/.acme.sh"
    acme_install_url: str = "https://get.acme.sh"
    ca_server: str = "letsencrypt"
    key_length: int = 2048
    dhparam_bits: int = 2048

    @property
    def acme_dir(self) -> Path:
        return Path(self.acme_home).expanduser()


class DoctorSettings(BaseModel):
    """Expectations checked by the preflight diagnostics."""

    supported_distro: str = r"Ubuntu (20|22|24)\.04"
    required_packages: list[str] = Field(default_factory=lambda: ["systemd", "nginx"])


class SiteConfig(BaseModel):
    """Root site configuration: loaded from site.yml."""

    url: str
    server: ServerSettings = Field(default_factory=ServerSettings)
    nginx: NginxSettings = Field(default_factory=NginxSettings)
    ssl: SslSettings = Field(default_factory=SslSettings)
    doctor: DoctorSettings = Field(default_factory=DoctorSettings)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        Target.from_url(value)
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted key lookup, e.g. ``config.get("server.port")``."""
        node: Any = self.model_dump()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def target(self) -> Target:
        return Target.from_url(self.url)


class Target(BaseModel):
    """Hostname, path prefix and optional port of the public site URL.

    A present ``port`` means the site is not served on a standard port,
    and the whole reverse-proxy flow does not apply.
    """

    model_config = ConfigDict(frozen=True)

    scheme: str
    hostname: str
    path: str = "/"
    port: int | None = None

    @classmethod
    def from_url(cls, url: str) -> Target:
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError as e:
            raise InputValidationError(f"Invalid site url '{url}': {e}") from e

        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise InputValidationError(
                f"Invalid site url '{url}'",
                help_text="Expected an absolute http(s) url, e.g. https://blog.example.com/",
            )

        # the resolver's IDNA codec rejects empty labels and labels over 63 chars
        try:
            parts.hostname.encode("idna")
        except UnicodeError as e:
            raise InputValidationError(
                f"Invalid hostname '{parts.hostname}' in site url: {e}"
            ) from e

        return cls(
            scheme=parts.scheme,
            hostname=parts.hostname,
            path=parts.path or "/",
            port=port,
        )

    @property
    def location(self) -> str:
        """The nginx ``location`` matcher for the site path."""
        if self.path != "/":
            return f"^~ {self.path}"
        return "/"

    @property
    def conf_name(self) -> str:
        return f"{self.hostname}.conf"

    @property
    def ssl_conf_name(self) -> str:
        return f"{self.hostname}-ssl.conf"


class Instance(BaseModel):
    """An installed application: its directory plus its site config."""

    dir: Path
    config: SiteConfig

    @property
    def system_dir(self) -> Path:
        return self.dir / "system"

    @property
    def files_dir(self) -> Path:
        """Locally rendered config files and generated key material."""
        return self.system_dir / "files"

    @property
    def webroot(self) -> Path:
        """Document root the proxy serves challenge files from."""
        return self.system_dir / "nginx-root"
