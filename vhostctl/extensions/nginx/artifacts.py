"""
Config artifacts of the nginx extension and their paths.

Each artifact's presence at its final path is what later runs consult
to decide whether the step that creates it already happened:

    <host>.conf        sites-available, witness for the nginx stage
    <host>-ssl.conf    sites-available, witness for the ssl stage
    ssl-params.conf    instance files dir, re-rendered on every ssl run
"""

from __future__ import annotations

from pathlib import Path

from vhostctl.core.models.artifact import ConfigArtifact
from vhostctl.core.models.site import Instance, Target

TEMPLATE_DIR = Path(__file__).parent / "templates"


def site_artifact(instance: Instance, target: Target) -> ConfigArtifact:
    nginx = instance.config.nginx
    return ConfigArtifact(
        name=target.conf_name,
        template="nginx.conf",
        directory=Path(nginx.sites_available),
        enabled_dir=Path(nginx.sites_enabled),
        description="nginx config",
    )


def ssl_site_artifact(instance: Instance, target: Target) -> ConfigArtifact:
    nginx = instance.config.nginx
    return ConfigArtifact(
        name=target.ssl_conf_name,
        template="nginx-ssl.conf",
        directory=Path(nginx.sites_available),
        enabled_dir=Path(nginx.sites_enabled),
        description="ssl config",
    )


def ssl_params_artifact(instance: Instance) -> ConfigArtifact:
    return ConfigArtifact(
        name="ssl-params.conf",
        template="ssl-params.conf",
        directory=instance.files_dir,
        description="ssl security parameters",
        witness=False,
    )


def dhparam_path(instance: Instance) -> Path:
    return instance.files_dir / "dhparam.pem"


def certificate_paths(instance: Instance, target: Target) -> tuple[Path, Path]:
    """Full chain and private key paths in the CA client's store."""
    store = instance.config.ssl.acme_dir / target.hostname
    return store / "fullchain.cer", store / f"{target.hostname}.key"


def proxy_variables(instance: Instance, target: Target) -> dict[str, object]:
    """Template variables shared by the plain and ssl site configs."""
    return {
        "hostname": target.hostname,
        "webroot": instance.webroot,
        "location": target.location,
        "upstream_host": instance.config.server.host,
        "port": instance.config.server.port,
    }
