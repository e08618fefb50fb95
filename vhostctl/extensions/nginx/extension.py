"""
nginx extension: reverse-proxy virtual host for the application.

Registers two stages:

    nginx   render, install and enable <host>.conf, restart nginx
    ssl     obtain a certificate and add <host>-ssl.conf (see ssl.py)

Both are re-runnable: each checks its own config artifact first and
skips when it is already there.
"""

from __future__ import annotations

import logging
from typing import Any

from vhostctl.core.context import RunContext
from vhostctl.core.engine.stages import StageScheduler, TaskHandle
from vhostctl.core.errors import HostError, ProcessError
from vhostctl.core.host import Host
from vhostctl.core.models.site import Instance
from vhostctl.core.services.materializer import ConfigMaterializer
from vhostctl.extensions.nginx.artifacts import (
    TEMPLATE_DIR,
    proxy_variables,
    site_artifact,
    ssl_site_artifact,
)
from vhostctl.extensions.nginx.ssl import CertificateProvisioner
from vhostctl.ui.console import ConsoleUI

logger = logging.getLogger(__name__)


class NginxExtension:
    name = "nginx"

    def __init__(self, host: Host, ui: ConsoleUI):
        self.host = host
        self.ui = ui
        self.certificates = CertificateProvisioner(self)

    def register_stages(self, scheduler: StageScheduler, args: dict[str, Any]) -> None:
        if args.get("local"):
            logger.debug("Local install, nginx stages not registered")
            return

        scheduler.register("nginx", self.setup_nginx, None, "Nginx")
        scheduler.register("ssl", self.setup_ssl, "nginx", "SSL")

    def setup_nginx(self, args: dict[str, Any], ctx: RunContext, task: TaskHandle) -> None:
        instance = ctx.instance
        assert instance is not None

        if not self.is_supported(instance):
            return task.skip("Nginx is not installed. Skipping Nginx setup.")

        target = instance.config.target()
        if target.port:
            return task.skip("Your url contains a port. Skipping Nginx setup.")

        artifact = site_artifact(instance, target)
        if artifact.exists():
            return task.skip(
                "Nginx configuration already found for this url. Skipping Nginx setup."
            )

        materializer = self.materializer(instance)
        materializer.materialize(artifact, proxy_variables(instance, target))
        materializer.enable(artifact)
        self.restart(instance)

    def setup_ssl(self, args: dict[str, Any], ctx: RunContext, task: TaskHandle) -> None:
        self.certificates.provision(args, ctx, task)

    def teardown(self, instance: Instance) -> None:
        """Remove both site configs and their symlinks, then restart once."""
        target = instance.config.target()
        removed = False

        for artifact, label in (
            (site_artifact(instance, target), "Nginx"),
            (ssl_site_artifact(instance, target), "SSL"),
        ):
            if not artifact.exists():
                continue

            receipts = [
                self.host.sudo(f"remove:{artifact.name}", ["rm", "-f", str(artifact.path)]),
                self.host.sudo(
                    f"unlink:{artifact.name}", ["rm", "-f", str(artifact.enabled_path)]
                ),
            ]
            if any(r.failed for r in receipts):
                raise HostError(
                    f"{label} config file link could not be removed, "
                    "you will need to do this manually."
                )
            logger.info("Removed %s", artifact.path)
            removed = True

        if removed:
            self.restart(instance)

    def restart(self, instance: Instance) -> None:
        service = instance.config.nginx.service
        receipt = self.host.sudo("nginx-restart", ["service", service, "restart"])
        if receipt.failed:
            raise ProcessError(receipt, f"Could not restart {service}")

    def is_supported(self, instance: Instance) -> bool:
        return self.host.package_installed(instance.config.nginx.package)

    def materializer(self, instance: Instance) -> ConfigMaterializer:
        return ConfigMaterializer(self.host, instance, TEMPLATE_DIR)
