"""
Certificate provisioning: the ssl stage of the nginx extension.

Runs as one sequential pipeline sharing the ``dnsfail`` flag:

    1. DNS resolution        hostname must resolve (IPv4); "not found"
                             sets dnsfail and every later step skips
    2. Issuance parameters   contact email, from --sslemail or a prompt
    3. Certificate           install acme.sh if needed, then issue via
                             HTTP validation against the webroot
    4. DH parameters         openssl dhparam (slow, minutes)
    5. ssl-params.conf       always re-rendered
    6. <host>-ssl.conf       rendered, installed, enabled
    7. Restart nginx

A DNS name that does not resolve yet is an expected state: the stage
still succeeds and the operator re-runs the command later.
"""

from __future__ import annotations

import logging
import re
import socket
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from vhostctl.core.context import RunContext
from vhostctl.core.engine.pipeline import Task, TaskPipeline
from vhostctl.core.engine.stages import TaskHandle
from vhostctl.core.errors import HostError, InputValidationError, ProcessError
from vhostctl.core.models.site import Instance, Target
from vhostctl.extensions.nginx.artifacts import (
    certificate_paths,
    dhparam_path,
    proxy_variables,
    site_artifact,
    ssl_params_artifact,
    ssl_site_artifact,
)

if TYPE_CHECKING:
    from pathlib import Path

    from vhostctl.extensions.nginx.extension import NginxExtension

logger = logging.getLogger(__name__)

# getaddrinfo codes meaning "no such name", as opposed to resolver failures
NOT_FOUND_ERRORS = frozenset(
    code
    for code in (getattr(socket, "EAI_NONAME", None), getattr(socket, "EAI_NODATA", None))
    if code is not None
)

# acme.sh prints "Skip, Next renewal time is: ..." for a still-valid certificate
SKIP_SIGNATURE = re.compile(r"\bSkip\b")

DNS_NOT_READY = (
    "Uh-oh! It looks like your domain isn't set up correctly yet. "
    "Because of this, SSL setup won't work correctly. Once you've set up your domain "
    "and pointed it at this server's IP, try running `vhostctl setup ssl` again."
)


def resolve_ipv4(hostname: str) -> str:
    """Resolve ``hostname`` to its first IPv4 address."""
    infos = socket.getaddrinfo(hostname, None, family=socket.AF_INET)
    return infos[0][4][0]


def _dns_failed(ctx: RunContext) -> bool:
    return bool(ctx.get("dnsfail"))


class CertificateProvisioner:
    """Runs the ssl stage for one NginxExtension."""

    def __init__(
        self,
        extension: NginxExtension,
        resolver: Callable[[str], str] = resolve_ipv4,
    ):
        self.extension = extension
        self.resolver = resolver

    @property
    def host(self):
        return self.extension.host

    def provision(self, args: dict[str, Any], ctx: RunContext, task: TaskHandle) -> None:
        instance = ctx.instance
        assert instance is not None
        target = instance.config.target()

        if ssl_site_artifact(instance, target).exists():
            return task.skip("SSL has already been set up, skipping")

        if target.port:
            return task.skip("Your url contains a port. Skipping SSL setup.")

        interactive = ctx.ui is not None and ctx.ui.allow_prompt
        if not interactive and not args.get("sslemail"):
            return task.skip(
                "SSL email must be provided via the --sslemail option, skipping SSL setup"
            )

        if not site_artifact(instance, target).exists():
            if ctx.single:
                return task.skip("Nginx config file does not exist, skipping SSL setup")
            return task.skip()

        TaskPipeline(self.tasks(args, instance, target)).run(ctx)

    def tasks(self, args: dict[str, Any], instance: Instance, target: Target) -> list[Task]:
        return [
            Task(
                title="Checking DNS resolution",
                task=lambda ctx: self.check_dns(ctx, target),
                writes=("dnsfail", "resolved_address"),
            ),
            Task(
                title="Getting additional configuration",
                task=lambda ctx: self.acquire_email(ctx, args),
                skip=_dns_failed,
                reads=("dnsfail",),
                writes=("sslemail",),
            ),
            Task(
                title="Getting SSL Certificate from Let's Encrypt",
                task=lambda ctx: self.obtain_certificate(ctx, args, instance, target),
                skip=_dns_failed,
                reads=("dnsfail", "sslemail"),
            ),
            Task(
                title="Generating Encryption Key (may take a few minutes)",
                task=lambda ctx: self.generate_dhparam(instance),
                skip=_dns_failed,
                reads=("dnsfail",),
            ),
            Task(
                title="Generating SSL security headers",
                task=lambda ctx: self.render_ssl_params(instance),
                skip=_dns_failed,
                reads=("dnsfail",),
            ),
            Task(
                title="Generating SSL configuration",
                task=lambda ctx: self.render_ssl_config(instance, target),
                skip=_dns_failed,
                reads=("dnsfail",),
            ),
            Task(
                title="Restarting Nginx",
                task=lambda ctx: self.extension.restart(instance),
                skip=_dns_failed,
                reads=("dnsfail",),
            ),
        ]

    # ── Steps ───────────────────────────────────────────────────

    def check_dns(self, ctx: RunContext, target: Target) -> str | None:
        try:
            address = self.resolver(target.hostname)
        except socket.gaierror as e:
            if e.errno not in NOT_FOUND_ERRORS:
                raise HostError(f"DNS lookup for {target.hostname} failed: {e}") from e
            logger.warning(DNS_NOT_READY)
            ctx.set("dnsfail", True)
            return None
        except OSError as e:
            raise HostError(f"DNS lookup for {target.hostname} failed: {e}") from e
        except UnicodeError as e:
            raise InputValidationError(f"Cannot look up {target.hostname}: {e}") from e

        logger.info("%s resolves to %s", target.hostname, address)
        ctx.set("dnsfail", False)
        ctx.set("resolved_address", address)
        return address

    def acquire_email(self, ctx: RunContext, args: dict[str, Any]) -> str:
        email = args.get("sslemail")
        if not email:
            assert ctx.ui is not None
            email = ctx.ui.prompt(
                "Enter your email (used for Let's Encrypt notifications)",
                validate=lambda value: bool(value) or "You must supply an email",
            )
        ctx.set("sslemail", email)
        return email

    def ensure_client(self, instance: Instance, email: str) -> Path:
        """Install acme.sh unless an installed client is already there.

        get.acme.sh takes the account email as its first argument, in
        ``email=<addr>`` form; everything after it goes to
        ``acme.sh --install``.
        """
        settings = instance.config.ssl
        acme = settings.acme_dir / "acme.sh"
        if acme.exists():
            logger.info("Using installed acme.sh at %s", acme)
            return acme

        installer = instance.files_dir / "get-acme.sh"
        self.host.make_dir(instance.files_dir)
        self.host.check(
            "acme-download",
            ["curl", "-fsSL", "-o", str(installer), settings.acme_install_url],
        )
        self.host.check(
            "acme-install",
            ["sh", str(installer), f"email={email}", "--home", str(settings.acme_dir)],
        )
        return acme

    def certificate_present(self, instance: Instance, target: Target) -> bool:
        fullchain, privkey = certificate_paths(instance, target)
        return fullchain.exists() and privkey.exists()

    def obtain_certificate(
        self,
        ctx: RunContext,
        args: dict[str, Any],
        instance: Instance,
        target: Target,
    ) -> None:
        settings = instance.config.ssl
        acme = self.ensure_client(instance, str(ctx.get("sslemail")))

        if self.certificate_present(instance, target):
            logger.info("Certificate for %s already issued, reusing it", target.hostname)
            return

        self.host.make_dir(instance.webroot)
        argv = [
            str(acme),
            "--issue",
            "--home", str(settings.acme_dir),
            "--domain", target.hostname,
            "--webroot", str(instance.webroot),
            "--accountemail", str(ctx.get("sslemail")),
            "--keylength", str(settings.key_length),
        ]
        argv += ["--staging"] if args.get("sslstaging") else ["--server", settings.ca_server]

        receipt = self.host.run("acme-issue", argv)
        if receipt.ok:
            return

        if self.certificate_present(instance, target) or SKIP_SIGNATURE.search(receipt.stdout):
            logger.info("Certificate for %s already issued, skipping", target.hostname)
            return

        raise ProcessError(receipt, f"Could not obtain a certificate for {target.hostname}")

    def generate_dhparam(self, instance: Instance) -> None:
        path = dhparam_path(instance)
        self.host.make_dir(instance.files_dir)
        self.host.check(
            "dhparam",
            ["openssl", "dhparam", "-out", str(path), str(instance.config.ssl.dhparam_bits)],
        )

    def render_ssl_params(self, instance: Instance) -> None:
        self.extension.materializer(instance).materialize(
            ssl_params_artifact(instance),
            {"dhparam": dhparam_path(instance)},
        )

    def render_ssl_config(self, instance: Instance, target: Target) -> None:
        fullchain, privkey = certificate_paths(instance, target)
        variables = {
            **proxy_variables(instance, target),
            "fullchain": fullchain,
            "privkey": privkey,
            "sslparams": ssl_params_artifact(instance).path,
        }
        artifact = ssl_site_artifact(instance, target)
        materializer = self.extension.materializer(instance)
        materializer.materialize(artifact, variables)
        materializer.enable(artifact)
