"""
Shared test fixtures and configuration.

External effects are simulated by ``HostSimulator``: a shell adapter
that applies file-moving commands (cp, ln, rm) to the temporary
filesystem, fakes the outputs of the tools the provisioners call, and
records every call.
"""

from __future__ import annotations

import shutil
import socket
import textwrap
from pathlib import Path

import pytest

from vhostctl.adapters.base import ExecutionContext
from vhostctl.adapters.mock import MockAdapter
from vhostctl.adapters.registry import AdapterRegistry
from vhostctl.adapters.shell.filesystem import FilesystemAdapter
from vhostctl.core.config.loader import load_instance
from vhostctl.core.context import RunContext
from vhostctl.core.host import Host
from vhostctl.core.models.action import Receipt
from vhostctl.core.models.site import Instance
from vhostctl.ui.console import ConsoleUI

RESOLVED_ADDRESS = "203.0.113.10"


class HostSimulator(MockAdapter):
    """Shell adapter double acting on the temporary filesystem."""

    def __init__(self, installed_packages: list[str] | None = None):
        super().__init__(adapter_name="shell")
        self.installed_packages = list(installed_packages or ["nginx", "systemd"])

    def respond(self, context: ExecutionContext) -> Receipt:
        action = context.action
        argv: list[str] = action.params["argv"]
        stdout = self._simulate(argv)
        return Receipt.success(
            adapter=self.name,
            action_id=action.id,
            output=stdout,
            stdout=stdout,
            return_code=0,
            metadata={"argv": argv, "sudo": action.needs_sudo},
        )

    def _simulate(self, argv: list[str]) -> str:
        cmd, args = Path(argv[0]).name, argv[1:]

        if cmd == "cp":
            shutil.copyfile(args[0], args[1])
        elif cmd == "ln":
            link = Path(args[-1])
            if link.is_symlink() or link.exists():
                link.unlink()
            link.symlink_to(args[-2])
        elif cmd == "rm":
            for path in args:
                if not path.startswith("-"):
                    Path(path).unlink(missing_ok=True)
        elif cmd == "dpkg":
            return "\n".join(
                f"ii  {name}  1.0  amd64  {name} package" for name in self.installed_packages
            )
        elif cmd == "curl":
            Path(args[args.index("-o") + 1]).write_text("#!/bin/sh\n")
        elif cmd == "sh":
            # get.acme.sh: email=<addr> first, the rest goes to acme.sh --install
            assert args[1].startswith("email="), args
            home = Path(args[args.index("--home", 2) + 1])
            home.mkdir(parents=True, exist_ok=True)
            (home / "acme.sh").write_text("#!/bin/sh\n")
        elif cmd == "acme.sh":
            home = Path(args[args.index("--home") + 1])
            domain = args[args.index("--domain") + 1]
            store = home / domain
            store.mkdir(parents=True, exist_ok=True)
            (store / "fullchain.cer").write_text("chain")
            (store / f"{domain}.key").write_text("key")
        elif cmd == "openssl":
            Path(args[args.index("-out") + 1]).write_text("DH PARAMETERS")
        return ""


class ScriptedUI(ConsoleUI):
    """Console UI answering from a script instead of a terminal."""

    def __init__(self, answers: list | None = None, allow_prompt: bool = True):
        super().__init__(allow_prompt=allow_prompt)
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def confirm(self, question: str, default: bool = False) -> bool:
        self.questions.append(question)
        if not self.allow_prompt:
            return default
        return bool(self.answers.pop(0))

    def prompt(self, message, validate=None) -> str:
        self.questions.append(message)
        return str(self.answers.pop(0))


class FakeResolver:
    """Stands in for socket.getaddrinfo."""

    def __init__(self):
        self.address = RESOLVED_ADDRESS
        self.error: Exception | None = None
        self.lookups: list[str] = []

    def __call__(self, host, port, family=0, *args, **kwargs):
        self.lookups.append(host)
        if self.error is not None:
            raise self.error
        return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", (self.address, 0))]


@pytest.fixture(autouse=True)
def dns(monkeypatch: pytest.MonkeyPatch) -> FakeResolver:
    """No test ever hits a real resolver."""
    resolver = FakeResolver()
    monkeypatch.setattr(socket, "getaddrinfo", resolver)
    return resolver


@pytest.fixture
def simulator() -> HostSimulator:
    return HostSimulator()


@pytest.fixture
def host(simulator: HostSimulator) -> Host:
    registry = AdapterRegistry()
    registry.register(simulator)
    registry.register(FilesystemAdapter())
    return Host(registry)


def write_site_yml(directory: Path, root: Path, url: str = "https://blog.example.com/") -> Path:
    """Write a site.yml whose system paths all live under ``root``."""
    directory.mkdir(parents=True, exist_ok=True)
    content = textwrap.dedent(f"""\
        url: "{url}"
        server:
          port: 2368
        nginx:
          sites_available: "{root / 'sites-available'}"
          sites_enabled: "{root / 'sites-enabled'}"
        ssl:
          acme_home: "{root / 'acme'}"
    """)
    path = directory / "site.yml"
    path.write_text(content)
    return path


@pytest.fixture
def system_root(tmp_path: Path) -> Path:
    """Stand-in for / with the nginx site directories."""
    root = tmp_path / "system-root"
    (root / "sites-available").mkdir(parents=True)
    (root / "sites-enabled").mkdir(parents=True)
    return root


@pytest.fixture
def site_yml(tmp_path: Path, system_root: Path) -> Path:
    return write_site_yml(tmp_path / "blog", system_root)


@pytest.fixture
def instance(site_yml: Path) -> Instance:
    return load_instance(site_yml)


@pytest.fixture
def make_ctx(instance: Instance, host: Host):
    """Build a RunContext over the simulated host."""

    def _make(args: dict | None = None, ui: ConsoleUI | None = None, inst=instance) -> RunContext:
        return RunContext(
            args=args or {},
            instance=inst,
            host=host,
            ui=ui or ConsoleUI(allow_prompt=False),
        )

    return _make


@pytest.fixture
def make_instance(tmp_path: Path, system_root: Path):
    """Load an instance for another site url, sharing the system root."""

    def _make(url: str, name: str = "other") -> Instance:
        return load_instance(write_site_yml(tmp_path / name, system_root, url))

    return _make


@pytest.fixture
def scripted_ui():
    """Factory for a ScriptedUI with canned answers."""
    return ScriptedUI
