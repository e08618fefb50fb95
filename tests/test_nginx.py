"""
Tests for the nginx extension: virtual-host stage and uninstall.
"""

import logging
from pathlib import Path

import pytest

from vhostctl.core.engine.stages import StageScheduler, TaskHandle
from vhostctl.core.errors import HostError, ProcessError
from vhostctl.core.host import Host
from vhostctl.core.models import Instance
from vhostctl.extensions import EXTENSIONS, load_extensions
from vhostctl.extensions.nginx import NginxExtension
from vhostctl.ui.console import ConsoleUI


@pytest.fixture
def extension(host: Host) -> NginxExtension:
    return NginxExtension(host, ConsoleUI(allow_prompt=False))


def _run_nginx(extension: NginxExtension, ctx) -> TaskHandle:
    task = TaskHandle("nginx")
    extension.setup_nginx(ctx.args, ctx, task)
    return task


class TestRegistration:
    def test_registers_nginx_then_ssl(self, extension: NginxExtension):
        scheduler = StageScheduler()
        extension.register_stages(scheduler, {})
        assert [(s.name, s.depends_on, s.label) for s in scheduler.stages] == [
            ("nginx", None, "Nginx"),
            ("ssl", "nginx", "SSL"),
        ]

    def test_local_registers_nothing(self, extension: NginxExtension):
        scheduler = StageScheduler()
        extension.register_stages(scheduler, {"local": True})
        assert scheduler.stages == []

    def test_static_registry(self, host: Host):
        assert NginxExtension in EXTENSIONS
        assert [e.name for e in load_extensions(host, ConsoleUI())] == ["nginx"]


class TestSetupNginx:
    def test_writes_enables_and_restarts(
        self, extension: NginxExtension, simulator, make_ctx, instance: Instance, system_root: Path
    ):
        task = _run_nginx(extension, make_ctx())

        assert not task.skipped
        conf = system_root / "sites-available" / "blog.example.com.conf"
        link = system_root / "sites-enabled" / "blog.example.com.conf"
        assert "server_name blog.example.com;" in conf.read_text()
        assert f"root {instance.webroot};" in conf.read_text()
        assert "proxy_pass http://127.0.0.1:2368;" in conf.read_text()
        assert link.is_symlink()
        restart = simulator.calls_for("nginx-restart")
        assert len(restart) == 1
        assert restart[0].needs_sudo
        assert restart[0].action.params["argv"] == ["service", "nginx", "restart"]

    def test_not_installed(self, extension: NginxExtension, simulator, make_ctx, caplog):
        simulator.installed_packages = ["systemd"]
        with caplog.at_level(logging.WARNING):
            task = _run_nginx(extension, make_ctx())
        assert task.skipped
        assert "Nginx is not installed. Skipping Nginx setup." in caplog.text
        assert simulator.calls_for("nginx-restart") == []

    def test_url_with_port(
        self, extension: NginxExtension, simulator, make_ctx, make_instance, system_root: Path
    ):
        inst = make_instance("http://blog.example.com:2368/")
        task = _run_nginx(extension, make_ctx(inst=inst))

        assert task.skipped
        assert "port" in task.reason
        assert list((system_root / "sites-available").iterdir()) == []
        assert simulator.calls_for("nginx-restart") == []

    def test_existing_config_is_left_alone(
        self, extension: NginxExtension, simulator, make_ctx, system_root: Path
    ):
        conf = system_root / "sites-available" / "blog.example.com.conf"
        conf.write_text("# hand edited\n")

        task = _run_nginx(extension, make_ctx())

        assert task.skipped
        assert "already found" in task.reason
        assert conf.read_text() == "# hand edited\n"
        assert simulator.calls_for("nginx-restart") == []

    def test_second_run_is_a_noop(self, extension: NginxExtension, simulator, make_ctx):
        _run_nginx(extension, make_ctx())
        calls = simulator.call_count
        task = _run_nginx(extension, make_ctx())
        assert task.skipped
        # only the package query ran again
        assert [c.action.id for c in simulator.call_log[calls:]] == ["dpkg-list"]

    def test_subdirectory_location(
        self, extension: NginxExtension, make_ctx, make_instance, system_root: Path
    ):
        inst = make_instance("https://example.com/blog/")
        _run_nginx(extension, make_ctx(inst=inst))
        conf = system_root / "sites-available" / "example.com.conf"
        assert "location ^~ /blog/ {" in conf.read_text()

    def test_restart_failure(self, extension: NginxExtension, simulator, make_ctx):
        simulator.set_failure("nginx-restart", error="Job for nginx.service failed")
        with pytest.raises(ProcessError, match="Could not restart nginx"):
            _run_nginx(extension, make_ctx())


class TestTeardown:
    def _install(self, system_root: Path, name: str) -> None:
        conf = system_root / "sites-available" / name
        conf.write_text("server {}\n")
        (system_root / "sites-enabled" / name).symlink_to(conf)

    def test_removes_both_and_restarts_once(
        self, extension: NginxExtension, simulator, instance: Instance, system_root: Path
    ):
        self._install(system_root, "blog.example.com.conf")
        self._install(system_root, "blog.example.com-ssl.conf")

        extension.teardown(instance)

        assert list((system_root / "sites-available").iterdir()) == []
        assert list((system_root / "sites-enabled").iterdir()) == []
        assert len(simulator.calls_for("nginx-restart")) == 1
        assert all(c.needs_sudo for c in simulator.call_log)

    def test_only_base_config(self, extension: NginxExtension, simulator, instance: Instance, system_root: Path):
        self._install(system_root, "blog.example.com.conf")
        extension.teardown(instance)
        assert list((system_root / "sites-enabled").iterdir()) == []
        assert simulator.calls_for("remove:blog.example.com-ssl.conf") == []
        assert len(simulator.calls_for("nginx-restart")) == 1

    def test_nothing_installed_is_a_noop(self, extension: NginxExtension, simulator, instance: Instance):
        extension.teardown(instance)
        assert simulator.call_count == 0

    def test_removal_failure(self, extension: NginxExtension, simulator, instance: Instance, system_root: Path):
        self._install(system_root, "blog.example.com-ssl.conf")
        simulator.set_failure("unlink:blog.example.com-ssl.conf", error="Operation not permitted")
        with pytest.raises(HostError, match="SSL config file link could not be removed"):
            extension.teardown(instance)
        assert simulator.calls_for("nginx-restart") == []
