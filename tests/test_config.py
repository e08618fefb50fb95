"""
Tests for configuration loading: site.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from vhostctl.core.config.loader import (
    ConfigError,
    find_site_file,
    load_instance,
    load_site_config,
)
from vhostctl.core.errors import InputValidationError


@pytest.fixture
def full_site_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        url: https://blog.example.com/
        server:
          host: 127.0.0.1
          port: 3001
        nginx:
          sites_available: /srv/nginx/available
          sites_enabled: /srv/nginx/enabled
          service: openresty
        ssl:
          acme_home: /opt/acme
          dhparam_bits: 4096
        doctor:
          supported_distro: "Debian 12"
          required_packages: [nginx]
    """)
    path = tmp_path / "site.yml"
    path.write_text(content)
    return path


class TestLoadSiteConfig:
    def test_full(self, full_site_yml: Path):
        config = load_site_config(full_site_yml)
        assert config.url == "https://blog.example.com/"
        assert config.server.port == 3001
        assert config.nginx.service == "openresty"
        assert config.ssl.dhparam_bits == 4096
        assert config.doctor.required_packages == ["nginx"]

    def test_minimal(self, tmp_path: Path):
        path = tmp_path / "site.yml"
        path.write_text("url: http://localhost:2368/\n")
        config = load_site_config(path)
        assert config.target().port == 2368
        assert config.nginx.package == "nginx"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_site_config(tmp_path / "site.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "site.yml"
        path.write_text("url: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_site_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "site.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_site_config(path)

    def test_missing_url(self, tmp_path: Path):
        path = tmp_path / "site.yml"
        path.write_text("server:\n  port: 2368\n")
        with pytest.raises(ConfigError, match="Invalid site configuration"):
            load_site_config(path)

    def test_bad_url(self, tmp_path: Path):
        path = tmp_path / "site.yml"
        path.write_text("url: not-a-url\n")
        with pytest.raises(ConfigError):
            load_site_config(path)

    def test_config_error_is_validation_error(self, tmp_path: Path):
        with pytest.raises(InputValidationError):
            load_site_config(tmp_path / "missing.yml")


class TestFindSiteFile:
    def test_in_current_dir(self, full_site_yml: Path):
        assert find_site_file(full_site_yml.parent) == full_site_yml

    def test_walks_up(self, full_site_yml: Path):
        nested = full_site_yml.parent / "content" / "themes"
        nested.mkdir(parents=True)
        assert find_site_file(nested) == full_site_yml

    def test_not_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("vhostctl.core.config.loader.SITE_CONFIG_FILE", "no-such-site-file.yml")
        assert find_site_file(tmp_path) is None


class TestLoadInstance:
    def test_dir_is_config_parent(self, full_site_yml: Path):
        instance = load_instance(full_site_yml)
        assert instance.dir == full_site_yml.parent.resolve()
        assert instance.config.server.port == 3001

    def test_search_from_cwd(self, full_site_yml: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(full_site_yml.parent)
        assert load_instance().config.url == "https://blog.example.com/"

    def test_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("vhostctl.core.config.loader.SITE_CONFIG_FILE", "no-such-site-file.yml")
        with pytest.raises(ConfigError, match="--config"):
            load_instance()
