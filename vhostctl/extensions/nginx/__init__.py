"""nginx extension: virtual host and Let's Encrypt certificate stages."""

from vhostctl.extensions.nginx.extension import NginxExtension

__all__ = ["NginxExtension"]
