"""vhostctl: reverse-proxy virtual host and TLS certificate provisioning."""

__version__ = "0.1.0"
