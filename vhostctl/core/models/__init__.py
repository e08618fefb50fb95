"""
Domain models: Pydantic types for vhostctl.

    from vhostctl.core.models import Action, Receipt, SiteConfig, Target
"""

from vhostctl.core.models.action import Action, Receipt
from vhostctl.core.models.artifact import ConfigArtifact
from vhostctl.core.models.site import (
    DoctorSettings,
    Instance,
    NginxSettings,
    ServerSettings,
    SiteConfig,
    SslSettings,
    Target,
)

__all__ = [
    "Action",
    "ConfigArtifact",
    "DoctorSettings",
    "Instance",
    "NginxSettings",
    "Receipt",
    "ServerSettings",
    "SiteConfig",
    "SslSettings",
    "Target",
]
