"""Preflight diagnostics: ``vhostctl doctor``."""

from vhostctl.doctor.checks import CHECKS, run_checks

__all__ = ["CHECKS", "run_checks"]
