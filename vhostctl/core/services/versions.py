"""
Version constraint validation (pure).

No I/O, no subprocess.
"""

from __future__ import annotations


def parse_version(version: str) -> tuple[int, ...]:
    """Parse ``v1.2.3`` / ``3.12`` into an integer tuple.

    Raises:
        ValueError: If a component is not an integer.
    """
    return tuple(int(x) for x in version.strip().lstrip("v").split(".")[:3])


def check_version_constraint(version: str, constraint: dict) -> dict:
    """Validate a version against a constraint rule.

    Constraint types:
        - ``gte``: >= ``reference``
        - ``exact``: == ``reference``
        - ``range``: >= ``minimum`` and < ``below``

    Args:
        version: The installed version, e.g. ``"3.12.1"``.
        constraint: Dict with ``type`` and type-specific fields::

            {"type": "gte", "reference": "3.10"}
            {"type": "range", "minimum": "3.10", "below": "4"}

    Returns:
        ``{"valid": True}`` or ``{"valid": False, "message": "..."}``
    """
    ctype = constraint.get("type", "gte")

    try:
        installed = parse_version(version)
        if ctype == "range":
            low = parse_version(constraint["minimum"])
            high = parse_version(constraint["below"])
        else:
            ref = parse_version(constraint.get("reference", "0"))
    except (ValueError, KeyError):
        return {"valid": True, "parse_error": True}

    if ctype == "range":
        if low <= installed < high:
            return {"valid": True}
        return {
            "valid": False,
            "message": (
                f"Version {version} is outside the supported range "
                f">={constraint['minimum']}, <{constraint['below']}."
            ),
        }

    if ctype == "gte":
        if installed >= ref:
            return {"valid": True}
        return {
            "valid": False,
            "message": f"Version {version} < {constraint['reference']}. Minimum required: {constraint['reference']}.",
        }

    if ctype == "exact":
        if installed == ref:
            return {"valid": True}
        return {
            "valid": False,
            "message": f"Version {version} != {constraint['reference']}. Exact match required.",
        }

    return {"valid": True}


def describe_constraint(constraint: dict) -> str:
    """Human-readable form of a constraint, e.g. ``>=3.10, <4``."""
    ctype = constraint.get("type", "gte")
    if ctype == "range":
        return f">={constraint.get('minimum')}, <{constraint.get('below')}"
    if ctype == "exact":
        return f"=={constraint.get('reference')}"
    return f">={constraint.get('reference')}"
