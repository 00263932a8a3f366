"""Ordered-probe field extraction for loosely specified upstream payloads.

Upstream services do not name their fields consistently across deployments.
Each logical field is declared once as a ``FieldSpec`` listing its candidate
key paths in priority order; the first present, non-null value wins.
"""

import copy
from dataclasses import dataclass
from typing import Any, Mapping, Optional

_MISSING = object()


@dataclass(frozen=True)
class FieldSpec:
    """A logical field and the key paths it may appear under.

    Attributes:
        name: Logical field name
        paths: Dotted key paths, probed in order ("estimated_amount.amount_out")
        default: Value used when no path matches (copied, so lists are safe)
    """

    name: str
    paths: tuple[str, ...]
    default: Any = None


def _lookup(data: Any, path: str) -> Any:
    current = data
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def probe(data: Any, paths: tuple[str, ...], default: Any = None) -> Any:
    """Return the first present, non-null value among ``paths``."""
    for path in paths:
        value = _lookup(data, path)
        if value is not _MISSING and value is not None:
            return value
    return copy.copy(default)


def extract(data: Any, field_spec: FieldSpec) -> Any:
    """Extract a single logical field. Never raises."""
    return probe(data, field_spec.paths, field_spec.default)


def extract_all(data: Any, table: tuple[FieldSpec, ...]) -> dict[str, Any]:
    """Extract every field of a probe table into a flat dict."""
    return {field_spec.name: extract(data, field_spec) for field_spec in table}


def matched_path(data: Any, field_spec: FieldSpec) -> Optional[str]:
    """Return the path that satisfied ``field_spec``, or None (for diagnostics)."""
    for path in field_spec.paths:
        value = _lookup(data, path)
        if value is not _MISSING and value is not None:
            return path
    return None
