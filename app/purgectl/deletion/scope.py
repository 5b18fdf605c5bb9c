"""Scope resolution for deletion runs.

Turns the mount path, tenant identifiers, and exclusion patterns of a
RunConfig into concrete root directories and an eligibility predicate.
"""

import fnmatch
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePath

from purgectl.core.config import ALL_TENANTS, RunConfig
from purgectl.deletion.errors import InvalidScopeError

logger = logging.getLogger(__name__)

EligiblePredicate = Callable[[Path], bool]


@dataclass(frozen=True, slots=True)
class Scope:
    """Resolved scope of a deletion run.

    Attributes:
        mount_root: Resolved mount root; nothing outside it is touched.
        roots: Directories whose contents are deletion candidates, in order.
            The roots themselves are never deleted.
        eligible: Predicate deciding whether a discovered path may be deleted.
    """

    mount_root: Path
    roots: tuple[Path, ...]
    eligible: EligiblePredicate


def make_eligible(patterns: Sequence[str]) -> EligiblePredicate:
    """Build an eligibility predicate from exclusion patterns.

    Patterns are glob-style and matched case-sensitively against the base
    name only, the same way ``find ! -name '*.log'`` behaves.

    Args:
        patterns: Exclusion patterns, evaluated in order.

    Returns:
        Predicate returning False for paths matching any pattern.
    """
    compiled = tuple(patterns)

    def eligible(path: Path) -> bool:
        name = path.name
        return not any(fnmatch.fnmatchcase(name, pattern) for pattern in compiled)

    return eligible


def resolve(config: RunConfig) -> Scope:
    """Resolve the configured scope into root paths and an eligibility predicate.

    Args:
        config: Run configuration.

    Returns:
        Resolved Scope.

    Raises:
        InvalidScopeError: If the mount root is missing, a tenant identifier
            would escape the mount root, or a tenant directory does not exist.
    """
    mount = Path(config.mount_path)
    if not mount.is_dir():
        msg = f"Mount path is not an existing directory: {mount}"
        raise InvalidScopeError(msg)
    mount_root = mount.resolve()

    if not config.tenants:
        roots: tuple[Path, ...] = (mount_root,)
    elif ALL_TENANTS in config.tenants:
        if len(config.tenants) > 1:
            msg = f"'{ALL_TENANTS}' cannot be combined with explicit tenants"
            raise InvalidScopeError(msg)
        roots = _list_tenant_roots(mount_root)
    else:
        resolved: list[Path] = []
        for tenant in config.tenants:
            root = _resolve_tenant(mount_root, tenant)
            if root not in resolved:
                resolved.append(root)
        roots = tuple(resolved)

    logger.debug("Resolved scope %s to %d root(s)", config.scope_label, len(roots))
    return Scope(mount_root=mount_root, roots=roots, eligible=make_eligible(config.exclude))


def _resolve_tenant(mount_root: Path, tenant: str) -> Path:
    """Join a tenant identifier onto the mount root, rejecting escapes."""
    if not tenant or not tenant.strip():
        msg = "Tenant identifier cannot be empty"
        raise InvalidScopeError(msg)
    if "\x00" in tenant:
        msg = "Tenant identifier contains a NUL byte"
        raise InvalidScopeError(msg)

    segment = PurePath(tenant)
    if segment.is_absolute() or ".." in segment.parts:
        msg = f"Tenant identifier escapes the mount root: {tenant!r}"
        raise InvalidScopeError(msg)

    candidate = mount_root / segment
    # resolve() follows symlinks, so a tenant directory linking elsewhere is caught here
    resolved = candidate.resolve()
    if not resolved.is_relative_to(mount_root) or resolved == mount_root:
        msg = f"Tenant identifier escapes the mount root: {tenant!r}"
        raise InvalidScopeError(msg)
    if not resolved.is_dir():
        msg = f"Tenant directory does not exist: {candidate}"
        raise InvalidScopeError(msg)
    return resolved


def _list_tenant_roots(mount_root: Path) -> tuple[Path, ...]:
    """List every real tenant directory directly under the mount root."""
    try:
        children = sorted(mount_root.iterdir())
    except OSError as e:
        msg = f"Cannot list mount root {mount_root}: {e}"
        raise InvalidScopeError(msg) from e
    return tuple(c for c in children if c.is_dir() and not c.is_symlink())
