"""Diagnostics for declarations before description synthesis."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from .describe.models import Declaration, StorageKind, SynthesisConfig
from .describe.synthesizer import (
    TypeResolver,
    is_eligible,
    member_description,
    resolve_alias,
)


@dataclass
class ValidationResult:
    """Results from declaration validation."""

    errors: list[str] = field(default_factory=list)  # CLI fails if non-empty
    warnings: list[str] = field(default_factory=list)  # Printed but allowed


def _where(decl: Declaration, line: int) -> str:
    if decl.source and line:
        return f"{decl.source}:{line}: "
    return ""


def validate_declaration(
    decl: Declaration,
    config: SynthesisConfig | None = None,
    strict: bool = False,
    resolve_type: TypeResolver | None = None,
) -> ValidationResult:
    """Report members the synthesizer will silently skip or leave bare.

    Checks:
    1. Members with attributes cannot be auto-described (warning)
    2. Eligible members left out of the tree (warning, error in strict mode).
       With nested synthesis, a member described by its type's structure
       counts as described.
    3. Alias entries that name no member (warning)
    4. Several members sharing an external name (warning)

    Args:
        decl: Declaration to check
        config: Synthesis flags the declaration will be built with
        strict: If True, undescribed members are errors instead of warnings
        resolve_type: Resolver the declaration will be built with

    Returns:
        ValidationResult with errors and warnings
    """
    config = config or SynthesisConfig()
    result = ValidationResult()
    owners: dict[str, list[str]] = {}

    for member in decl.members:
        where = _where(decl, member.line)
        if member.attribute_markers:
            result.warnings.append(
                f"{where}{decl.name}.{member.name}: has attributes "
                f"({', '.join(member.attribute_markers)}) and cannot be "
                "auto-described as stored or computed"
            )
            continue
        if not is_eligible(member):
            continue

        external = resolve_alias(member.name, decl.alias_table, config.use_aliases)
        if member_description(decl, member, config, resolve_type) is None:
            msg = f"{where}{decl.name}.{member.name}: no description"
            if strict:
                result.errors.append(msg)
            else:
                result.warnings.append(msg)
            continue
        owners.setdefault(external, []).append(member.name)

    if config.use_aliases and decl.alias_table is not None:
        declared = {m.name for m in decl.members}
        for name in decl.alias_table.entries:
            if name not in declared:
                result.warnings.append(
                    f"{decl.name}: alias for {name!r} matches no member"
                )

    for external, names in owners.items():
        if len(names) > 1:
            result.warnings.append(
                f"{decl.name}: members {', '.join(names)} share external name "
                f"{external!r}; {names[-1]} wins"
            )

    return result


def compute_coverage(
    declarations: list[Declaration],
    config: SynthesisConfig | None = None,
    resolve_type: TypeResolver | None = None,
) -> float:
    """Fraction of eligible members that get a description (0.0 - 1.0).

    Returns 1.0 when there are no eligible members.
    """
    config = config or SynthesisConfig()
    total = 0
    described = 0
    for decl in declarations:
        for member in decl.members:
            if not is_eligible(member):
                continue
            total += 1
            if member_description(decl, member, config, resolve_type) is not None:
                described += 1
    return described / total if total else 1.0


def count_computed(decl: Declaration) -> int:
    """Number of members skipped as computed (no attributes involved)."""
    return sum(
        1
        for m in decl.members
        if not m.attribute_markers and m.storage is StorageKind.COMPUTED
    )


def find_name_collisions(declarations: list[Declaration]) -> ValidationResult:
    """Warn about declarations that share a name.

    Generated artifacts key such declarations by identity, and nested
    resolution by name skips them.
    """
    result = ValidationResult()
    by_name: dict[str, list[Declaration]] = defaultdict(list)
    for decl in declarations:
        by_name[decl.name].append(decl)

    for name, decls in by_name.items():
        if len(decls) > 1:
            identities = ", ".join(decl.identity for decl in decls)
            result.warnings.append(
                f"{name}: declared {len(decls)} times ({identities}); "
                "keyed by identity"
            )
    return result
