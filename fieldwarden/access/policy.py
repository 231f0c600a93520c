"""
Permission Policy - Field filtering decisions.

Given the fields a caller asked for and the fields the actor may touch,
decide which fields are applied:
- ALL_OR_NONE: the first disallowed field, in caller order, rejects the call
- BEST_EFFORT: disallowed fields are dropped
"""

from typing import Iterable, List, Optional, AbstractSet, Tuple
from dataclasses import dataclass

from fieldwarden.core.exceptions import AccessViolationError
from fieldwarden.schema.types import (
    AccessViolation,
    OperationMode,
    PermissionKind,
    ViolationKind,
    normalize_field_name,
)


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of a filtering pass."""

    approved: Tuple[str, ...] = ()
    dropped: Tuple[str, ...] = ()
    rejected_field: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.rejected_field is None


class PermissionPolicy:
    """Stateless filtering rules for both operation modes."""

    @staticmethod
    def apply(
        requested: Iterable[str],
        allowed: AbstractSet[str],
        mode: OperationMode
    ) -> PolicyDecision:
        """
        Filter requested field names against an allowed set.

        Requested names are normalized and de-duplicated, keeping the first
        occurrence, so iteration follows the caller's order.

        Args:
            requested: Field names the caller wants to act on
            allowed: Normalized field names the actor holds the permission for
            mode: Filtering policy

        Returns:
            PolicyDecision with the approved names, or the rejected field
        """
        mode = OperationMode(mode)
        approved: List[str] = []
        dropped: List[str] = []
        seen = set()

        for name in requested:
            name = normalize_field_name(name)
            if name in seen:
                continue
            seen.add(name)

            if name in allowed:
                approved.append(name)
            elif mode == OperationMode.ALL_OR_NONE:
                return PolicyDecision(rejected_field=name)
            else:
                dropped.append(name)

        return PolicyDecision(approved=tuple(approved), dropped=tuple(dropped))

    @classmethod
    def enforce(
        cls,
        requested: Iterable[str],
        allowed: AbstractSet[str],
        mode: OperationMode,
        record_type: str,
        permission: PermissionKind
    ) -> PolicyDecision:
        """
        Apply the policy and raise on rejection.

        Raises:
            AccessViolationError: Field-level violation naming the rejected field
        """
        decision = cls.apply(requested, allowed, mode)
        if not decision.allowed:
            raise AccessViolationError(
                AccessViolation(
                    kind=ViolationKind.FIELD_LEVEL,
                    permission=permission,
                    record_type=record_type,
                    field=decision.rejected_field,
                )
            )
        return decision
