"""Error taxonomy shared by every planning component.

Each failure is described by a `Violation` so callers can report problems
in bulk. Components that stop on a failure raise a `NetworkError` subclass
carrying the violation(s); the planning facade turns those back into
structured results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence


class ErrorKind(str, Enum):
    """Kinds of planning failures."""

    INVALID_CIDR = "InvalidCidr"
    OVERLAPPING_SUBNETS = "OverlappingSubnets"
    INSUFFICIENT_ADDRESS_SPACE = "InsufficientAddressSpace"
    INDEX_OUT_OF_RANGE = "IndexOutOfRange"
    DISJOINTNESS_VIOLATION = "DisjointnessViolation"
    MISSING_NAT_ANCHOR = "MissingNatAnchor"
    INVALID_NAME = "InvalidName"
    UNSUPPORTED_FEATURE = "UnsupportedFeature"
    DEPENDENCY_CYCLE = "DependencyCycle"
    INCOMPLETE_TOPOLOGY = "IncompleteTopology"


FATAL_KINDS = frozenset({ErrorKind.DEPENDENCY_CYCLE, ErrorKind.INCOMPLETE_TOPOLOGY})


@dataclass(frozen=True)
class Violation:
    """A single problem found while validating or planning."""

    kind: ErrorKind
    message: str
    field: Optional[str] = None

    @property
    def is_fatal(self) -> bool:
        return self.kind in FATAL_KINDS

    def __str__(self) -> str:
        if self.field:
            return f"{self.kind.value} at '{self.field}': {self.message}"
        return f"{self.kind.value}: {self.message}"


class NetworkError(Exception):
    """Base class for planning failures."""

    kind: ErrorKind = ErrorKind.INCOMPLETE_TOPOLOGY

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        violations: Optional[Sequence[Violation]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        if violations:
            self.violations: List[Violation] = list(violations)
        else:
            self.violations = [Violation(self.kind, message, field)]

    @property
    def is_fatal(self) -> bool:
        return self.kind in FATAL_KINDS


class InvalidCidrError(NetworkError):
    kind = ErrorKind.INVALID_CIDR


class OverlappingSubnetsError(NetworkError):
    kind = ErrorKind.OVERLAPPING_SUBNETS


class InsufficientAddressSpaceError(NetworkError):
    kind = ErrorKind.INSUFFICIENT_ADDRESS_SPACE


class IntentValidationError(NetworkError):
    """Raised with the full list of violations when an intent is rejected."""

    kind = ErrorKind.INDEX_OUT_OF_RANGE

    def __init__(self, violations: Sequence[Violation]) -> None:
        summary = "; ".join(str(v) for v in violations) or "invalid network intent"
        super().__init__(summary, violations=violations)


class InvalidNameError(NetworkError):
    kind = ErrorKind.INVALID_NAME


class UnsupportedFeatureError(NetworkError):
    kind = ErrorKind.UNSUPPORTED_FEATURE


class DependencyCycleError(NetworkError):
    kind = ErrorKind.DEPENDENCY_CYCLE


class IncompleteTopologyError(NetworkError):
    kind = ErrorKind.INCOMPLETE_TOPOLOGY


def violations_of(kind: ErrorKind, violations: Iterable[Violation]) -> List[Violation]:
    """Filter violations by kind."""
    return [violation for violation in violations if violation.kind == kind]
