"""Member-clean exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations

from typing import Iterable


class MemberCleanError(Exception):
    """Base exception for all member-clean failures."""


class MemberCleanConfigError(MemberCleanError):
    """Raised for invalid runtime configuration or pipeline settings."""


class MemberCleanIngestError(MemberCleanError):
    """Raised for source parsing and load failures."""


class MemberCleanTransformError(MemberCleanError):
    """Raised when a transform stage breaks its record contract."""


class MemberCleanStoreError(MemberCleanError):
    """Raised for record store and versioning failures."""


class MemberCleanConstraintError(MemberCleanError):
    """Raised in strict mode when records violate a hard constraint.

    Attributes:
        member_ids: Identities of the violating records.
    """

    def __init__(self, message: str, member_ids: Iterable[int]) -> None:
        super().__init__(message)
        self.member_ids = tuple(member_ids)
