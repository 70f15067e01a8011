"""
Secure Links Domain

Opaque, self-verifying indirection links to stored objects, with expiry,
access-count limits and periodic cleanup.
"""

from .codec import SecurePathCodec, to_base36
from .entities import SecureUrlMapping, utc_now
from .repositories import SecureUrlMappingRepository
from .services import SecureUrlRegistry
from .sweeper import PeriodicSweeper
from .value_objects import (
    ConsumeOutcome,
    ConsumeResult,
    LinkClass,
    MappingStats,
    MappingSummary,
    ResolutionFailure,
    ResolutionResult,
    ResolvedLocation,
    SecurePath,
)

__all__ = [
    "SecurePathCodec",
    "to_base36",
    "SecureUrlMapping",
    "utc_now",
    "SecureUrlMappingRepository",
    "SecureUrlRegistry",
    "PeriodicSweeper",
    "ConsumeOutcome",
    "ConsumeResult",
    "LinkClass",
    "MappingStats",
    "MappingSummary",
    "ResolutionFailure",
    "ResolutionResult",
    "ResolvedLocation",
    "SecurePath",
]
