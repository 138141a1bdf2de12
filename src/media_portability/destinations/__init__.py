"""Destination services media can be imported into."""

from media_portability.destinations.base import MediaCreation, MediaInterface
from media_portability.destinations.dry_run import DryRunMediaInterface
from media_portability.destinations.http import HttpMediaInterface

__all__ = [
    "MediaCreation",
    "MediaInterface",
    "DryRunMediaInterface",
    "HttpMediaInterface",
]
