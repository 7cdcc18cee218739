"""
Decoding of the vendor's package listing response.

The listing endpoint has answered with either {"packages": [...]} or
{"results": [...]}. The decode step makes the variant explicit instead of
probing for fields at every call site.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

ListingSource = Literal["packages", "results", "empty"]


@dataclass
class PackageListing:
    """Decoded listing: which field carried the packages, and the packages."""

    source: ListingSource
    packages: list[dict] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when the response carried neither known array."""
        return self.source == "empty"


def decode_package_listing(payload: Any) -> PackageListing:
    """
    Decode a listing response.

    Tries "packages" first, then "results". Anything else, including a
    non-dict payload, decodes to an empty listing.
    """
    if isinstance(payload, dict):
        if isinstance(payload.get("packages"), list):
            return PackageListing("packages", _only_dicts(payload["packages"]))
        if isinstance(payload.get("results"), list):
            return PackageListing("results", _only_dicts(payload["results"]))

    logger.warning(
        "Listing response had no packages or results array (keys: %s)",
        ", ".join(sorted(payload)) if isinstance(payload, dict) else type(payload).__name__,
    )
    return PackageListing("empty")


def _only_dicts(items: list) -> list[dict]:
    packages = [item for item in items if isinstance(item, dict)]
    if len(packages) != len(items):
        logger.warning("Skipped %d non-object entries in listing", len(items) - len(packages))
    return packages
