"""Derive the canonical equipment tag of a row."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .field_map import lookup
from .validators import validate_identifier

logger = logging.getLogger(__name__)

SYNTHETIC_TAG_PREFIX = "AUTO-"


@dataclass(frozen=True)
class TagComponents:
    area: Optional[str]
    type: Optional[str]
    number: Optional[str]

    @property
    def complete(self) -> bool:
        return bool(self.area and self.type and self.number)

    def as_dict(self) -> dict:
        return {"area": self.area, "type": self.type, "number": self.number}


@dataclass(frozen=True)
class ResolvedTag:
    value: str
    source: str  # "field", "envelope", "components" or "synthetic"
    components: TagComponents

    @property
    def synthetic(self) -> bool:
        return self.source == "synthetic"


def is_synthetic_tag(tag: Optional[str]) -> bool:
    return bool(tag) and str(tag).startswith(SYNTHETIC_TAG_PREFIX)


def tag_components(data: Mapping[str, Any]) -> TagComponents:
    return TagComponents(
        area=validate_identifier(lookup(data, "area")),
        type=validate_identifier(lookup(data, "tag_type")),
        number=validate_identifier(lookup(data, "tag_number")),
    )


def synthetic_tag(row_number: Any = None) -> str:
    if row_number is None or row_number == "" or row_number == 0:
        return f"{SYNTHETIC_TAG_PREFIX}{int(time.time() * 1000)}"
    return f"{SYNTHETIC_TAG_PREFIX}{row_number}"


def resolve_tag(
    data: Mapping[str, Any],
    fallback_tag: Any = None,
    row_number: Any = None,
) -> ResolvedTag:
    """Resolve a row's tag; never returns an empty tag.

    Order: explicit tag field, the envelope's fallback tag, then the
    area-type-number composition which overrides both when all three parts
    are present. Rows with none of these get a synthetic ``AUTO-`` tag.
    """
    components = tag_components(data)

    if components.complete:
        tag = f"{components.area}-{components.type}-{components.number}"
        logger.debug("Tag built from components: %s", tag)
        return ResolvedTag(tag, "components", components)

    explicit = validate_identifier(lookup(data, "tag"))
    if explicit:
        return ResolvedTag(explicit, "field", components)

    envelope = validate_identifier(fallback_tag)
    if envelope:
        return ResolvedTag(envelope, "envelope", components)

    tag = synthetic_tag(row_number)
    logger.info("Row %s has no tag, generated %s", row_number, tag)
    return ResolvedTag(tag, "synthetic", components)
