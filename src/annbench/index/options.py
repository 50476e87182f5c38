from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConfigurationError(ValueError):
    """Invalid index configuration; raised before any index is built."""


class InsertMethod(str, Enum):
    LINK_NEAREST = "link_nearest"
    LINK_DIVERSE = "link_diverse"


class RemoveMethod(str, Enum):
    NO_LINK = "no_link"
    COMPENSATE_INCOMING_LINKS = "compensate_incoming_links"


@dataclass
class IndexOptions:
    """
    Engine construction options. `None` means "not set": the field is not
    forwarded and the engine keeps its own default.
    """
    max_links: Optional[int] = None
    ef_construction: Optional[int] = None
    insert_method: Optional[InsertMethod] = None
    remove_method: Optional[RemoveMethod] = None


def parse_insert_method(value: Optional[str]) -> Optional[InsertMethod]:
    if not value:
        return None
    try:
        return InsertMethod(value)
    except ValueError:
        raise ConfigurationError(f"make_index: unknown insert method: {value}") from None


def parse_remove_method(value: Optional[str]) -> Optional[RemoveMethod]:
    if not value:
        return None
    try:
        return RemoveMethod(value)
    except ValueError:
        raise ConfigurationError(f"make_index: unknown remove method: {value}") from None
