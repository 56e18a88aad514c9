"""Canonical Pydantic models shared across all pokecatalog modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Wire models** -- the as-received JSON shapes of the catalog API, with the
API's snake_case field names:
    :class:`NamedResourceRef`, :class:`ListResponse`, :class:`Sprites`,
    :class:`TypeSlot`, :class:`AbilitySlot`, :class:`StatEntry`,
    :class:`Cries`, and :class:`DetailRecord`.

**Domain models** -- the normalized, UI-agnostic representation:
    :class:`Pokemon` and :class:`CacheSnapshot`. Their JSON form uses the
    camelCase names of the persisted cache file (``displayName``,
    ``imageUrl``, ``totalCount``).

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`CatalogConfig`.

All models use Pydantic v2. Wire models ignore unknown keys so that
upstream additions never break decoding.
"""

from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, computed_field, field_validator

SPRITE_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/{number}.png"
)

_WORD_SEPARATOR = re.compile(r"([\s-]+)")


def capitalize_name(name: str) -> str:
    """Capitalize every hyphen- or space-separated word of a catalog slug.

    Example::

        >>> capitalize_name("mr-mime")
        'Mr-Mime'
    """
    return "".join(
        part if _WORD_SEPARATOR.fullmatch(part) else part.capitalize()
        for part in _WORD_SEPARATOR.split(name)
    )


def parse_resource_number(url: str) -> Optional[int]:
    """Parse the numeric id from the last path segment of a resource URL.

    A trailing slash is ignored, so ``.../pokemon/7`` and ``.../pokemon/7/``
    both yield ``7``. Returns ``None`` when the segment is not a positive
    integer.
    """
    segment = urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]
    if not (segment.isascii() and segment.isdigit()):
        return None
    number = int(segment)
    return number if number > 0 else None


def sprite_url(number: Optional[int]) -> Optional[str]:
    """Derive the artwork URL for a catalog number, or ``None`` without one."""
    if number is None:
        return None
    return SPRITE_URL_TEMPLATE.format(number=number)


# --- Wire models ---


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class NamedResource(_WireModel):
    """A nested ``{name, url?}`` resource (type, ability, stat, species)."""

    name: str
    url: Optional[str] = None


class NamedResourceRef(_WireModel):
    """One entry of a list page. Both ``name`` and ``url`` are required."""

    name: str
    url: str

    @property
    def number(self) -> Optional[int]:
        return parse_resource_number(self.url)


class ListResponse(_WireModel):
    """One page of ``GET /{collection}?limit=&offset=``."""

    count: int
    next: Optional[str] = None
    previous: Optional[str] = None
    results: list[NamedResourceRef]


class Sprites(_WireModel):
    front_default: Optional[str] = None
    back_default: Optional[str] = None


class TypeSlot(_WireModel):
    slot: Optional[int] = None
    type: NamedResource


class AbilitySlot(_WireModel):
    is_hidden: Optional[bool] = None
    slot: Optional[int] = None
    ability: NamedResource


class StatEntry(_WireModel):
    base_stat: int
    effort: Optional[int] = None
    stat: NamedResource


class Cries(_WireModel):
    latest: Optional[str] = None
    legacy: Optional[str] = None


class DetailRecord(_WireModel):
    """A full catalog entry from ``GET /{collection}/{idOrName}``.

    Returned as-is by :meth:`~pokecatalog.repository.CatalogRepository.fetch_detail`
    and reduced to a :class:`Pokemon` by the search lookup.
    """

    id: int
    name: str
    sprites: Sprites
    types: list[TypeSlot]
    height: int
    weight: int
    base_experience: Optional[int] = None
    order: Optional[int] = None
    is_default: Optional[bool] = None
    species: Optional[NamedResource] = None
    abilities: list[AbilitySlot]
    stats: list[StatEntry]
    cries: Optional[Cries] = None

    @property
    def type_names(self) -> list[str]:
        return [slot.type.name for slot in self.types]

    @property
    def artwork_url(self) -> Optional[str]:
        return self.sprites.front_default or self.sprites.back_default

    def summary(self) -> dict[str, Any]:
        """Condensed, display-ready view used by ``pokecatalog show``.

        Height and weight arrive in decimetres and hectograms and are
        converted to metres and kilograms. Stats keep the server's order.
        """
        return {
            "id": self.id,
            "name": capitalize_name(self.name),
            "image": self.artwork_url,
            "types": [capitalize_name(name) for name in self.type_names],
            "height_m": self.height / 10,
            "weight_kg": self.weight / 10,
            "abilities": [slot.ability.name for slot in self.abilities],
            "stats": {entry.stat.name: entry.base_stat for entry in self.stats},
        }


# --- Domain models ---


class Pokemon(BaseModel):
    """The normalized catalog entry used throughout the core.

    ``id`` is the catalog slug and is only unique within one fetched page;
    nothing deduplicates across pages. ``image_url`` is computed from
    ``number`` and is therefore identical for any two records sharing a
    number. Records are frozen and shared between the page store and its
    readers.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    display_name: str = Field(alias="displayName")
    number: Optional[PositiveInt] = None
    categories: tuple[str, ...] = ()

    @computed_field(alias="imageUrl")  # type: ignore[prop-decorator]
    @property
    def image_url(self) -> Optional[str]:
        return sprite_url(self.number)

    @classmethod
    def from_ref(cls, ref: NamedResourceRef) -> Pokemon:
        """Map a list-result reference; list lookups never carry categories."""
        return cls(id=ref.name, display_name=capitalize_name(ref.name), number=ref.number)

    @classmethod
    def from_detail(cls, detail: DetailRecord) -> Pokemon:
        """Map a detail record, keeping its type names as categories."""
        return cls(
            id=detail.name,
            display_name=capitalize_name(detail.name),
            number=detail.id if detail.id > 0 else None,
            categories=detail.type_names,
        )


class CacheSnapshot(BaseModel):
    """Full state of the page store: pages keyed by offset plus the known total.

    Serialised as ``{"totalCount": ..., "pages": {"<offset>": [...]}}``;
    offset keys become JSON strings and are parsed back to integers on load.
    """

    model_config = ConfigDict(populate_by_name=True)

    total_count: Optional[int] = Field(default=None, alias="totalCount")
    pages: dict[int, list[Pokemon]] = Field(default_factory=dict)

    def all_items(self) -> list[Pokemon]:
        """Every record, by ascending offset then within-page order."""
        items: list[Pokemon] = []
        for offset in sorted(self.pages):
            items.extend(self.pages[offset])
        return items

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2) + "\n"


# --- Configuration ---


class CatalogConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/pokecatalog/config.json``.

    Loaded and saved by :func:`~pokecatalog.config.load_config` and
    :func:`~pokecatalog.config.save_config`. Environment variables and CLI
    flags override these values; see :func:`~pokecatalog.config.resolve_config`.
    """

    base_url: str = Field(
        default="https://pokeapi.co/api/v2", description="Catalog API base URL"
    )
    collection: str = Field(default="pokemon", description="Listed collection path")
    page_size: int = Field(default=50, gt=0, description="Default page size for list")
    search_seed_page_size: int = Field(
        default=100,
        gt=0,
        description="Page size used to seed an empty cache before a local search scan",
    )
    cache_enabled: bool = Field(default=True, description="Persist fetched pages to disk")
    cache_file: Optional[str] = Field(
        default=None, description="Explicit cache file path (defaults to the XDG cache dir)"
    )

    @field_validator("collection")
    @classmethod
    def _strip_collection(cls, value: str) -> str:
        return value.strip("/")
