"""Port interfaces and raw result types for track source providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_jukebox.domain.shared.types import HttpUrlStr, NonEmptyStr


class SourceHint(Enum):
    """Which search backend a provider call should use."""

    YOUTUBE = "youtube"
    SOUNDCLOUD = "soundcloud"


# ── Raw hits ───────────────────────────────────────────────────────────


class ThumbnailRef(BaseModel):
    """One entry of a provider's thumbnail list, ordered smallest to largest."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _coerce_url(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v


class _RawHitBase(BaseModel):
    """Provider metadata before normalisation.

    Every descriptive field is optional because providers fill them
    inconsistently; the resolver decides which one wins.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: HttpUrlStr
    title: NonEmptyStr | None = None
    name: NonEmptyStr | None = None
    fulltitle: NonEmptyStr | None = None
    thumbnails: list[ThumbnailRef] = Field(default_factory=list)
    thumbnail: NonEmptyStr | None = None

    @field_validator("title", "name", "fulltitle", "thumbnail", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("thumbnails", mode="before")
    @classmethod
    def _coerce_thumbnails(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [t for t in v if isinstance(t, dict)]


class YouTubeHit(_RawHitBase):
    kind: Literal["youtube"] = "youtube"


class SoundCloudHit(_RawHitBase):
    kind: Literal["soundcloud"] = "soundcloud"


class GenericHit(_RawHitBase):
    """A hit from a site-specific extractor other than YouTube or SoundCloud."""

    kind: Literal["generic"] = "generic"
    extractor: NonEmptyStr


RawHit = Annotated[YouTubeHit | SoundCloudHit | GenericHit, Field(discriminator="kind")]


class AggregatorTrack(BaseModel):
    """Canonical metadata fetched from a playlist/track-sharing service."""

    model_config = ConfigDict(frozen=True)

    name: NonEmptyStr
    artists: list[NonEmptyStr] = Field(default_factory=list)

    @property
    def primary_artist(self) -> str | None:
        return self.artists[0] if self.artists else None


# ── Ports ──────────────────────────────────────────────────────────────


class TrackSourceProvider(ABC):
    """Search and lookup backend for audio content.

    Implementations may raise on network or extractor errors; callers are
    expected to treat a raised error as "no results from this provider".
    """

    @abstractmethod
    async def search(self, text: str, source: SourceHint, limit: int) -> list[RawHit]:
        """Return up to ``limit`` hits for free text, best match first."""
        ...

    @abstractmethod
    async def direct_lookup(self, url: str) -> RawHit | None:
        """Resolve a SoundCloud-style link directly, or None if not handled."""
        ...

    @abstractmethod
    async def basic_info(self, url: str) -> RawHit | None:
        """Probe any URL with site-specific extractors, or None if none matched."""
        ...


class AggregatorProvider(ABC):
    """Metadata-only service whose links must be re-searched on a primary provider."""

    @property
    @abstractmethod
    def source_label(self) -> str:
        """Provenance label for tracks found through this provider, e.g. "Spotify → YouTube"."""
        ...

    @abstractmethod
    def matches(self, query: str) -> bool:
        """Whether ``query`` contains a link this provider understands."""
        ...

    @abstractmethod
    async def lookup(self, query: str) -> AggregatorTrack | None:
        """Fetch the track (or first track of a collection) behind the link."""
        ...
