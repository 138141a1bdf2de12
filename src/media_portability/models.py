"""Data models for the media import core."""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

ALBUMS_COUNT = "albumsCount"
PHOTOS_COUNT = "photosCount"
VIDEOS_COUNT = "videosCount"
ITEMS_CREATED = "itemsCreated"


class Category(str, Enum):
    """The kinds of items handled by the importer."""

    ALBUM = "album"
    PHOTO = "photo"
    VIDEO = "video"

    @property
    def count_key(self) -> str:
        """Key under which this category is counted in an ImportResult."""
        return _COUNT_KEYS[self]


_COUNT_KEYS = {
    Category.ALBUM: ALBUMS_COUNT,
    Category.PHOTO: PHOTOS_COUNT,
    Category.VIDEO: VIDEOS_COUNT,
}


class ImportStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


def _frozen_counts(counts: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(counts))


@dataclass(frozen=True)
class AuthContext:
    """Opaque destination credentials: an access token and a service URL."""

    access_token: str
    url: str

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("Destination URL cannot be empty")

    def __repr__(self) -> str:
        return f"AuthContext(url={self.url!r}, access_token='***')"


@dataclass(frozen=True)
class Album:
    """An album to create at the destination."""

    idempotent_key: str
    title: str
    description: str | None = None

    category = Category.ALBUM

    def __post_init__(self) -> None:
        """Validate album data."""
        if not self.idempotent_key:
            raise ValueError("Album idempotent key cannot be empty")

    @property
    def display_name(self) -> str:
        return self.title or self.idempotent_key


@dataclass(frozen=True)
class MediaItem:
    """A photo or video to create at the destination.

    ``album_key`` is the idempotent key of the album the item belongs to,
    or None for items outside any album.
    """

    idempotent_key: str
    title: str = ""
    album_key: str | None = None
    size_bytes: int = 0
    mime_type: str | None = None
    source_url: str | None = None
    description: str | None = None

    category = Category.PHOTO

    def __post_init__(self) -> None:
        """Validate media item data."""
        if not self.idempotent_key:
            raise ValueError("Media item idempotent key cannot be empty")
        if self.size_bytes < 0:
            raise ValueError("Media item size cannot be negative")

    @property
    def display_name(self) -> str:
        return self.title or self.idempotent_key


@dataclass(frozen=True)
class Photo(MediaItem):
    category = Category.PHOTO


@dataclass(frozen=True)
class Video(MediaItem):
    category = Category.VIDEO


@dataclass(frozen=True)
class MediaContainer:
    """The batch of items submitted for one job."""

    albums: tuple[Album, ...] = ()
    photos: tuple[Photo, ...] = ()
    videos: tuple[Video, ...] = ()

    def __post_init__(self) -> None:
        # Accept any iterable but store tuples so the batch stays immutable
        object.__setattr__(self, "albums", tuple(self.albums))
        object.__setattr__(self, "photos", tuple(self.photos))
        object.__setattr__(self, "videos", tuple(self.videos))

    @property
    def is_empty(self) -> bool:
        return not (self.albums or self.photos or self.videos)


@dataclass(frozen=True)
class ImportJob:
    """One import request: the job, its destination credentials and its data."""

    job_id: str
    auth: AuthContext
    data: MediaContainer | None = None

    def __post_init__(self) -> None:
        if not self.job_id:
            raise ValueError("Job id cannot be empty")


@dataclass(frozen=True)
class ErrorRecord:
    """A single item that failed to import."""

    idempotent_key: str
    display_name: str
    failure_description: str
    can_skip: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "idempotent_key": self.idempotent_key,
            "display_name": self.display_name,
            "failure_description": self.failure_description,
            "can_skip": self.can_skip,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ErrorRecord":
        return cls(
            idempotent_key=data["idempotent_key"],
            display_name=data["display_name"],
            failure_description=data["failure_description"],
            can_skip=bool(data["can_skip"]),
        )


@dataclass(frozen=True)
class CategoryResult:
    """Outcome of importing one category of items.

    ``destination_ids`` maps every key resolved during the call to its
    destination id, whether the item was created now or by an earlier
    attempt. ``counts`` only reflects items created now.
    """

    category: Category
    counts: Mapping[str, int] = field(default_factory=dict)
    bytes: int = 0
    destination_ids: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.bytes < 0:
            raise ValueError("Byte count cannot be negative")
        object.__setattr__(self, "counts", _frozen_counts(self.counts))
        object.__setattr__(
            self, "destination_ids", MappingProxyType(dict(self.destination_ids))
        )

    @property
    def items_created(self) -> int:
        return self.counts.get(ITEMS_CREATED, 0)


@dataclass(frozen=True)
class ImportResult:
    """Aggregated result of one import call."""

    status: ImportStatus = ImportStatus.OK
    counts: Mapping[str, int] = field(
        default_factory=lambda: {ALBUMS_COUNT: 0, PHOTOS_COUNT: 0, VIDEOS_COUNT: 0}
    )
    bytes: int = 0
    errors: tuple[ErrorRecord, ...] = ()
    failure: str | None = None

    def __post_init__(self) -> None:
        """Validate import result."""
        if self.bytes < 0:
            raise ValueError("Byte count cannot be negative")
        if self.status is ImportStatus.ERROR and not self.failure:
            raise ValueError("Failed import must have a failure message")
        object.__setattr__(self, "counts", _frozen_counts(self.counts))
        object.__setattr__(self, "errors", tuple(self.errors))

    @classmethod
    def ok(cls) -> "ImportResult":
        return cls()

    @property
    def is_ok(self) -> bool:
        return self.status is ImportStatus.OK

    def copy_with_bytes(self, total: int) -> "ImportResult":
        return replace(self, bytes=total)

    def copy_with_counts(self, counts: Mapping[str, int]) -> "ImportResult":
        return replace(self, counts=counts)

    def copy_with_errors(self, errors: tuple[ErrorRecord, ...]) -> "ImportResult":
        return replace(self, errors=errors)

    def copy_with_failure(self, failure: str) -> "ImportResult":
        return replace(self, status=ImportStatus.ERROR, failure=failure)
