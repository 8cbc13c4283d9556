from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence


@dataclass(frozen=True, slots=True)
class NormalizedArticle:
    """Canonical article model produced from one DBpia ``item``.

    Attributes:
        id: Stable identity (native id, DOI, or content fingerprint).
        title: Article title.
        authors: Author names in response order.
        year: Four-digit publication year if known.
        publisher: Publisher or journal name if known.
        url: Landing page URL.
        preview_url: Preview URL if provided.
        keywords: Keywords attached to the article.
        abstract: Abstract text; None when the upstream omits it.
        raw_json: Original item structure, kept for consumers that need
            fields the normalizer does not surface.
    """

    id: str
    title: str
    authors: Sequence[str] = ()
    year: Optional[str] = None
    publisher: Optional[str] = None
    url: Optional[str] = None
    preview_url: Optional[str] = None
    keywords: Sequence[str] = ()
    abstract: Optional[str] = None
    raw_json: Mapping[str, Any] = field(default_factory=dict)

    # raw_json is a mapping, so articles compare by value but are unhashable.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "authors", tuple(self.authors))
        object.__setattr__(self, "keywords", tuple(self.keywords))
        object.__setattr__(self, "raw_json", MappingProxyType(dict(self.raw_json)))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping of this article."""
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "year": self.year,
            "publisher": self.publisher,
            "url": self.url,
            "preview_url": self.preview_url,
            "keywords": list(self.keywords),
            "abstract": self.abstract,
            "raw_json": thaw(self.raw_json),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NormalizedArticle:
        """Rebuild an article from :meth:`to_dict` output."""
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            authors=tuple(data.get("authors") or ()),
            year=data.get("year"),
            publisher=data.get("publisher"),
            url=data.get("url"),
            preview_url=data.get("preview_url"),
            keywords=tuple(data.get("keywords") or ()),
            abstract=data.get("abstract"),
            raw_json=data.get("raw_json") or {},
        )


@dataclass(frozen=True, slots=True)
class ResponseStatus:
    """Status block returned by the API."""

    code: str
    message: str


@dataclass(frozen=True, slots=True)
class QueryMeta:
    """Response-level metadata.

    Attributes:
        total: Total hit count reported upstream.
        status: Upstream status block, if present.
    """

    total: Optional[int] = None
    status: Optional[ResponseStatus] = None


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Normalized response for one query.

    This is the exact value memoized by the query cache and returned on both
    cache hits and misses.
    """

    items: Sequence[NormalizedArticle]
    raw_json: Mapping[str, Any]
    meta: QueryMeta = QueryMeta()

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "raw_json", MappingProxyType(dict(self.raw_json)))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping of this result."""
        status = self.meta.status
        return {
            "items": [item.to_dict() for item in self.items],
            "raw_json": thaw(self.raw_json),
            "meta": {
                "total": self.meta.total,
                "status": {"code": status.code, "message": status.message} if status else None,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QueryResult:
        """Rebuild a result from :meth:`to_dict` output."""
        meta = data.get("meta") or {}
        status = meta.get("status")
        return cls(
            items=tuple(NormalizedArticle.from_dict(item) for item in data.get("items") or ()),
            raw_json=data.get("raw_json") or {},
            meta=QueryMeta(
                total=meta.get("total"),
                status=ResponseStatus(code=status["code"], message=status["message"]) if status else None,
            ),
        )


@dataclass(frozen=True, slots=True)
class CacheRecord:
    """One row of the query cache.

    Timestamps are UTC epoch seconds.
    """

    cache_key: str
    tool: str
    params_json: str
    result_json: str
    expires_at: int
    fetched_at: Optional[int] = None


def thaw(value: Any) -> Any:
    """Convert read-only mappings back to plain containers for JSON output."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value
