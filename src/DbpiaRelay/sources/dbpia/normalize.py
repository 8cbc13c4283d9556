"""DBpia response normalizer.

Maps the parsed XML tree into :class:`QueryResult` values with stable ids.
"""

from __future__ import annotations

import hashlib
import re
from typing import Any, Mapping, Sequence

from DbpiaRelay.core.models import NormalizedArticle, QueryMeta, QueryResult, ResponseStatus
from DbpiaRelay.sources.dbpia.parser import TEXT_KEY

_YEAR_RE = re.compile(r"(19|20)\d{2}")
_STABLE_ID_LENGTH = 16


def normalize_response(tree: Mapping[str, Any], target: str) -> QueryResult:
    """Normalize a parsed DBpia response.

    Args:
        tree: Output of :func:`parse_xml`.
        target: DBpia target the request was issued against. All targets share
            the ``root/result/items/item`` layout, so it is informational only.

    Returns:
        Normalized query result.
    """
    del target
    root = _as_mapping(tree.get("root"))
    result = _as_mapping(root.get("result"))
    raw_items = _as_list(_as_mapping(result.get("items")).get("item"))

    items = tuple(normalize_item(item) for item in raw_items if isinstance(item, Mapping))
    return QueryResult(
        items=items,
        raw_json=tree,
        meta=QueryMeta(total=_parse_total(result.get("total")), status=_parse_status(root.get("status"))),
    )


def normalize_item(item: Mapping[str, Any]) -> NormalizedArticle:
    """Normalize one raw ``item`` mapping into an article."""
    title = _safe_str(item.get("title"))
    authors = _extract_authors(item.get("authors"))
    year = _extract_year(item)
    publisher = _extract_publisher(item.get("publisher"))

    return NormalizedArticle(
        id=compute_stable_id(item, title=title, authors=authors, year=year, publisher=publisher),
        title=title,
        authors=authors,
        year=year,
        publisher=publisher,
        url=_safe_str(item.get("link")) or None,
        preview_url=_safe_str(item.get("preview_url")) or None,
        keywords=_extract_keywords(item.get("keywords")),
        abstract=_safe_str(item.get("abstract")) or None,
        raw_json=item,
    )


def compute_stable_id(
    raw: Mapping[str, Any],
    *,
    title: str = "",
    authors: Sequence[str] = (),
    year: str | None = None,
    publisher: str | None = None,
) -> str:
    """Derive the stable identity of an article.

    Native ``id`` wins, then ``doi``; otherwise the first 16 hex characters of
    ``sha256("title|authors|year|publisher")`` with authors joined by commas.

    Args:
        raw: Raw item mapping.
        title: Normalized title.
        authors: Normalized author names.
        year: Normalized year.
        publisher: Normalized publisher.

    Returns:
        Stable id string.
    """
    native_id = _safe_str(raw.get("id"))
    if native_id:
        return native_id
    doi = _safe_str(raw.get("doi"))
    if doi:
        return doi

    seed = f"{title}|{','.join(authors)}|{year or ''}|{publisher or ''}"
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:_STABLE_ID_LENGTH]


def _extract_authors(raw_authors: Any) -> tuple[str, ...]:
    """Flatten ``authors.author`` entries into display names."""
    if isinstance(raw_authors, Mapping):
        entries = _as_list(raw_authors.get("author"))
    else:
        entries = _as_list(raw_authors)

    names: list[str] = []
    for entry in entries:
        if isinstance(entry, Mapping):
            name = _safe_str(entry.get("name")) or _safe_str(entry.get(TEXT_KEY))
        else:
            name = _safe_str(entry)
        if name:
            names.append(name)
    return tuple(names)


def _extract_publisher(raw_publisher: Any) -> str | None:
    """Read publisher from a plain string or a mapping with ``name``."""
    if isinstance(raw_publisher, Mapping):
        return _safe_str(raw_publisher.get("name")) or _safe_str(raw_publisher.get(TEXT_KEY)) or None
    return _safe_str(raw_publisher) or None


def _extract_year(item: Mapping[str, Any]) -> str | None:
    """Extract year from ``pub_date`` or from an issue ``yymm`` field."""
    pub_date = _safe_str(item.get("pub_date"))
    if pub_date:
        return pub_date[:4]

    issue = item.get("issue")
    candidates = [item.get("yymm")]
    if isinstance(issue, Mapping):
        candidates.insert(0, issue.get("yymm"))
    else:
        candidates.append(issue)

    for candidate in candidates:
        match = _YEAR_RE.search(_safe_str(candidate))
        if match:
            return match.group(0)
    return None


def _extract_keywords(raw_keywords: Any) -> tuple[str, ...]:
    """Collect ``keywords.keyword`` strings."""
    if not isinstance(raw_keywords, Mapping):
        return ()
    out: list[str] = []
    for entry in _as_list(raw_keywords.get("keyword")):
        text = _safe_str(entry.get(TEXT_KEY)) if isinstance(entry, Mapping) else _safe_str(entry)
        if text:
            out.append(text)
    return tuple(out)


def _parse_total(raw_total: Any) -> int | None:
    """Parse ``result.total`` as an integer when numeric."""
    text = _safe_str(raw_total)
    if not text:
        return None
    try:
        return int(text.replace(",", ""))
    except ValueError:
        return None


def _parse_status(raw_status: Any) -> ResponseStatus | None:
    """Copy the status block through as strings."""
    if not isinstance(raw_status, Mapping):
        return None
    return ResponseStatus(
        code=_safe_str(raw_status.get("code")),
        message=_safe_str(raw_status.get("message")),
    )


def _as_list(value: Any) -> list[Any]:
    """Collapse a single value or a list of values into a list."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_mapping(value: Any) -> Mapping[str, Any]:
    """Return value when it is a mapping, otherwise an empty mapping."""
    return value if isinstance(value, Mapping) else {}


def _safe_str(value: Any) -> str:
    """Convert scalar value to stripped string."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""
