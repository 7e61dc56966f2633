# src/config/platforms.py

"""Immutable platform configuration table.

Each marketplace is described by a :class:`PlatformConfig`: the URL
patterns that yield its product identifier, its structured data endpoint
(if any) with the response field mapping, and the ranked CSS selector
candidates for every product field. The table is loaded once from
``platforms.json`` and validated eagerly so that a malformed entry fails
at startup instead of during a scrape.
"""

import json
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

import soupsieve

from src.config.settings import Settings

FIELDS: tuple[str, ...] = ("name", "price", "sales", "rating", "reviews")

_ATTR_SUFFIX_RE = re.compile(r"^(?P<selector>.+?)@(?P<attr>[\w-]+)$")


class PlatformConfigError(ValueError):
    """Raised when the platform table contains a malformed entry."""


def split_candidate(candidate: str) -> tuple[str, str | None]:
    """Split ``'span[itemprop="price"]@content'`` into selector and attribute.

    Candidates without an ``@attr`` suffix read the element's text.
    """
    match = _ATTR_SUFFIX_RE.match(candidate)
    if match:
        return match.group("selector"), match.group("attr")
    return candidate, None


@dataclass(frozen=True)
class StructuredEndpoint:
    """A platform's JSON data endpoint and how to read its response."""

    url_template: str
    scale: float
    fields: Mapping[str, tuple[str, ...]]

    def url_for(self, external_id: str) -> str:
        """Fill the endpoint template with a product identifier."""
        return self.url_template.format(id=external_id)


@dataclass(frozen=True)
class PlatformConfig:
    """Static description of one supported marketplace."""

    tag: str
    label: str
    homepage: str
    id_patterns: tuple[re.Pattern[str], ...]
    selectors: Mapping[str, tuple[str, ...]]
    structured: StructuredEndpoint | None = None


class PlatformRegistry(Mapping[str, PlatformConfig]):
    """Read-only mapping from platform tag to :class:`PlatformConfig`."""

    def __init__(self, configs: Mapping[str, PlatformConfig]) -> None:
        self._configs: Mapping[str, PlatformConfig] = MappingProxyType(
            dict(configs)
        )

    def __getitem__(self, tag: str) -> PlatformConfig:
        return self._configs[tag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    @property
    def tags(self) -> list[str]:
        """Registered platform tags in declaration order."""
        return list(self._configs)


def _compile_patterns(tag: str, raw: Any) -> tuple[re.Pattern[str], ...]:
    if not isinstance(raw, list) or not raw:
        msg = f"[{tag}] id_patterns must be a non-empty list"
        raise PlatformConfigError(msg)
    compiled: list[re.Pattern[str]] = []
    for pattern in raw:
        try:
            regex = re.compile(str(pattern))
        except re.error as exc:
            msg = f"[{tag}] invalid id pattern {pattern!r}: {exc}"
            raise PlatformConfigError(msg) from exc
        if regex.groups < 1:
            msg = f"[{tag}] id pattern {pattern!r} has no capture group"
            raise PlatformConfigError(msg)
        compiled.append(regex)
    return tuple(compiled)


def _field_lists(
    tag: str, section: str, raw: Any,
) -> Mapping[str, tuple[str, ...]]:
    if not isinstance(raw, dict):
        msg = f"[{tag}] {section} must be an object keyed by field"
        raise PlatformConfigError(msg)
    result: dict[str, tuple[str, ...]] = {}
    for field in FIELDS:
        candidates = raw.get(field)
        if not isinstance(candidates, list) or not candidates:
            msg = f"[{tag}] {section} has no candidates for '{field}'"
            raise PlatformConfigError(msg)
        cleaned = tuple(str(c).strip() for c in candidates if str(c).strip())
        if len(cleaned) != len(candidates):
            msg = f"[{tag}] {section} '{field}' contains an empty entry"
            raise PlatformConfigError(msg)
        result[field] = cleaned
    return MappingProxyType(result)


def _check_selectors(
    tag: str, selectors: Mapping[str, tuple[str, ...]],
) -> None:
    for field, candidates in selectors.items():
        for candidate in candidates:
            selector, _ = split_candidate(candidate)
            try:
                soupsieve.compile(selector)
            except soupsieve.SelectorSyntaxError as exc:
                msg = (
                    f"[{tag}] invalid selector for '{field}': "
                    f"{candidate!r} ({exc})"
                )
                raise PlatformConfigError(msg) from exc


def _parse_structured(tag: str, raw: Any) -> StructuredEndpoint | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        msg = f"[{tag}] structured must be an object or null"
        raise PlatformConfigError(msg)
    template = str(raw.get("endpoint", ""))
    if "{id}" not in template:
        msg = f"[{tag}] structured endpoint lacks an {{id}} placeholder"
        raise PlatformConfigError(msg)
    try:
        scale = float(raw.get("scale", 1))
    except (TypeError, ValueError) as exc:
        msg = f"[{tag}] structured scale is not a number"
        raise PlatformConfigError(msg) from exc
    if scale <= 0:
        msg = f"[{tag}] structured scale must be positive"
        raise PlatformConfigError(msg)
    return StructuredEndpoint(
        url_template=template,
        scale=scale,
        fields=_field_lists(tag, "structured.fields", raw.get("fields")),
    )


def build_platform(tag: str, entry: Any) -> PlatformConfig:
    """Validate one raw table entry and build its :class:`PlatformConfig`."""
    if not tag:
        raise PlatformConfigError("Platform tag must not be empty")
    if not isinstance(entry, dict):
        msg = f"[{tag}] entry must be an object"
        raise PlatformConfigError(msg)
    selectors = _field_lists(tag, "selectors", entry.get("selectors"))
    _check_selectors(tag, selectors)
    return PlatformConfig(
        tag=tag,
        label=str(entry.get("label") or tag),
        homepage=str(entry.get("homepage", "")),
        id_patterns=_compile_patterns(tag, entry.get("id_patterns")),
        selectors=selectors,
        structured=_parse_structured(tag, entry.get("structured")),
    )


def load_platforms(path: Path | None = None) -> PlatformRegistry:
    """Load and validate the platform table from JSON.

    Raises:
        PlatformConfigError: If the file is unreadable or any entry is
            malformed.
    """
    source = path or Settings.PLATFORMS_PATH
    try:
        with open(source, encoding="utf-8") as f:
            data: Any = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot load platform table from {source}: {exc}"
        raise PlatformConfigError(msg) from exc

    if not isinstance(data, dict) or not data:
        msg = f"Platform table {source} must be a non-empty object"
        raise PlatformConfigError(msg)

    return PlatformRegistry(
        {tag: build_platform(tag, entry) for tag, entry in data.items()}
    )
