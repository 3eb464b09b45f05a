"""
Feed projection.

Turns joined interaction/case rows into FeedItems and derives the facets of
the current page.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from casefeed.core.dsl import FeedItem, FeedPage, PageFacets
from casefeed.query.executor import RawPage

# Facet name -> row key it is read from
FACET_KEYS = {
    "insurance_companies": "insurance_company",
    "lawyers": "lawyer_assigned",
    "rental_companies": "rental_company",
    "case_numbers": "case_number",
}


class FeedProjector:
    """
    Projects raw rows into the feed wire schema.

    Facets are computed from the rows handed in, which for a feed page is the
    page window only. They say nothing about rows on other pages.
    """

    def project(self, rows: Iterable[Mapping[str, Any]]) -> list[FeedItem]:
        return [self.project_row(row) for row in rows]

    def project_row(self, row: Mapping[str, Any]) -> FeedItem:
        data = dict(row)
        data["tags"] = list(data.get("tags") or [])
        return FeedItem.model_validate(data)

    def derive_facets(self, rows: Iterable[Mapping[str, Any]]) -> PageFacets:
        values: dict[str, set[str]] = {name: set() for name in FACET_KEYS}
        for row in rows:
            for name, key in FACET_KEYS.items():
                value = row.get(key)
                if isinstance(value, str):
                    value = value.strip()
                if value:
                    values[name].add(value)
        return PageFacets(**{name: sorted(found) for name, found in values.items()})

    def build_page(self, raw: RawPage) -> FeedPage:
        return FeedPage(
            items=self.project(raw.rows),
            total_count=raw.total_count,
            has_more=raw.has_more,
            page=raw.page,
            page_size=raw.page_size,
            page_facets=self.derive_facets(raw.rows),
        )
