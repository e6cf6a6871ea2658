"""
pagination.py
==============================

Paginierte Antworten für Providerlisten.

Eine Seite enthält neben den Einträgen die Navigationslinks
(first, previous, next, last). Die Links werden aus der aufgerufenen
URL erzeugt, indem nur die Query-Parameter `page` und `size` ersetzt
werden; alle anderen Parameter bleiben erhalten.
"""

from math import ceil
from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, Field
from starlette.datastructures import URL

from app.core.errors import PaginationError

T = TypeVar("T")


class PageLink(BaseModel):
    href: str
    rel: str


class PageResource(BaseModel, Generic[T]):
    size_of_page: int
    number_of_page: int
    total_elements: int
    total_pages: int
    content: List[T] = Field(default_factory=list)
    links: List[PageLink] = Field(default_factory=list)


def check_page_args(page: int, size: int, max_size: int) -> None:
    if page < 1:
        raise PaginationError("Page number must be >= 1.")
    if size < 1:
        raise PaginationError("Page size must be between 1 and %d." % max_size)
    if size > max_size:
        raise PaginationError("Page size must be between 1 and %d." % max_size)


def _link(url: URL, page: int, size: int, rel: str) -> PageLink:
    return PageLink(href=str(url.include_query_params(page=page, size=size)), rel=rel)


def build_page(content: List[Any], total: int, page: int, size: int, url: URL) -> PageResource:
    """
    Erzeugt eine PageResource. `page` ist 1-basiert, `total` die Anzahl
    aller Einträge der ungefilterten Liste.
    """
    total_pages = ceil(total / size) if total else 0

    links: List[PageLink] = []
    if total_pages:
        links.append(_link(url, 1, size, "first"))
        if page > 1:
            links.append(_link(url, min(page - 1, total_pages), size, "previous"))
        if page < total_pages:
            links.append(_link(url, page + 1, size, "next"))
        links.append(_link(url, total_pages, size, "last"))

    return PageResource(
        size_of_page=len(content),
        number_of_page=page,
        total_elements=total,
        total_pages=total_pages,
        content=content,
        links=links,
    )
