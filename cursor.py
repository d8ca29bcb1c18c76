"""
Paginated bidirectional cursor

Presents one remote paged resource as a single double-ended sequence.
Pages are fetched on demand, one at a time, and transient query timeouts
are retried up to a fixed budget.

Forward and backward steps share one visited set per page, so every record
is returned exactly once no matter how next() and reverse_next() calls are
interleaved. Both directions advance to the next unvisited page in
page-index order once the buffered page is used up; within a page,
reverse_next() walks backwards from the forward pointer.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Set

from lazy import SequenceExhausted, SequenceIteratorMixin
from models import CursorSettings

logger = logging.getLogger('paged_cursor.cursor')


class QueryTimedOut(Exception):
    """Transient fault raised by a paged resource; the query may be retried."""


class ResourceUnreachable(Exception):
    """Raised once a query has timed out on every allowed attempt.

    page_index is None when the page-count query was the one that failed.
    """

    def __init__(self, page_index: Optional[int], attempts: int):
        target = "page count" if page_index is None else f"page {page_index}"
        super().__init__(
            f"Resource unreachable: {target} timed out on {attempts} attempt(s)"
        )
        self.page_index = page_index
        self.attempts = attempts


class PagedResource(Protocol):
    """Protocol for a remote collection served in zero-indexed pages"""

    def get_page(self, page_index: int) -> List[Any]:
        """Fetch one page; raise QueryTimedOut on a transient fault"""
        ...

    def get_num_pages(self) -> int:
        """Total page count, stable for the lifetime of a cursor"""
        ...


@dataclass
class CursorState:
    """Traversal state owned by one cursor"""
    page_index: int = 0
    page: List[Any] = field(default_factory=list)
    position: int = 0
    visited_elements: Set[int] = field(default_factory=set)
    visited_pages: Set[int] = field(default_factory=set)
    loaded: bool = False
    unreachable: Optional[ResourceUnreachable] = None

    def page_complete(self) -> bool:
        return len(self.visited_elements) >= len(self.page)


@dataclass
class FetchMetrics:
    """Counters for the remote traffic a cursor generates"""
    pages_fetched: int = 0
    attempts: int = 0
    timeouts: int = 0
    records_yielded: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PaginatedCursor(SequenceIteratorMixin):
    """
    Double-ended cursor over a PagedResource.

    Nothing is fetched at construction; the first page is loaded by the
    first has_next()/next()/reverse_next() call. Only one page is buffered
    at a time and a page is never fetched again once all of its records
    have been returned.

    Not safe for concurrent use: drive one cursor from one traversal.
    """

    def __init__(self, resource: PagedResource, retries: Optional[int] = None,
                 settings: Optional[CursorSettings] = None):
        values = settings.model_dump() if settings else {}
        if retries is not None:
            values['retries'] = retries
        self.settings = CursorSettings(**values)
        self.metrics = FetchMetrics()
        self._resource = resource
        self._state = CursorState()
        self._num_pages: Optional[int] = None

    @property
    def retries(self) -> int:
        return self.settings.retries

    @property
    def num_pages(self) -> int:
        if self._num_pages is None:
            self._num_pages = self._fetch(self._resource.get_num_pages, None)
        return self._num_pages

    # --------- sequence capability ----------
    def has_next(self) -> bool:
        return self._settle()

    def next(self) -> Any:
        if not self._settle():
            raise SequenceExhausted("Paginated cursor exhausted")
        state = self._state
        size = len(state.page)
        while state.position in state.visited_elements:
            state.position = (state.position + 1) % size
        index = state.position
        record = self._visit(index)
        state.position = (index + 1) % size
        return record

    def reverse_next(self) -> Any:
        if not self._settle():
            raise SequenceExhausted("Paginated cursor exhausted")
        state = self._state
        size = len(state.page)
        state.position = (state.position - 1) % size
        while state.position in state.visited_elements:
            state.position = (state.position - 1) % size
        return self._visit(state.position)

    # --------- page handling ----------
    def _settle(self) -> bool:
        """Buffer a page with unvisited records, if any remain."""
        state = self._state
        if state.unreachable is not None:
            raise ResourceUnreachable(state.unreachable.page_index, state.unreachable.attempts)

        while not state.loaded or state.page_complete():
            if len(state.visited_pages) >= self.num_pages:
                return False
            self._load_page(self._next_unvisited_page())
        return True

    def _next_unvisited_page(self) -> int:
        state = self._state
        start = state.page_index + 1 if state.loaded else 0
        for offset in range(self.num_pages):
            candidate = (start + offset) % self.num_pages
            if candidate not in state.visited_pages:
                return candidate
        raise SequenceExhausted("No unvisited pages left")

    def _load_page(self, page_index: int) -> None:
        state = self._state
        page = list(self._fetch(lambda: self._resource.get_page(page_index), page_index))
        state.page_index = page_index
        state.page = page
        state.position = 0
        state.visited_elements.clear()
        state.loaded = True
        self.metrics.pages_fetched += 1
        if not page:
            state.visited_pages.add(page_index)
        logger.debug(f"Loaded page {page_index} with {len(page)} records")

    def _fetch(self, call: Callable[[], Any], page_index: Optional[int]) -> Any:
        """Run one resource query, retrying timeouts up to the budget.

        page_index is None for the page-count query.
        """
        target = "page count" if page_index is None else f"page {page_index}"
        attempts = 0
        while attempts < self.retries:
            attempts += 1
            self.metrics.attempts += 1
            try:
                return call()
            except QueryTimedOut as e:
                self.metrics.timeouts += 1
                logger.warning(f"Query for {target} timed out (attempt {attempts}/{self.retries}): {e}")

        error = ResourceUnreachable(page_index, attempts)
        self._state.unreachable = error
        logger.error(str(error))
        raise error

    def _visit(self, index: int) -> Any:
        state = self._state
        state.visited_elements.add(index)
        if state.page_complete():
            state.visited_pages.add(state.page_index)
        self.metrics.records_yielded += 1
        return state.page[index]
