"""
Pagination over GitHub's ``Link``-navigated collections.

Pages are fetched strictly in order, each one only when the consumer reads
past the items already fetched. The result is a :class:`LazySequence` that
caches what it has seen, so it can be iterated again without new requests.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    TYPE_CHECKING,
    Union,
    overload,
)

from .utils import get_query_parameter

if TYPE_CHECKING:
    from .paged_collection import ReadOnlyPagedCollection

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class PageOptions:
    """Limits for a paginated request.

    Attributes:
        page_size: Items per page (``per_page``); server default when None
        page_count: Maximum number of pages (round trips) to fetch
        start_page: First page to fetch (``page``); 1 when None
        cancel_event: Once set, no further pages are requested
    """
    page_size: Optional[int] = None
    page_count: Optional[int] = None
    start_page: Optional[int] = None
    cancel_event: Optional[threading.Event] = None

    def __post_init__(self) -> None:
        for name in ('page_size', 'page_count', 'start_page'):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be greater than zero, got {value}")

    @property
    def done(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


def setup_parameters(
    parameters: Optional[Mapping[str, Any]],
    options: Optional[PageOptions],
) -> Dict[str, Any]:
    """Add ``per_page``/``page`` query parameters requested by ``options``.

    Unset options add nothing, so the server's default page size applies.
    """
    result: Dict[str, Any] = dict(parameters or {})
    if options is None:
        return result
    if options.page_size is not None:
        result['per_page'] = str(options.page_size)
    if options.start_page is not None:
        result['page'] = str(options.start_page)
    return result


def should_continue(
    next_uri: Optional[str],
    options: Optional[PageOptions],
    pages_fetched: Optional[int] = None,
) -> bool:
    """Decide whether the page at ``next_uri`` should be fetched.

    Args:
        next_uri: The ``next`` link of the page just fetched
        options: The caller's page options
        pages_fetched: Pages fetched so far, when the caller tracks them

    Returns:
        False when there is no next page, the options are done, or the page
        count limit has been reached
    """
    if next_uri is None:
        return False
    if options is None:
        return True
    if options.done:
        return False
    if options.page_count is None:
        return True

    if pages_fetched is not None and pages_fetched >= options.page_count:
        return False

    page = get_query_parameter(next_uri, 'page')
    if page is not None:
        try:
            next_page = int(page)
        except ValueError:
            return True
        if next_page >= (options.start_page or 1) + options.page_count:
            return False
    return True


class LazySequence(Sequence[T]):
    """A read-only sequence filled on demand from an iterable.

    Items are pulled from the source only as far as a consumer needs them and
    are kept, so later reads replay them without touching the source again.
    ``len()`` and negative indexes pull everything. If the source raises, the
    same exception is raised again on every later attempt to read past the
    items already fetched.
    """

    def __init__(self, source: Iterable[T]) -> None:
        self._source: Iterator[T] = iter(source)
        self._items: List[T] = []
        self._exhausted = False
        self._error: Optional[BaseException] = None
        self._lock = threading.RLock()

    @property
    def fetched_count(self) -> int:
        """Number of items pulled from the source so far."""
        return len(self._items)

    @property
    def is_materialized(self) -> bool:
        return self._exhausted

    def _fill(self, count: Optional[int] = None) -> None:
        """Pull items until ``count`` are cached (everything when None)."""
        with self._lock:
            while not self._exhausted and (count is None or len(self._items) < count):
                if self._error is not None:
                    raise self._error
                try:
                    item = next(self._source)
                except StopIteration:
                    self._exhausted = True
                except Exception as e:
                    self._error = e
                    raise
                else:
                    self._items.append(item)

    def __iter__(self) -> Iterator[T]:
        index = 0
        while True:
            if index >= len(self._items):
                self._fill(index + 1)
                if index >= len(self._items):
                    return
            yield self._items[index]
            index += 1

    def __len__(self) -> int:
        self._fill()
        return len(self._items)

    def __bool__(self) -> bool:
        self._fill(1)
        return bool(self._items)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> List[T]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[T, List[T]]:
        if isinstance(index, slice):
            start, stop = index.start, index.stop
            if stop is None or stop < 0 or (start is not None and start < 0):
                self._fill()
            else:
                self._fill(max(stop, start or 0))
            return self._items[index]
        if index < 0:
            self._fill()
        else:
            self._fill(index + 1)
        return self._items[index]

    def __repr__(self) -> str:
        state = "complete" if self._exhausted else "partial"
        return f"LazySequence({self._items!r}, {state})"


class ApiPagination:
    """Turns a first-page fetcher into a lazy sequence over every page."""

    def get_all_pages(
        self,
        get_first_page: Callable[[], Optional['ReadOnlyPagedCollection[T]']],
        uri: Optional[str],
    ) -> LazySequence[T]:
        """Lazily walk all pages starting from ``get_first_page()``.

        Args:
            get_first_page: Fetches the first page; returns None to stop
            uri: The collection URI; None yields an empty sequence without
                making any request

        Returns:
            LazySequence over the items of every page, in server order
        """
        if uri is None:
            return LazySequence(())
        return LazySequence(self._iterate_pages(get_first_page, uri))

    @staticmethod
    def _iterate_pages(
        get_first_page: Callable[[], Optional['ReadOnlyPagedCollection[T]']],
        uri: str,
    ) -> Iterator[T]:
        page = get_first_page()
        pages = 0
        while page is not None:
            pages += 1
            yield from page
            page = page.get_next_page()
        logger.debug("Fetched %d page(s) of %s", pages, uri)
