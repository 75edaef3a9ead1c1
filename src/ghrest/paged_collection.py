"""A single page of a collection with a handle to fetch the next one."""
from __future__ import annotations

from typing import Any, Callable, Iterator, List, Optional, Sequence, TypeVar, Union, overload

from .api_info import ApiInfo
from .exceptions import DeserializationError
from .http import Response

T = TypeVar('T')

NextPageFn = Callable[[str], Optional[Response[Any]]]


class ReadOnlyPagedCollection(Sequence[T]):
    """The items of one page plus the means to move to the next page.

    Args:
        response: The fetched page. A response without data is an empty page.
        next_page_fn: Fetches a page from its URI; returning None stops
            pagination
    """

    def __init__(self, response: Response[Any], next_page_fn: NextPageFn) -> None:
        if response is None:
            raise ValueError("response must not be None")
        self._response = response
        self._next_page_fn = next_page_fn
        self._items: List[T] = self._page_items(response)

    @staticmethod
    def _page_items(response: Response[Any]) -> List[Any]:
        data = response.data
        if data is None:
            return []
        if isinstance(data, (list, tuple)):
            return list(data)
        raise DeserializationError(
            f"Expected a JSON array for a collection page, got {type(data).__name__}", response
        )

    @property
    def api_info(self) -> ApiInfo:
        return self._response.api_info

    @property
    def response(self) -> Response[Any]:
        return self._response

    def get_next_page(self) -> Optional['ReadOnlyPagedCollection[T]']:
        """Fetch the page after this one.

        Returns:
            None when there is no ``next`` link or the fetch function declines
        """
        next_url = self.api_info.next_page_url
        if next_url is None:
            return None
        response = self._next_page_fn(next_url)
        if response is None:
            return None
        return ReadOnlyPagedCollection(response, self._next_page_fn)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> List[T]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[T, List[T]]:
        return self._items[index]

    def __repr__(self) -> str:
        return f"ReadOnlyPagedCollection({self._items!r}, next={self.api_info.next_page_url!r})"
