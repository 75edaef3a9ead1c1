"""
Body-returning wrapper over :class:`~ghrest.connection.Connection`.

Resource clients use this layer: it returns parsed models instead of
responses and is the entry point for fetching whole paginated collections.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Type, TypeVar

from .api_info import ApiInfo
from .connection import Connection
from .http import Response
from .paged_collection import ReadOnlyPagedCollection
from .pagination import ApiPagination, LazySequence, PageOptions, setup_parameters, should_continue

T = TypeVar('T')


class ApiConnection:
    """Make API calls and return their deserialized bodies.

    Args:
        connection: Connection that runs the requests
        pagination: Pagination engine; a default one is created when omitted
    """

    def __init__(self, connection: Connection, pagination: Optional[ApiPagination] = None) -> None:
        if connection is None:
            raise ValueError("connection must not be None")
        self.connection = connection
        self.pagination = pagination or ApiPagination()

    def get(
        self,
        uri: str,
        response_type: Optional[Type[T]] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        accepts: Optional[str] = None,
    ) -> Any:
        return self.connection.get(uri, parameters, accepts, response_type=response_type).data

    def get_html(self, uri: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
        return self.connection.get_html(uri, parameters).data

    def get_raw(self, uri: str, parameters: Optional[Mapping[str, Any]] = None) -> bytes:
        return self.connection.get_raw(uri, parameters).data

    def get_all(
        self,
        uri: Optional[str],
        item_type: Optional[Type[T]] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        accepts: Optional[str] = None,
        options: Optional[PageOptions] = None,
        method: str = 'GET',
        body: Any = None,
    ) -> LazySequence[T]:
        """Lazily fetch every item of a paginated collection.

        Args:
            uri: Collection endpoint; None gives an empty result
            item_type: Type each item is converted to
            parameters: Query parameters for the first page
            accepts: ``Accept`` header for every page
            options: Page size, page count and start page limits
            method: Verb for every page, for collections fetched by POST
            body: Body sent with every page

        Returns:
            LazySequence of items; pages are requested as it is consumed
        """
        options = options or PageOptions()
        parameters = setup_parameters(parameters, options)
        response_type = List[item_type] if item_type is not None else None  # type: ignore[valid-type]
        pages_fetched = 0

        def fetch(page_uri: str, page_parameters: Optional[Mapping[str, Any]] = None) -> Response[Any]:
            nonlocal pages_fetched
            response = self.connection.send_data(
                page_uri, method, body,
                accepts=accepts,
                parameters=page_parameters,
                response_type=response_type,
                cancel_event=options.cancel_event,
            )
            pages_fetched += 1
            return response

        def next_page(next_uri: str) -> Optional[Response[Any]]:
            if not should_continue(next_uri, options, pages_fetched):
                return None
            return fetch(next_uri)

        def get_first_page() -> Optional[ReadOnlyPagedCollection[T]]:
            if options.done:
                return None
            return ReadOnlyPagedCollection(fetch(uri, parameters), next_page)

        return self.pagination.get_all_pages(get_first_page, uri)

    def get_page(
        self,
        uri: str,
        item_type: Optional[Type[T]] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        accepts: Optional[str] = None,
        options: Optional[PageOptions] = None,
    ) -> ReadOnlyPagedCollection[T]:
        """Fetch a single page for manual pagination with ``get_next_page()``."""
        options = options or PageOptions()
        response_type = List[item_type] if item_type is not None else None  # type: ignore[valid-type]
        pages_fetched = 1

        def next_page(next_uri: str) -> Optional[Response[Any]]:
            nonlocal pages_fetched
            if not should_continue(next_uri, options, pages_fetched):
                return None
            response = self.connection.get(next_uri, accepts=accepts, response_type=response_type)
            pages_fetched += 1
            return response

        response = self.connection.get(
            uri, setup_parameters(parameters, options), accepts, response_type=response_type,
        )
        return ReadOnlyPagedCollection(response, next_page)

    def post(
        self,
        uri: str,
        data: Any = None,
        response_type: Optional[Type[T]] = None,
        accepts: Optional[str] = None,
        content_type: Optional[str] = None,
        two_factor_code: Optional[str] = None,
    ) -> Any:
        return self.connection.post(
            uri, data,
            accepts=accepts,
            content_type=content_type,
            two_factor_code=two_factor_code,
            response_type=response_type,
        ).data

    def put(
        self,
        uri: str,
        data: Any = None,
        response_type: Optional[Type[T]] = None,
        two_factor_code: Optional[str] = None,
        accepts: Optional[str] = None,
    ) -> Any:
        return self.connection.put(
            uri, data,
            two_factor_code=two_factor_code,
            accepts=accepts,
            response_type=response_type,
        ).data

    def patch(
        self,
        uri: str,
        data: Any = None,
        response_type: Optional[Type[T]] = None,
        accepts: Optional[str] = None,
    ) -> Any:
        return self.connection.patch(uri, data, accepts=accepts, response_type=response_type).data

    def delete(
        self,
        uri: str,
        data: Any = None,
        accepts: Optional[str] = None,
        two_factor_code: Optional[str] = None,
    ) -> int:
        """Delete a resource and return the response status code."""
        return self.connection.delete(uri, data, accepts=accepts, two_factor_code=two_factor_code).status_code

    def get_last_api_info(self) -> Optional[ApiInfo]:
        return self.connection.get_last_api_info()

    def close(self) -> None:
        self.connection.close()
