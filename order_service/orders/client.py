"""
Order Service HTTP client.
Talks to a running API server; used by the CLI.
"""

import requests
import logging
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID

from .errors import AlreadyExists, NotFound, OrderStoreError, StoreUnavailable
from .models import LineItem, Order

logger = logging.getLogger(__name__)


class OrderClientError(OrderStoreError):
    """The server rejected the request (bad input or unexpected status)."""

    def __init__(self, operation: str, key: Optional[str], status_code: int, detail: str = ""):
        self.status_code = status_code
        super().__init__(operation, key, detail)

    def describe(self) -> str:
        return f"request failed with HTTP {self.status_code}"


class OrderClient:
    """Client for the Order Service REST API."""

    def __init__(self, base_url: str, timeout: float = 30, session: Optional[Any] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, operation: str, key: Optional[str] = None, **kwargs) -> Any:
        """Send a request and translate error statuses into repository errors."""
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Order API error: {e}")
            raise StoreUnavailable(operation, key, str(e)) from e

        if response.status_code < 400:
            if response.status_code == 204 or not response.content:
                return None
            return response.json()

        detail = self._detail(response)
        if response.status_code == 404:
            raise NotFound(operation, key, detail)
        if response.status_code == 409:
            raise AlreadyExists(operation, key, detail)
        if response.status_code >= 500:
            raise StoreUnavailable(operation, key, detail)
        raise OrderClientError(operation, key, response.status_code, detail)

    @staticmethod
    def _detail(response) -> str:
        try:
            return str(response.json().get('detail', ''))
        except ValueError:
            return response.text

    def create_order(self, customer_id: UUID, line_items: List[LineItem]) -> Order:
        """Create an order and return it with its assigned id."""
        payload = {
            'customer_id': str(customer_id),
            'line_items': [item.model_dump() for item in line_items],
        }
        data = self._request('POST', '/orders', 'create', json=payload)
        return Order.model_validate(data)

    def get_order(self, order_id: int) -> Order:
        data = self._request('GET', f'/orders/{order_id}', 'get', f'order:{order_id}')
        return Order.model_validate(data)

    def replace_order(self, order_id: int, customer_id: UUID, line_items: List[LineItem]) -> Order:
        payload = {
            'customer_id': str(customer_id),
            'line_items': [item.model_dump() for item in line_items],
        }
        data = self._request('PUT', f'/orders/{order_id}', 'update', f'order:{order_id}', json=payload)
        return Order.model_validate(data)

    def delete_order(self, order_id: int) -> None:
        self._request('DELETE', f'/orders/{order_id}', 'delete', f'order:{order_id}')

    def list_page(self, cursor: int = 0, size: Optional[int] = None) -> Dict[str, Any]:
        """Fetch one page: {'items': [...], 'next': cursor}."""
        params = {'cursor': cursor}
        if size is not None:
            params['size'] = size
        data = self._request('GET', '/orders', 'list', params=params)
        data['items'] = [Order.model_validate(item) for item in data.get('items', [])]
        return data

    def iter_orders(self, size: Optional[int] = None) -> Iterator[Order]:
        """Walk every page until the server returns cursor 0."""
        cursor = 0
        while True:
            page = self.list_page(cursor=cursor, size=size)
            yield from page['items']
            cursor = page.get('next', 0)
            if not cursor:
                return
