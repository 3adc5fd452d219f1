"""
Adapters package for the catalog service.

Contains the HTTP client wrapper for the shop API. The adapter encapsulates:

- Base URL and Basic credentials
- Pagination of collection resources
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .shop_client import ShopApiClient, ShopCredentials

__all__ = [
    "ShopApiClient",
    "ShopCredentials",
]
