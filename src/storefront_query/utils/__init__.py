"""Utility modules for storefront_query."""

from .logger import get_logger
from .query_params import parse_query_params

__all__ = [
    "get_logger",
    "parse_query_params",
]
