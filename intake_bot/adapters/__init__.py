"""Clients for the external authority service."""

from .authority import HttpAuthority
from .base import AuthorityAdapter

__all__ = ["AuthorityAdapter", "HttpAuthority"]
