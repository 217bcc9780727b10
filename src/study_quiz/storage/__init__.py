"""Persistence for quiz results and the remembered API key."""

from .files import StorageError
from .keys import KeyStore
from .results import (
    DocumentResultStore,
    FallbackResultStore,
    LocalResultStore,
    ResultStore,
    build_result_store,
)

__all__ = [
    "StorageError",
    "KeyStore",
    "ResultStore",
    "DocumentResultStore",
    "LocalResultStore",
    "FallbackResultStore",
    "build_result_store",
]
