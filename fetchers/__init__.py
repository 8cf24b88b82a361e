"""Fetchers package for reading exported Yuque documents from disk."""

from .document_loader import (
    DocumentLoader,
    DocumentNotFoundError,
    FetcherError,
    build_mapping,
    sanitize_filename
)

__all__ = [
    'DocumentLoader',
    'DocumentNotFoundError',
    'FetcherError',
    'build_mapping',
    'sanitize_filename'
]
