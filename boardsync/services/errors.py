"""
boardsync.services.errors — Input & Referential Error Taxonomy
===============================================================

Authorization denials live in :mod:`boardsync.engine.permissions`.
Storage failures are not wrapped: they propagate out of the unit of work,
which rolls back, and the API turns them into a generic 500.
"""

from __future__ import annotations


class BoardSyncError(Exception):
    """Base for business errors that map to a client-facing status."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(BoardSyncError):
    """Malformed date, unknown assignee, blank body… rejected before writing."""


class NotFoundError(BoardSyncError):
    """Target board, column, card, comment or user does not exist."""

    status_code = 404


class InvalidReferenceError(BoardSyncError):
    """Target exists but does not belong to the same board."""
