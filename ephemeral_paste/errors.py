"""
Error taxonomy shared by the service layer, the stores and the routes.
"""


class PasteError(Exception):
    """Base class for paste errors."""


class ValidationError(PasteError):
    """Client input was rejected. The message names the offending field."""

    status_code = 400


class StorageError(PasteError):
    """The backing store is unavailable or misconfigured."""

    status_code = 500


class PasteNotFoundError(PasteError):
    """The paste never existed, has expired, or has no views left."""

    status_code = 404
