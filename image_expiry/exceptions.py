# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Image Expiry Exceptions - Custom exceptions for the image_expiry package.
"""


class ImageExpiryError(Exception):
    """Base exception for all image_expiry errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ImageExpiryError):
    """Raised when configuration cannot be loaded or is invalid."""

    pass


class StorageConnectionError(ImageExpiryError):
    """Raised when the storage client cannot be constructed."""

    pass


class StatError(ImageExpiryError):
    """Raised when object metadata cannot be fetched (missing, network, timeout)."""

    pass


class DeleteError(ImageExpiryError):
    """Raised when removing an expired object fails."""

    pass
