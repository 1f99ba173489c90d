"""
exceptions.py
─────────────────────────────────────────────────────────────────────
Service-layer errors that carry more than a message.

Plain ValueError / PermissionError remain the normal way services
refuse a request; the API mixin maps them to 400 / 403.
"""


class FormValidationError(ValueError):
    """Field-by-field validation failure (400 with a ``fields`` map)."""

    def __init__(self, fields: dict, message: str = "Invalid input"):
        super().__init__(message)
        self.fields = fields


class CheckoutInProgress(ValueError):
    """The cart is already waiting on a payment gateway (409)."""


class InvalidSignature(ValueError):
    """Payment notification signature did not verify (400)."""
