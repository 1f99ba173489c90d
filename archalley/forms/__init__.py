"""
forms/__init__.py
Shared helpers for the JSON-fed validation forms.
"""
from __future__ import annotations

import re

from ..exceptions import FormValidationError

_ANGLE_BRACKETS = re.compile(r"[<>]")


def sanitize(value) -> str:
    """Trim and drop angle brackets from free text."""
    if value is None:
        return ""
    return _ANGLE_BRACKETS.sub("", str(value)).strip()


def cleaned_or_raise(form) -> dict:
    """Return ``form.cleaned_data`` or raise FormValidationError with every field error."""
    if not form.is_valid():
        fields = {
            name: [err["message"] for err in errors]
            for name, errors in form.errors.get_json_data().items()
        }
        raise FormValidationError(fields)
    return form.cleaned_data
