"""
forms/submission_forms.py
─────────────────────────────────────────────────────────────────────
Draft / submit payloads and admin transition payloads for entries.
Completeness (word count, photo count) is enforced by SubmissionService
on submit; drafts only need well-formed values.
"""
from __future__ import annotations

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.utils.translation import gettext_lazy as _

from ..models import Submission
from . import sanitize

MAX_ADDITIONAL_PHOTOS = 4

_url_validator = URLValidator()


class SubmissionContentForm(forms.Form):
    """Every content field is optional; the service only applies keys the client sent."""

    registration_number  = forms.CharField(max_length=12)
    category             = forms.ChoiceField(choices=Submission.Category.choices, required=False)
    description          = forms.CharField(required=False, max_length=5000)
    key_photo_url        = forms.URLField(max_length=500, required=False)
    additional_photos    = forms.JSONField(required=False)
    document_url         = forms.URLField(max_length=500, required=False)
    video_url            = forms.URLField(max_length=500, required=False)
    agreed_to_terms      = forms.BooleanField(required=False)

    CONTENT_FIELDS = (
        "category", "description", "key_photo_url", "additional_photos",
        "document_url", "video_url", "agreed_to_terms",
    )

    def clean_registration_number(self):
        return sanitize(self.cleaned_data["registration_number"]).upper()

    def clean_description(self):
        return sanitize(self.cleaned_data.get("description"))

    def clean_additional_photos(self):
        photos = self.cleaned_data.get("additional_photos") or []
        if not isinstance(photos, list):
            raise ValidationError(_("Additional photos must be a list of URLs"))
        if len(photos) > MAX_ADDITIONAL_PHOTOS:
            raise ValidationError(
                _("At most %(max)d additional photos are allowed"),
                params={"max": MAX_ADDITIONAL_PHOTOS},
            )
        for url in photos:
            if not isinstance(url, str):
                raise ValidationError(_("Additional photos must be a list of URLs"))
            _url_validator(url)
        return photos

    def content_changes(self) -> dict:
        """Cleaned values for the content keys present in the raw payload."""
        return {
            key: self.cleaned_data[key]
            for key in self.CONTENT_FIELDS
            if key in self.data and key in self.cleaned_data
        }


class SubmissionTransitionForm(forms.Form):
    submission_id  = forms.IntegerField(min_value=1)
    reason         = forms.CharField(max_length=2000, required=False)

    def clean_reason(self):
        return sanitize(self.cleaned_data.get("reason"))
