"""
forms/ad_forms.py
Advertisement create / update payloads.
"""
from __future__ import annotations

from django import forms
from django.core.validators import RegexValidator
from django.utils.translation import gettext_lazy as _

from ..models import Advertisement
from . import sanitize

SIZE_VALIDATOR = RegexValidator(
    regex=r"^\d{2,4}x\d{2,4}$",
    message=_("Size must look like 350x350"),
)


PRIORITY_BY_NAME = {p.name: p.value for p in Advertisement.Priority}


class AdvertisementForm(forms.ModelForm):
    size     = forms.CharField(max_length=20, validators=[SIZE_VALIDATOR])
    # accepts the serialized name ("HIGH") or the stored number (3)
    priority = forms.CharField(max_length=10, required=False)

    class Meta:
        model  = Advertisement
        fields = [
            "title", "description", "image_url", "redirect_url",
            "size", "active", "weight", "priority",
        ]

    def clean_title(self):
        return sanitize(self.cleaned_data.get("title"))

    def clean_description(self):
        return sanitize(self.cleaned_data.get("description"))

    def clean_weight(self):
        weight = self.cleaned_data.get("weight")
        return 1 if weight in (None, 0) else weight

    def clean_priority(self):
        value = (self.cleaned_data.get("priority") or "").strip().upper()
        if not value:
            return Advertisement.Priority.LOW
        if value in PRIORITY_BY_NAME:
            return PRIORITY_BY_NAME[value]
        if value.isdigit() and int(value) in Advertisement.Priority.values:
            return int(value)
        raise forms.ValidationError(_("Unknown priority %(value)s"), params={"value": value})
