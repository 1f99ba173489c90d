"""
forms/moderation_forms.py
Report (flag) creation and moderator review payloads.
"""
from __future__ import annotations

from django import forms
from django.utils.translation import gettext_lazy as _

from ..models import ModerationAction, PostFlag
from . import sanitize

REVIEW_STATUSES = [
    (s.value, s.label) for s in (
        PostFlag.Status.REVIEWED, PostFlag.Status.RESOLVED,
        PostFlag.Status.DISMISSED, PostFlag.Status.ESCALATED,
    )
]

POST_ACTIONS = [
    (a.value, a.label) for a in ModerationAction.Action
    if a != ModerationAction.Action.REVIEW_FLAG
]


class FlagCreateForm(forms.Form):
    post_id        = forms.IntegerField(min_value=1)
    reason         = forms.ChoiceField(choices=PostFlag.Reason.choices)
    custom_reason  = forms.CharField(max_length=255, required=False)
    description    = forms.CharField(max_length=1000, required=False)
    severity       = forms.ChoiceField(choices=PostFlag.Severity.choices, required=False)

    def clean(self):
        cleaned = super().clean()
        cleaned["custom_reason"] = sanitize(cleaned.get("custom_reason"))
        cleaned["description"]   = sanitize(cleaned.get("description"))
        cleaned["severity"]      = cleaned.get("severity") or PostFlag.Severity.MEDIUM
        if cleaned.get("reason") == PostFlag.Reason.OTHER and not cleaned["custom_reason"]:
            self.add_error("custom_reason", _("Describe the reason when choosing Other"))
        return cleaned


class FlagReviewForm(forms.Form):
    status        = forms.ChoiceField(choices=REVIEW_STATUSES)
    review_notes  = forms.CharField(max_length=2000, required=False)
    action        = forms.ChoiceField(choices=POST_ACTIONS, required=False)

    def clean_review_notes(self):
        return sanitize(self.cleaned_data.get("review_notes"))
