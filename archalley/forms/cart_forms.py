"""
forms/cart_forms.py
─────────────────────────────────────────────────────────────────────
Validation for add-to-cart, checkout and bank transfer verification.
Members are validated per registration type (general / STUDENT / KIDS).
"""
from __future__ import annotations

import re

from django import forms
from django.utils.translation import gettext_lazy as _

from ..models import Competition, CompetitionPayment, RegistrationType
from . import sanitize

EMAIL_RE       = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE       = re.compile(r"^\+\d{1,3}\d{9,14}$")
PHONE_STRIP_RE = re.compile(r"[\s\-()]")

MEMBER_TEXT_FIELDS = (
    "name", "email", "phone",
    "student_email", "institution", "course_of_study", "date_of_birth", "id_card_url",
    "parent_email", "parent_phone", "parent_first_name", "parent_last_name", "postal_address",
)

STUDENT_REQUIRED = ("student_email", "phone", "institution", "course_of_study", "date_of_birth", "id_card_url")
KIDS_REQUIRED    = ("parent_email", "parent_phone", "parent_first_name", "parent_last_name",
                    "date_of_birth", "postal_address")


def normalise_phone(value: str) -> str:
    return PHONE_STRIP_RE.sub("", value or "")


def clean_member(member: dict, kind: str) -> tuple[dict, dict]:
    """
    Sanitise one member entry.
    Returns (cleaned member, {field: message}); an empty error map means valid.
    """
    if not isinstance(member, dict):
        return {}, {"member": "Member details must be an object"}

    cleaned = {key: sanitize(member.get(key)) for key in MEMBER_TEXT_FIELDS if member.get(key) not in (None, "")}
    errors: dict[str, str] = {}

    if len(cleaned.get("name", "")) < 2:
        errors["name"] = "Name must be at least 2 characters"

    if kind != RegistrationType.Type.KIDS and not cleaned.get("email"):
        errors["email"] = "Email is required"

    for field in ("email", "student_email", "parent_email"):
        if cleaned.get(field) and not EMAIL_RE.match(cleaned[field]):
            errors[field] = "Enter a valid email address"

    for field in ("phone", "parent_phone"):
        if cleaned.get(field):
            cleaned[field] = normalise_phone(cleaned[field])
            if not PHONE_RE.match(cleaned[field]):
                errors[field] = "Phone must include the country code, e.g. +94771234567"

    required = ()
    if kind == RegistrationType.Type.STUDENT:
        required = STUDENT_REQUIRED
    elif kind == RegistrationType.Type.KIDS:
        required = KIDS_REQUIRED
    for field in required:
        if not cleaned.get(field) and field not in errors:
            errors[field] = "This field is required"

    return cleaned, errors


class AddToCartForm(forms.Form):
    competition        = forms.ModelChoiceField(queryset=Competition.objects.all())
    registration_type  = forms.ModelChoiceField(queryset=RegistrationType.objects.select_related("competition"))
    country            = forms.CharField(max_length=100)
    participant_type   = forms.CharField(max_length=20, required=False)
    referral_source    = forms.CharField(max_length=100, required=False)
    members            = forms.JSONField()

    agree_to_terms          = forms.BooleanField(error_messages={"required": _("You must accept the competition terms")})
    agree_to_website_terms  = forms.BooleanField(error_messages={"required": _("You must accept the website terms")})
    agree_to_privacy_policy = forms.BooleanField(error_messages={"required": _("You must accept the privacy policy")})
    agree_to_refund_policy  = forms.BooleanField(error_messages={"required": _("You must accept the refund policy")})

    def clean_country(self):
        country = sanitize(self.cleaned_data["country"])
        if not country:
            raise forms.ValidationError(_("Country is required"))
        return country

    def clean_participant_type(self):
        return sanitize(self.cleaned_data.get("participant_type"))

    def clean_referral_source(self):
        return sanitize(self.cleaned_data.get("referral_source"))

    def clean(self):
        cleaned = super().clean()
        competition = cleaned.get("competition")
        reg_type    = cleaned.get("registration_type")

        if competition and reg_type and reg_type.competition_id != competition.pk:
            self.add_error("registration_type", _("Registration type does not belong to this competition"))

        members = cleaned.get("members")
        if "members" in cleaned:
            if not isinstance(members, list) or not members:
                self.add_error("members", _("At least one member is required"))
            elif reg_type:
                result = []
                for idx, member in enumerate(members):
                    member_clean, member_errors = clean_member(member, reg_type.type)
                    for field, message in member_errors.items():
                        self.add_error("members", f"members[{idx}].{field}: {message}")
                    result.append(member_clean)
                cleaned["members"] = result
        return cleaned


class CheckoutForm(forms.Form):
    first_name      = forms.CharField(max_length=100)
    last_name       = forms.CharField(max_length=100)
    email           = forms.EmailField()
    phone           = forms.CharField(max_length=25, required=False)
    country         = forms.CharField(max_length=100)
    address         = forms.CharField(max_length=255, required=False)
    city            = forms.CharField(max_length=100, required=False)
    payment_method  = forms.ChoiceField(choices=CompetitionPayment.Method.choices)
    bank_slip_url   = forms.URLField(max_length=500, required=False)

    def clean(self):
        cleaned = super().clean()
        for name in ("first_name", "last_name", "phone", "country", "address", "city"):
            if name in cleaned:
                cleaned[name] = sanitize(cleaned[name])
        if (
            cleaned.get("payment_method") == CompetitionPayment.Method.BANK_TRANSFER
            and not cleaned.get("bank_slip_url")
        ):
            self.add_error("bank_slip_url", _("Upload the bank slip for a bank transfer"))
        return cleaned

    def customer_details(self) -> dict:
        return {
            key: self.cleaned_data.get(key, "")
            for key in ("first_name", "last_name", "email", "phone", "country", "address", "city")
        }


class BankTransferVerifyForm(forms.Form):
    ACTIONS = [("approve", _("Approve")), ("reject", _("Reject"))]

    order_id  = forms.CharField(max_length=40)
    action    = forms.ChoiceField(choices=ACTIONS)
    reason    = forms.CharField(max_length=1000, required=False)

    def clean(self):
        cleaned = super().clean()
        cleaned["reason"] = sanitize(cleaned.get("reason"))
        if cleaned.get("action") == "reject" and not cleaned["reason"]:
            self.add_error("reason", _("A reason is required when rejecting a payment"))
        return cleaned
