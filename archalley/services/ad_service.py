"""
services/ad_service.py
─────────────────────────────────────────────────────────────────────
Advertisement banners: admin CRUD, toggle, stats and public counters.
"""
from __future__ import annotations

import logging

from django.db.models import F, Sum
from django.forms.models import model_to_dict

from ..forms import cleaned_or_raise
from ..forms.ad_forms import AdvertisementForm
from ..models import Advertisement

logger = logging.getLogger(__name__)

# Slots the site layout renders
STANDARD_SIZES = ("350x350", "320x320", "680x180", "970x180")

AD_DEFAULTS = {
    "active":   True,
    "weight":   1,
    "priority": Advertisement.Priority.LOW,
}


class AdvertisementService:

    # ── Queries ──────────────────────────────────────────────────────

    @staticmethod
    def list_all():
        return Advertisement.objects.order_by("-active", "-priority", "-weight", "-created_at")

    @staticmethod
    def active():
        return Advertisement.objects.filter(active=True).order_by("-priority", "-weight")

    @classmethod
    def by_size(cls, size: str):
        return cls.active().filter(size=size)

    @staticmethod
    def sizes() -> list:
        used = Advertisement.objects.values_list("size", flat=True).distinct()
        return sorted(set(STANDARD_SIZES) | set(used))

    @classmethod
    def stats(cls) -> dict:
        totals = Advertisement.objects.aggregate(clicks=Sum("click_count"), impressions=Sum("impressions"))
        total_banners = Advertisement.objects.count()
        total_clicks  = totals["clicks"] or 0
        return {
            "total_banners":              total_banners,
            "active_banners":             Advertisement.objects.filter(active=True).count(),
            "total_clicks":               total_clicks,
            "total_impressions":          totals["impressions"] or 0,
            "average_clicks_per_banner":  round(total_clicks / total_banners, 2) if total_banners else 0,
            "available_sizes":            cls.sizes(),
        }

    # ── Admin writes ─────────────────────────────────────────────────

    @staticmethod
    def create(user, data: dict) -> Advertisement:
        form = AdvertisementForm(data={**AD_DEFAULTS, **data})
        cleaned_or_raise(form)
        ad = form.save(commit=False)
        ad.created_by     = user
        ad.last_edited_by = user
        ad.save()
        logger.info("Advertisement %s created by %s", ad.pk, user.pk)
        return ad

    @staticmethod
    def update(user, ad_id: int, data: dict) -> Advertisement:
        ad   = Advertisement.objects.get(pk=ad_id)
        form = AdvertisementForm(data={**model_to_dict(ad, fields=AdvertisementForm.Meta.fields), **data}, instance=ad)
        cleaned_or_raise(form)
        ad = form.save(commit=False)
        ad.last_edited_by = user
        ad.save()
        logger.info("Advertisement %s updated by %s", ad.pk, user.pk)
        return ad

    @staticmethod
    def set_active(user, ad_id: int, active: bool) -> Advertisement:
        """Idempotent: sets the flag to ``active`` rather than flipping it."""
        ad = Advertisement.objects.get(pk=ad_id)
        if ad.active != active:
            ad.active         = active
            ad.last_edited_by = user
            ad.save(update_fields=["active", "last_edited_by", "updated_at"])
            logger.info("Advertisement %s %s by %s", ad.pk, "activated" if active else "deactivated", user.pk)
        return ad

    @classmethod
    def delete(cls, user, ad_id: int, hard: bool = False) -> None:
        if hard:
            deleted, _ = Advertisement.objects.filter(pk=ad_id).delete()
            if not deleted:
                raise Advertisement.DoesNotExist("Advertisement not found")
            logger.info("Advertisement %s deleted by %s", ad_id, user.pk)
        else:
            cls.set_active(user, ad_id, False)

    # ── Public counters ──────────────────────────────────────────────

    @staticmethod
    def track_click(ad_id: int) -> str:
        """Atomic increment; returns the redirect URL."""
        updated = Advertisement.objects.filter(pk=ad_id, active=True).update(click_count=F("click_count") + 1)
        if not updated:
            raise Advertisement.DoesNotExist("Advertisement not found")
        return Advertisement.objects.values_list("redirect_url", flat=True).get(pk=ad_id)

    @staticmethod
    def track_impression(ad_id: int) -> None:
        updated = Advertisement.objects.filter(pk=ad_id, active=True).update(impressions=F("impressions") + 1)
        if not updated:
            raise Advertisement.DoesNotExist("Advertisement not found")


def serialize_ad(ad: Advertisement) -> dict:
    return {
        "id":            ad.pk,
        "title":         ad.title,
        "description":   ad.description,
        "image_url":     ad.image_url,
        "redirect_url":  ad.redirect_url,
        "size":          ad.size,
        "active":        ad.active,
        "weight":        ad.weight,
        "priority":      Advertisement.Priority(ad.priority).name,
        "click_count":   ad.click_count,
        "impressions":   ad.impressions,
        "updated_at":    ad.updated_at.isoformat(),
    }
