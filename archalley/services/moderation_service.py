"""
services/moderation_service.py
─────────────────────────────────────────────────────────────────────
Reported-post queue: report creation, moderator review, post actions
and queue statistics.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Case, Count, IntegerField, Q, Value, When
from django.utils import timezone

from ..models import (
    MODERATION_ROLES,
    CustomUser,
    ModerationAction,
    Notification,
    Post,
    PostFlag,
    Role,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE     = 100

SEVERITY_RANK = Case(
    When(severity=PostFlag.Severity.CRITICAL, then=Value(4)),
    When(severity=PostFlag.Severity.HIGH,     then=Value(3)),
    When(severity=PostFlag.Severity.MEDIUM,   then=Value(2)),
    When(severity=PostFlag.Severity.LOW,      then=Value(1)),
    default=Value(0),
    output_field=IntegerField(),
)

# action → (post field, new value)
POST_ACTIONS = {
    ModerationAction.Action.HIDE:        ("is_hidden", True),
    ModerationAction.Action.UNHIDE:      ("is_hidden", False),
    ModerationAction.Action.PIN:         ("is_pinned", True),
    ModerationAction.Action.UNPIN:       ("is_pinned", False),
    ModerationAction.Action.LOCK:        ("is_locked", True),
    ModerationAction.Action.UNLOCK:      ("is_locked", False),
    ModerationAction.Action.DELETE:      ("is_deleted", True),
}


@dataclass
class ReportPage:
    reports: List[PostFlag]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.limit))

    def pagination(self) -> dict:
        return {
            "current_page":   self.page,
            "total_pages":    self.total_pages,
            "total_reports":  self.total,
            "has_next":       self.page < self.total_pages,
            "has_prev":       self.page > 1,
        }


class ModerationService:

    # ── Reports ──────────────────────────────────────────────────────

    @classmethod
    def create_report(cls, reporter, post_id: int, reason: str, custom_reason: str = "",
                      description: str = "", severity: str = PostFlag.Severity.MEDIUM,
                      ip_address: Optional[str] = None) -> PostFlag:
        post = Post.objects.get(pk=post_id, is_deleted=False)
        if post.author_id == reporter.pk:
            raise ValueError("You cannot report your own post")

        try:
            with transaction.atomic():
                flag = PostFlag.objects.create(
                    post           = post,
                    reporter       = reporter,
                    reason         = reason,
                    custom_reason  = custom_reason,
                    description    = description,
                    severity       = severity,
                    ip_address     = ip_address or None,
                )
                cls.refresh_post_flags(post)
        except IntegrityError:
            raise ValueError("You have already reported this post for this reason")

        cls._notify_moderators(flag)
        logger.info("Post %s reported for %s by %s", post.pk, reason, reporter.pk)
        return flag

    @staticmethod
    def refresh_post_flags(post: Post) -> int:
        """Recount open (PENDING / REVIEWED) reports; unflag the post when none remain."""
        open_count = post.flags.filter(status__in=PostFlag.OPEN_STATUSES).count()
        post.flag_count = open_count
        post.is_flagged = open_count > 0
        post.save(update_fields=["flag_count", "is_flagged"])
        return open_count

    @staticmethod
    def _notify_moderators(flag: PostFlag) -> int:
        moderators = CustomUser.objects.filter(
            Q(role__in=MODERATION_ROLES) | Q(is_superuser=True), is_active=True
        ).exclude(pk=flag.reporter_id)
        notifications = [
            Notification(
                recipient = mod,
                type      = Notification.NotificationType.POST_FLAGGED,
                title     = f"Post reported: {flag.get_reason_display()}",
                message   = (
                    f"A post was reported ({flag.get_severity_display()} severity). "
                    f"{flag.custom_reason or flag.description}".strip()
                ),
                link      = f"/admin/moderation/flags/{flag.pk}",
            )
            for mod in moderators
        ]
        Notification.objects.bulk_create(notifications)
        return len(notifications)

    @staticmethod
    def list_reports(status: str = PostFlag.Status.PENDING, severity: str = "",
                     page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> ReportPage:
        page  = max(1, page)
        limit = min(max(1, limit), MAX_PAGE_SIZE)

        qs = PostFlag.objects.select_related("post", "post__author", "reporter", "reviewed_by")
        if status:
            qs = qs.filter(status=status)
        if severity:
            qs = qs.filter(severity=severity)

        total   = qs.count()
        offset  = (page - 1) * limit
        reports = list(
            qs.annotate(severity_rank=SEVERITY_RANK)
            .order_by("-severity_rank", "created_at", "pk")[offset:offset + limit]
        )
        return ReportPage(reports=reports, page=page, limit=limit, total=total)

    # ── Review ───────────────────────────────────────────────────────

    @classmethod
    @transaction.atomic
    def review_report(cls, moderator, flag_id: int, status: str, review_notes: str = "",
                      action: str = "") -> PostFlag:
        flag = PostFlag.objects.select_for_update().select_related("post").get(pk=flag_id)

        if flag.status not in PostFlag.OPEN_STATUSES:
            raise ValueError(f"Report is already {flag.status.lower()}")
        if status == PostFlag.Status.ESCALATED and moderator.role == Role.SUPER_ADMIN:
            raise PermissionError("Super admins resolve reports directly and cannot escalate them")

        flag.status       = status
        flag.review_notes = review_notes
        flag.reviewed_by  = moderator
        flag.reviewed_at  = timezone.now()
        flag.save(update_fields=["status", "review_notes", "reviewed_by", "reviewed_at"])

        ModerationAction.objects.create(
            moderator = moderator,
            post      = flag.post,
            flag      = flag,
            action    = ModerationAction.Action.REVIEW_FLAG,
            details   = {"status": status, "notes": review_notes},
        )

        if action:
            cls.perform_post_action(moderator, flag.post, action, flag=flag)

        if status in (PostFlag.Status.RESOLVED, PostFlag.Status.DISMISSED):
            cls.refresh_post_flags(flag.post)

        logger.info("Report %s → %s by %s (action=%s)", flag.pk, status, moderator.pk, action or "-")
        return flag

    @staticmethod
    def perform_post_action(moderator, post: Post, action: str, flag: Optional[PostFlag] = None) -> Post:
        try:
            field, value = POST_ACTIONS[action]
        except KeyError:
            raise ValueError(f"Unknown moderation action: {action}")

        setattr(post, field, value)
        post.save(update_fields=[field])
        ModerationAction.objects.create(
            moderator = moderator,
            post      = post,
            flag      = flag,
            action    = action,
        )
        return post

    # ── Stats ────────────────────────────────────────────────────────

    @staticmethod
    def stats() -> dict:
        counts = PostFlag.objects.aggregate(
            total=Count("id"),
            **{
                s.lower(): Count("id", filter=Q(status=s))
                for s in PostFlag.Status.values
            },
            critical_pending=Count(
                "id", filter=Q(status=PostFlag.Status.PENDING, severity=PostFlag.Severity.CRITICAL)
            ),
        )
        counts["flagged_posts"] = Post.objects.filter(is_flagged=True).count()
        counts["hidden_posts"]  = Post.objects.filter(is_hidden=True).count()
        return counts


def serialize_flag(flag: PostFlag) -> dict:
    return {
        "id":             flag.pk,
        "post":           {
            "id":          flag.post_id,
            "content":     flag.post.content[:280],
            "author":      str(flag.post.author),
            "is_hidden":   flag.post.is_hidden,
            "flag_count":  flag.post.flag_count,
        },
        "reporter":       str(flag.reporter),
        "reason":         flag.reason,
        "custom_reason":  flag.custom_reason,
        "description":    flag.description,
        "severity":       flag.severity,
        "status":         flag.status,
        "reviewed_by":    str(flag.reviewed_by) if flag.reviewed_by else None,
        "reviewed_at":    flag.reviewed_at.isoformat() if flag.reviewed_at else None,
        "review_notes":   flag.review_notes,
        "created_at":     flag.created_at.isoformat(),
    }
