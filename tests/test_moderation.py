"""
tests/test_moderation.py
─────────────────────────────────────────────────────────────────────
Reported posts: creation rules, queue ordering, review and post actions.
"""
from __future__ import annotations

import pytest

from archalley.models import ModerationAction, Notification, Post, PostFlag, Role
from archalley.services.moderation_service import ModerationService

from conftest import client_for, make_user

FLAGS_URL = "/api/flags/"


@pytest.fixture
def post(member):
    return Post.objects.create(author=member, content="My Christmas tree made from recycled bottles")


def report(user, post, reason=PostFlag.Reason.SPAM, severity=PostFlag.Severity.MEDIUM, **extra):
    return ModerationService.create_report(user, post.pk, reason=reason, severity=severity, **extra)


# ════════════════════════════════════════════════════════════════════
#  Creating reports
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestCreateReport:

    def test_report_flags_post(self, other_client, post, moderator):
        resp = other_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "SPAM"})
        assert resp.status_code == 201

        flag = PostFlag.objects.get(pk=resp.json()["flag_id"])
        assert flag.severity == PostFlag.Severity.MEDIUM
        assert flag.ip_address == "127.0.0.1"
        post.refresh_from_db()
        assert post.is_flagged is True
        assert post.flag_count == 1
        assert Notification.objects.filter(
            recipient=moderator, type=Notification.NotificationType.POST_FLAGGED
        ).count() == 1

    def test_anonymous_cannot_report(self, anon_client, post):
        assert anon_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "SPAM"}).status_code == 401

    def test_cannot_report_own_post(self, member_client, post):
        resp = member_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "SPAM"})
        assert resp.status_code == 400
        assert "own post" in resp.json()["error"]

    def test_duplicate_reason_rejected(self, other_client, post):
        other_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "SPAM"})
        resp = other_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "SPAM"})
        assert resp.status_code == 400
        assert "already reported" in resp.json()["error"]
        post.refresh_from_db()
        assert post.flag_count == 1

    def test_same_user_other_reason_allowed(self, other_client, post):
        other_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "SPAM"})
        resp = other_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "HARASSMENT"})
        assert resp.status_code == 201
        post.refresh_from_db()
        assert post.flag_count == 2

    def test_other_needs_custom_reason(self, other_client, post):
        resp = other_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "OTHER"})
        assert resp.status_code == 400
        assert "custom_reason" in resp.json()["fields"]

    def test_deleted_post_cannot_be_reported(self, other_client, post):
        Post.objects.filter(pk=post.pk).update(is_deleted=True)
        resp = other_client.post_json(FLAGS_URL, {"post_id": post.pk, "reason": "SPAM"})
        assert resp.status_code == 404

    def test_reporting_moderator_is_not_notified(self, moderator, post):
        report(moderator, post)
        assert not Notification.objects.filter(recipient=moderator).exists()


# ════════════════════════════════════════════════════════════════════
#  Queue
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestQueue:

    @pytest.fixture
    def reporters(self, db):
        return [make_user(f"reporter{i}@example.com") for i in range(4)]

    def test_members_cannot_list(self, other_client):
        assert other_client.get(FLAGS_URL).status_code == 403

    def test_ordered_by_severity_then_age(self, moderator_client, post, reporters):
        low      = report(reporters[0], post, severity=PostFlag.Severity.LOW)
        medium   = report(reporters[1], post, severity=PostFlag.Severity.MEDIUM)
        critical = report(reporters[2], post, severity=PostFlag.Severity.CRITICAL)
        medium2  = report(reporters[3], post, severity=PostFlag.Severity.MEDIUM)

        ids = [r["id"] for r in moderator_client.get(FLAGS_URL).json()["reports"]]
        assert ids == [critical.pk, medium.pk, medium2.pk, low.pk]

    def test_pagination(self, moderator_client, post, reporters):
        for user in reporters:
            report(user, post)
        body = moderator_client.get(FLAGS_URL + "?page=2&limit=3").json()
        assert len(body["reports"]) == 1
        assert body["pagination"] == {
            "current_page": 2, "total_pages": 2, "total_reports": 4,
            "has_next": False, "has_prev": True,
        }

    def test_status_and_severity_filters(self, moderator_client, moderator, post, reporters):
        high = report(reporters[0], post, severity=PostFlag.Severity.HIGH)
        low  = report(reporters[1], post, severity=PostFlag.Severity.LOW)
        ModerationService.review_report(moderator, low.pk, PostFlag.Status.DISMISSED)

        pending = moderator_client.get(FLAGS_URL).json()["reports"]
        assert [r["id"] for r in pending] == [high.pk]

        every = moderator_client.get(FLAGS_URL + "?status=all").json()["reports"]
        assert len(every) == 2

        only_low = moderator_client.get(FLAGS_URL + "?status=ALL&severity=low").json()["reports"]
        assert [r["id"] for r in only_low] == [low.pk]

    @pytest.mark.parametrize("query", ["?status=OPEN", "?severity=HUGE", "?page=x"])
    def test_bad_query(self, moderator_client, query):
        assert moderator_client.get(FLAGS_URL + query).status_code == 400


# ════════════════════════════════════════════════════════════════════
#  Review
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestReview:

    def test_members_cannot_review(self, other_client, other_member, post):
        flag = report(other_member, post)
        resp = other_client.patch_json(f"{FLAGS_URL}{flag.pk}/", {"status": "RESOLVED"})
        assert resp.status_code == 403

    def test_detail(self, moderator_client, other_member, post):
        flag = report(other_member, post, description="Selling stuff")
        body = moderator_client.get(f"{FLAGS_URL}{flag.pk}/").json()
        assert body["report"]["description"] == "Selling stuff"
        assert body["report"]["post"]["id"] == post.pk

    def test_resolve_with_hide(self, moderator_client, moderator, other_member, post):
        flag = report(other_member, post)
        resp = moderator_client.patch_json(
            f"{FLAGS_URL}{flag.pk}/", {"status": "RESOLVED", "review_notes": "spam link", "action": "HIDE"},
        )
        assert resp.status_code == 200
        body = resp.json()["report"]
        assert body["status"] == "RESOLVED"
        assert body["post"]["is_hidden"] is True

        post.refresh_from_db()
        assert post.is_hidden is True
        assert post.is_flagged is False
        assert post.flag_count == 0
        actions = list(ModerationAction.objects.filter(flag=flag).values_list("action", flat=True))
        assert sorted(actions) == ["HIDE", "REVIEW_FLAG"]

    def test_resolve_with_delete(self, moderator_client, other_member, post):
        flag = report(other_member, post)
        resp = moderator_client.patch_json(f"{FLAGS_URL}{flag.pk}/", {"status": "RESOLVED", "action": "DELETE"})
        assert resp.status_code == 200
        post.refresh_from_db()
        assert post.is_deleted is True
        assert ModerationAction.objects.filter(flag=flag, action="DELETE").exists()

    def test_reviewed_keeps_post_flagged(self, moderator, other_member, post):
        flag = report(other_member, post)
        ModerationService.review_report(moderator, flag.pk, PostFlag.Status.REVIEWED)
        post.refresh_from_db()
        assert post.is_flagged is True

    def test_dismissing_one_of_two_keeps_flag(self, moderator, other_member, post):
        first  = report(other_member, post, reason=PostFlag.Reason.SPAM)
        report(other_member, post, reason=PostFlag.Reason.OFF_TOPIC)
        ModerationService.review_report(moderator, first.pk, PostFlag.Status.DISMISSED)
        post.refresh_from_db()
        assert post.flag_count == 1
        assert post.is_flagged is True

    def test_closed_report_cannot_be_reviewed_again(self, moderator_client, moderator, other_member, post):
        flag = report(other_member, post)
        ModerationService.review_report(moderator, flag.pk, PostFlag.Status.DISMISSED)
        resp = moderator_client.patch_json(f"{FLAGS_URL}{flag.pk}/", {"status": "RESOLVED"})
        assert resp.status_code == 400

    def test_moderator_can_escalate(self, moderator_client, other_member, post):
        flag = report(other_member, post)
        resp = moderator_client.patch_json(f"{FLAGS_URL}{flag.pk}/", {"status": "ESCALATED"})
        assert resp.json()["report"]["status"] == "ESCALATED"

    def test_super_admin_cannot_escalate(self, super_admin_client, other_member, post):
        flag = report(other_member, post)
        resp = super_admin_client.patch_json(f"{FLAGS_URL}{flag.pk}/", {"status": "ESCALATED"})
        assert resp.status_code == 403
        flag.refresh_from_db()
        assert flag.status == PostFlag.Status.PENDING

    def test_unknown_action(self, moderator_client, other_member, post):
        flag = report(other_member, post)
        resp = moderator_client.patch_json(f"{FLAGS_URL}{flag.pk}/", {"status": "RESOLVED", "action": "BAN"})
        assert resp.status_code == 400
        assert "action" in resp.json()["fields"]

    @pytest.mark.parametrize("action, field, value", [
        (ModerationAction.Action.PIN, "is_pinned", True),
        (ModerationAction.Action.LOCK, "is_locked", True),
        (ModerationAction.Action.DELETE, "is_deleted", True),
    ])
    def test_post_actions(self, moderator, post, action, field, value):
        ModerationService.perform_post_action(moderator, post, action)
        post.refresh_from_db()
        assert getattr(post, field) is value

    def test_unhide_reverses_hide(self, moderator, post):
        ModerationService.perform_post_action(moderator, post, ModerationAction.Action.HIDE)
        ModerationService.perform_post_action(moderator, post, ModerationAction.Action.UNHIDE)
        post.refresh_from_db()
        assert post.is_hidden is False
        assert ModerationAction.objects.filter(post=post).count() == 2


# ════════════════════════════════════════════════════════════════════
#  Stats
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
def test_stats(moderator_client, moderator, other_member, post):
    report(other_member, post, reason=PostFlag.Reason.SPAM, severity=PostFlag.Severity.CRITICAL)
    dismissed = report(other_member, post, reason=PostFlag.Reason.OFF_TOPIC)
    ModerationService.review_report(moderator, dismissed.pk, PostFlag.Status.DISMISSED, action="HIDE")

    stats = moderator_client.get(FLAGS_URL + "stats/").json()["stats"]
    assert stats["total"] == 2
    assert stats["pending"] == 1
    assert stats["dismissed"] == 1
    assert stats["critical_pending"] == 1
    assert stats["flagged_posts"] == 1
    assert stats["hidden_posts"] == 1


@pytest.mark.django_db
def test_admin_roles_can_moderate(site_admin, other_member, post):
    flag = report(other_member, post)
    resp = client_for(site_admin).patch_json(f"{FLAGS_URL}{flag.pk}/", {"status": "RESOLVED"})
    assert resp.status_code == 200
    assert site_admin.role == Role.ADMIN
