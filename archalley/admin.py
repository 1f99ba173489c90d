"""
admin.py
─────────────────────────────────────────────────────────────────────
Django admin back office: competitions, carts, payments, entries,
moderation and banners.
"""

from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin
from django.utils import timezone
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import (
    Advertisement, CartItem, Competition, CompetitionPayment, CustomUser,
    ModerationAction, Notification, Post, PostFlag, Registration,
    RegistrationCart, RegistrationType, Submission,
)
from .services.submission_service import SubmissionService

# ── Site branding ────────────────────────────────────────────────────
admin.site.site_header  = _("Archalley administration")
admin.site.site_title   = _("Archalley admin")
admin.site.index_title  = _("Home")


STATUS_COLORS = {
    "PENDING":    "#6c757d",
    "ACTIVE":     "#007bff",
    "PROCESSING": "#fd7e14",
    "CONFIRMED":  "#28a745",
    "COMPLETED":  "#28a745",
    "SUBMITTED":  "#17a2b8",
    "VALIDATED":  "#007bff",
    "PUBLISHED":  "#28a745",
    "REJECTED":   "#dc3545",
    "FAILED":     "#dc3545",
    "CANCELLED":  "#dc3545",
    "EXPIRED":    "#adb5bd",
    "WITHDRAWN":  "#adb5bd",
    "REFUNDED":   "#6f42c1",
}


def status_badge(value, label):
    return format_html(
        '<span style="background:{};color:#fff;padding:2px 7px;border-radius:4px;font-size:11px">{}</span>',
        STATUS_COLORS.get(value, "#999"), label,
    )


# ════════════════════════════════════════════════════════════════════
#  CustomUser Admin
# ════════════════════════════════════════════════════════════════════

@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display    = ("email", "name", "role", "is_active", "date_joined")
    list_filter     = ("role", "is_active", "is_staff")
    search_fields   = ("email", "name")
    ordering        = ("email",)

    fieldsets = (
        (_("Login"),        {"fields": ("email", "password")}),
        (_("Profile"),      {"fields": ("name", "role")}),
        (_("Permissions"),  {"fields": ("is_active", "is_staff", "is_superuser",
                                        "groups", "user_permissions")}),
        (_("Dates"),        {"fields": ("date_joined", "last_login")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "name", "role", "password1", "password2")}),
    )


# ════════════════════════════════════════════════════════════════════
#  Competitions
# ════════════════════════════════════════════════════════════════════

class RegistrationTypeInline(admin.TabularInline):
    model   = RegistrationType
    extra   = 0
    fields  = ("name", "type", "fee", "max_members", "is_active")


@admin.register(Competition)
class CompetitionAdmin(admin.ModelAdmin):
    list_display         = ("title", "status", "registration_deadline", "end_date", "currency")
    list_filter          = ("status",)
    search_fields        = ("title", "slug")
    prepopulated_fields  = {"slug": ("title",)}
    inlines              = [RegistrationTypeInline]


class CartItemInline(admin.TabularInline):
    model            = CartItem
    extra            = 0
    can_delete       = False
    readonly_fields  = ("competition", "registration_type", "country", "unit_price", "quantity", "subtotal")
    fields           = readonly_fields


@admin.register(RegistrationCart)
class RegistrationCartAdmin(admin.ModelAdmin):
    list_display     = ("pk", "user", "status_display", "expires_at", "updated_at")
    list_filter      = ("status",)
    search_fields    = ("user__email",)
    inlines          = [CartItemInline]

    def status_display(self, obj):
        return status_badge(obj.status, obj.get_status_display())
    status_display.short_description = _("status")


# ════════════════════════════════════════════════════════════════════
#  Payments & Registrations
# ════════════════════════════════════════════════════════════════════

class RegistrationInline(admin.TabularInline):
    model            = Registration
    extra            = 0
    can_delete       = False
    readonly_fields  = ("registration_number", "competition", "registration_type", "status", "amount_paid")
    fields           = readonly_fields


@admin.register(CompetitionPayment)
class CompetitionPaymentAdmin(admin.ModelAdmin):
    list_display     = ("order_id", "user", "amount", "currency", "payment_method",
                        "status_display", "slip_link", "created_at")
    list_filter      = ("status", "payment_method", "currency")
    search_fields    = ("order_id", "user__email")
    readonly_fields  = ("order_id", "items", "customer_details", "metadata", "response_data",
                        "created_at", "completed_at")
    inlines          = [RegistrationInline]
    date_hierarchy   = "created_at"

    def status_display(self, obj):
        return status_badge(obj.status, obj.get_status_display())
    status_display.short_description = _("status")

    def slip_link(self, obj):
        if not obj.bank_slip_url:
            return "-"
        return format_html('<a href="{}" target="_blank">{}</a>', obj.bank_slip_url, _("slip"))
    slip_link.short_description = _("bank slip")


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display     = ("registration_number", "user", "competition", "registration_type",
                        "status_display", "amount_paid", "confirmed_at")
    list_filter      = ("status", "competition")
    search_fields    = ("registration_number", "user__email")
    readonly_fields  = ("registration_number", "payment", "confirmed_at", "created_at")

    def status_display(self, obj):
        return status_badge(obj.status, obj.get_status_display())
    status_display.short_description = _("status")


# ════════════════════════════════════════════════════════════════════
#  Submissions
# ════════════════════════════════════════════════════════════════════

@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display     = ("registration", "competition", "category", "status_display",
                        "submitted_at", "validated_by")
    list_filter      = ("status", "category", "competition")
    search_fields    = ("registration__registration_number", "user__email")
    readonly_fields  = ("status", "submitted_at", "validated_at", "validated_by", "published_at",
                        "rejected_at", "withdrawn_at", "created_at", "updated_at")
    content_fields   = ("registration", "user", "competition", "category", "description", "key_photo_url",
                        "additional_photos", "document_url", "video_url", "agreed_to_terms",
                        "rejection_reason")
    actions          = ["validate_selected", "publish_selected"]

    def get_readonly_fields(self, request, obj=None):
        # status only moves through the actions; entries past DRAFT are frozen
        if obj is not None and obj.status != Submission.Status.DRAFT:
            return self.readonly_fields + self.content_fields
        return self.readonly_fields

    def status_display(self, obj):
        return status_badge(obj.status, obj.get_status_display())
    status_display.short_description = _("status")

    def _bulk(self, request, queryset, transition):
        done = 0
        for submission in queryset:
            try:
                getattr(SubmissionService, transition)(request.user, submission.pk)
                done += 1
            except ValueError as e:
                self.message_user(request, f"{submission}: {e}", level=messages.WARNING)
        self.message_user(request, _("%(n)d entries updated.") % {"n": done}, level=messages.SUCCESS)

    @admin.action(description=_("Validate selected entries"))
    def validate_selected(self, request, queryset):
        self._bulk(request, queryset, "validate")

    @admin.action(description=_("Publish selected entries"))
    def publish_selected(self, request, queryset):
        self._bulk(request, queryset, "publish")


# ════════════════════════════════════════════════════════════════════
#  Moderation
# ════════════════════════════════════════════════════════════════════

@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display   = ("pk", "author", "is_flagged", "flag_count", "is_hidden", "is_locked", "is_pinned", "created_at")
    list_filter    = ("is_flagged", "is_hidden", "is_locked", "is_deleted")
    search_fields  = ("content", "author__email")


@admin.register(PostFlag)
class PostFlagAdmin(admin.ModelAdmin):
    list_display     = ("pk", "post", "reporter", "reason", "severity", "status", "reviewed_by", "created_at")
    list_filter      = ("status", "severity", "reason")
    search_fields    = ("post__content", "reporter__email", "description")
    readonly_fields  = ("ip_address", "created_at", "reviewed_at")


@admin.register(ModerationAction)
class ModerationActionAdmin(admin.ModelAdmin):
    list_display   = ("created_at", "moderator", "action", "post", "flag")
    list_filter    = ("action",)

    def has_change_permission(self, request, obj=None):
        return False


# ════════════════════════════════════════════════════════════════════
#  Advertisements
# ════════════════════════════════════════════════════════════════════

@admin.register(Advertisement)
class AdvertisementAdmin(admin.ModelAdmin):
    list_display     = ("title", "size", "active", "priority", "weight", "click_count", "impressions", "preview")
    list_filter      = ("active", "size", "priority")
    search_fields    = ("title", "redirect_url")
    readonly_fields  = ("click_count", "impressions", "created_by", "last_edited_by", "created_at", "updated_at")
    actions          = ["activate_selected", "deactivate_selected"]

    def preview(self, obj):
        return format_html('<img src="{}" style="max-height:40px">', obj.image_url)
    preview.short_description = _("preview")

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        obj.last_edited_by = request.user
        super().save_model(request, obj, form, change)

    @admin.action(description=_("Activate selected banners"))
    def activate_selected(self, request, queryset):
        queryset.update(active=True, last_edited_by=request.user, updated_at=timezone.now())

    @admin.action(description=_("Deactivate selected banners"))
    def deactivate_selected(self, request, queryset):
        queryset.update(active=False, last_edited_by=request.user, updated_at=timezone.now())


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display   = ("recipient", "type", "title", "is_read", "created_at")
    list_filter    = ("type", "is_read")
    search_fields  = ("recipient__email", "title")
