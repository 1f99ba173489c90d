"""
Archalley community & competitions
models.py - competitions, registration cart, payments, submissions,
forum moderation and advertisement banners.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


# ─────────────────────────────────────────────
#  Role Choices
# ─────────────────────────────────────────────
class Role(models.TextChoices):
    MEMBER      = 'MEMBER',      _('Member')
    MODERATOR   = 'MODERATOR',   _('Moderator')
    ADMIN       = 'ADMIN',       _('Admin')
    SUPER_ADMIN = 'SUPER_ADMIN', _('Super admin')


MODERATION_ROLES = (Role.MODERATOR, Role.ADMIN, Role.SUPER_ADMIN)
ADMIN_ROLES      = (Role.ADMIN, Role.SUPER_ADMIN)


class CustomUserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError(_('Email is required.'))
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Role.SUPER_ADMIN)
        return self.create_user(email, password, **extra_fields)


# ─────────────────────────────────────────────
#  Custom User (single role)
# ─────────────────────────────────────────────
class CustomUser(AbstractBaseUser, PermissionsMixin):
    id          = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email       = models.EmailField(_('email'), unique=True)
    name        = models.CharField(_('name'), max_length=150, blank=True)
    role        = models.CharField(_('role'), max_length=20, choices=Role.choices, default=Role.MEMBER)

    is_active   = models.BooleanField(_('active'), default=True)
    is_staff    = models.BooleanField(_('staff'), default=False)
    date_joined = models.DateTimeField(_('joined'), default=timezone.now)

    objects = CustomUserManager()

    USERNAME_FIELD  = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name        = _('user')
        verbose_name_plural = _('users')

    def __str__(self):
        return self.name or self.email

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        return (self.name or self.email).split(' ')[0]

    @property
    def is_moderator(self) -> bool:
        return self.is_superuser or self.role in MODERATION_ROLES

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role in ADMIN_ROLES


# ─────────────────────────────────────────────
#  Competitions
# ─────────────────────────────────────────────
class Competition(models.Model):

    class Status(models.TextChoices):
        UPCOMING              = 'UPCOMING',              _('Upcoming')
        REGISTRATION_OPEN     = 'REGISTRATION_OPEN',     _('Registration open')
        REGISTRATION_CLOSED   = 'REGISTRATION_CLOSED',   _('Registration closed')
        IN_PROGRESS           = 'IN_PROGRESS',           _('In progress')
        JUDGING               = 'JUDGING',               _('Judging')
        COMPLETED             = 'COMPLETED',             _('Completed')
        CANCELLED             = 'CANCELLED',             _('Cancelled')

    title                  = models.CharField(_('title'), max_length=255)
    slug                   = models.SlugField(_('slug'), max_length=255, unique=True)
    status                 = models.CharField(_('status'), max_length=25, choices=Status.choices, default=Status.UPCOMING)
    registration_start     = models.DateTimeField(_('registration opens'), null=True, blank=True)
    registration_deadline  = models.DateTimeField(_('registration deadline'))
    end_date               = models.DateTimeField(_('submission deadline'))
    kids_end_date          = models.DateTimeField(_('kids submission deadline'), null=True, blank=True)
    currency               = models.CharField(_('currency'), max_length=3, default='LKR')
    created_at             = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name        = _('competition')
        verbose_name_plural = _('competitions')
        ordering            = ['-registration_deadline']

    def __str__(self):
        return self.title

    def submission_deadline_for(self, registration_type: 'RegistrationType'):
        """Kids entries may close on their own date."""
        if registration_type.type == RegistrationType.Type.KIDS and self.kids_end_date:
            return self.kids_end_date
        return self.end_date


class RegistrationType(models.Model):

    class Type(models.TextChoices):
        INDIVIDUAL = 'INDIVIDUAL', _('Individual')
        TEAM       = 'TEAM',       _('Team')
        COMPANY    = 'COMPANY',    _('Company')
        STUDENT    = 'STUDENT',    _('Student')
        KIDS       = 'KIDS',       _('Kids')

    competition  = models.ForeignKey(
        Competition, on_delete=models.CASCADE,
        related_name='registration_types', verbose_name=_('competition')
    )
    name         = models.CharField(_('name'), max_length=100)
    type         = models.CharField(_('type'), max_length=15, choices=Type.choices, default=Type.INDIVIDUAL)
    description  = models.TextField(_('description'), blank=True)
    fee          = models.DecimalField(_('fee'), max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    max_members  = models.PositiveSmallIntegerField(_('max members'), default=1)
    is_active    = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name        = _('registration type')
        verbose_name_plural = _('registration types')
        ordering            = ['competition', 'fee']

    def __str__(self):
        return f'{self.competition} - {self.name}'


# ─────────────────────────────────────────────
#  Registration Cart
# ─────────────────────────────────────────────
def cart_expiry_from(now=None):
    """Expiry timestamp for a cart touched at ``now``."""
    now = now or timezone.now()
    if settings.CART_EXPIRY_DISABLED:
        return now + timedelta(days=365 * 10)
    return now + timedelta(minutes=settings.CART_EXPIRY_MINUTES)


class RegistrationCart(models.Model):

    class Status(models.TextChoices):
        ACTIVE     = 'ACTIVE',     _('Active')
        PROCESSING = 'PROCESSING', _('Processing payment')
        COMPLETED  = 'COMPLETED',  _('Completed')
        EXPIRED    = 'EXPIRED',    _('Expired')

    user        = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='registration_carts', verbose_name=_('user')
    )
    status      = models.CharField(_('status'), max_length=12, choices=Status.choices, default=Status.ACTIVE)
    expires_at  = models.DateTimeField(_('expires at'), default=cart_expiry_from)
    created_at  = models.DateTimeField(auto_now_add=True)
    updated_at  = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name        = _('registration cart')
        verbose_name_plural = _('registration carts')
        ordering            = ['-created_at']
        indexes             = [models.Index(fields=['user', 'status'])]

    def __str__(self):
        return f'Cart {self.pk} ({self.user}) - {self.status}'

    @property
    def is_expired(self) -> bool:
        return self.expires_at < timezone.now()

    def mark_expired(self):
        self.status = self.Status.EXPIRED
        self.save(update_fields=['status', 'updated_at'])


class CartItem(models.Model):
    cart               = models.ForeignKey(
        RegistrationCart, on_delete=models.CASCADE,
        related_name='items', verbose_name=_('cart')
    )
    competition        = models.ForeignKey(Competition, on_delete=models.CASCADE, related_name='cart_items')
    registration_type  = models.ForeignKey(RegistrationType, on_delete=models.PROTECT, related_name='cart_items')
    country            = models.CharField(_('country'), max_length=100)
    participant_type   = models.CharField(_('participant type'), max_length=20, blank=True)
    referral_source    = models.CharField(_('referral source'), max_length=100, blank=True)
    members            = models.JSONField(_('members'), default=list)
    unit_price         = models.DecimalField(_('unit price'), max_digits=10, decimal_places=2)
    quantity           = models.PositiveSmallIntegerField(_('quantity'), default=1)
    subtotal           = models.DecimalField(_('subtotal'), max_digits=12, decimal_places=2)

    agree_to_terms           = models.BooleanField(default=False)
    agree_to_website_terms   = models.BooleanField(default=False)
    agree_to_privacy_policy  = models.BooleanField(default=False)
    agree_to_refund_policy   = models.BooleanField(default=False)

    created_at         = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name        = _('cart item')
        verbose_name_plural = _('cart items')
        ordering            = ['created_at']

    def __str__(self):
        return f'{self.registration_type} × {self.quantity}'

    @property
    def expires_at(self):
        return self.cart.expires_at

    def save(self, *args, **kwargs):
        self.subtotal = Decimal(self.unit_price) * self.quantity
        super().save(*args, **kwargs)


# ─────────────────────────────────────────────
#  Payments
# ─────────────────────────────────────────────
class CompetitionPayment(models.Model):

    class Method(models.TextChoices):
        CARD          = 'CARD',          _('Card (PayHere)')
        BANK_TRANSFER = 'BANK_TRANSFER', _('Bank transfer')

    class Status(models.TextChoices):
        PENDING   = 'PENDING',   _('Pending')
        COMPLETED = 'COMPLETED', _('Completed')
        FAILED    = 'FAILED',    _('Failed')
        CANCELLED = 'CANCELLED', _('Cancelled')
        REFUNDED  = 'REFUNDED',  _('Refunded')

    order_id          = models.CharField(_('order id'), max_length=40, unique=True)
    user              = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='competition_payments', verbose_name=_('user')
    )
    cart              = models.ForeignKey(
        RegistrationCart, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='payments', verbose_name=_('cart')
    )
    amount            = models.DecimalField(_('amount'), max_digits=12, decimal_places=2)
    currency          = models.CharField(_('currency'), max_length=3, default='LKR')
    payment_method    = models.CharField(_('method'), max_length=15, choices=Method.choices)
    status            = models.CharField(_('status'), max_length=10, choices=Status.choices, default=Status.PENDING)
    items             = models.JSONField(_('item snapshot'), default=list)
    customer_details  = models.JSONField(_('customer details'), default=dict)
    metadata          = models.JSONField(_('metadata'), default=dict, blank=True)
    response_data     = models.JSONField(_('gateway response'), default=dict, blank=True)
    bank_slip_url     = models.URLField(_('bank slip'), max_length=500, blank=True)
    created_at        = models.DateTimeField(auto_now_add=True)
    updated_at        = models.DateTimeField(auto_now=True)
    completed_at      = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name        = _('competition payment')
        verbose_name_plural = _('competition payments')
        ordering            = ['-created_at']

    def __str__(self):
        return f'{self.order_id} - {self.amount} {self.currency} ({self.status})'


class Registration(models.Model):

    class Status(models.TextChoices):
        PENDING   = 'PENDING',   _('Pending payment')
        CONFIRMED = 'CONFIRMED', _('Confirmed')
        SUBMITTED = 'SUBMITTED', _('Entry submitted')
        CANCELLED = 'CANCELLED', _('Cancelled')
        REFUNDED  = 'REFUNDED',  _('Refunded')

    user                 = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='registrations', verbose_name=_('user')
    )
    competition          = models.ForeignKey(Competition, on_delete=models.PROTECT, related_name='registrations')
    registration_type    = models.ForeignKey(RegistrationType, on_delete=models.PROTECT, related_name='registrations')
    payment              = models.ForeignKey(
        CompetitionPayment, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='registrations', verbose_name=_('payment')
    )
    registration_number  = models.CharField(_('registration number'), max_length=12, unique=True)
    status               = models.CharField(_('status'), max_length=10, choices=Status.choices, default=Status.PENDING)
    country              = models.CharField(_('country'), max_length=100, blank=True)
    participant_type     = models.CharField(_('participant type'), max_length=20, blank=True)
    members              = models.JSONField(_('members'), default=list)
    amount_paid          = models.DecimalField(_('amount paid'), max_digits=12, decimal_places=2, default=Decimal('0'))
    currency             = models.CharField(_('currency'), max_length=3, default='LKR')
    confirmed_at         = models.DateTimeField(null=True, blank=True)
    created_at           = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name        = _('registration')
        verbose_name_plural = _('registrations')
        ordering            = ['-created_at']

    def __str__(self):
        return f'{self.registration_number} - {self.competition}'


# ─────────────────────────────────────────────
#  Submissions
# ─────────────────────────────────────────────
class Submission(models.Model):

    class Category(models.TextChoices):
        DIGITAL  = 'DIGITAL',  _('Digital')
        PHYSICAL = 'PHYSICAL', _('Physical')

    class Status(models.TextChoices):
        DRAFT     = 'DRAFT',     _('Draft')
        SUBMITTED = 'SUBMITTED', _('Submitted')
        VALIDATED = 'VALIDATED', _('Validated')
        PUBLISHED = 'PUBLISHED', _('Published')
        REJECTED  = 'REJECTED',  _('Rejected')
        WITHDRAWN = 'WITHDRAWN', _('Withdrawn')

    registration       = models.OneToOneField(
        Registration, on_delete=models.CASCADE,
        related_name='submission', verbose_name=_('registration')
    )
    user               = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='submissions', verbose_name=_('user')
    )
    competition        = models.ForeignKey(Competition, on_delete=models.CASCADE, related_name='submissions')
    category           = models.CharField(_('category'), max_length=10, choices=Category.choices, blank=True)
    description        = models.TextField(_('description'), blank=True)
    key_photo_url      = models.URLField(_('key photo'), max_length=500, blank=True)
    additional_photos  = models.JSONField(_('additional photos'), default=list, blank=True)
    document_url       = models.URLField(_('document'), max_length=500, blank=True)
    video_url          = models.URLField(_('video'), max_length=500, blank=True)
    status             = models.CharField(_('status'), max_length=10, choices=Status.choices, default=Status.DRAFT)
    agreed_to_terms    = models.BooleanField(_('agreed to terms'), default=False)

    submitted_at       = models.DateTimeField(null=True, blank=True)
    validated_at       = models.DateTimeField(null=True, blank=True)
    validated_by       = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='validated_submissions', verbose_name=_('validated by')
    )
    published_at       = models.DateTimeField(null=True, blank=True)
    rejected_at        = models.DateTimeField(null=True, blank=True)
    rejection_reason   = models.TextField(_('rejection reason'), blank=True)
    withdrawn_at       = models.DateTimeField(null=True, blank=True)

    created_at         = models.DateTimeField(auto_now_add=True)
    updated_at         = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name        = _('submission')
        verbose_name_plural = _('submissions')
        ordering            = ['-updated_at']

    def __str__(self):
        return f'{self.registration.registration_number} - {self.status}'

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.DRAFT


# ─────────────────────────────────────────────
#  Forum moderation
# ─────────────────────────────────────────────
class Post(models.Model):
    author       = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='posts', verbose_name=_('author')
    )
    content      = models.TextField(_('content'))
    is_hidden    = models.BooleanField(_('hidden'), default=False)
    is_pinned    = models.BooleanField(_('pinned'), default=False)
    is_locked    = models.BooleanField(_('locked'), default=False)
    is_deleted   = models.BooleanField(_('deleted'), default=False)
    is_flagged   = models.BooleanField(_('flagged'), default=False)
    flag_count   = models.PositiveIntegerField(_('open flags'), default=0)
    created_at   = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name        = _('post')
        verbose_name_plural = _('posts')
        ordering            = ['-created_at']

    def __str__(self):
        return f'{self.author}: {self.content[:40]}'


class PostFlag(models.Model):

    class Reason(models.TextChoices):
        SPAM                   = 'SPAM',                  _('Spam')
        INAPPROPRIATE_CONTENT  = 'INAPPROPRIATE_CONTENT', _('Inappropriate content')
        HARASSMENT             = 'HARASSMENT',            _('Harassment')
        MISINFORMATION         = 'MISINFORMATION',        _('Misinformation')
        COPYRIGHT_VIOLATION    = 'COPYRIGHT_VIOLATION',   _('Copyright violation')
        OFF_TOPIC              = 'OFF_TOPIC',             _('Off topic')
        OTHER                  = 'OTHER',                 _('Other')

    class Severity(models.TextChoices):
        LOW      = 'LOW',      _('Low')
        MEDIUM   = 'MEDIUM',   _('Medium')
        HIGH     = 'HIGH',     _('High')
        CRITICAL = 'CRITICAL', _('Critical')

    class Status(models.TextChoices):
        PENDING   = 'PENDING',   _('Pending')
        REVIEWED  = 'REVIEWED',  _('Reviewed')
        RESOLVED  = 'RESOLVED',  _('Resolved')
        DISMISSED = 'DISMISSED', _('Dismissed')
        ESCALATED = 'ESCALATED', _('Escalated')

    OPEN_STATUSES = (Status.PENDING, Status.REVIEWED)

    post           = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='flags')
    reporter       = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='post_flags', verbose_name=_('reporter')
    )
    reason         = models.CharField(_('reason'), max_length=25, choices=Reason.choices)
    custom_reason  = models.CharField(_('custom reason'), max_length=255, blank=True)
    description    = models.TextField(_('description'), blank=True)
    severity       = models.CharField(_('severity'), max_length=10, choices=Severity.choices, default=Severity.MEDIUM)
    status         = models.CharField(_('status'), max_length=10, choices=Status.choices, default=Status.PENDING)
    reviewed_by    = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='reviewed_flags', verbose_name=_('reviewed by')
    )
    reviewed_at    = models.DateTimeField(null=True, blank=True)
    review_notes   = models.TextField(_('review notes'), blank=True)
    ip_address     = models.GenericIPAddressField(null=True, blank=True)
    created_at     = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name        = _('post flag')
        verbose_name_plural = _('post flags')
        ordering            = ['created_at']
        constraints         = [
            models.UniqueConstraint(fields=['post', 'reporter', 'reason'], name='unique_flag_per_reason'),
        ]

    def __str__(self):
        return f'{self.get_reason_display()} on post {self.post_id} ({self.status})'


class ModerationAction(models.Model):

    class Action(models.TextChoices):
        REVIEW_FLAG  = 'REVIEW_FLAG',  _('Review flag')
        HIDE         = 'HIDE',         _('Hide post')
        UNHIDE       = 'UNHIDE',       _('Unhide post')
        PIN          = 'PIN',          _('Pin post')
        UNPIN        = 'UNPIN',        _('Unpin post')
        LOCK         = 'LOCK',         _('Lock post')
        UNLOCK       = 'UNLOCK',       _('Unlock post')
        DELETE       = 'DELETE',       _('Delete post')

    moderator   = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True,
        related_name='moderation_actions', verbose_name=_('moderator')
    )
    post        = models.ForeignKey(Post, on_delete=models.SET_NULL, null=True, blank=True, related_name='moderation_actions')
    flag        = models.ForeignKey(PostFlag, on_delete=models.SET_NULL, null=True, blank=True, related_name='actions')
    action      = models.CharField(_('action'), max_length=15, choices=Action.choices)
    details     = models.JSONField(_('details'), default=dict, blank=True)
    created_at  = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name        = _('moderation action')
        verbose_name_plural = _('moderation actions')
        ordering            = ['-created_at']

    def __str__(self):
        return f'{self.moderator} - {self.action}'


# ─────────────────────────────────────────────
#  Advertisement banners
# ─────────────────────────────────────────────
class Advertisement(models.Model):

    class Priority(models.IntegerChoices):
        LOW    = 1, _('Low')
        MEDIUM = 2, _('Medium')
        HIGH   = 3, _('High')
        URGENT = 4, _('Urgent')

    title           = models.CharField(_('title'), max_length=255, blank=True)
    description     = models.TextField(_('description'), blank=True)
    image_url       = models.URLField(_('image'), max_length=500)
    redirect_url    = models.URLField(_('redirect'), max_length=500)
    size            = models.CharField(_('size'), max_length=20, db_index=True)
    active          = models.BooleanField(_('active'), default=True)
    weight          = models.PositiveIntegerField(_('weight'), default=1)
    priority        = models.PositiveSmallIntegerField(_('priority'), choices=Priority.choices, default=Priority.LOW)
    click_count     = models.PositiveIntegerField(_('clicks'), default=0)
    impressions     = models.PositiveIntegerField(_('impressions'), default=0)
    created_by      = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='created_ads', verbose_name=_('created by')
    )
    last_edited_by  = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='edited_ads', verbose_name=_('last edited by')
    )
    created_at      = models.DateTimeField(auto_now_add=True)
    updated_at      = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name        = _('advertisement')
        verbose_name_plural = _('advertisements')
        ordering            = ['-active', '-priority', '-weight']

    def __str__(self):
        return f'{self.title or self.image_url} [{self.size}]'


# ─────────────────────────────────────────────
#  Notifications
# ─────────────────────────────────────────────
class Notification(models.Model):
    """Stored notification; the frontend polls these instead of a socket feed."""

    class NotificationType(models.TextChoices):
        REGISTRATION_CONFIRMED = 'registration_confirmed', _('Registration confirmed')
        PAYMENT_REJECTED       = 'payment_rejected',       _('Payment rejected')
        SUBMISSION_RECEIVED    = 'submission_received',    _('Submission received')
        SUBMISSION_VALIDATED   = 'submission_validated',   _('Submission validated')
        SUBMISSION_PUBLISHED   = 'submission_published',   _('Submission published')
        SUBMISSION_REJECTED    = 'submission_rejected',    _('Submission rejected')
        SUBMISSION_REMINDER    = 'submission_reminder',    _('Submission reminder')
        POST_FLAGGED           = 'post_flagged',           _('Post flagged')
        GENERAL                = 'general',                _('General')

    recipient   = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='notifications', verbose_name=_('recipient')
    )
    type        = models.CharField(_('type'), max_length=30, choices=NotificationType.choices, default=NotificationType.GENERAL)
    title       = models.CharField(_('title'), max_length=255)
    message     = models.TextField(_('message'))
    link        = models.CharField(_('link'), max_length=255, blank=True)
    is_read     = models.BooleanField(_('read'), default=False)
    created_at  = models.DateTimeField(_('sent at'), auto_now_add=True)
    read_at     = models.DateTimeField(_('read at'), null=True, blank=True)

    class Meta:
        verbose_name        = _('notification')
        verbose_name_plural = _('notifications')
        ordering            = ['-created_at']

    def __str__(self):
        return f'{self.recipient} - {self.title}'

    def mark_as_read(self):
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=['is_read', 'read_at'])
