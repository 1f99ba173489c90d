"""
archalley/management/commands/expire_carts.py
────────────────────────────────────────────────────────────────────
Sweep registration carts by hand (the beat schedule does it every
10 minutes).

Usage:
  python manage.py expire_carts
  python manage.py expire_carts --dry-run
  python manage.py expire_carts --payments      # also cancel abandoned card payments
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from archalley.models import RegistrationCart
from archalley.services.cart_service import CartService
from archalley.services.payment_service import PaymentService


class Command(BaseCommand):
    help = "Mark expired registration carts as EXPIRED"

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Only count, change nothing")
        parser.add_argument("--payments", action="store_true",
                            help="Also cancel card payments pending for more than 24 hours")

    def handle(self, *args, **options):
        if options["dry_run"]:
            stale = RegistrationCart.objects.filter(
                status=RegistrationCart.Status.ACTIVE,
                expires_at__lt=timezone.now(),
            ).count()
            self.stdout.write(self.style.WARNING(f"[DRY-RUN] {stale} cart(s) would expire"))
            return

        expired = CartService.expire_stale_carts()
        self.stdout.write(self.style.SUCCESS(f"{expired} cart(s) expired"))

        if options["payments"]:
            cancelled = PaymentService.cancel_abandoned_card_payments()
            self.stdout.write(self.style.SUCCESS(f"{cancelled} abandoned payment(s) cancelled"))
