from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from cart.models import Cart


class Command(BaseCommand):
    help = "Delete carts (and their lines) that have not been touched for N days."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=settings.SHOP["ABANDONED_CART_DAYS"],
            help="Idle period after which a cart is removed",
        )
        parser.add_argument("--dry-run", action="store_true", help="Only report how many carts would go")

    def handle(self, *args, **options):
        cutoff = timezone.now() - timedelta(days=options["days"])
        stale = Cart.objects.filter(updated_at__lt=cutoff)
        count = stale.count()

        if options["dry_run"]:
            self.stdout.write(f"{count} cart(s) idle since {cutoff:%Y-%m-%d} would be deleted")
            return

        stale.delete()
        self.stdout.write(self.style.SUCCESS(f"Deleted {count} abandoned cart(s)"))
