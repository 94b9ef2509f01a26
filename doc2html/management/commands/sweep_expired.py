from django.core.management.base import BaseCommand

from doc2html import lifecycle


class Command(BaseCommand):
    help = (
        "Delete ConversionJob records whose expiry has passed. Reads already "
        "delete expired jobs lazily; run this periodically to bound storage."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many jobs would be deleted.",
        )

    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))
        count = lifecycle.sweep_expired(dry_run=dry_run)

        if dry_run:
            self.stdout.write(f"[dry-run] {count} expired jobs would be deleted")
            return
        self.stdout.write(self.style.SUCCESS(f"sweep done. deleted jobs: {count}"))
