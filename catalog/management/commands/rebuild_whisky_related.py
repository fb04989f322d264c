"""
Management command to rebuild the whole whisky_related table.

Scores every whisky against the catalog with the batch profile and
replaces all relations in a single transaction. The storage dialect is the
one DATABASE_URL selected (mysql/mariadb, postgresql, or an SQLite file).

Usage:
    python manage.py rebuild_whisky_related
    python manage.py rebuild_whisky_related --top=10
    python manage.py rebuild_whisky_related --dry-run
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from catalog.monitoring import add_rebuild_breadcrumb, capture_rebuild_error
from catalog.services.related_batch import rebuild_all_related_batch
from catalog.services.related_scoring import DEFAULT_TOP_LIMIT

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Rebuild related whiskies for the entire catalog."""

    help = "Recompute related whiskies for every whisky in one transaction"

    def add_arguments(self, parser):
        parser.add_argument(
            "--top",
            type=int,
            default=DEFAULT_TOP_LIMIT,
            help=f"Related whiskies kept per whisky (default: {DEFAULT_TOP_LIMIT})",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Compute relations without writing them",
        )

    def handle(self, *args, **options):
        top_limit = max(1, options["top"])
        dry_run = options["dry_run"]

        if dry_run:
            self.stdout.write(self.style.WARNING("Running in dry-run mode - nothing will be written"))

        add_rebuild_breadcrumb("batch", message="Full related rebuild", extra_data={"top": top_limit})

        try:
            result = rebuild_all_related_batch(top_limit=top_limit, dry_run=dry_run)
        except Exception as e:
            logger.exception("rebuild whisky_related failed")
            capture_rebuild_error(e, operation="batch", extra_context={"top": top_limit})
            raise CommandError(f"rebuild whisky_related failed: {e}") from e

        logger.info(
            f"Batch related rebuild finished in {result.duration_seconds:.2f}s "
            f"({result.relation_count} relations)"
        )

        if dry_run:
            self.stdout.write(
                f"Dry run ({result.dialect}): would write {result.relation_count} relations "
                f"for {result.whisky_count} entities."
            )
        else:
            self.stdout.write(result.summary())
