from django.core.management.base import BaseCommand, CommandError

from trade_core.models import Company
from trade_core.services import (reconcile_company_balances,
                                 refresh_overdue_flags)


class Command(BaseCommand):
    help = (
        "Recompute client credit and supplier payable balances from unpaid "
        "sales/purchases. Safe to re-run; use for backfill and repair."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--company",
            metavar="SLUG",
            help="Only reconcile this company (default: every company).",
        )
        parser.add_argument(
            "--refresh-overdue",
            action="store_true",
            help="Also rewrite the stored is_overdue flag on every record.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing anything.",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        slug = options["company"]

        if dry_run:
            self.stdout.write(
                self.style.WARNING("DRY RUN MODE - No changes will be made"))

        companies = Company.objects.order_by("pk")
        if slug:
            companies = companies.filter(slug=slug)
            if not companies.exists():
                raise CommandError(f"No company with slug '{slug}'")

        changed = 0
        for company in companies:
            stats = reconcile_company_balances(company, dry_run=dry_run)
            changed += stats["clients_changed"] + stats["suppliers_changed"]
            self.stdout.write(
                f"{company.slug}: {stats['clients']} clients "
                f"({stats['clients_changed']} changed), "
                f"{stats['suppliers']} suppliers "
                f"({stats['suppliers_changed']} changed)"
            )
            if options["refresh_overdue"] and not dry_run:
                flipped = refresh_overdue_flags(company)
                self.stdout.write(
                    f"{company.slug}: {flipped} overdue flags refreshed")

        if dry_run:
            self.stdout.write(self.style.WARNING(
                f"DRY RUN COMPLETE: {changed} balances would change"))
        else:
            self.stdout.write(self.style.SUCCESS(
                f"RECONCILE COMPLETE: {changed} balances updated"))
