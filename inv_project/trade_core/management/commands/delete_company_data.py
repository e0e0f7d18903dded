from django.core.management.base import BaseCommand, CommandError

from trade_core.models import Company
from trade_core.services import company_data_stats, delete_company_data


class Command(BaseCommand):
    help = "Delete a company and every record it owns, in one transaction."

    def add_arguments(self, parser):
        parser.add_argument("slug", help="Slug of the company to delete.")
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only show how many rows would be deleted.",
        )

    def handle(self, *args, **options):
        try:
            company = Company.objects.get(slug=options["slug"])
        except Company.DoesNotExist:
            raise CommandError(f"No company with slug '{options['slug']}'")

        if options["dry_run"]:
            stats = company_data_stats(company)
            for label, count in stats.items():
                self.stdout.write(f"{label}: {count}")
            self.stdout.write(self.style.WARNING(
                f"DRY RUN: would delete {sum(stats.values())} rows "
                f"and company {company}"))
            return

        stats = delete_company_data(company)
        for label, count in stats.items():
            self.stdout.write(f"{label}: {count}")
        self.stdout.write(self.style.SUCCESS(
            f"Deleted company {options['slug']} "
            f"({sum(stats.values())} rows)"))
