from django.core.management.base import BaseCommand, CommandError

from apps.core.fees.services import reconcile_fees_paid
from apps.core.utils.exceptions import UpstreamUnavailable


class Command(BaseCommand):
    help = "Repairs students whose fees_paid no longer matches their fee payment ledger."

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List drifted students without changing anything.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        try:
            drift = reconcile_fees_paid(dry_run=dry_run)
        except UpstreamUnavailable as exc:
            raise CommandError(str(exc)) from exc

        if not drift:
            self.stdout.write(self.style.SUCCESS('All student balances match the fee ledger.'))
            return

        for item in drift:
            self.stdout.write(
                f"{item.student.admission_number} {item.student.name}: "
                f"recorded {item.recorded}, ledger {item.ledger}"
            )

        if dry_run:
            self.stdout.write(self.style.WARNING(f'{len(drift)} student(s) out of sync. Nothing changed.'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Reconciled {len(drift)} student(s).'))
