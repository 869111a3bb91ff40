"""
Management command to move RECEIVED cheques entering the due window to DUE.
Celery beat runs the same sweep daily; use this from cron or by hand.

Example cron entry (runs daily at 00:30):
30 0 * * * cd /path/to/project && python manage.py promote_due_pdcs
"""
from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.pdc.services import due_sweep_candidates, promote_due_pdcs


class Command(BaseCommand):
    help = 'Promote RECEIVED post-dated cheques within the due window to DUE'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            type=str,
            help='Sweep date (YYYY-MM-DD). Defaults to today.'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the cheques that would be promoted without changing them'
        )

    def handle(self, *args, **options):
        if options['date']:
            try:
                sweep_date = date.fromisoformat(options['date'])
            except ValueError:
                raise CommandError('Invalid date format. Use YYYY-MM-DD')
        else:
            sweep_date = timezone.localdate()

        self.stdout.write(f'Sweep date: {sweep_date}')

        if options['dry_run']:
            candidates = list(due_sweep_candidates(sweep_date).select_related('tenant'))
            for pdc in candidates:
                self.stdout.write(
                    f'  WOULD PROMOTE: {pdc.pdc_number} - cheque {pdc.cheque_number} '
                    f'dated {pdc.cheque_date} ({pdc.tenant.name})'
                )
            self.stdout.write(self.style.WARNING(f'Dry run: {len(candidates)} PDC(s) eligible, nothing changed.'))
            return

        promoted = promote_due_pdcs(sweep_date)
        for pdc in promoted:
            self.stdout.write(f'  PROMOTED: {pdc.pdc_number} - cheque {pdc.cheque_number} dated {pdc.cheque_date}')

        if promoted:
            self.stdout.write(self.style.SUCCESS(f'Promoted {len(promoted)} PDC(s) to DUE.'))
        else:
            self.stdout.write('No PDCs to promote.')
