"""
Management command to check commission splits.

Reports commission movements that:
- point at a primary movement that no longer exists,
- carry a different currency than their primary,
- are not posted to a profit-and-loss customer.

Usage:
    python manage.py check_ledger_integrity
    python manage.py check_ledger_integrity --fix
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from apps.ledger.models import Movement


class Command(BaseCommand):
    help = 'Check that every commission movement matches its primary movement'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Align mismatched currencies with the primary movement',
        )

    def handle(self, *args, **options):
        fix = options['fix']

        commissions = (
            Movement.objects
            .filter(is_commission_movement=True)
            .select_related('related_commission_movement', 'customer_link__local_customer')
            .order_by('movement_number')
        )

        orphaned = []
        wrong_currency = []
        wrong_account = []
        for movement in commissions:
            primary = movement.related_commission_movement
            if primary is None:
                orphaned.append(movement)
            elif primary.currency != movement.currency:
                wrong_currency.append(movement)
            if not movement.customer_link.is_profit_loss:
                wrong_account.append(movement)

        if not (orphaned or wrong_currency or wrong_account):
            self.stdout.write(
                self.style.SUCCESS(f'Checked {commissions.count()} commission movement(s). All good!')
            )
            return

        if orphaned:
            self.stdout.write(f'\nFound {len(orphaned)} commission(s) without a primary movement:\n')
            for movement in orphaned:
                self.stdout.write(
                    f'  - #{movement.movement_number} | {movement.amount} {movement.currency} | Owner: {movement.owner_id}'
                )

        if wrong_currency:
            self.stdout.write(f'\nFound {len(wrong_currency)} commission(s) in a different currency:\n')
            for movement in wrong_currency:
                primary = movement.related_commission_movement
                self.stdout.write(
                    f'  - #{movement.movement_number} is {movement.currency}, '
                    f'primary #{primary.movement_number} is {primary.currency}'
                )

        if wrong_account:
            self.stdout.write(f'\nFound {len(wrong_account)} commission(s) outside a profit and loss account:\n')
            for movement in wrong_account:
                self.stdout.write(
                    f'  - #{movement.movement_number} on customer {movement.customer_link_id}'
                )

        if not fix:
            self.stdout.write(
                self.style.WARNING('\nRun with --fix to align currencies. Other findings need a manual decision.')
            )
            return

        with transaction.atomic():
            for movement in wrong_currency:
                movement.currency = movement.related_commission_movement.currency
                movement.save(update_fields=['currency', 'updated_at'])

        self.stdout.write(
            self.style.SUCCESS(f'\n✓ Aligned currency of {len(wrong_currency)} commission(s)')
        )
