"""
Management command to check stock against the movement ledger.

Usage:
    python manage.py verify_ledger
    python manage.py verify_ledger --product P1
    python manage.py verify_ledger --fix
"""

from django.core.management.base import BaseCommand, CommandError

from stockledger import MovementService, StockError


class Command(BaseCommand):
    """Verify ledger consistency command."""

    help = 'Confere o estoque de cada produto contra o histórico de movimentos'

    def add_arguments(self, parser):
        parser.add_argument(
            '--product',
            dest='product_code',
            help='Confere apenas o produto com este código'
        )
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Recalcula o estoque dos produtos divergentes'
        )

    def handle(self, *args, **options):
        service = MovementService()
        try:
            discrepancies = service.verify_ledger(options['product_code'])
        except StockError as e:
            raise CommandError(e.message) from e

        if not discrepancies:
            self.stdout.write(self.style.SUCCESS('Nenhuma divergência encontrada'))
            return

        for d in discrepancies:
            self.stdout.write(
                f'{d.code}: registrado={d.recorded} esperado={d.expected} '
                f'(diferença {d.difference:+d})'
            )

        if options['fix']:
            for d in discrepancies:
                service.ledger.recalculate(d.product_id)
            self.stdout.write(
                self.style.SUCCESS(f'{len(discrepancies)} produto(s) recalculado(s)')
            )
        else:
            self.stdout.write(
                self.style.WARNING(f'{len(discrepancies)} produto(s) divergente(s)')
            )
