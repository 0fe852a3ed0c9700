# apps/core/management/commands/check_positions.py

from django.core.management.base import BaseCommand, CommandError

from apps.board import ordering


class Command(BaseCommand):
    help = 'Verifica se as posições de listas e cards são contíguas (0..n-1)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Renumera os escopos com problema mantendo a ordem atual',
        )

    def handle(self, *args, **options):
        self.stdout.write('🔍 Verificando posições...')

        problemas = list(ordering.broken_scopes())

        if not problemas:
            self.stdout.write(self.style.SUCCESS('✅ Todas as posições estão contíguas'))
            return

        for descricao, escopo in problemas:
            posicoes = list(escopo.order_by('position').values_list('position', flat=True))
            self.stdout.write(self.style.WARNING(f'  ⚠️  {descricao}: {posicoes}'))

            if options['fix']:
                alterados = ordering.renumber(escopo)
                self.stdout.write(f'    🔧 {alterados} item(s) renumerado(s)')

        if not options['fix']:
            raise CommandError(
                f'{len(problemas)} escopo(s) com posições inconsistentes; use --fix para corrigir'
            )

        self.stdout.write(self.style.SUCCESS(f'✅ {len(problemas)} escopo(s) corrigido(s)'))
