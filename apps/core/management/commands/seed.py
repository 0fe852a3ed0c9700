# apps/core/management/commands/seed.py

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.board import ordering
from apps.core.models import Activity, Board, BoardMember, User

DEMO_BOARD_TITLE = 'Projeto Demo'

DEMO_LISTS = [
    ('To Do', [
        ('Definir escopo do MVP', [{'name': 'planning', 'color': '#0079bf'}], 3),
        ('Configurar ambiente', [], None),
    ]),
    ('In Progress', [
        ('Implementar autenticação', [{'name': 'backend', 'color': '#61bd4f'}], 1),
    ]),
    ('Done', [
        ('Criar repositório', [], None),
    ]),
]


class Command(BaseCommand):
    help = 'Cria dados de demonstração (idempotente): dois usuários e um board com listas e cards'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default='Demo1234',
            help='Senha dos usuários de demonstração',
        )

    def handle(self, *args, **options):
        self.stdout.write('🌱 Criando dados de demonstração...')

        with transaction.atomic():
            owner = self._garantir_usuario('owner@taskboard.local', 'Demo Owner', options['password'])
            editor = self._garantir_usuario('editor@taskboard.local', 'Demo Editor', options['password'])

            board = Board.objects.filter(owner=owner, title=DEMO_BOARD_TITLE).first()
            if board is not None:
                self.stdout.write(self.style.WARNING(
                    f'  ⚠️  Board "{DEMO_BOARD_TITLE}" já existe (id {board.pk}), nada a fazer'
                ))
                return

            board = self._criar_board(owner, editor)

        self.stdout.write(self.style.SUCCESS(
            '\n✅ DADOS DE DEMONSTRAÇÃO CRIADOS!\n'
            f'  Board: {board.title} (id {board.pk})\n'
            f'  Login: owner@taskboard.local / {options["password"]}\n'
            f'  Login: editor@taskboard.local / {options["password"]}\n'
        ))

    def _garantir_usuario(self, email, nome, senha):
        usuario = User.objects.filter(email=email).first()
        if usuario is not None:
            self.stdout.write(f'  • Usuário já existe: {email}')
            return usuario

        usuario = User.objects.create_user(username=email, email=email, password=senha, name=nome)
        self.stdout.write(f'  ✅ Usuário criado: {email}')
        return usuario

    def _criar_board(self, owner, editor):
        board = Board.objects.create(
            title=DEMO_BOARD_TITLE,
            description='Board criado pelo comando seed',
            owner=owner,
        )
        BoardMember.objects.create(board=board, user=owner, role=BoardMember.ROLE_ADMIN)
        BoardMember.objects.create(board=board, user=editor, role=BoardMember.ROLE_EDITOR)

        agora = timezone.now()
        for titulo_lista, cards in DEMO_LISTS:
            lista = ordering.append_list(board, title=titulo_lista)
            for titulo, labels, dias in cards:
                card = ordering.append_card(
                    lista,
                    title=titulo,
                    labels=labels,
                    due_date=agora + timedelta(days=dias) if dias is not None else None,
                    created_by=owner,
                )
                Activity.record('card_created', card, owner, f'Created card "{titulo}"')
            self.stdout.write(f'  ✅ Lista "{titulo_lista}" com {len(cards)} card(s)')

        return board
