# apps/board/ordering.py

"""
Manutenção de posições das coleções ordenadas

Listas de um board e cards de uma lista ocupam sempre as posições
0..n-1, sem buracos nem repetições. Toda mutação roda em transação e
trava antes a linha do pai (board ou listas), então movimentos
concorrentes no mesmo escopo são serializados.

Hierarquia de locks: board(s), depois lista(s), depois cards, sempre
por id dentro de cada nível. Salvar lista ou card atualiza
``Board.updated_at`` (apps.core.signals), por isso quem escreve em
listas ou cards trava o board primeiro, aqui ou na view.
"""

import logging

from django.db import transaction
from django.db.models import F, Max

from apps.core.models import Board, Card, List as BoardList

logger = logging.getLogger(__name__)


# =================== PRIMITIVAS ===================

def next_position(scope):
    """Próxima posição livre no final do escopo"""
    maior = scope.aggregate(maior=Max('position'))['maior']
    return 0 if maior is None else maior + 1


def open_gap(scope, position):
    """Desloca +1 tudo a partir de ``position``"""
    return scope.filter(position__gte=position).update(position=F('position') + 1)


def close_gap(scope, position):
    """Desloca -1 tudo depois de ``position``"""
    return scope.filter(position__gt=position).update(position=F('position') - 1)


def clamp(position, upper):
    return max(0, min(position, upper))


def lock_boards(*board_ids):
    # Ordem por id evita deadlock entre transações concorrentes
    return list(Board.objects.select_for_update().filter(pk__in=board_ids).order_by('pk'))


def lock_lists(*list_ids):
    return list(BoardList.objects.select_for_update().filter(pk__in=list_ids).order_by('pk'))


def lists_of(board_id):
    return BoardList.objects.filter(board_id=board_id)


def cards_of(list_id):
    return Card.objects.filter(list_id=list_id)


# =================== LISTAS ===================

def append_list(board, **campos):
    """Cria uma lista no final do board"""
    with transaction.atomic():
        lock_boards(board.pk)
        posicao = next_position(lists_of(board.pk))
        lista = BoardList.objects.create(board=board, position=posicao, **campos)

    logger.info("Lista %s criada no board %s (posição %d)", lista.pk, board.pk, posicao)
    return lista


def reorder_list(lista, position):
    """
    Move a lista para ``position`` dentro do mesmo board

    Descendo, as listas em (antiga, P] recuam uma posição; subindo, as
    listas em [P, antiga) avançam uma. ``position`` é limitada a n-1.
    """
    with transaction.atomic():
        lock_boards(lista.board_id)
        lista.refresh_from_db(fields=['position'])

        irmas = lists_of(lista.board_id).exclude(pk=lista.pk)
        position = clamp(position, irmas.count())
        antiga = lista.position

        if position > antiga:
            irmas.filter(position__gt=antiga, position__lte=position).update(
                position=F('position') - 1
            )
        elif position < antiga:
            irmas.filter(position__gte=position, position__lt=antiga).update(
                position=F('position') + 1
            )

        lista.position = position
        lista.save(update_fields=['position', 'updated_at'])

    logger.info("Lista %s reordenada: %d -> %d", lista.pk, antiga, position)
    return lista


def delete_list(lista):
    """Remove a lista (cards e comentários em cascata) e fecha o buraco"""
    with transaction.atomic():
        lock_boards(lista.board_id)
        lista.refresh_from_db(fields=['position'])
        board_id, posicao = lista.board_id, lista.position

        lista.delete()
        close_gap(lists_of(board_id), posicao)

    logger.info("Lista removida do board %s (posição %d)", board_id, posicao)


# =================== CARDS ===================

def append_card(lista, **campos):
    """Cria um card no final da lista; ``board`` acompanha a lista"""
    with transaction.atomic():
        lock_boards(lista.board_id)
        lock_lists(lista.pk)
        posicao = next_position(cards_of(lista.pk))
        card = Card.objects.create(
            list=lista,
            board_id=lista.board_id,
            position=posicao,
            **campos
        )

    logger.info("Card %s criado na lista %s (posição %d)", card.pk, lista.pk, posicao)
    return card


def move_card(card, target_list, position):
    """
    Move o card para ``target_list`` na posição ``position``

    Fecha o buraco na origem e abre na destino, sempre excluindo o
    próprio card; o mesmo caminho vale para movimentos na mesma lista.
    ``position`` é limitada ao tamanho da lista destino.

    Returns:
        (lista de origem, posição final)
    """
    with transaction.atomic():
        card.refresh_from_db(fields=['board', 'list'])
        lock_boards(card.board_id, target_list.board_id)
        lock_lists(card.list_id, target_list.pk)
        card.refresh_from_db(fields=['list', 'position'])
        origem_id = card.list_id

        close_gap(cards_of(origem_id).exclude(pk=card.pk), card.position)

        destino = cards_of(target_list.pk).exclude(pk=card.pk)
        position = clamp(position, destino.count())
        open_gap(destino, position)

        card.list = target_list
        card.board_id = target_list.board_id
        card.position = position
        card.save(update_fields=['list', 'board', 'position', 'updated_at'])

    logger.info("Card %s movido: lista %s -> %s (posição %d)",
                card.pk, origem_id, target_list.pk, position)
    return origem_id, position


def delete_card(card):
    """Remove o card (comentários e atividades em cascata) e fecha o buraco"""
    with transaction.atomic():
        lock_boards(card.board_id)
        lock_lists(card.list_id)
        card.refresh_from_db(fields=['list', 'position'])
        list_id, posicao = card.list_id, card.position

        card.delete()
        close_gap(cards_of(list_id), posicao)

    logger.info("Card removido da lista %s (posição %d)", list_id, posicao)


# =================== VERIFICAÇÃO ===================

def is_contiguous(scope):
    posicoes = list(scope.order_by('position').values_list('position', flat=True))
    return posicoes == list(range(len(posicoes)))


def renumber(scope):
    """
    Regrava as posições como 0..n-1 mantendo a ordem atual

    Returns:
        quantidade de itens alterados
    """
    alterados = 0
    with transaction.atomic():
        for indice, item in enumerate(scope.order_by('position', 'pk')):
            if item.position != indice:
                type(item).objects.filter(pk=item.pk).update(position=indice)
                alterados += 1
    return alterados


def broken_scopes():
    """
    Escopos cujas posições não são contíguas

    Yields:
        (descrição, queryset do escopo)
    """
    for board in Board.objects.order_by('pk'):
        escopo = lists_of(board.pk)
        if not is_contiguous(escopo):
            yield f'board {board.pk} ({board.title})', escopo

    for lista in BoardList.objects.order_by('pk'):
        escopo = cards_of(lista.pk)
        if not is_contiguous(escopo):
            yield f'list {lista.pk} ({lista.title})', escopo
