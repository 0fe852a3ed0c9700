# apps/board/serializers.py

"""
Serialização de boards, listas, cards, comentários e atividades

Cada função recebe objetos já carregados; os querysets com os
prefetches certos ficam aqui também, junto de quem os consome.
"""

from django.db.models import Prefetch

from apps.core.models import Activity, Board, BoardMember, Card, Comment, List as BoardList
from apps.core.serializers import UserRef, serialize_user_summary
from apps.core.utils import isoformat


# =================== QUERYSETS ===================

def comments_queryset():
    return Comment.objects.select_related('author').order_by('created_at', 'id')


def cards_queryset(with_comments=True):
    qs = Card.objects.select_related('created_by').prefetch_related('members').order_by('position', 'id')
    if with_comments:
        qs = qs.prefetch_related(Prefetch('comments', queryset=comments_queryset()))
    return qs


def lists_queryset(with_cards=True):
    qs = BoardList.objects.order_by('position', 'id')
    if with_cards:
        qs = qs.prefetch_related(Prefetch('cards', queryset=cards_queryset()))
    return qs


def boards_queryset(with_cards=False):
    """Boards com dono, membros e listas (cards só na visão completa)"""
    return Board.objects.select_related('owner').prefetch_related(
        Prefetch('memberships', queryset=BoardMember.objects.select_related('user').order_by('joined_at', 'id')),
        Prefetch('lists', queryset=lists_queryset(with_cards=with_cards)),
    )


# =================== SERIALIZAÇÃO ===================

def _user_ref(usuario):
    # Autor de conta removida fica nulo
    if usuario is None:
        return None
    return UserRef.resolved(usuario).to_json()


def serialize_member(membro):
    return {
        'user': serialize_user_summary(membro.user),
        'role': membro.role,
        'joinedAt': isoformat(membro.joined_at),
    }


def serialize_comment(comentario):
    return {
        'id': comentario.pk,
        'text': comentario.text,
        'card': comentario.card_id,
        'author': _user_ref(comentario.author),
        'createdAt': isoformat(comentario.created_at),
        'updatedAt': isoformat(comentario.updated_at),
    }


def serialize_activity(atividade):
    return {
        'id': atividade.pk,
        'type': atividade.type,
        'description': atividade.description,
        'card': atividade.card_id,
        'user': _user_ref(atividade.user),
        'metadata': atividade.metadata or {},
        'createdAt': isoformat(atividade.created_at),
    }


def serialize_card(card, with_comments=True, activities=None, embed_parents=False):
    """
    Card com membros e comentários

    ``embed_parents`` troca os ids de lista e board por {id, title}
    (usado na busca, onde os cards vêm de vários boards).
    """
    # Criador só é embutido quando já veio no select_related
    if card.created_by_id is None:
        criador = None
    elif Card._meta.get_field('created_by').is_cached(card):
        criador = UserRef.resolved(card.created_by).to_json()
    else:
        criador = UserRef.unresolved(card.created_by_id).to_json()

    dados = {
        'id': card.pk,
        'title': card.title,
        'description': card.description,
        'list': card.list_id,
        'board': card.board_id,
        'position': card.position,
        'dueDate': isoformat(card.due_date),
        'labels': card.labels or [],
        'members': [serialize_user_summary(u) for u in card.members.all()],
        'completed': card.completed,
        'isArchived': card.is_archived,
        'createdBy': criador,
        'createdAt': isoformat(card.created_at),
        'updatedAt': isoformat(card.updated_at),
    }

    if embed_parents:
        dados['list'] = {'id': card.list_id, 'title': card.list.title}
        dados['board'] = {'id': card.board_id, 'title': card.board.title}

    if with_comments:
        dados['comments'] = [serialize_comment(c) for c in card.comments.all()]

    if activities is not None:
        dados['activities'] = [serialize_activity(a) for a in activities]

    return dados


def serialize_list(lista, with_cards=True):
    dados = {
        'id': lista.pk,
        'title': lista.title,
        'board': lista.board_id,
        'position': lista.position,
        'isArchived': lista.is_archived,
        'createdAt': isoformat(lista.created_at),
        'updatedAt': isoformat(lista.updated_at),
    }
    if with_cards:
        dados['cards'] = [serialize_card(c) for c in lista.cards.all()]
    return dados


def serialize_board(board, with_cards=False):
    """
    Board com dono e membros resolvidos e listas em ordem de posição

    Na visão resumida (listagem) as listas vêm sem cards.
    """
    return {
        'id': board.pk,
        'title': board.title,
        'description': board.description,
        'background': board.background,
        'owner': UserRef.resolved(board.owner).to_json(),
        'members': [serialize_member(m) for m in board.memberships.all()],
        'lists': [serialize_list(lst, with_cards=with_cards) for lst in board.lists.all()],
        'isPrivate': board.is_private,
        'isStarred': board.is_starred,
        'isArchived': board.is_archived,
        'createdAt': isoformat(board.created_at),
        'updatedAt': isoformat(board.updated_at),
    }
