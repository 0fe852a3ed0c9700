# apps/board/views.py

import logging

from django.db import transaction
from django.db.models import Q
from django.utils.dateparse import parse_date

from apps.core.exceptions import BadRequest, Forbidden, NotFound, ValidationFailed
from apps.core.forms import (
    AddMemberForm,
    BoardCreateForm,
    BoardForm,
    CardCreateForm,
    CardUpdateForm,
    CommentForm,
    ListCreateForm,
    ListUpdateForm,
    MoveCardForm,
    ReorderListForm,
)
from apps.core.models import Activity, Board, BoardMember, Card, Comment, User, List as BoardList
from apps.core.permissions import BoardPermissions, api_login_required, ensure_permission, require_board_role
from apps.core.utils import parse_json_body, present_fields, send_success, validate_form

from . import ordering
from .serializers import (
    boards_queryset,
    cards_queryset,
    comments_queryset,
    lists_queryset,
    serialize_activity,
    serialize_board,
    serialize_card,
    serialize_comment,
    serialize_list,
)

logger = logging.getLogger(__name__)

BOARD_FIELDS = {
    'title': 'title',
    'description': 'description',
    'background': 'background',
    'isPrivate': 'is_private',
    'isStarred': 'is_starred',
    'isArchived': 'is_archived',
}

LIST_FIELDS = {
    'title': 'title',
    'isArchived': 'is_archived',
}

CARD_FIELDS = {
    'title': 'title',
    'description': 'description',
    'dueDate': 'due_date',
    'labels': 'labels',
    'completed': 'completed',
    'isArchived': 'is_archived',
}

# Campos booleanos: null no payload é ignorado
BOOLEAN_ATTRS = {'is_private', 'is_starred', 'is_archived', 'completed'}


def _changes(cleaned_data, payload, mapping):
    campos = present_fields(cleaned_data, payload, mapping)
    return {
        atributo: valor for atributo, valor in campos.items()
        if not (atributo in BOOLEAN_ATTRS and valor is None)
    }


def _user_boards(user):
    """Boards onde o usuário é dono ou membro"""
    return Board.objects.filter(Q(owner=user) | Q(memberships__user=user)).distinct()


def _load_board(board_id):
    try:
        return Board.objects.get(pk=board_id)
    except Board.DoesNotExist:
        raise NotFound('Board not found')


def _load_list(list_id, message='List not found'):
    try:
        return BoardList.objects.select_related('board').get(pk=list_id)
    except BoardList.DoesNotExist:
        raise NotFound(message)


def _load_card(card_id, queryset=None):
    qs = queryset if queryset is not None else Card.objects.select_related('board', 'list')
    try:
        return qs.get(pk=card_id)
    except Card.DoesNotExist:
        raise NotFound('Card not found')


def _ensure_content_access(board, user, action):
    """Leitura primeiro (Access denied), depois papel de edição"""
    ensure_permission(BoardPermissions.has_board_access, board, user)
    ensure_permission(
        BoardPermissions.has_content_access, board, user,
        f'Only board owners, admins, and editors can {action}',
    )


def _board_payload(board_id, with_cards=False):
    return serialize_board(boards_queryset(with_cards=with_cards).get(pk=board_id), with_cards=with_cards)


def _card_payload(card_id):
    return serialize_card(cards_queryset().get(pk=card_id))


# =================== BOARDS ===================

@api_login_required
def list_boards(request):
    """
    Boards em que o usuário é dono ou membro

    Boards públicos de terceiros não aparecem na listagem.
    """
    ids = _user_boards(request.user).values('pk')
    boards = boards_queryset().filter(pk__in=ids).order_by('-updated_at')

    return send_success(200, 'Boards retrieved successfully', {
        'boards': [serialize_board(b) for b in boards]
    })


@api_login_required
@require_board_role(BoardPermissions.has_board_access)
def get_board(request, board_id):
    """Board completo: listas em ordem, cards em ordem, comentários"""
    return send_success(200, 'Board retrieved successfully', {
        'board': _board_payload(board_id, with_cards=True)
    })


@api_login_required
def create_board(request):
    """Cria o board; o criador vira dono e também membro admin"""
    dados = validate_form(BoardCreateForm, parse_json_body(request))

    with transaction.atomic():
        board = Board.objects.create(
            title=dados['title'],
            description=dados.get('description') or '',
            background=dados.get('background') or '#0079bf',
            owner=request.user,
            is_private=dados['isPrivate'] if dados.get('isPrivate') is not None else True,
            is_starred=bool(dados.get('isStarred')),
        )
        BoardMember.objects.create(board=board, user=request.user, role=BoardMember.ROLE_ADMIN)

    logger.info("Board %s criado por %s", board.pk, request.user.email)

    return send_success(201, 'Board created successfully', {
        'board': _board_payload(board.pk)
    })


@api_login_required
@require_board_role(BoardPermissions.has_admin_access)
def update_board(request, board_id):
    payload = parse_json_body(request)
    dados = validate_form(BoardForm, payload)
    campos = _changes(dados, payload, BOARD_FIELDS)

    board = request.board
    if campos:
        for atributo, valor in campos.items():
            setattr(board, atributo, valor)
        board.save(update_fields=list(campos) + ['updated_at'])
        logger.info("Board %s atualizado por %s: %s", board.pk, request.user.email, sorted(campos))

    return send_success(200, 'Board updated successfully', {
        'board': _board_payload(board.pk)
    })


@api_login_required
@require_board_role(BoardPermissions.is_owner, 'Only board owner can delete board')
def delete_board(request, board_id):
    """Remove o board com listas, cards, comentários e atividades"""
    request.board.delete()
    logger.info("Board %s removido por %s", board_id, request.user.email)
    return send_success(200, 'Board deleted successfully')


@api_login_required
@require_board_role(BoardPermissions.has_admin_access)
def add_member(request, board_id):
    dados = validate_form(AddMemberForm, parse_json_body(request))
    board = request.board

    novo_membro = User.objects.filter(email=dados['email'].lower()).first()
    if novo_membro is None:
        raise NotFound('User not found')

    if BoardPermissions.get_user_role(board, novo_membro.pk) is not None:
        raise BadRequest('User is already a member of this board')

    BoardMember.objects.create(board=board, user=novo_membro, role=dados['role'])
    board.save(update_fields=['updated_at'])
    logger.info("Usuário %s adicionado ao board %s como %s", novo_membro.email, board.pk, dados['role'])

    return send_success(200, 'Member added to board successfully', {
        'board': _board_payload(board.pk)
    })


@api_login_required
@require_board_role(BoardPermissions.has_admin_access)
def remove_member(request, board_id, user_id):
    board = request.board

    if user_id == board.owner_id:
        raise BadRequest('Cannot remove board owner')

    removidos, _ = board.memberships.filter(user_id=user_id).delete()
    if removidos:
        board.save(update_fields=['updated_at'])
        logger.info("Usuário %s removido do board %s", user_id, board.pk)

    return send_success(200, 'Member removed from board successfully', {
        'board': _board_payload(board.pk)
    })


# =================== LISTAS ===================

@api_login_required
@require_board_role(BoardPermissions.has_board_access)
def lists_by_board(request, board_id):
    listas = lists_queryset().filter(board_id=board_id)
    return send_success(200, 'Lists retrieved successfully', {
        'lists': [serialize_list(lst) for lst in listas]
    })


@api_login_required
def create_list(request):
    dados = validate_form(ListCreateForm, parse_json_body(request))

    board = _load_board(dados['board'])
    _ensure_content_access(board, request.user, 'create lists')

    lista = ordering.append_list(board, title=dados['title'])

    return send_success(201, 'List created successfully', {
        'list': serialize_list(lista)
    })


@api_login_required
def update_list(request, list_id):
    lista = _load_list(list_id)
    _ensure_content_access(lista.board, request.user, 'edit lists')

    payload = parse_json_body(request)
    dados = validate_form(ListUpdateForm, payload)
    campos = _changes(dados, payload, LIST_FIELDS)

    if campos:
        with transaction.atomic():
            ordering.lock_boards(lista.board_id)
            for atributo, valor in campos.items():
                setattr(lista, atributo, valor)
            lista.save(update_fields=list(campos) + ['updated_at'])
        logger.info("Lista %s atualizada por %s", lista.pk, request.user.email)

    return send_success(200, 'List updated successfully', {
        'list': serialize_list(lists_queryset().get(pk=lista.pk))
    })


@api_login_required
def reorder_list(request, list_id):
    lista = _load_list(list_id)
    _ensure_content_access(lista.board, request.user, 'reorder lists')

    dados = validate_form(ReorderListForm, parse_json_body(request))
    ordering.reorder_list(lista, dados['position'])

    return send_success(200, 'List reordered successfully', {
        'list': serialize_list(lists_queryset().get(pk=lista.pk))
    })


@api_login_required
def delete_list(request, list_id):
    lista = _load_list(list_id)
    _ensure_content_access(lista.board, request.user, 'delete lists')

    ordering.delete_list(lista)
    return send_success(200, 'List deleted successfully')


# =================== CARDS ===================

@api_login_required
def cards_by_list(request, list_id):
    lista = _load_list(list_id)
    ensure_permission(BoardPermissions.has_board_access, lista.board, request.user)

    cards = cards_queryset().filter(list=lista)
    return send_success(200, 'Cards retrieved successfully', {
        'cards': [serialize_card(c) for c in cards]
    })


@api_login_required
def search_cards(request):
    """
    Busca cards nos boards do usuário

    Filtros: q (título/descrição), boardId, label (nome), dueDate (dia).
    """
    q = request.GET.get('q', '').strip()
    board_id = request.GET.get('boardId')
    label = request.GET.get('label', '').strip()
    due_date = request.GET.get('dueDate')

    cards = (
        cards_queryset(with_comments=False)
        .select_related('list', 'board')
        .filter(board_id__in=_user_boards(request.user).values('pk'))
    )

    if q:
        cards = cards.filter(Q(title__icontains=q) | Q(description__icontains=q))

    if board_id:
        if not board_id.isdigit():
            raise NotFound('Board not found')
        cards = cards.filter(board_id=int(board_id))

    if label:
        # Pré-filtro no texto do JSON; o nome é conferido abaixo
        cards = cards.filter(labels__icontains=label)

    if due_date:
        dia = parse_date(due_date[:10])
        if dia is None:
            raise BadRequest('Due date must be a valid date')
        cards = cards.filter(due_date__date=dia)

    cards = cards.order_by('-updated_at', '-id')
    if label:
        termo = label.lower()
        cards = [
            c for c in cards
            if any(termo in str(lbl.get('name', '')).lower() for lbl in c.labels or [])
        ]

    return send_success(200, 'Cards search completed', {
        'cards': [serialize_card(c, with_comments=False, embed_parents=True) for c in cards]
    })


@api_login_required
def get_card(request, card_id):
    """Card com comentários e histórico de atividades"""
    card = _load_card(card_id, cards_queryset().select_related('board', 'list'))
    ensure_permission(BoardPermissions.has_board_access, card.board, request.user)

    atividades = card.activities.select_related('user')
    return send_success(200, 'Card retrieved successfully', {
        'card': serialize_card(card, activities=atividades)
    })


@api_login_required
def create_card(request):
    dados = validate_form(CardCreateForm, parse_json_body(request))

    lista = _load_list(dados['list'])
    _ensure_content_access(lista.board, request.user, 'create cards')

    with transaction.atomic():
        card = ordering.append_card(
            lista,
            title=dados['title'],
            description=dados.get('description') or '',
            due_date=dados.get('dueDate'),
            labels=dados.get('labels') or [],
            created_by=request.user,
        )
        Activity.record('card_created', card, request.user, f'Created card "{card.title}"')

    return send_success(201, 'Card created successfully', {
        'card': _card_payload(card.pk)
    })


def _record_card_changes(card, user, antes, depois):
    """Atividades de título, prazo, labels e membros"""
    if antes['title'] != depois['title']:
        Activity.record(
            'card_updated', card, user,
            f'Renamed card from "{antes["title"]}" to "{depois["title"]}"',
            oldTitle=antes['title'], newTitle=depois['title'],
        )

    if antes['due_date'] != depois['due_date']:
        if depois['due_date'] is None:
            Activity.record('due_date_removed', card, user, f'Removed due date from "{card.title}"')
        else:
            Activity.record(
                'due_date_set', card, user,
                f'Set due date of "{card.title}" to {depois["due_date"]:%Y-%m-%d}',
                dueDate=depois['due_date'].isoformat(),
            )

    nomes_antes = {lbl.get('name') for lbl in antes['labels']}
    nomes_depois = {lbl.get('name') for lbl in depois['labels']}
    for nome in sorted(nomes_depois - nomes_antes):
        Activity.record('label_added', card, user, f'Added label "{nome}" to "{card.title}"', label=nome)
    for nome in sorted(nomes_antes - nomes_depois):
        Activity.record('label_removed', card, user, f'Removed label "{nome}" from "{card.title}"', label=nome)

    for membro in depois['members'] - antes['members']:
        Activity.record('member_added', card, user, f'Added {membro.name} to "{card.title}"', memberId=membro.pk)
    for membro in antes['members'] - depois['members']:
        Activity.record('member_removed', card, user, f'Removed {membro.name} from "{card.title}"', memberId=membro.pk)


def _snapshot(card):
    return {
        'title': card.title,
        'due_date': card.due_date,
        'labels': list(card.labels or []),
        'members': set(card.members.all()),
    }


@api_login_required
def update_card(request, card_id):
    card = _load_card(card_id)
    board = card.board
    _ensure_content_access(board, request.user, 'edit cards')

    payload = parse_json_body(request)
    dados = validate_form(CardUpdateForm, payload)
    campos = _changes(dados, payload, CARD_FIELDS)

    membros = None
    if 'members' in payload:
        participantes = set(board.memberships.values_list('user_id', flat=True)) | {board.owner_id}
        fora = [m for m in dados['members'] if m not in participantes]
        if fora:
            raise ValidationFailed([{'field': 'members', 'message': 'Members must be board participants'}])
        membros = User.objects.filter(pk__in=dados['members'])

    with transaction.atomic():
        ordering.lock_boards(board.pk)
        antes = _snapshot(card)

        for atributo, valor in campos.items():
            setattr(card, atributo, valor)
        card.save(update_fields=list(campos) + ['updated_at'])

        if membros is not None:
            card.members.set(membros)

        _record_card_changes(card, request.user, antes, _snapshot(card))

    logger.info("Card %s atualizado por %s: %s", card.pk, request.user.email, sorted(campos))

    return send_success(200, 'Card updated successfully', {
        'card': _card_payload(card.pk)
    })


@api_login_required
def move_card(request, card_id):
    """Move o card para outra lista (ou posição) em qualquer board editável"""
    dados = validate_form(MoveCardForm, parse_json_body(request))

    card = _load_card(card_id)
    destino = _load_list(dados['listId'], 'Target list not found')

    for board in (card.board, destino.board):
        if not BoardPermissions.has_content_access(board, request.user.pk):
            raise Forbidden('Access denied')

    origem = card.list
    with transaction.atomic():
        ordering.move_card(card, destino, dados['position'])
        Activity.record(
            'card_moved', card, request.user,
            f'Moved card "{card.title}" from "{origem.title}" to "{destino.title}"',
            fromList=origem.title, toList=destino.title,
        )

    return send_success(200, 'Card moved successfully', {
        'card': _card_payload(card.pk)
    })


@api_login_required
def delete_card(request, card_id):
    """Remove o card com comentários e atividades"""
    card = _load_card(card_id)
    _ensure_content_access(card.board, request.user, 'delete cards')

    ordering.delete_card(card)
    logger.info("Card %s removido por %s", card_id, request.user.email)
    return send_success(200, 'Card deleted successfully')


# =================== COMENTÁRIOS ===================

@api_login_required
def card_comments(request, card_id):
    card = _load_card(card_id)
    ensure_permission(BoardPermissions.has_board_access, card.board, request.user)

    comentarios = comments_queryset().filter(card=card)
    return send_success(200, 'Comments retrieved successfully', {
        'comments': [serialize_comment(c) for c in comentarios]
    })


@api_login_required
def add_comment(request, card_id):
    """Qualquer participante com acesso de leitura pode comentar"""
    card = _load_card(card_id)
    ensure_permission(BoardPermissions.has_board_access, card.board, request.user)

    dados = validate_form(CommentForm, parse_json_body(request))

    with transaction.atomic():
        comentario = Comment.objects.create(text=dados['text'], card=card, author=request.user)
        Activity.record('comment_added', card, request.user, f'Added a comment to "{card.title}"')

    return send_success(201, 'Comment added successfully', {
        'comment': serialize_comment(comentario)
    })


@api_login_required
def card_activities(request, card_id):
    card = _load_card(card_id)
    ensure_permission(BoardPermissions.has_board_access, card.board, request.user)

    atividades = Activity.objects.filter(card=card).select_related('user')
    return send_success(200, 'Activities retrieved successfully', {
        'activities': [serialize_activity(a) for a in atividades]
    })
