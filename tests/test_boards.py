"""
Tests for the boards and lists API: role matrix, members and cascades.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.board import ordering
from apps.core.models import Activity, Board, BoardMember, Card, Comment, List, User


@pytest.mark.django_db
class TestBoardCrud:
    """Tests for /api/boards."""

    def test_create_board_makes_owner_admin_member(self, api, owner):
        response = api(owner).post('/api/boards', {'title': 'Roadmap', 'description': 'Q3'})

        assert response.status_code == 201
        dados = response.json()['data']['board']
        assert dados['owner']['id'] == owner.pk
        assert dados['isPrivate'] is True
        assert dados['background'] == '#0079bf'
        assert dados['members'] == [
            {'user': {'id': owner.pk, 'name': owner.name, 'email': owner.email, 'avatar': None},
             'role': 'admin', 'joinedAt': dados['members'][0]['joinedAt']}
        ]

    def test_create_board_validation(self, api, owner):
        response = api(owner).post('/api/boards', {'title': '', 'background': 'red'})

        assert response.status_code == 400
        erros = {e['field']: e['message'] for e in response.json()['errors']}
        assert erros['title'] == 'Title must be between 1 and 100 characters'
        assert erros['background'] == 'Background must be a valid hex color, gradient, or image URL'

    @pytest.mark.parametrize('background', ['#fff', '#1a2B3c', 'linear-gradient(#fff, #000)', 'https://img.example/bg.png'])
    def test_accepted_backgrounds(self, api, owner, background):
        response = api(owner).post('/api/boards', {'title': 'B', 'background': background})
        assert response.status_code == 201

    def test_list_boards_only_owned_or_member(self, api, make_board, owner, stranger):
        meu = make_board(owner, title='Mine')
        compartilhado = make_board(stranger, title='Shared', members={owner: 'viewer'})
        make_board(stranger, title='Public but foreign', is_private=False)

        response = api(owner).get('/api/boards')

        titulos = {b['title'] for b in response.json()['data']['boards']}
        assert titulos == {meu.title, compartilhado.title}

    def test_get_board_full_view(self, api, owner, board):
        lista = board.lists.get(title='To Do')
        card = ordering.append_card(lista, title='Write tests')
        Comment.objects.create(card=card, author=owner, text='Looks good')

        response = api(owner).get(f'/api/boards/{board.pk}')

        assert response.status_code == 200
        dados = response.json()['data']['board']
        assert [lst['title'] for lst in dados['lists']] == ['To Do', 'Done']
        assert dados['lists'][0]['cards'][0]['title'] == 'Write tests'
        assert dados['lists'][0]['cards'][0]['comments'][0]['author']['id'] == owner.pk

    def test_get_missing_board(self, api, owner):
        response = api(owner).get('/api/boards/999999')

        assert response.status_code == 404
        assert response.json() == {'success': False, 'message': 'Board not found'}

    def test_update_board_partial(self, api, owner, board):
        response = api(owner).put(f'/api/boards/{board.pk}', {'isStarred': True})

        assert response.status_code == 200
        board.refresh_from_db()
        assert board.is_starred is True
        assert board.title == 'Board'
        assert board.is_private is True

    def test_update_rejects_non_boolean_flag(self, api, owner, board):
        response = api(owner).put(f'/api/boards/{board.pk}', {'isPrivate': 'nope'})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'isPrivate', 'message': 'isPrivate must be a boolean value'}]
        board.refresh_from_db()
        assert board.is_private is True

    def test_delete_board_cascades(self, api, owner, board):
        lista = board.lists.first()
        card = ordering.append_card(lista, title='c')
        Comment.objects.create(card=card, author=owner, text='hi')
        Activity.record('card_created', card, owner, 'Created card "c"')

        response = api(owner).delete(f'/api/boards/{board.pk}')

        assert response.status_code == 200
        assert not Board.objects.filter(pk=board.pk).exists()
        assert not List.objects.filter(board_id=board.pk).exists()
        assert not Card.objects.exists()
        assert not Comment.objects.exists()
        assert not Activity.objects.exists()


@pytest.mark.django_db
class TestRoleMatrix:
    """Owner/admin/editor/viewer/stranger permissions."""

    def test_only_owner_deletes_board(self, api, board, editor, make_user):
        admin = make_user('admin@example.com', 'Board Admin')
        BoardMember.objects.create(board=board, user=admin, role='admin')

        for usuario in (admin, editor):
            response = api(usuario).delete(f'/api/boards/{board.pk}')
            assert response.status_code == 403
            assert response.json()['message'] == 'Only board owner can delete board'

    def test_admin_can_update_board_editor_cannot(self, api, board, editor, make_user):
        admin = make_user('admin@example.com', 'Board Admin')
        BoardMember.objects.create(board=board, user=admin, role='admin')

        assert api(admin).put(f'/api/boards/{board.pk}', {'title': 'Renamed'}).status_code == 200
        assert api(editor).put(f'/api/boards/{board.pk}', {'title': 'Nope'}).status_code == 403

    def test_viewer_can_read_but_not_mutate(self, api, board, viewer):
        cliente = api(viewer)
        lista = board.lists.first()

        assert cliente.get(f'/api/boards/{board.pk}').status_code == 200
        assert cliente.get(f'/api/lists/board/{board.pk}').status_code == 200

        response = cliente.post('/api/lists', {'title': 'New', 'board': board.pk})
        assert response.status_code == 403
        assert response.json()['message'] == 'Only board owners, admins, and editors can create lists'

        response = cliente.put(f'/api/lists/{lista.pk}', {'title': 'x'})
        assert response.json()['message'] == 'Only board owners, admins, and editors can edit lists'

        response = cliente.put(f'/api/lists/{lista.pk}/reorder', {'position': 1})
        assert response.json()['message'] == 'Only board owners, admins, and editors can reorder lists'

        response = cliente.delete(f'/api/lists/{lista.pk}')
        assert response.json()['message'] == 'Only board owners, admins, and editors can delete lists'

        response = cliente.post('/api/cards', {'title': 'c', 'list': lista.pk})
        assert response.status_code == 403

    def test_viewer_cannot_move_cards(self, api, board, viewer):
        todo, done = board.lists.get(title='To Do'), board.lists.get(title='Done')
        a, b = ordering.append_card(todo, title='a'), ordering.append_card(todo, title='b')
        ordering.append_card(done, title='c')

        response = api(viewer).put(f'/api/cards/{a.pk}/move', {'listId': done.pk, 'position': 0})

        assert response.status_code == 403
        assert response.json()['message'] == 'Access denied'
        assert list(Card.objects.filter(list=todo).order_by('position').values_list('title', 'position')) == [
            ('a', 0), ('b', 1)
        ]
        assert list(Card.objects.filter(list=done).values_list('title', 'position')) == [('c', 0)]

        response = api(viewer).put(f'/api/cards/{a.pk}/move', {'listId': todo.pk, 'position': 1})

        assert response.status_code == 403
        a.refresh_from_db()
        assert a.position == 0
        assert not Activity.objects.filter(type='card_moved').exists()

    def test_viewer_cannot_delete_cards(self, api, board, viewer):
        todo = board.lists.get(title='To Do')
        a, b = ordering.append_card(todo, title='a'), ordering.append_card(todo, title='b')

        response = api(viewer).delete(f'/api/cards/{a.pk}')

        assert response.status_code == 403
        assert response.json()['message'] == 'Only board owners, admins, and editors can delete cards'
        assert list(Card.objects.filter(list=todo).order_by('position').values_list('title', 'position')) == [
            ('a', 0), ('b', 1)
        ]

    def test_stranger_denied_on_private_board(self, api, board, stranger):
        response = api(stranger).get(f'/api/boards/{board.pk}')

        assert response.status_code == 403
        assert response.json()['message'] == 'Access denied'

    def test_public_board_readable_not_editable(self, api, make_board, owner, stranger):
        publico = make_board(owner, lists=['Open'], is_private=False)
        cliente = api(stranger)

        assert cliente.get(f'/api/boards/{publico.pk}').status_code == 200

        response = cliente.post('/api/lists', {'title': 'Mine', 'board': publico.pk})
        assert response.status_code == 403

    def test_role_derived_from_database_each_request(self, api, board, editor):
        cliente = api(editor)
        assert cliente.post('/api/lists', {'title': 'One', 'board': board.pk}).status_code == 201

        BoardMember.objects.filter(board=board, user=editor).update(role='viewer')

        assert cliente.post('/api/lists', {'title': 'Two', 'board': board.pk}).status_code == 403


@pytest.mark.django_db
class TestMembers:
    """Tests for /api/boards/<id>/members."""

    def test_add_member(self, api, owner, board, stranger):
        response = api(owner).post(f'/api/boards/{board.pk}/members', {'email': stranger.email, 'role': 'viewer'})

        assert response.status_code == 200
        assert BoardMember.objects.get(board=board, user=stranger).role == 'viewer'

    def test_add_member_default_role(self, api, owner, board, stranger):
        api(owner).post(f'/api/boards/{board.pk}/members', {'email': stranger.email})
        assert BoardMember.objects.get(board=board, user=stranger).role == 'editor'

    def test_add_unknown_user(self, api, owner, board):
        response = api(owner).post(f'/api/boards/{board.pk}/members', {'email': 'ghost@example.com'})

        assert response.status_code == 404
        assert response.json()['message'] == 'User not found'

    def test_add_existing_member(self, api, owner, board, editor):
        response = api(owner).post(f'/api/boards/{board.pk}/members', {'email': editor.email})

        assert response.status_code == 400
        assert response.json()['message'] == 'User is already a member of this board'

    def test_invalid_role(self, api, owner, board, stranger):
        response = api(owner).post(f'/api/boards/{board.pk}/members', {'email': stranger.email, 'role': 'owner'})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'role', 'message': 'Invalid role'}]

    def test_editor_cannot_add_members(self, api, board, editor, stranger):
        response = api(editor).post(f'/api/boards/{board.pk}/members', {'email': stranger.email})
        assert response.status_code == 403

    def test_remove_member(self, api, owner, board, viewer):
        response = api(owner).delete(f'/api/boards/{board.pk}/members/{viewer.pk}')

        assert response.status_code == 200
        assert not BoardMember.objects.filter(board=board, user=viewer).exists()
        assert api(viewer).get(f'/api/boards/{board.pk}').status_code == 403

    def test_cannot_remove_owner(self, api, owner, board):
        response = api(owner).delete(f'/api/boards/{board.pk}/members/{owner.pk}')

        assert response.status_code == 400
        assert response.json()['message'] == 'Cannot remove board owner'


@pytest.mark.django_db
class TestListsApi:
    """Tests for /api/lists."""

    def test_create_appends(self, api, editor, board):
        response = api(editor).post('/api/lists', {'title': 'Review', 'board': board.pk})

        assert response.status_code == 201
        dados = response.json()['data']['list']
        assert dados['position'] == 2
        assert dados['cards'] == []

    def test_create_requires_valid_board_id(self, api, editor):
        response = api(editor).post('/api/lists', {'title': 'x', 'board': 'abc'})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'board', 'message': 'Valid board ID is required'}]

    def test_update_title_and_archive(self, api, editor, board):
        lista = board.lists.get(title='Done')

        response = api(editor).put(f'/api/lists/{lista.pk}', {'title': 'Shipped', 'isArchived': True})

        assert response.status_code == 200
        lista.refresh_from_db()
        assert (lista.title, lista.is_archived) == ('Shipped', True)

    def test_update_rejects_blank_title(self, api, editor, board):
        lista = board.lists.first()
        response = api(editor).put(f'/api/lists/{lista.pk}', {'title': ''})

        assert response.status_code == 400

    def test_update_rejects_non_boolean_archive(self, api, editor, board):
        lista = board.lists.first()

        response = api(editor).put(f'/api/lists/{lista.pk}', {'isArchived': 'nope'})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'isArchived', 'message': 'isArchived must be a boolean value'}]
        lista.refresh_from_db()
        assert lista.is_archived is False

    def test_update_locks_board_first(self, api, editor, board, monkeypatch):
        chamadas = []
        original = ordering.lock_boards

        def registrar(*ids):
            chamadas.append(ids)
            return original(*ids)

        monkeypatch.setattr(ordering, 'lock_boards', registrar)
        lista = board.lists.first()

        response = api(editor).put(f'/api/lists/{lista.pk}', {'title': 'Renamed'})

        assert response.status_code == 200
        assert chamadas == [(board.pk,)]

    def test_reorder(self, api, editor, board):
        lista = board.lists.get(title='To Do')

        response = api(editor).put(f'/api/lists/{lista.pk}/reorder', {'position': 1})

        assert response.status_code == 200
        assert list(board.lists.order_by('position').values_list('title', flat=True)) == ['Done', 'To Do']

    def test_reorder_negative_position(self, api, editor, board):
        lista = board.lists.first()
        response = api(editor).put(f'/api/lists/{lista.pk}/reorder', {'position': -1})

        assert response.status_code == 400
        assert response.json()['errors'][0]['message'] == 'Position must be a non-negative integer'

    def test_delete_list(self, api, editor, board):
        lista = board.lists.get(title='To Do')
        ordering.append_card(lista, title='c')

        response = api(editor).delete(f'/api/lists/{lista.pk}')

        assert response.status_code == 200
        assert board.lists.get().position == 0
        assert not Card.objects.exists()

    def test_missing_list(self, api, editor):
        response = api(editor).put('/api/lists/424242', {'title': 'x'})
        assert response.json() == {'success': False, 'message': 'List not found'}


@pytest.mark.django_db
def test_move_example_from_editor_flow(api, make_board, owner, editor):
    """Board with an editor: two lists, one card, move to the second list."""
    board = make_board(owner, members={editor: 'editor'})
    cliente = api(editor)

    l1 = cliente.post('/api/lists', {'title': 'L1', 'board': board.pk}).json()['data']['list']
    l2 = cliente.post('/api/lists', {'title': 'L2', 'board': board.pk}).json()['data']['list']
    assert (l1['position'], l2['position']) == (0, 1)

    c1 = cliente.post('/api/cards', {'title': 'C1', 'list': l1['id']}).json()['data']['card']
    assert c1['position'] == 0

    response = cliente.put(f'/api/cards/{c1["id"]}/move', {'listId': l2['id'], 'position': 0})

    assert response.status_code == 200
    movido = response.json()['data']['card']
    assert movido['list'] == l2['id']
    assert movido['position'] == 0
    assert Card.objects.filter(list_id=l1['id']).count() == 0
    assert list(Card.objects.filter(list_id=l2['id']).values_list('pk', flat=True)) == [c1['id']]


@pytest.mark.django_db
def test_deleting_user_deletes_owned_boards(owner, board):
    owner.delete()

    assert not Board.objects.filter(pk=board.pk).exists()
    assert User.objects.filter(email='editor@example.com').exists()


@pytest.mark.django_db
def test_content_changes_touch_board_and_card(owner, board):
    antigo = timezone.now() - timedelta(days=1)
    Board.objects.filter(pk=board.pk).update(updated_at=antigo)

    card = ordering.append_card(board.lists.first(), title='c')

    board.refresh_from_db()
    assert board.updated_at > antigo

    Card.objects.filter(pk=card.pk).update(updated_at=antigo)
    Comment.objects.create(card=card, author=owner, text='ping')

    card.refresh_from_db()
    assert card.updated_at > antigo
