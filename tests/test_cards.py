"""
Tests for the cards API: create, update, move, delete, search, comments and activities.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.board import ordering
from apps.core.models import Activity, Card, Comment


@pytest.fixture
def todo(board):
    return board.lists.get(title='To Do')


@pytest.fixture
def done(board):
    return board.lists.get(title='Done')


def activity_types(card):
    return list(Activity.objects.filter(card=card).order_by('id').values_list('type', flat=True))


@pytest.mark.django_db
class TestCreateCard:
    """Tests for POST /api/cards."""

    def test_create_appends_and_records_activity(self, api, editor, board, todo):
        ordering.append_card(todo, title='first')

        response = api(editor).post('/api/cards', {
            'title': 'Second',
            'list': todo.pk,
            'description': 'details',
            'dueDate': '2030-01-15T12:00:00Z',
            'labels': [{'name': 'bug', 'color': '#ff0000'}],
        })

        assert response.status_code == 201
        card = response.json()['data']['card']
        assert card['position'] == 1
        assert card['list'] == todo.pk
        assert card['board'] == board.pk
        assert card['labels'] == [{'name': 'bug', 'color': '#ff0000'}]
        assert card['createdBy']['id'] == editor.pk
        assert card['dueDate'].startswith('2030-01-15T12:00:00')
        assert activity_types(Card.objects.get(pk=card['id'])) == ['card_created']

    def test_validation(self, api, editor, todo):
        response = api(editor).post('/api/cards', {'title': '', 'list': 'x', 'dueDate': 'tomorrow'})

        assert response.status_code == 400
        erros = {e['field']: e['message'] for e in response.json()['errors']}
        assert erros == {
            'title': 'Title must be between 1 and 200 characters',
            'list': 'Valid list ID is required',
            'dueDate': 'Due date must be a valid date',
        }

    @pytest.mark.parametrize('due_date', [[2024], 20240115, {'year': 2024}])
    def test_due_date_must_be_a_string(self, api, editor, todo, due_date):
        response = api(editor).post('/api/cards', {'title': 'x', 'list': todo.pk, 'dueDate': due_date})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'dueDate', 'message': 'Due date must be a valid date'}]
        assert not Card.objects.exists()

    def test_unknown_list(self, api, editor):
        response = api(editor).post('/api/cards', {'title': 'x', 'list': 987654})

        assert response.status_code == 404
        assert response.json()['message'] == 'List not found'

    def test_labels_must_have_names(self, api, editor, todo):
        response = api(editor).post('/api/cards', {'title': 'x', 'list': todo.pk, 'labels': [{'color': 'red'}]})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'labels', 'message': 'Each label must have a name'}]


@pytest.mark.django_db
class TestUpdateCard:
    """Tests for PUT /api/cards/<id>."""

    def test_partial_update_keeps_other_fields(self, api, editor, todo):
        card = ordering.append_card(todo, title='Card', description='keep me')

        response = api(editor).put(f'/api/cards/{card.pk}', {'completed': True})

        assert response.status_code == 200
        card.refresh_from_db()
        assert card.completed is True
        assert card.description == 'keep me'
        assert card.title == 'Card'

    def test_null_boolean_is_ignored(self, api, editor, todo):
        card = ordering.append_card(todo, title='Card', completed=True)

        api(editor).put(f'/api/cards/{card.pk}', {'completed': None})

        card.refresh_from_db()
        assert card.completed is True

    def test_non_boolean_flags_rejected(self, api, editor, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}', {'completed': 'yes', 'isArchived': 1})

        assert response.status_code == 400
        erros = {e['field']: e['message'] for e in response.json()['errors']}
        assert erros == {
            'completed': 'completed must be a boolean value',
            'isArchived': 'isArchived must be a boolean value',
        }
        card.refresh_from_db()
        assert (card.completed, card.is_archived) == (False, False)

    def test_non_string_due_date_rejected(self, api, editor, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}', {'dueDate': 5})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'dueDate', 'message': 'Due date must be a valid date'}]
        card.refresh_from_db()
        assert card.due_date is None

    def test_rename_and_due_date_activities(self, api, editor, todo):
        card = ordering.append_card(todo, title='Old')
        cliente = api(editor)

        cliente.put(f'/api/cards/{card.pk}', {'title': 'New', 'dueDate': '2031-05-01T09:00:00Z'})
        cliente.put(f'/api/cards/{card.pk}', {'dueDate': None})

        assert activity_types(card) == ['card_updated', 'due_date_set', 'due_date_removed']
        renomeado = Activity.objects.get(card=card, type='card_updated')
        assert renomeado.metadata == {'oldTitle': 'Old', 'newTitle': 'New'}

    def test_label_activities(self, api, editor, todo):
        card = ordering.append_card(todo, title='Card', labels=[{'name': 'bug', 'color': ''}])

        api(editor).put(f'/api/cards/{card.pk}', {'labels': [{'name': 'feature', 'color': 'green'}]})

        assert activity_types(card) == ['label_added', 'label_removed']

    def test_assign_members(self, api, editor, viewer, owner, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}', {'members': [viewer.pk, owner.pk]})

        assert response.status_code == 200
        ids = {m['id'] for m in response.json()['data']['card']['members']}
        assert ids == {viewer.pk, owner.pk}
        assert activity_types(card).count('member_added') == 2

    def test_members_must_participate(self, api, editor, stranger, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}', {'members': [stranger.pk]})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'members', 'message': 'Members must be board participants'}]
        assert not card.members.exists()

    def test_blank_title_rejected(self, api, editor, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}', {'title': ''})

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'title'

    def test_viewer_cannot_edit(self, api, viewer, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(viewer).put(f'/api/cards/{card.pk}', {'title': 'x'})

        assert response.status_code == 403
        assert response.json()['message'] == 'Only board owners, admins, and editors can edit cards'


@pytest.mark.django_db
class TestMoveCardApi:
    """Tests for PUT /api/cards/<id>/move."""

    def test_move_records_activity(self, api, editor, todo, done):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}/move', {'listId': done.pk, 'position': 0})

        assert response.status_code == 200
        movimento = Activity.objects.get(card=card, type='card_moved')
        assert movimento.metadata == {'fromList': 'To Do', 'toList': 'Done'}

    def test_target_list_not_found(self, api, editor, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}/move', {'listId': 555555, 'position': 0})

        assert response.status_code == 404
        assert response.json()['message'] == 'Target list not found'

    def test_requires_edit_rights_on_target_board(self, api, make_board, editor, stranger, todo):
        alheio = make_board(stranger, lists=['Theirs'], members={editor: 'viewer'})
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}/move', {'listId': alheio.lists.get().pk, 'position': 0})

        assert response.status_code == 403
        assert response.json()['message'] == 'Access denied'
        card.refresh_from_db()
        assert card.list_id == todo.pk

    def test_move_across_boards(self, api, make_board, editor, board, todo):
        outro = make_board(editor, lists=['Inbox'])
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}/move', {'listId': outro.lists.get().pk, 'position': 3})

        dados = response.json()['data']['card']
        assert dados['board'] == outro.pk
        assert dados['position'] == 0

    def test_missing_position(self, api, editor, todo, done):
        card = ordering.append_card(todo, title='Card')

        response = api(editor).put(f'/api/cards/{card.pk}/move', {'listId': done.pk})

        assert response.status_code == 400
        assert response.json()['errors'] == [{'field': 'position', 'message': 'Position must be a non-negative integer'}]


@pytest.mark.django_db
class TestDeleteCard:
    """Tests for DELETE /api/cards/<id>."""

    def test_delete_removes_comments_and_closes_gap(self, api, editor, owner, todo):
        a, b, c = (ordering.append_card(todo, title=t) for t in 'abc')
        Comment.objects.create(card=b, author=owner, text='bye')

        response = api(editor).delete(f'/api/cards/{b.pk}')

        assert response.status_code == 200
        assert not Comment.objects.exists()
        assert list(Card.objects.filter(list=todo).values_list('title', 'position')) == [('a', 0), ('c', 1)]

    def test_missing_card(self, api, editor):
        response = api(editor).delete('/api/cards/31337')
        assert response.json() == {'success': False, 'message': 'Card not found'}


@pytest.mark.django_db
class TestCardReads:
    """Tests for the read endpoints of cards."""

    def test_cards_by_list_in_order(self, api, viewer, todo):
        for titulo in ('one', 'two', 'three'):
            ordering.append_card(todo, title=titulo)

        response = api(viewer).get(f'/api/cards/list/{todo.pk}')

        assert [c['title'] for c in response.json()['data']['cards']] == ['one', 'two', 'three']

    def test_get_card_includes_activities(self, api, editor, todo):
        card_id = api(editor).post('/api/cards', {'title': 'Card', 'list': todo.pk}).json()['data']['card']['id']

        response = api(editor).get(f'/api/cards/{card_id}')

        dados = response.json()['data']['card']
        assert dados['comments'] == []
        assert [a['type'] for a in dados['activities']] == ['card_created']
        assert dados['activities'][0]['user']['id'] == editor.pk

    def test_stranger_cannot_read(self, api, stranger, todo):
        card = ordering.append_card(todo, title='Card')

        assert api(stranger).get(f'/api/cards/{card.pk}').status_code == 403
        assert api(stranger).get(f'/api/cards/list/{todo.pk}').status_code == 403


@pytest.mark.django_db
class TestSearch:
    """Tests for GET /api/cards/search."""

    @pytest.fixture
    def cards(self, todo, done):
        amanha = timezone.now() + timedelta(days=1)
        return {
            'login': ordering.append_card(todo, title='Fix login bug', labels=[{'name': 'Bug', 'color': 'red'}]),
            'docs': ordering.append_card(done, title='Docs', description='write the LOGIN guide'),
            'release': ordering.append_card(done, title='Release', due_date=amanha,
                                            labels=[{'name': 'ops', 'color': 'bug-red'}]),
        }

    def test_text_search_in_title_and_description(self, api, owner, cards):
        response = api(owner).get('/api/cards/search', {'q': 'login'})

        titulos = {c['title'] for c in response.json()['data']['cards']}
        assert titulos == {'Fix login bug', 'Docs'}

    def test_results_embed_list_and_board(self, api, owner, board, cards):
        response = api(owner).get('/api/cards/search', {'q': 'Docs'})

        (card,) = response.json()['data']['cards']
        assert card['list']['title'] == 'Done'
        assert card['board'] == {'id': board.pk, 'title': board.title}
        assert 'comments' not in card

    def test_label_matches_names_only(self, api, owner, cards):
        response = api(owner).get('/api/cards/search', {'label': 'bug'})

        assert [c['title'] for c in response.json()['data']['cards']] == ['Fix login bug']

    def test_due_date_filter(self, api, owner, cards):
        dia = timezone.localdate(cards['release'].due_date).isoformat()

        response = api(owner).get('/api/cards/search', {'dueDate': dia})

        assert [c['title'] for c in response.json()['data']['cards']] == ['Release']

    def test_invalid_due_date(self, api, owner, cards):
        response = api(owner).get('/api/cards/search', {'dueDate': 'soon'})

        assert response.status_code == 400
        assert response.json()['message'] == 'Due date must be a valid date'

    def test_only_boards_of_the_user(self, api, stranger, make_board, cards):
        proprio = make_board(stranger, lists=['Mine'])
        ordering.append_card(proprio.lists.get(), title='login of stranger')

        response = api(stranger).get('/api/cards/search', {'q': 'login'})

        assert [c['title'] for c in response.json()['data']['cards']] == ['login of stranger']

    def test_board_filter(self, api, owner, board, make_board, cards):
        outro = make_board(owner, lists=['Other'])
        ordering.append_card(outro.lists.get(), title='login elsewhere')

        response = api(owner).get('/api/cards/search', {'q': 'login', 'boardId': outro.pk})

        assert [c['title'] for c in response.json()['data']['cards']] == ['login elsewhere']

    def test_non_numeric_board_filter(self, api, owner, cards):
        response = api(owner).get('/api/cards/search', {'q': 'login', 'boardId': 'abc'})

        assert response.status_code == 404
        assert response.json() == {'success': False, 'message': 'Board not found'}


@pytest.mark.django_db
class TestComments:
    """Tests for /api/cards/<id>/comments and /activities."""

    def test_viewer_can_comment(self, api, viewer, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(viewer).post(f'/api/cards/{card.pk}/comments', {'text': 'Nice work'})

        assert response.status_code == 201
        comentario = response.json()['data']['comment']
        assert comentario['author']['id'] == viewer.pk
        assert comentario['card'] == card.pk
        assert activity_types(card) == ['comment_added']

    def test_comment_length(self, api, viewer, todo):
        card = ordering.append_card(todo, title='Card')
        cliente = api(viewer)

        for texto in ('', 'x' * 1001):
            response = cliente.post(f'/api/cards/{card.pk}/comments', {'text': texto})
            assert response.status_code == 400
            assert response.json()['errors'] == [
                {'field': 'text', 'message': 'Comment must be between 1 and 1000 characters'}
            ]

    def test_stranger_cannot_comment(self, api, stranger, todo):
        card = ordering.append_card(todo, title='Card')

        response = api(stranger).post(f'/api/cards/{card.pk}/comments', {'text': 'hi'})

        assert response.status_code == 403

    def test_list_comments_oldest_first(self, api, owner, editor, todo):
        card = ordering.append_card(todo, title='Card')
        Comment.objects.create(card=card, author=owner, text='first')
        Comment.objects.create(card=card, author=editor, text='second')

        response = api(editor).get(f'/api/cards/{card.pk}/comments')

        assert [c['text'] for c in response.json()['data']['comments']] == ['first', 'second']

    def test_activities_newest_first(self, api, editor, todo, done):
        cliente = api(editor)
        card_id = cliente.post('/api/cards', {'title': 'Card', 'list': todo.pk}).json()['data']['card']['id']
        cliente.put(f'/api/cards/{card_id}/move', {'listId': done.pk, 'position': 0})

        response = cliente.get(f'/api/cards/{card_id}/activities')

        assert [a['type'] for a in response.json()['data']['activities']] == ['card_moved', 'card_created']
