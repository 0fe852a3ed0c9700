"""
Pytest configuration and fixtures.
"""

import json

import pytest
from django.core.cache import cache
from django.test import Client

from apps.board import ordering
from apps.core.auth_service import get_auth_service
from apps.core.models import Board, BoardMember, User

PASSWORD = 'Secret123'


class ApiClient:
    """Test client that sends JSON bodies and a bearer token."""

    def __init__(self, user=None, token=None):
        self.client = Client()
        self.user = user
        if token is None and user is not None:
            token = get_auth_service().tokens.generate(user.pk)
        self.token = token

    def _extra(self):
        if self.token:
            return {'HTTP_AUTHORIZATION': f'Bearer {self.token}'}
        return {}

    def get(self, path, params=None):
        return self.client.get(path, params or {}, **self._extra())

    def post(self, path, data=None):
        return self.client.post(path, json.dumps(data or {}), content_type='application/json', **self._extra())

    def put(self, path, data=None):
        return self.client.put(path, json.dumps(data or {}), content_type='application/json', **self._extra())

    def delete(self, path):
        return self.client.delete(path, **self._extra())


@pytest.fixture(autouse=True)
def clear_cache():
    """Login attempt counters live in the cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(email, name='Test User', password=PASSWORD):
        return User.objects.create_user(username=email, email=email, password=password, name=name)

    return _make


@pytest.fixture
def owner(make_user):
    return make_user('owner@example.com', 'Board Owner')


@pytest.fixture
def editor(make_user):
    return make_user('editor@example.com', 'Board Editor')


@pytest.fixture
def viewer(make_user):
    return make_user('viewer@example.com', 'Board Viewer')


@pytest.fixture
def stranger(make_user):
    return make_user('stranger@example.com', 'Some Stranger')


@pytest.fixture
def api():
    """Factory: api(user) returns a client authenticated as that user."""

    def _api(user=None, token=None):
        return ApiClient(user, token)

    return _api


@pytest.fixture
def make_board(db):
    """Factory for boards with members and lists."""

    def _make(owner, title='Board', members=None, lists=(), is_private=True):
        board = Board.objects.create(title=title, owner=owner, is_private=is_private)
        BoardMember.objects.create(board=board, user=owner, role=BoardMember.ROLE_ADMIN)
        for user, role in (members or {}).items():
            BoardMember.objects.create(board=board, user=user, role=role)
        for list_title in lists:
            ordering.append_list(board, title=list_title)
        return board

    return _make


@pytest.fixture
def board(make_board, owner, editor, viewer):
    """Private board with an editor, a viewer and two lists."""
    return make_board(
        owner,
        members={editor: BoardMember.ROLE_EDITOR, viewer: BoardMember.ROLE_VIEWER},
        lists=['To Do', 'Done'],
    )
