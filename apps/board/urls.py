# apps/board/urls.py

from django.urls import path

from apps.core.utils import method_router

from . import views

# /api/boards
boards_urlpatterns = [
    path('', method_router(GET=views.list_boards, POST=views.create_board), name='boards'),
    path(
        '/<int:board_id>',
        method_router(GET=views.get_board, PUT=views.update_board, DELETE=views.delete_board),
        name='board_detail',
    ),
    path('/<int:board_id>/members', method_router(POST=views.add_member), name='board_members'),
    path(
        '/<int:board_id>/members/<int:user_id>',
        method_router(DELETE=views.remove_member),
        name='board_member_detail',
    ),
]

# /api/lists
lists_urlpatterns = [
    path('', method_router(POST=views.create_list), name='lists'),
    path('/board/<int:board_id>', method_router(GET=views.lists_by_board), name='lists_by_board'),
    path(
        '/<int:list_id>',
        method_router(PUT=views.update_list, DELETE=views.delete_list),
        name='list_detail',
    ),
    path('/<int:list_id>/reorder', method_router(PUT=views.reorder_list), name='list_reorder'),
]

# /api/cards
cards_urlpatterns = [
    path('', method_router(POST=views.create_card), name='cards'),
    path('/search', method_router(GET=views.search_cards), name='cards_search'),
    path('/list/<int:list_id>', method_router(GET=views.cards_by_list), name='cards_by_list'),
    path(
        '/<int:card_id>',
        method_router(GET=views.get_card, PUT=views.update_card, DELETE=views.delete_card),
        name='card_detail',
    ),
    path('/<int:card_id>/move', method_router(PUT=views.move_card), name='card_move'),
    path(
        '/<int:card_id>/comments',
        method_router(GET=views.card_comments, POST=views.add_comment),
        name='card_comments',
    ),
    path('/<int:card_id>/activities', method_router(GET=views.card_activities), name='card_activities'),
]
