# apps/core/permissions.py

from functools import wraps

from .exceptions import AuthenticationFailed, Forbidden, NotFound
from .models import Board, BoardMember

ROLE_OWNER = 'owner'
ROLE_ADMIN = BoardMember.ROLE_ADMIN
ROLE_EDITOR = BoardMember.ROLE_EDITOR
ROLE_VIEWER = BoardMember.ROLE_VIEWER

ADMIN_ROLES = {ROLE_OWNER, ROLE_ADMIN}
CONTENT_ROLES = {ROLE_OWNER, ROLE_ADMIN, ROLE_EDITOR}


class BoardPermissions:
    """
    Sistema de permissões por board
    Baseado no papel do usuário: owner, admin, editor, viewer

    O papel é sempre derivado do board recém carregado do banco;
    nada é lido do request ou mantido em cache.
    """

    @staticmethod
    def get_user_role(board, user_id):
        """
        Retorna o papel do usuário no board

        owner quando é o dono, senão o papel registrado em memberships,
        senão None.
        """
        if user_id is None:
            return None

        if board.owner_id == user_id:
            return ROLE_OWNER

        # Aproveitar prefetch quando disponível
        cache = getattr(board, '_prefetched_objects_cache', {})
        if 'memberships' in cache:
            for membro in cache['memberships']:
                if membro.user_id == user_id:
                    return membro.role
            return None

        return (
            board.memberships
            .filter(user_id=user_id)
            .values_list('role', flat=True)
            .first()
        )

    @staticmethod
    def is_owner(board, user_id):
        """Apenas o dono pode excluir o board"""
        return board.owner_id == user_id

    @staticmethod
    def has_board_access(board, user_id):
        """Leitura e comentários: dono, membro ou qualquer um se o board é público"""
        if user_id is None:
            return False
        if not board.is_private:
            return True
        return BoardPermissions.get_user_role(board, user_id) is not None

    @staticmethod
    def has_admin_access(board, user_id):
        """Editar board e gerenciar membros: dono ou admin"""
        return BoardPermissions.get_user_role(board, user_id) in ADMIN_ROLES

    @staticmethod
    def has_content_access(board, user_id):
        """Criar, editar, mover e excluir listas e cards: dono, admin ou editor"""
        return BoardPermissions.get_user_role(board, user_id) in CONTENT_ROLES


def ensure_permission(check, board, user, message='Access denied'):
    """Levanta Forbidden se ``check(board, user_id)`` falhar"""
    if not check(board, user.pk):
        raise Forbidden(message)


# Decoradores para views

def api_login_required(view_func):
    """
    Marca a view como protegida por token

    O JWTAuthenticationMiddleware autentica views marcadas antes de
    chamá-las; a verificação abaixo garante que uma sessão do Admin
    nunca substitua o token.
    """

    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        if getattr(request, 'token_payload', None) is None:
            raise AuthenticationFailed('No token, authorization denied')
        return view_func(request, *args, **kwargs)

    wrapped_view.requires_token = True
    return wrapped_view


def require_board_role(check, message='Access denied'):
    """
    Decorador que carrega o board de ``board_id`` e verifica o papel

    Adiciona o board ao request para uso na view.
    """

    def decorator(view_func):
        @wraps(view_func)
        def wrapped_view(request, board_id, *args, **kwargs):
            try:
                board = Board.objects.get(id=board_id)
            except Board.DoesNotExist:
                raise NotFound('Board not found')

            ensure_permission(check, board, request.user, message)

            request.board = board
            return view_func(request, board_id, *args, **kwargs)

        return wrapped_view

    return decorator
