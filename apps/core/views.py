# apps/core/views.py

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.db.models import Q
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt

from .auth_service import get_auth_service
from .conf import get_taskboard_settings
from .exceptions import BadRequest, NotFound
from .forms import LoginForm, PreferencesForm, ProfileForm, RegisterForm, UserProfileForm
from .models import Board, Card, User
from .permissions import api_login_required
from .serializers import serialize_user, serialize_user_summary
from .utils import parse_json_body, send_route_not_found, send_success, validate_form

logger = logging.getLogger(__name__)


# =================== AUTENTICAÇÃO ===================

def register(request):
    """
    Cadastro de usuário

    Com ``useCookies`` o token vai apenas no cookie HTTP-only.
    """
    dados = validate_form(RegisterForm, parse_json_body(request))
    auth_service = get_auth_service()

    resultado, token = auth_service.register(dados, use_cookies=dados['useCookies'])

    response = send_success(201, 'User registered successfully', resultado)
    if dados['useCookies']:
        auth_service.set_token_cookie(response, token)
    return response


def login(request):
    dados = validate_form(LoginForm, parse_json_body(request))
    auth_service = get_auth_service()

    resultado, token = auth_service.login(
        dados['email'],
        dados['password'],
        use_cookies=dados['useCookies'],
    )

    response = send_success(200, 'Login successful', resultado)
    if dados['useCookies']:
        auth_service.set_token_cookie(response, token)
    return response


@api_login_required
def me(request):
    return send_success(200, 'User data retrieved successfully', {
        'user': serialize_user(request.user, include_preferences=True)
    })


def logout(request):
    """Limpa o cookie; clientes com token em header apenas o descartam"""
    response = send_success(200, 'Logout successful')
    get_auth_service().clear_token_cookie(response)
    return response


@api_login_required
def update_auth_profile(request):
    dados = validate_form(ProfileForm, parse_json_body(request))
    usuario = get_auth_service().update_profile(request.user, dados)

    return send_success(200, 'Profile updated successfully', {
        'user': serialize_user(usuario)
    })


# =================== USUÁRIOS ===================

@api_login_required
def search_users(request):
    """Busca por trecho do email, sem o próprio usuário"""
    email = request.GET.get('email', '').strip()
    if not email:
        raise BadRequest('Email query parameter is required')

    limite = get_taskboard_settings().user_search_limit
    usuarios = (
        User.objects
        .filter(email__icontains=email, is_active=True)
        .exclude(pk=request.user.pk)
        .order_by('email')[:limite]
    )

    return send_success(200, 'Users search completed', {
        'users': [serialize_user_summary(u) for u in usuarios]
    })


@api_login_required
def get_user(request, user_id):
    try:
        usuario = User.objects.get(pk=user_id, is_active=True)
    except User.DoesNotExist:
        raise NotFound('User not found')

    return send_success(200, 'User retrieved successfully', {
        'user': serialize_user(usuario)
    })


@api_login_required
def update_user_profile(request):
    """Nome e avatar; campos vazios são ignorados"""
    dados = validate_form(UserProfileForm, parse_json_body(request))
    usuario = request.user

    campos = [campo for campo in ('name', 'avatar') if dados.get(campo)]
    for campo in campos:
        setattr(usuario, campo, dados[campo])
    if campos:
        usuario.save(update_fields=campos + ['updated_at'])

    return send_success(200, 'Profile updated successfully', {
        'user': serialize_user(usuario)
    })


@api_login_required
def update_preferences(request):
    """Mescla theme, notifications, language e timezone nas preferências"""
    payload = parse_json_body(request)
    dados = validate_form(PreferencesForm, payload)
    usuario = request.user

    preferencias = dict(usuario.preferences or {})
    for chave in ('theme', 'language', 'timezone'):
        if dados.get(chave):
            preferencias[chave] = dados[chave]
    if 'notifications' in payload:
        preferencias['notifications'] = dados['notifications']

    usuario.preferences = preferencias
    usuario.save(update_fields=['preferences', 'updated_at'])

    return send_success(200, 'Preferences updated successfully', {
        'user': serialize_user(usuario, include_preferences=True)
    })


@api_login_required
def user_stats(request):
    """
    Estatísticas do usuário nos boards em que participa

    Cards atribuídos e criados contam só dentro desses boards.
    """
    usuario = request.user
    boards = Board.objects.filter(Q(owner=usuario) | Q(memberships__user=usuario)).distinct()
    board_ids = boards.values('pk')

    atribuidos = Card.objects.filter(members=usuario, board_id__in=board_ids)

    stats = {
        'totalBoards': boards.count(),
        'ownedBoards': boards.filter(owner=usuario).count(),
        'memberBoards': boards.exclude(owner=usuario).count(),
        'assignedCards': atribuidos.count(),
        'createdCards': Card.objects.filter(created_by=usuario, board_id__in=board_ids).count(),
        'overdueCards': atribuidos.filter(due_date__lt=timezone.now(), completed=False).count(),
        'completedCards': atribuidos.filter(completed=True).count(),
    }

    return send_success(200, 'User statistics retrieved successfully', {'stats': stats})


@api_login_required
def delete_account(request):
    """Remove o usuário e, em cascata, os boards que ele possui"""
    email = request.user.email
    request.user.delete()
    logger.info("Conta removida: %s", email)

    response = send_success(200, 'Account deleted successfully')
    get_auth_service().clear_token_cookie(response)
    return response


# =================== MONITORAMENTO ===================

def health_check(request):
    """
    Health check para monitoramento
    """
    try:
        connection.ensure_connection()
        database = 'connected'
    except DatabaseError:
        logger.exception("Health check: banco indisponível")
        database = 'disconnected'

    # Verificar Redis se configurado
    try:
        cache.set('health_check', 'ok', 60)
        cache_status = 'ok' if cache.get('health_check') == 'ok' else 'unavailable'
    except Exception:
        logger.exception("Health check: cache indisponível")
        cache_status = 'unavailable'

    return send_success(200, 'Server is running', {
        'timestamp': timezone.now().isoformat(),
        'database': database,
        'cache': cache_status,
    })


@csrf_exempt
def route_not_found(request, path=''):
    return send_route_not_found(request)
