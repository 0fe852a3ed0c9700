# apps/core/middleware.py

import asyncio
import logging

from asgiref.sync import iscoroutinefunction, markcoroutinefunction
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.db import IntegrityError
from django.http import Http404

from .auth_service import AuthenticationService
from .conf import get_taskboard_settings
from .exceptions import ApiError, AuthenticationFailed
from .utils import send_auth_error, send_error

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware:
    """
    Limita o tempo de resposta sob ASGI

    Se o handler não termina em REQUEST_TIMEOUT_SECONDS responde 408.
    A escrita em andamento não é cancelada nem revertida. Sob WSGI
    o request passa direto.
    """

    sync_capable = True
    async_capable = True

    def __init__(self, get_response):
        self.get_response = get_response
        self.timeout = get_taskboard_settings().request_timeout_seconds
        self.async_mode = iscoroutinefunction(self.get_response)
        if self.async_mode:
            markcoroutinefunction(self)

    def __call__(self, request):
        if self.async_mode:
            return self.__acall__(request)
        return self.get_response(request)

    async def __acall__(self, request):
        tarefa = asyncio.ensure_future(self.get_response(request))
        try:
            return await asyncio.wait_for(asyncio.shield(tarefa), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Request timeout: %s %s", request.method, request.path)
            tarefa.add_done_callback(
                lambda t: self._log_late_failure(t, request.method, request.path)
            )
            return send_error(408, 'Request timeout')

    @staticmethod
    def _log_late_failure(tarefa, method, path):
        """Registra a falha do handler que terminou depois do 408"""
        if tarefa.cancelled():
            return
        erro = tarefa.exception()
        if erro is not None:
            logger.error("Falha após timeout em %s %s", method, path, exc_info=erro)


class JWTAuthenticationMiddleware:
    """
    Autentica views marcadas com @api_login_required

    Token lido do header Authorization e, na falta dele, do cookie.
    Erros de autenticação são respondidos aqui mesmo: exceções de
    process_view não passam pelo process_exception.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.auth_service = AuthenticationService(get_taskboard_settings())

    def __call__(self, request):
        return self.get_response(request)

    def process_view(self, request, view_func, view_args, view_kwargs):
        if not getattr(view_func, 'requires_token', False):
            return None

        token = (
            self.auth_service.tokens.extract_from_header(request.headers.get('Authorization'))
            or self.auth_service.get_token_from_cookies(request)
        )
        if not token:
            return send_auth_error('No token, authorization denied')

        try:
            usuario, payload = self.auth_service.authenticate_token(token)
        except AuthenticationFailed as e:
            logger.warning("Token rejeitado em %s: %s", request.path, e.message)
            return send_auth_error(e.message)

        request.user = usuario
        request.token_payload = payload
        return None


class ApiExceptionMiddleware:
    """
    Converte qualquer exceção de view para o envelope de erro

    Exceções sem mapeamento são logadas com traceback e viram 500.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, ApiError):
            if exception.status_code >= 500:
                logger.error("Erro em %s: %s", request.path, exception.message)
            return send_error(exception.status_code, exception.message, exception.errors)

        if isinstance(exception, (Http404, ObjectDoesNotExist)):
            return send_error(404, 'Resource not found')

        if isinstance(exception, IntegrityError):
            logger.warning("Violação de integridade em %s: %s", request.path, exception)
            return send_error(400, 'Duplicate field value entered')

        if isinstance(exception, ValidationError):
            return send_error(400, ', '.join(exception.messages))

        if isinstance(exception, PermissionDenied):
            return send_error(403, 'Access forbidden')

        logger.exception("Erro não tratado em %s %s", request.method, request.path)
        return send_error(500, 'Server Error')
