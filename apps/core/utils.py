# apps/core/utils.py

import json
from typing import Dict, List, Optional

from django.http import JsonResponse
from django.utils import timezone

from .exceptions import BadRequest, ValidationFailed


# =================== ENVELOPE DE RESPOSTA ===================

def send_success(status: int = 200, message: str = 'Success', data: Optional[Dict] = None) -> JsonResponse:
    """
    Resposta de sucesso no envelope padrão

    ``data`` só aparece quando há conteúdo
    """
    corpo = {'success': True, 'message': message}
    if data:
        corpo['data'] = data
    return JsonResponse(corpo, status=status)


def send_error(status: int = 500, message: str = 'Internal Server Error',
               errors: Optional[List] = None) -> JsonResponse:
    """Resposta de erro no envelope padrão"""
    corpo = {'success': False, 'message': message}
    if errors:
        corpo['errors'] = errors
    return JsonResponse(corpo, status=status)


def send_validation_error(errors: List) -> JsonResponse:
    return send_error(400, 'Validation failed', errors)


def send_auth_error(message: str = 'Authentication failed') -> JsonResponse:
    return send_error(401, message)


def send_forbidden_error(message: str = 'Access forbidden') -> JsonResponse:
    return send_error(403, message)


def send_not_found_error(message: str = 'Resource not found') -> JsonResponse:
    return send_error(404, message)


def send_route_not_found(request) -> JsonResponse:
    return send_not_found_error(f'Route {request.path} not found')


# =================== ROTEAMENTO ===================

def method_router(**handlers):
    """
    View única que despacha pelo método HTTP

    Ex: method_router(GET=list_boards, POST=create_board). Método sem
    handler responde como rota inexistente. A view herda a marca de
    token dos handlers e fica isenta de CSRF (API sem sessão).
    """

    def view(request, *args, **kwargs):
        handler = handlers.get(request.method)
        if handler is None:
            return send_route_not_found(request)
        return handler(request, *args, **kwargs)

    view.requires_token = any(getattr(h, 'requires_token', False) for h in handlers.values())
    view.csrf_exempt = True
    return view


# =================== REQUEST ===================

def parse_json_body(request) -> Dict:
    """
    Lê o corpo JSON do request

    Corpo vazio vira dict vazio; JSON inválido ou que não seja objeto
    gera BadRequest.
    """
    if not request.body:
        return {}
    try:
        dados = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise BadRequest('Invalid JSON body')
    if not isinstance(dados, dict):
        raise BadRequest('Invalid JSON body')
    return dados


def form_errors(form) -> List[Dict]:
    """Converte erros de um Django form para [{'field', 'message'}]"""
    erros = []
    for campo, mensagens in form.errors.get_json_data().items():
        for mensagem in mensagens:
            erros.append({
                'field': campo if campo != '__all__' else None,
                'message': mensagem['message'],
            })
    return erros


def validate_form(form_class, data: Dict, **kwargs):
    """
    Valida ``data`` com o form e devolve cleaned_data

    Levanta ValidationFailed com os erros por campo.
    """
    form = form_class(data=data, **kwargs)
    if not form.is_valid():
        raise ValidationFailed(form_errors(form))
    return form.cleaned_data


def present_fields(cleaned_data: Dict, payload: Dict, mapping: Dict[str, str]) -> Dict:
    """
    Filtra cleaned_data para os campos realmente enviados no payload

    ``mapping`` relaciona o nome do campo no JSON ao atributo do model.
    Necessário para updates parciais (forms preenchem campos ausentes).
    """
    return {
        atributo: cleaned_data[campo]
        for campo, atributo in mapping.items()
        if campo in payload and campo in cleaned_data
    }


def isoformat(valor) -> Optional[str]:
    """Serializa datetime para ISO 8601 (None passa direto)"""
    if valor is None:
        return None
    if timezone.is_naive(valor):
        valor = timezone.make_aware(valor)
    return valor.isoformat()
