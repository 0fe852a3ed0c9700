# apps/core/exceptions.py

"""
Erros da API

Views levantam estas exceções; o ApiExceptionMiddleware converte
todas para o envelope padrão de resposta.
"""


class ApiError(Exception):
    """Erro base com status HTTP e mensagem para o cliente"""

    status_code = 500
    default_message = 'Server Error'

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = 400
    default_message = 'Bad request'


class ValidationFailed(ApiError):
    """Erros de validação por campo: [{'field': ..., 'message': ...}]"""

    status_code = 400
    default_message = 'Validation failed'

    def __init__(self, errors):
        super().__init__(self.default_message, errors=errors)


class AuthenticationFailed(ApiError):
    status_code = 401
    default_message = 'Authentication failed'


class Forbidden(ApiError):
    status_code = 403
    default_message = 'Access denied'


class NotFound(ApiError):
    status_code = 404
    default_message = 'Resource not found'


class RequestTimeout(ApiError):
    status_code = 408
    default_message = 'Request timeout'
