# apps/core/auth_service.py

"""
Serviço de Autenticação - Encapsula toda lógica de auth do sistema

Tokens JWT assinados (python-jose), cookies HTTP-only, cadastro e login
por email com bloqueio temporário após tentativas incorretas.
"""

import logging
from typing import Dict, Optional, Tuple

from django.core.cache import cache
from django.utils import timezone
from jose import ExpiredSignatureError, JWTError, jwt

from .conf import TaskBoardSettings, get_taskboard_settings
from .exceptions import AuthenticationFailed, BadRequest
from .models import User
from .serializers import serialize_user

logger = logging.getLogger(__name__)


class TokenService:
    """Geração e verificação de tokens JWT com o id do usuário"""

    def __init__(self, config: TaskBoardSettings):
        self._config = config

    def generate(self, user_id: int) -> str:
        agora = timezone.now()
        payload = {
            'id': user_id,
            'iat': int(agora.timestamp()),
            'exp': int((agora + self._config.jwt_lifetime).timestamp()),
        }
        return jwt.encode(payload, self._config.jwt_secret, algorithm=self._config.jwt_algorithm)

    def verify(self, token: str) -> Dict:
        """
        Valida assinatura e expiração

        Raises:
            AuthenticationFailed: token expirado ou malformado
        """
        try:
            payload = jwt.decode(
                token,
                self._config.jwt_secret,
                algorithms=[self._config.jwt_algorithm],
            )
        except ExpiredSignatureError:
            raise AuthenticationFailed('Token has expired')
        except JWTError:
            raise AuthenticationFailed('Invalid token format')

        if not isinstance(payload.get('id'), int):
            raise AuthenticationFailed('Token is not valid')
        return payload

    @staticmethod
    def extract_from_header(header_value: Optional[str]) -> Optional[str]:
        """Remove o prefixo ``Bearer``; valor sem prefixo é usado como está"""
        if not header_value:
            return None
        if header_value.startswith('Bearer '):
            return header_value[7:].strip() or None
        return header_value.strip() or None


class AuthenticationService:
    """
    Serviço encapsulado para gerenciar autenticação

    Recebe a configuração explicitamente; a instância padrão do módulo
    é construída sob demanda a partir de settings.TASKBOARD.
    """

    def __init__(self, config: Optional[TaskBoardSettings] = None):
        self._config = config or get_taskboard_settings()
        self.tokens = TokenService(self._config)

    @property
    def config(self) -> TaskBoardSettings:
        return self._config

    def register(self, dados: Dict, use_cookies: bool = False) -> Tuple[Dict, str]:
        """
        Cria novo usuário e emite token

        Args:
            dados: name, email e password já validados

        Returns:
            Tuple[payload da resposta, token]
        """
        email = dados['email'].lower()

        # Verificar se usuário já existe
        if self.user_exists(email):
            raise BadRequest('User already exists with this email')

        usuario = User.objects.create_user(
            username=email,
            email=email,
            password=dados['password'],  # Django já faz hash automaticamente
            name=dados['name'],
        )
        logger.info("Usuário registrado: %s", usuario.email)

        return self._build_result(usuario, use_cookies)

    def login(self, email: str, password: str, use_cookies: bool = False) -> Tuple[Dict, str]:
        """
        Realiza login com verificações de segurança encapsuladas

        Returns:
            Tuple[payload da resposta, token]
        """
        email = email.lower()

        # Verificar se conta está bloqueada
        if self._conta_esta_bloqueada(email):
            logger.warning("Login bloqueado para %s", email)
            raise BadRequest('Account temporarily locked due to too many failed login attempts')

        usuario = self._autenticar_usuario(email, password)

        if usuario is None:
            self._registrar_tentativa_falha(email)
            raise BadRequest('Invalid email or password')

        self._resetar_tentativas_login(email)
        self._atualizar_ultimo_acesso(usuario)
        logger.info("Login realizado: %s", usuario.email)

        return self._build_result(usuario, use_cookies)

    def authenticate_token(self, token: str) -> Tuple[User, Dict]:
        """
        Resolve o usuário dono do token

        Raises:
            AuthenticationFailed: token inválido ou usuário removido
        """
        payload = self.tokens.verify(token)
        try:
            usuario = User.objects.get(pk=payload['id'], is_active=True)
        except User.DoesNotExist:
            raise AuthenticationFailed('Token is not valid - user not found')
        return usuario, payload

    def update_profile(self, usuario: User, dados: Dict) -> User:
        """Atualiza nome e/ou email; email não pode pertencer a outro usuário"""
        campos = []

        if dados.get('name'):
            usuario.name = dados['name']
            campos.append('name')

        if dados.get('email'):
            email = dados['email'].lower()
            if User.objects.filter(email=email).exclude(pk=usuario.pk).exists():
                raise BadRequest('Email is already taken')
            usuario.email = email
            usuario.username = email
            campos.extend(['email', 'username'])

        if campos:
            usuario.save(update_fields=campos + ['updated_at'])
        return usuario

    def user_exists(self, email: str) -> bool:
        return User.objects.filter(email=email.lower()).exists()

    # =================== COOKIES ===================

    def set_token_cookie(self, response, token: str):
        response.set_cookie(
            self._config.auth_cookie_name,
            token,
            max_age=self._config.auth_cookie_max_age,
            httponly=True,
            secure=self._config.auth_cookie_secure,
            samesite='Strict',
            path='/',
        )

    def clear_token_cookie(self, response):
        response.delete_cookie(
            self._config.auth_cookie_name,
            path='/',
            samesite='Strict',
        )

    def get_token_from_cookies(self, request) -> Optional[str]:
        return request.COOKIES.get(self._config.auth_cookie_name) or None

    # =================== MÉTODOS PRIVADOS (ENCAPSULADOS) ===================

    def _build_result(self, usuario: User, use_cookies: bool) -> Tuple[Dict, str]:
        """Token vai no corpo apenas quando o cliente não usa cookies"""
        token = self.tokens.generate(usuario.pk)
        resultado = {'user': serialize_user(usuario)}
        if not use_cookies:
            resultado['token'] = token
        return resultado, token

    def _autenticar_usuario(self, email: str, password: str) -> Optional[User]:
        try:
            usuario = User.objects.get(email=email, is_active=True)
        except User.DoesNotExist:
            return None

        if not usuario.check_password(password):
            return None
        return usuario

    def _chave_tentativas(self, email: str) -> str:
        return f'login-attempts:{email}'

    def _conta_esta_bloqueada(self, email: str) -> bool:
        """Verifica se conta está bloqueada por tentativas"""
        tentativas = cache.get(self._chave_tentativas(email), 0)
        return tentativas >= self._config.login_max_attempts

    def _registrar_tentativa_falha(self, email: str):
        """Registra tentativa de login falhada; a janela começa na primeira falha"""
        chave = self._chave_tentativas(email)
        if cache.add(chave, 1, timeout=self._config.login_lockout_seconds):
            tentativas = 1
        else:
            try:
                tentativas = cache.incr(chave)
            except ValueError:
                # Chave expirou entre o add e o incr
                cache.set(chave, 1, timeout=self._config.login_lockout_seconds)
                tentativas = 1
        logger.warning("Tentativa de login falhada para %s (%d)", email, tentativas)

    def _resetar_tentativas_login(self, email: str):
        cache.delete(self._chave_tentativas(email))

    def _atualizar_ultimo_acesso(self, usuario: User):
        usuario.last_login = timezone.now()
        usuario.save(update_fields=['last_login'])


def get_auth_service() -> AuthenticationService:
    """Serviço configurado com os settings atuais"""
    return AuthenticationService(get_taskboard_settings())
