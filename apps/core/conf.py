# apps/core/conf.py

"""
Configuração do TaskBoard

Todas as opções próprias do projeto ficam no dict ``settings.TASKBOARD``
e são lidas uma única vez para um objeto imutável, que é repassado
explicitamente aos serviços (token, autenticação) e middlewares.
"""

from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings


@dataclass(frozen=True)
class TaskBoardSettings:
    jwt_secret: str
    jwt_algorithm: str = 'HS256'
    jwt_expire_days: int = 7
    auth_cookie_name: str = 'token'
    auth_cookie_max_age: int = 7 * 24 * 60 * 60
    auth_cookie_secure: bool = True
    request_timeout_seconds: float = 25.0
    login_max_attempts: int = 5
    login_lockout_minutes: int = 15
    user_search_limit: int = 10

    @property
    def jwt_lifetime(self) -> timedelta:
        return timedelta(days=self.jwt_expire_days)

    @property
    def login_lockout_seconds(self) -> int:
        return self.login_lockout_minutes * 60

    @classmethod
    def from_dict(cls, valores: dict) -> 'TaskBoardSettings':
        """Constrói a partir do dict no formato de settings.TASKBOARD"""
        campos = {chave.lower(): valor for chave, valor in valores.items()}
        conhecidos = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in campos.items() if k in conhecidos})


def get_taskboard_settings() -> TaskBoardSettings:
    """Lê settings.TASKBOARD a cada chamada (compatível com override_settings)"""
    valores = dict(getattr(settings, 'TASKBOARD', {}))
    valores.setdefault('JWT_SECRET', settings.SECRET_KEY)
    return TaskBoardSettings.from_dict(valores)
