# apps/core/serializers.py

"""
Serialização de usuários para o JSON da API

Referências a usuários (dono, membros, autores) são sempre resolvidas
de forma explícita: ou viram apenas o id (``UserRef.unresolved``) ou o
objeto público completo (``UserRef.resolved``). Verificações de
permissão nunca olham para esta camada, só para os ids do banco.
"""

from dataclasses import dataclass
from typing import Optional

from .utils import isoformat


@dataclass(frozen=True)
class UserRef:
    """Referência a um usuário: apenas o id ou a entidade carregada"""

    id: int
    user: Optional[object] = None

    @classmethod
    def unresolved(cls, user_id: int) -> 'UserRef':
        return cls(id=user_id)

    @classmethod
    def resolved(cls, user) -> 'UserRef':
        return cls(id=user.pk, user=user)

    @property
    def is_resolved(self) -> bool:
        return self.user is not None

    def to_json(self):
        if self.is_resolved:
            return serialize_user_summary(self.user)
        return self.id


def serialize_user_summary(user) -> dict:
    """Dados públicos mínimos (usados em membros, autores, buscas)"""
    return {
        'id': user.pk,
        'name': user.name,
        'email': user.email,
        'avatar': user.avatar or None,
    }


def serialize_user(user, include_preferences: bool = False) -> dict:
    """Perfil do usuário (sem senha)"""
    dados = serialize_user_summary(user)
    dados['createdAt'] = isoformat(user.created_at)
    if include_preferences:
        dados['preferences'] = user.preferences or {}
    return dados
