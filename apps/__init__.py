# apps/__init__.py

"""
TaskBoard - Aplicações Django

Este pacote contém todas as aplicações do sistema:
- core: Models, autenticação JWT, permissões e API de usuários
- board: API de boards, listas, cards e comentários
"""

__version__ = '0.1.0'
