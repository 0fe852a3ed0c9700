# apps/core/__init__.py

"""
Core - Aplicação principal do TaskBoard

Contém:
- Models (User, Board, BoardMember, List, Card, Comment, Activity)
- Autenticação por token JWT e middlewares da API
- Sistema de permissões por papel no board
- Comandos de seed e verificação de posições
"""
