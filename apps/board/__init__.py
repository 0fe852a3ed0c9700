# apps/board/__init__.py

"""
Board - API Kanban do TaskBoard

Funcionalidades:
- Boards, membros, listas e cards
- Manutenção das posições ordenadas (ordering)
- Comentários e histórico de atividades
"""
