# apps/core/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils import timezone
from django.utils.html import format_html

from apps.board import ordering

from .models import Activity, Board, BoardMember, Card, Comment, List, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin customizado para o modelo User (login por email)"""

    list_display = ['email', 'name', 'boards_count', 'is_active', 'created_at']
    list_filter = ['is_staff', 'is_active', 'created_at']
    search_fields = ['email', 'name']
    ordering = ['-created_at']

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Informações Adicionais', {
            'fields': ('name', 'avatar', 'preferences')
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'password1', 'password2'),
        }),
    )

    def boards_count(self, obj):
        return obj.owned_boards.count()

    boards_count.short_description = 'Boards'

    def save_model(self, request, obj, form, change):
        # username espelha o email
        obj.username = obj.email
        super().save_model(request, obj, form, change)


class BoardMemberInline(admin.TabularInline):
    model = BoardMember
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']
    autocomplete_fields = ['user']


class ListInline(admin.TabularInline):
    """Listas do board; posição só muda pela API"""
    model = List
    extra = 0
    fields = ['title', 'position', 'is_archived']
    readonly_fields = ['position']
    ordering = ['position']
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Board)
class BoardAdmin(admin.ModelAdmin):
    """Admin para boards Kanban"""

    list_display = [
        'title', 'owner', 'background_preview', 'lists_count',
        'cards_count', 'is_private', 'is_archived', 'updated_at'
    ]
    list_filter = ['is_private', 'is_starred', 'is_archived', 'created_at']
    search_fields = ['title', 'description', 'owner__email']
    readonly_fields = ['created_at', 'updated_at']
    autocomplete_fields = ['owner']

    inlines = [BoardMemberInline, ListInline]

    def lists_count(self, obj):
        return obj.lists.count()

    lists_count.short_description = 'Listas'

    def cards_count(self, obj):
        return obj.cards.count()

    cards_count.short_description = 'Cards'

    def background_preview(self, obj):
        """Preview do fundo (cor hex ou indicação de gradiente/imagem)"""
        if obj.background.startswith('#'):
            return format_html(
                '<div style="width: 20px; height: 20px; background-color: {}; '
                'border: 1px solid #ccc; border-radius: 3px;"></div>',
                obj.background
            )
        return obj.background[:30]

    background_preview.short_description = 'Fundo'


class CardInline(admin.TabularInline):
    """Cards da lista; posição só muda pela API"""
    model = Card
    fk_name = 'list'
    extra = 0
    fields = ['title', 'position', 'due_date', 'completed']
    readonly_fields = ['position']
    ordering = ['position']
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(List)
class ListAdmin(admin.ModelAdmin):
    """
    Admin para listas

    Criação e exclusão passam pelo módulo de ordenação para manter as
    posições contíguas.
    """

    list_display = ['title', 'board', 'position', 'cards_count', 'is_archived']
    list_filter = ['is_archived', 'board']
    search_fields = ['title', 'board__title']
    ordering = ['board', 'position']
    readonly_fields = ['position', 'created_at', 'updated_at']

    inlines = [CardInline]

    def get_readonly_fields(self, request, obj=None):
        # Mudar de board quebraria as posições dos dois boards
        if obj is not None:
            return self.readonly_fields + ['board']
        return self.readonly_fields

    def cards_count(self, obj):
        return obj.cards.count()

    cards_count.short_description = 'Cards'

    def save_model(self, request, obj, form, change):
        if not change:
            obj.position = ordering.next_position(ordering.lists_of(obj.board_id))
        super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        ordering.delete_list(obj)

    def delete_queryset(self, request, queryset):
        for lista in queryset:
            ordering.delete_list(lista)


class CommentInline(admin.TabularInline):
    model = Comment
    extra = 0
    fields = ['author', 'text', 'created_at']
    readonly_fields = ['created_at']

    def has_add_permission(self, request, obj=None):
        """Apenas leitura no admin"""
        return False


@admin.register(Card)
class CardAdmin(admin.ModelAdmin):
    """Admin para cards"""

    list_display = [
        'id', 'title', 'list', 'board', 'position',
        'status_prazo', 'completed', 'is_archived'
    ]
    list_filter = ['completed', 'is_archived', 'board', 'created_at']
    search_fields = ['title', 'description']
    date_hierarchy = 'created_at'
    filter_horizontal = ['members']

    readonly_fields = ['board', 'position', 'created_by', 'created_at', 'updated_at']

    fieldsets = (
        ('Informações Básicas', {
            'fields': ('title', 'description', 'list', 'due_date', 'labels', 'completed', 'is_archived')
        }),
        ('Equipe', {
            'fields': ('members',)
        }),
        ('Metadados', {
            'fields': ('board', 'position', 'created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    inlines = [CommentInline]

    def get_readonly_fields(self, request, obj=None):
        # Mover entre listas só pela API (mantém posições)
        if obj is not None:
            return self.readonly_fields + ['list']
        return self.readonly_fields

    def status_prazo(self, obj):
        """Status do prazo"""
        if not obj.due_date:
            return '-'

        if obj.completed:
            return format_html('<span style="color: green;">✓ Concluído</span>')

        if obj.due_date < timezone.now():
            return format_html('<span style="color: red;">⚠️ Atrasado</span>')

        dias = (obj.due_date.date() - timezone.now().date()).days
        if dias == 0:
            return format_html('<span style="color: orange;">⏰ Vence hoje</span>')
        return f"Em {dias} dias"

    status_prazo.short_description = 'Prazo'

    def save_model(self, request, obj, form, change):
        if not change:
            obj.board_id = obj.list.board_id
            obj.position = ordering.next_position(ordering.cards_of(obj.list_id))
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        ordering.delete_card(obj)

    def delete_queryset(self, request, queryset):
        for card in queryset:
            ordering.delete_card(card)


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['card', 'author', 'texto_resumo', 'created_at']
    search_fields = ['text', 'author__email', 'card__title']
    readonly_fields = ['created_at', 'updated_at']

    def texto_resumo(self, obj):
        """Resumo do texto"""
        return obj.text[:50] + '...' if len(obj.text) > 50 else obj.text

    texto_resumo.short_description = 'Comentário'


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    """Histórico é somente leitura"""

    list_display = ['type', 'card', 'user', 'description', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['description', 'card__title', 'user__email']
    readonly_fields = ['type', 'card', 'user', 'description', 'metadata', 'created_at']

    def has_add_permission(self, request):
        return False
