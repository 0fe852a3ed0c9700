# apps/core/models.py

from django.contrib.auth.models import AbstractUser
from django.core.validators import MinLengthValidator
from django.db import models


class User(AbstractUser):
    """
    Modelo de usuário customizado

    O login é feito por email; ``username`` apenas espelha o email
    para manter compatibilidade com o Django Admin.
    """

    # === INFORMAÇÕES PESSOAIS ===
    name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    email = models.EmailField(unique=True)
    avatar = models.URLField(max_length=500, blank=True)
    preferences = models.JSONField(default=dict, blank=True)

    # === METADADOS ===
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'name']

    class Meta:
        db_table = 'users'
        ordering = ['name']

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower()
        if not self.username:
            self.username = self.email
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} <{self.email}>"


class Board(models.Model):
    """Quadro Kanban: contém listas e membros"""

    title = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True)
    background = models.CharField(max_length=500, default='#0079bf')
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='owned_boards'
    )
    is_private = models.BooleanField(default=True)
    is_starred = models.BooleanField(default=False)
    is_archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'board'
        ordering = ['-updated_at']

    def __str__(self):
        return self.title


class BoardMember(models.Model):
    """Participação de um usuário em um board, com exatamente um papel"""

    ROLE_ADMIN = 'admin'
    ROLE_EDITOR = 'editor'
    ROLE_VIEWER = 'viewer'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_EDITOR, 'Editor'),
        (ROLE_VIEWER, 'Viewer'),
    ]

    board = models.ForeignKey(
        Board,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='board_memberships'
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_EDITOR)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'board_member'
        ordering = ['joined_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['board', 'user'], name='unique_board_member'),
        ]

    def __str__(self):
        return f"{self.user.email} ({self.role}) em {self.board.title}"


class List(models.Model):
    """
    Coluna de um board

    ``position`` é contígua a partir de 0 dentro do board; mantida
    exclusivamente por apps.board.ordering.
    """

    title = models.CharField(max_length=100)
    board = models.ForeignKey(
        Board,
        on_delete=models.CASCADE,
        related_name='lists'
    )
    position = models.PositiveIntegerField(default=0)
    is_archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'list'
        ordering = ['position', 'id']
        indexes = [
            models.Index(fields=['board', 'position'], name='list_board_position_idx'),
        ]

    def __str__(self):
        return f"{self.title} - {self.board.title}"


class Card(models.Model):
    """
    Tarefa dentro de uma lista

    ``board`` é redundante com ``list.board`` para permitir buscas por
    board; create e move sempre atualizam os dois juntos.
    """

    title = models.CharField(max_length=200)
    description = models.TextField(max_length=2000, blank=True)
    # Antes do campo ``list``, que sombreia o builtin no corpo da classe
    labels = models.JSONField(default=list, blank=True)
    board = models.ForeignKey(
        Board,
        on_delete=models.CASCADE,
        related_name='cards'
    )
    list = models.ForeignKey(
        List,
        on_delete=models.CASCADE,
        related_name='cards'
    )
    position = models.PositiveIntegerField(default=0)
    due_date = models.DateTimeField(null=True, blank=True)
    members = models.ManyToManyField(
        User,
        blank=True,
        related_name='assigned_cards'
    )
    completed = models.BooleanField(default=False)
    is_archived = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_cards'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'card'
        ordering = ['position', 'id']
        indexes = [
            models.Index(fields=['list', 'position'], name='card_list_position_idx'),
            models.Index(fields=['board', 'updated_at'], name='card_board_updated_idx'),
        ]

    def __str__(self):
        return self.title


class Comment(models.Model):
    """Comentário em um card"""

    text = models.TextField(max_length=1000)
    card = models.ForeignKey(
        Card,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='comments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'comment'
        ordering = ['created_at', 'id']

    def __str__(self):
        autor = self.author.email if self.author else 'usuário removido'
        return f"Comentário de {autor} em {self.created_at:%d/%m/%Y}"


class Activity(models.Model):
    """Histórico de ações em um card"""

    TYPE_CHOICES = [
        ('card_created', 'Card created'),
        ('card_moved', 'Card moved'),
        ('card_updated', 'Card updated'),
        ('card_deleted', 'Card deleted'),
        ('comment_added', 'Comment added'),
        ('member_added', 'Member added'),
        ('member_removed', 'Member removed'),
        ('due_date_set', 'Due date set'),
        ('due_date_removed', 'Due date removed'),
        ('label_added', 'Label added'),
        ('label_removed', 'Label removed'),
    ]

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    description = models.CharField(max_length=500)
    card = models.ForeignKey(
        Card,
        on_delete=models.CASCADE,
        related_name='activities'
    )
    user = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='activities'
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'activity'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'activities'

    def __str__(self):
        return f"{self.type}: {self.description}"

    @classmethod
    def record(cls, type, card, user, description, **metadata):
        """Registra uma atividade no card"""
        return cls.objects.create(
            type=type,
            card=card,
            user=user,
            description=description[:500],
            metadata=metadata,
        )
