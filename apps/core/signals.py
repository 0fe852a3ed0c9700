# apps/core/signals.py

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver
from django.utils import timezone

from .models import Board, Card, Comment, List


@receiver(post_save, sender=List)
@receiver(post_delete, sender=List)
@receiver(post_save, sender=Card)
@receiver(post_delete, sender=Card)
def tocar_board(sender, instance, **kwargs):
    """
    Atualiza ``updated_at`` do board quando listas ou cards mudam

    A listagem de boards é ordenada por atividade recente. Usa
    update() direto para não disparar outros sinais; durante a
    exclusão em cascata do próprio board não afeta nenhuma linha.
    """
    Board.objects.filter(pk=instance.board_id).update(updated_at=timezone.now())


@receiver(post_save, sender=Comment)
def tocar_card(sender, instance, created, **kwargs):
    """Comentário novo conta como atividade no card"""
    if created:
        Card.objects.filter(pk=instance.card_id).update(updated_at=timezone.now())
