import logging

from django.db import transaction
from django.db.models.signals import pre_save, post_save
from django.dispatch import receiver

from .models import Order, Notification
from .notifications import push_status_update, status_message

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Order)
def order_pre_save(sender, instance, **kwargs):
    if instance.pk:
        instance._old_status = Order.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
    else:
        instance._old_status = None


@receiver(post_save, sender=Order)
def order_post_save(sender, instance, created, **kwargs):
    if created:
        return

    old_status = getattr(instance, "_old_status", None)
    new_status = instance.status

    if old_status == new_status:
        return

    Notification.objects.create(
        user_id=instance.user_id,
        order=instance,
        message=f"Order #{instance.order_number}: {status_message(new_status).text}",
    )
    # push only once the status change is committed
    transaction.on_commit(lambda: push_status_update(instance))
    logger.info("Order %s moved %s -> %s", instance.order_number, old_status, new_status)
