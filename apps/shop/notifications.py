import logging

from django.conf import settings
from django.core.mail import send_mail

from .models import Order

logger = logging.getLogger("shop.orders")


def notify_order_placed(order_id) -> None:
    """Runs after the order transaction commits."""
    order = Order.objects.select_related("user").filter(pk=order_id).first()
    if order is None:
        logger.warning(f"order vanished before notification: {order_id}")
        return

    lines = [f"- {item.product.name} x{item.quantity} @ {item.price}" for item in order.items.select_related("product")]
    send_mail(
        subject=f"Order {order.pk} received",
        message="\n".join([f"Thanks for your order. Total: {order.total_amount}", *lines]),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[order.user.email],
        fail_silently=True,
    )
    logger.info(f"order placed notification sent: {order.pk}")
