import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.catalog.models import Product
from apps.core.exceptions import (
    EmptyOrderError, OutOfStockError, PriceMismatchError, ResourceNotFound, TotalMismatchError,
)

from .models import Address, IdempotencyKey, Order, OrderItem, OrderStatus
from .notifications import notify_order_placed

logger = logging.getLogger("shop.orders")


@dataclass(frozen=True)
class LineRequest:
    product_id: int
    quantity: int
    # price the client saw; None means "take the catalog price"
    price: Optional[Decimal] = None


def _lock_products(product_ids: Iterable[int]):
    # fixed lock order avoids deadlocks between concurrent checkouts
    ids = sorted(set(product_ids))
    return {p.pk: p for p in Product.objects.select_for_update().filter(pk__in=ids).order_by("pk")}


@transaction.atomic
def create_order(*, user, lines: List[LineRequest], shipping_address_id: int, payment_method: str,
                 total_amount: Optional[Decimal] = None) -> Order:
    """Write one Order and one OrderItem per line, decrementing stock.

    Item prices are copied from the catalog at this moment, so later price
    changes never alter the order.
    """
    if not lines:
        raise EmptyOrderError("At least one item is required.")

    address = Address.objects.filter(pk=shipping_address_id, user=user).first()
    if address is None:
        raise ResourceNotFound("Shipping address not found")

    products = _lock_products(line.product_id for line in lines)

    total = Decimal("0.00")
    bulk_items = []
    for line in lines:
        product = products.get(line.product_id)
        if product is None or not product.published:
            raise ResourceNotFound(f"Product not found: {line.product_id}")
        if line.price is not None and Decimal(line.price) != product.price:
            raise PriceMismatchError(f"Price changed for {product.name}: now {product.price}")
        if product.stock < line.quantity:
            raise OutOfStockError(f"Out of stock: {product.name}")
        Product.objects.filter(pk=product.pk).update(stock=F("stock") - line.quantity)
        bulk_items.append(OrderItem(product=product, quantity=line.quantity, price=product.price))
        total += product.price * line.quantity

    if total_amount is not None and Decimal(total_amount) != total:
        raise TotalMismatchError(f"Total does not match items: expected {total}")

    order = Order.objects.create(
        user=user,
        total_amount=total,
        payment_method=payment_method,
        shipping_address=address,
        shipping_snapshot=address.snapshot(),
    )
    for item in bulk_items:
        item.order = order
    OrderItem.objects.bulk_create(bulk_items)

    transaction.on_commit(lambda: notify_order_placed(order.pk))
    logger.info(f"order created: {order.pk} user={user.pk} items={len(bulk_items)} total={total}")
    return order


def _restock(order: Order) -> None:
    for item in order.items.all():
        Product.objects.filter(pk=item.product_id).update(stock=F("stock") + item.quantity)


def _reserve(order: Order) -> None:
    items = list(order.items.all())
    products = _lock_products(item.product_id for item in items)
    for item in items:
        product = products[item.product_id]
        if product.stock < item.quantity:
            raise OutOfStockError(f"Out of stock: {product.name}")
        Product.objects.filter(pk=product.pk).update(stock=F("stock") - item.quantity)


@transaction.atomic
def set_order_status(*, order_id, status: str) -> Order:
    """Any status may follow any other; only stock follows the CANCELLED boundary."""
    order = Order.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise ResourceNotFound("Order not found")

    previous = order.status
    if previous == status:
        return order
    if status == OrderStatus.CANCELLED:
        _restock(order)
    elif previous == OrderStatus.CANCELLED:
        _reserve(order)

    order.status = status
    order.save(update_fields=["status", "updated_at"])
    logger.info(f"order status: {order.pk} {previous} -> {status}")
    return order


# ---------------------------
# addresses
# ---------------------------
@transaction.atomic
def set_default_address(*, user, address_id: int) -> Address:
    # lock every address of the user so concurrent calls serialize
    addresses = list(Address.objects.select_for_update().filter(user=user))
    target = next((a for a in addresses if a.pk == address_id), None)
    if target is None:
        raise ResourceNotFound("Address not found")

    Address.objects.filter(user=user, is_default=True).exclude(pk=target.pk).update(is_default=False)
    if not target.is_default:
        target.is_default = True
        target.save(update_fields=["is_default"])
    logger.info(f"default address: user={user.pk} address={target.pk}")
    return target


@transaction.atomic
def create_address(*, user, **fields) -> Address:
    make_default = fields.pop("is_default", False)
    existing = list(Address.objects.select_for_update().filter(user=user))
    address = Address.objects.create(user=user, is_default=False, **fields)
    if make_default or not existing:
        address = set_default_address(user=user, address_id=address.pk)
    return address


@transaction.atomic
def update_address(*, user, address_id: int, **fields) -> Address:
    address = Address.objects.select_for_update().filter(pk=address_id, user=user).first()
    if address is None:
        raise ResourceNotFound("Address not found")
    make_default = fields.pop("is_default", None)
    for attr, value in fields.items():
        setattr(address, attr, value)
    address.save()
    if make_default:
        address = set_default_address(user=user, address_id=address.pk)
    return address


@transaction.atomic
def delete_address(*, user, address_id: int) -> None:
    address = Address.objects.select_for_update().filter(pk=address_id, user=user).first()
    if address is None:
        raise ResourceNotFound("Address not found")
    was_default = address.is_default
    address.delete()
    if was_default:
        successor = Address.objects.filter(user=user).order_by("-created_at", "-pk").first()
        if successor is not None:
            set_default_address(user=user, address_id=successor.pk)


def prune_idempotency_keys(*, user) -> int:
    """Drop the user's keys older than ``IDEMPOTENCY_KEY_TTL_HOURS``; a pruned key may be reused."""
    cutoff = timezone.now() - timedelta(hours=settings.SHOP["IDEMPOTENCY_KEY_TTL_HOURS"])
    deleted, _ = IdempotencyKey.objects.filter(user=user, created_at__lt=cutoff).delete()
    if deleted:
        logger.info(f"idempotency keys pruned: user={user.pk} count={deleted}")
    return deleted
