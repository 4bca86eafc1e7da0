"""Django signals for cache invalidation."""

from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from orders.models import CartItem
from orders.services.cart_service import cart_cache_key


@receiver([post_save, post_delete], sender=CartItem)
def invalidate_cart_cache(sender, instance, **kwargs):
    """Invalidate the owner's cached cart when one of its items is saved or deleted.

    The entry is dropped again once the write commits, since a reader outside
    the transaction may have cached the old rows in between.
    """
    key = cart_cache_key(instance.user_id)
    cache.delete(key)
    transaction.on_commit(lambda: cache.delete(key))
