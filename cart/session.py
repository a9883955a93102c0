import uuid

from django.conf import settings

from .models import Cart

SESSION_ID_MAX_LENGTH = Cart._meta.get_field("session_id").max_length


def session_id_from_request(request):
    """
    Anonymous cart token from the ``X-Cart-Session`` header, falling back to the cookie.
    A token longer than the stored column is ignored.
    """
    shop = settings.SHOP
    value = request.META.get(shop["CART_SESSION_HEADER"]) or request.COOKIES.get(shop["CART_SESSION_COOKIE"])
    value = (value or "").strip()
    if not value or len(value) > SESSION_ID_MAX_LENGTH:
        return None
    return value


def new_session_id():
    return uuid.uuid4().hex
