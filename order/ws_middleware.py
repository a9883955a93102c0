import logging

import jwt
from channels.db import database_sync_to_async
from django.conf import settings
from django.http.cookie import parse_cookie

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"


@database_sync_to_async
def get_user(user_id):
    from django.contrib.auth import get_user_model
    from django.contrib.auth.models import AnonymousUser

    User = get_user_model()
    try:
        return User.objects.get(id=user_id, is_active=True)
    except User.DoesNotExist:
        return AnonymousUser()


def token_from_headers(headers):
    """Access token from the ``access_token`` cookie of a websocket handshake."""
    cookies = dict(headers).get(b"cookie", b"").decode("latin-1")
    return parse_cookie(cookies).get(ACCESS_COOKIE) or None


class JWTAuthMiddleware:
    """Verify the JWT cookie and attach the user to the socket scope."""

    def __init__(self, inner):
        self.inner = inner

    async def __call__(self, scope, receive, send):
        from django.contrib.auth.models import AnonymousUser

        scope["user"] = AnonymousUser()
        token = token_from_headers(scope.get("headers", []))

        if token:
            try:
                payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
            except jwt.InvalidTokenError as exc:
                logger.info("Rejected websocket token: %s", exc)
            else:
                scope["user"] = await get_user(payload.get("user_id"))

        return await self.inner(scope, receive, send)
