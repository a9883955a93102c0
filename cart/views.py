from django.conf import settings
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions

from .serializers import AddItemSerializer, CartSerializer, UpdateItemSerializer
from .services import CartOwner, CartService, merge_session_cart
from .session import new_session_id, session_id_from_request


def _cart_response(service, status_code=status.HTTP_200_OK):
    cart = service.get_cart()
    data = CartSerializer(cart).data
    data["stock_issues"] = service.stock_issues(cart)
    return Response(data, status=status_code)


class CartView(APIView):
    """
    GET    /api/cart/  - current cart (never creates one)
    DELETE /api/cart/  - remove every line; an empty cart is still a success
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, format=None):
        return _cart_response(CartService(CartOwner.from_request(request)))

    def delete(self, request, format=None):
        service = CartService(CartOwner.from_request(request))
        service.clear()
        return _cart_response(service)


class CartItemListView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, format=None):
        """
        Expected payload:
        {
            "product_id": <id>,
            "quantity": <int>
        }
        """
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        issued_session = None
        owner = CartOwner.from_request(request)
        if not owner.is_known:
            issued_session = new_session_id()
            owner = CartOwner(session_id=issued_session)

        service = CartService(owner)
        service.add_item(serializer.validated_data["product_id"], serializer.validated_data["quantity"])

        response = _cart_response(service, status.HTTP_201_CREATED)
        if issued_session:
            response.set_cookie(
                settings.SHOP["CART_SESSION_COOKIE"],
                issued_session,
                httponly=True,
                samesite="Lax",
                max_age=settings.SHOP["ABANDONED_CART_DAYS"] * 24 * 3600,
            )
        return response


class CartItemDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def patch(self, request, pk, format=None):
        """ Update quantity only; zero or less removes the line. """
        serializer = UpdateItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = CartService(CartOwner.from_request(request))
        service.update_item(pk, serializer.validated_data["quantity"])
        return _cart_response(service)

    def delete(self, request, pk, format=None):
        service = CartService(CartOwner.from_request(request))
        service.remove_item(pk)
        return _cart_response(service)


class CartMergeView(APIView):
    """POST /api/cart/merge/ - fold an anonymous cart into the caller's cart."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, format=None):
        session_id = request.data.get("session_id") or session_id_from_request(request)
        if not session_id:
            return Response({"message": "session_id is required"}, status=status.HTTP_400_BAD_REQUEST)

        merge_session_cart(request.user, session_id)
        response = _cart_response(CartService(CartOwner(user=request.user)))
        response.delete_cookie(settings.SHOP["CART_SESSION_COOKIE"])
        return response
