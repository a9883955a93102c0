# user/views.py
import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from cart.services import merge_session_cart
from cart.session import session_id_from_request
from django_shop.notifications import send_templated_email
from .models import Address
from .serializers import (
    AddressSerializer,
    LoginSerializer,
    ProfileSerializer,
    SignupSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


def _token_response(user, payload, status_code):
    refresh = RefreshToken.for_user(user)
    access_token = str(refresh.access_token)
    refresh_token = str(refresh)

    payload["token"] = access_token
    response = Response(payload, status=status_code)

    jwt_settings = settings.SIMPLE_JWT
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
        max_age=int(jwt_settings["ACCESS_TOKEN_LIFETIME"].total_seconds()),
    )
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
        max_age=int(jwt_settings["REFRESH_TOKEN_LIFETIME"].total_seconds()),
    )
    return response


def _adopt_session_cart(request, user, response):
    session_id = session_id_from_request(request)
    if not session_id:
        return
    merge_session_cart(user, session_id)
    response.delete_cookie(settings.SHOP["CART_SESSION_COOKIE"])


class RegisterView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("User registered: %s", user.email)

        welcome = send_templated_email(
            user.email,
            "Welcome to the shop",
            "user/emails/welcome.html",
            {"name": user.first_name or user.email},
        )

        response = _token_response(
            user,
            {
                "message": "User registered successfully",
                "user": UserSerializer(user).data,
                "notification_sent": welcome.delivered,
            },
            status.HTTP_201_CREATED,
        )
        _adopt_session_cart(request, user, response)
        return response


class LoginView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request,
            email=serializer.validated_data["email"].lower(),
            password=serializer.validated_data["password"],
        )
        if user is None:
            return Response({"message": "Invalid email or password"}, status=status.HTTP_401_UNAUTHORIZED)

        response = _token_response(
            user,
            {"message": "Login successful", "user": UserSerializer(user).data},
            status.HTTP_200_OK,
        )
        _adopt_session_cart(request, user, response)
        return response


class LogoutView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        response = Response({"message": "Logout successful"}, status=status.HTTP_200_OK)
        response.delete_cookie("access_token")
        response.delete_cookie("refresh_token")
        return response


class ProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(ProfileSerializer(request.user).data)

    def patch(self, request):
        serializer = ProfileSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class AddressListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        qs = Address.objects.filter(user=request.user)
        return Response(AddressSerializer(qs, many=True).data)

    def post(self, request):
        serializer = AddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        # first address becomes the default one
        is_first = not Address.objects.filter(user=request.user).exists()
        if is_first:
            serializer.save(user=request.user, is_default=True)
        else:
            serializer.save(user=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class AddressDetailView(APIView):
    """
    GET / PATCH / DELETE one of the caller's addresses.
    Orders keep their own copy of the address, so edits never touch history.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self, request, pk):
        return get_object_or_404(Address, pk=pk, user=request.user)

    def get(self, request, pk):
        return Response(AddressSerializer(self.get_object(request, pk)).data)

    def patch(self, request, pk):
        address = self.get_object(request, pk)
        serializer = AddressSerializer(address, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    def delete(self, request, pk):
        self.get_object(request, pk).delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
