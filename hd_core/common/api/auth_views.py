# hd_core/common/api/auth_views.py
from __future__ import annotations

from datetime import timedelta
from typing import Any

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer

from hd_core.common.permissions import user_roles

# No authenticators on login/refresh; keep bad credentials a 401 rather than a 403
AUTHENTICATE_HEADER = 'Bearer realm="api"'


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class RefreshRequestSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False)


class TokenPairResponseSerializer(serializers.Serializer):
    access = serializers.CharField()
    refresh = serializers.CharField()


class MeResponseSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    roles = serializers.ListField(child=serializers.CharField())


def _seconds(value: Any) -> int:
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _jwt_cfg() -> dict:
    return getattr(settings, "SIMPLE_JWT", {}) or {}


def _set_auth_cookies(response: Response, *, access: str, refresh: str) -> None:
    cfg = _jwt_cfg()
    secure = bool(cfg.get("AUTH_COOKIE_SECURE", False))
    samesite = cfg.get("AUTH_COOKIE_SAMESITE", "Lax")

    response.set_cookie(
        cfg.get("AUTH_COOKIE", "hd_access"),
        access,
        max_age=_seconds(cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=30))),
        httponly=True,
        secure=secure,
        samesite=samesite,
        path="/",
    )
    response.set_cookie(
        cfg.get("AUTH_COOKIE_REFRESH", "hd_refresh"),
        refresh,
        max_age=_seconds(cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(days=7))),
        httponly=True,
        secure=secure,
        samesite=samesite,
        path="/",
    )


class LoginView(APIView):
    """
    Issues a JWT pair; returned in the body (API clients) and as HttpOnly cookies (browser).
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        return AUTHENTICATE_HEADER

    @extend_schema(request=LoginRequestSerializer, responses={200: TokenPairResponseSerializer}, tags=["Auth"])
    def post(self, request):
        ser = TokenObtainPairSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        access = ser.validated_data["access"]
        refresh = ser.validated_data["refresh"]

        res = Response({"access": access, "refresh": refresh}, status=status.HTTP_200_OK)
        _set_auth_cookies(res, access=access, refresh=refresh)
        return res


class RefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        return AUTHENTICATE_HEADER

    @extend_schema(request=RefreshRequestSerializer, responses={200: TokenPairResponseSerializer}, tags=["Auth"])
    def post(self, request):
        refresh = (request.data or {}).get("refresh") or request.COOKIES.get(
            _jwt_cfg().get("AUTH_COOKIE_REFRESH", "hd_refresh")
        )

        ser = TokenRefreshSerializer(data={"refresh": refresh})
        ser.is_valid(raise_exception=True)

        access = ser.validated_data["access"]
        new_refresh = ser.validated_data.get("refresh", refresh)

        res = Response({"access": access, "refresh": new_refresh}, status=status.HTTP_200_OK)
        _set_auth_cookies(res, access=access, refresh=new_refresh)
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: None}, tags=["Auth"])
    def post(self, request):
        cfg = _jwt_cfg()
        res = Response({"detail": "logged out"}, status=status.HTTP_200_OK)
        res.delete_cookie(cfg.get("AUTH_COOKIE", "hd_access"), path="/")
        res.delete_cookie(cfg.get("AUTH_COOKIE_REFRESH", "hd_refresh"), path="/")
        return res


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["Auth"])
    def get(self, request):
        return Response(
            {
                "id": request.user.id,
                "username": request.user.get_username(),
                "roles": sorted(user_roles(request.user)),
            },
            status=status.HTTP_200_OK,
        )
