from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError

from sipit.exceptions import UnauthorizedError, ValidationFailed, validation_error
from sipit.models import UserPreferences, UserProfile
from sipit.serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    SignupSerializer,
    UserPreferencesSerializer,
)

User = get_user_model()

PROFILE_FIELDS = ("name", "phone_number", "birthday", "personality_type", "profile_picture_url")


def _serialize_user(user: User) -> dict:
    profile, _ = UserProfile.objects.get_or_create(user=user)
    preferences, _ = UserPreferences.objects.get_or_create(user=user)
    return {
        "id": user.id,
        "email": user.email,
        "name": profile.name,
        "phone_number": profile.phone_number,
        "birthday": profile.birthday,
        "personality_type": profile.personality_type,
        "profile_picture_url": profile.profile_picture_url,
        "preferences": UserPreferencesSerializer(preferences).data,
        "created_at": user.date_joined,
    }


def _token_response(user: User) -> Response:
    refresh = RefreshToken.for_user(user)
    data = {
        "user": _serialize_user(user),
        "access_token": str(refresh.access_token),
        "refresh_token": str(refresh),
    }
    return Response(data, status=status.HTTP_200_OK)


class SignupView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data
        with transaction.atomic():
            user = User.objects.create_user(
                username=data["email"],
                email=data["email"],
                password=data["password"],
            )
            UserProfile.objects.create(user=user, name=data.get("name") or None)
            UserPreferences.objects.create(user=user)
        response = _token_response(user)
        response.status_code = status.HTTP_201_CREATED
        return response


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data
        user = authenticate(request, username=data["email"], password=data["password"])
        if not user:
            raise UnauthorizedError("Invalid email or password")
        return _token_response(user)


def _refresh_token(request) -> str:
    refresh_token = request.data.get("refresh_token")
    if not refresh_token:
        raise ValidationFailed("refresh_token is required", details={"field": "refresh_token"})
    return refresh_token


def _invalid_token(exc: TokenError) -> UnauthorizedError:
    return UnauthorizedError(
        "refresh token is invalid or expired",
        details={"detail": exc.args[0] if exc.args else str(exc)},
    )


class RefreshView(APIView):
    """リフレッシュトークンの再発行（ROTATE_REFRESH_TOKENS 有効時は新しい refresh_token も返す）。"""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = TokenRefreshSerializer(data={"refresh": _refresh_token(request)})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise _invalid_token(exc)
        data = serializer.validated_data
        tokens = {"access_token": data["access"]}
        if "refresh" in data:
            tokens["refresh_token"] = data["refresh"]
        return Response(tokens, status=status.HTTP_200_OK)


class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        try:
            RefreshToken(_refresh_token(request)).blacklist()
        except TokenError as exc:
            raise _invalid_token(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(APIView):
    """ログインユーザーのプロフィール。PUT/PATCH とも部分更新として扱う。"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"user": _serialize_user(request.user)}, status=status.HTTP_200_OK)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        profile, _ = UserProfile.objects.get_or_create(user=request.user)
        data = serializer.validated_data
        for name in PROFILE_FIELDS:
            if name in data:
                setattr(profile, name, data[name] or None)
        profile.save()
        return Response({"user": _serialize_user(request.user)}, status=status.HTTP_200_OK)

    put = patch
