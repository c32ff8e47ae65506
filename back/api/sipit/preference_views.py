from datetime import timedelta

from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.exceptions import validation_error
from sipit.models import UserPreferences
from sipit.serializers import (
    MoodSerializer,
    NotificationSettingsSerializer,
    RadiusSerializer,
    UserPreferencesSerializer,
)

MOOD_PROMPT_INTERVAL = timedelta(hours=6)


def _preferences(user) -> UserPreferences:
    preferences, _ = UserPreferences.objects.get_or_create(user=user)
    return preferences


def _update(user, **fields) -> Response:
    preferences = _preferences(user)
    for name, value in fields.items():
        setattr(preferences, name, value)
    preferences.save(update_fields=[*fields, "updated_at"])
    return Response({"preferences": UserPreferencesSerializer(preferences).data})


class PreferencesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"preferences": UserPreferencesSerializer(_preferences(request.user)).data})


class MoodView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        serializer = MoodSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        return _update(
            request.user,
            current_mood_metric=serializer.validated_data["mood_metric"],
            last_mood_update=timezone.now(),
        )


class RadiusView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        serializer = RadiusSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        return _update(request.user, preferred_radius_km=serializer.validated_data["radius_km"])


class NotificationSettingsView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        serializer = NotificationSettingsSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        return _update(request.user, **serializer.validated_data)


class MoodPromptView(APIView):
    """最後の気分更新から6時間以上経っていれば（未設定も含む）プロンプトを出す。"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        preferences = _preferences(request.user)
        last = preferences.last_mood_update
        return Response(
            {
                "should_show_prompt": last is None or timezone.now() - last >= MOOD_PROMPT_INTERVAL,
                "last_mood_update": last,
                "current_mood_metric": preferences.current_mood_metric,
            }
        )
