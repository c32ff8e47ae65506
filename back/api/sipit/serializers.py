from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from sipit.models import (
    Cafe,
    CafeRatings,
    Metric,
    Notification,
    PersonalMenuItem,
    Review,
    UserPreferences,
    UserProfile,
)


User = get_user_model()


# ---- 出力

class UserSummarySerializer(serializers.ModelSerializer):
    """レビュー・フォロー一覧に埋め込む公開情報。"""
    name = serializers.SerializerMethodField()
    personality_type = serializers.SerializerMethodField()
    profile_picture_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ("id", "name", "personality_type", "profile_picture_url")

    def _profile(self, user) -> UserProfile | None:
        return getattr(user, "profile", None)

    def get_name(self, user) -> str | None:
        profile = self._profile(user)
        return profile.name if profile and profile.name else None

    def get_personality_type(self, user) -> str | None:
        profile = self._profile(user)
        return profile.personality_type if profile else None

    def get_profile_picture_url(self, user) -> str | None:
        profile = self._profile(user)
        return profile.profile_picture_url if profile else None


class UserPreferencesSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserPreferences
        fields = (
            "preferred_radius_km",
            "current_mood_metric",
            "last_mood_update",
            "notify_new_cafes",
            "notify_friend_activity",
            "notify_weekly",
            "updated_at",
        )


class CafeRatingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = CafeRatings
        fields = ("avg_food", "avg_drinks", "avg_ambience", "avg_service", "total_reviews")


class CafeSerializer(serializers.ModelSerializer):
    ratings = CafeRatingsSerializer(read_only=True)

    class Meta:
        model = Cafe
        fields = (
            "id",
            "google_place_id",
            "name",
            "address",
            "latitude",
            "longitude",
            "photos",
            "cached_at",
            "created_at",
            "updated_at",
            "ratings",
        )


class CafeSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Cafe
        fields = ("id", "google_place_id", "name", "address", "photos", "latitude", "longitude")


class ReviewSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    cafe_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Review
        fields = (
            "id",
            "cafe_id",
            "user",
            "food_rating",
            "drinks_rating",
            "ambience_rating",
            "service_rating",
            "comment",
            "photos",
            "mood_tags",
            "created_at",
            "updated_at",
        )


class ReviewWithCafeSerializer(ReviewSerializer):
    """フィード・ユーザーのレビュー一覧用（カフェ情報を含む）。"""
    cafe = CafeSummarySerializer(read_only=True)

    class Meta(ReviewSerializer.Meta):
        fields = ReviewSerializer.Meta.fields + ("cafe",)


class MenuItemSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = PersonalMenuItem
        fields = (
            "id",
            "user_id",
            "cafe_place_id",
            "cafe_name",
            "item_name",
            "item_type",
            "rating",
            "photos",
            "notes",
            "created_at",
            "updated_at",
        )


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ("id", "type", "title", "body", "data", "read", "created_at")


# ---- 入力

class SignupSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)

    def validate_email(self, value: str) -> str:
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("This email address is already registered.")
        return value

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    birthday = serializers.DateField(required=False, allow_null=True)
    personality_type = serializers.CharField(max_length=32, required=False, allow_blank=True)
    profile_picture_url = serializers.URLField(max_length=1000, required=False, allow_blank=True)


RATING = dict(min_value=1, max_value=5)


class ReviewCreateSerializer(serializers.Serializer):
    cafe_id = serializers.UUIDField()
    food_rating = serializers.IntegerField(**RATING)
    drinks_rating = serializers.IntegerField(**RATING)
    ambience_rating = serializers.IntegerField(**RATING)
    service_rating = serializers.IntegerField(**RATING)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True, allow_null=True)
    photos = serializers.ListField(child=serializers.URLField(max_length=1000), required=False)
    mood_tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)


class ReviewUpdateSerializer(serializers.Serializer):
    food_rating = serializers.IntegerField(required=False, **RATING)
    drinks_rating = serializers.IntegerField(required=False, **RATING)
    ambience_rating = serializers.IntegerField(required=False, **RATING)
    service_rating = serializers.IntegerField(required=False, **RATING)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True, allow_null=True)
    photos = serializers.ListField(child=serializers.URLField(max_length=1000), required=False)
    mood_tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)


class MenuItemCreateSerializer(serializers.Serializer):
    cafe_place_id = serializers.CharField(max_length=255)
    cafe_name = serializers.CharField()
    item_name = serializers.CharField(max_length=200)
    item_type = serializers.ChoiceField(choices=PersonalMenuItem.TYPE_CHOICES)
    rating = serializers.IntegerField(**RATING)
    photos = serializers.ListField(child=serializers.URLField(max_length=1000), required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class MenuItemUpdateSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=200, required=False)
    item_type = serializers.ChoiceField(choices=PersonalMenuItem.TYPE_CHOICES, required=False)
    rating = serializers.IntegerField(required=False, **RATING)
    photos = serializers.ListField(child=serializers.URLField(max_length=1000), required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class NearbyCafesQuerySerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    radius_km = serializers.FloatField(min_value=0.5, max_value=50, required=False, default=5)
    sort_by = serializers.ChoiceField(choices=Metric.values, required=False, default=Metric.FOOD.value)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)


class SearchQuerySerializer(serializers.Serializer):
    query = serializers.CharField(min_length=1)
    limit = serializers.IntegerField(min_value=1, max_value=50, required=False, default=20)


class CafeSearchQuerySerializer(SearchQuerySerializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)


class DiscoverQuerySerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)
    radius_km = serializers.FloatField(min_value=0.5, max_value=50, required=False, default=10)


class MoodSerializer(serializers.Serializer):
    mood_metric = serializers.ChoiceField(choices=Metric.values)


class RadiusSerializer(serializers.Serializer):
    radius_km = serializers.FloatField(min_value=0.5, max_value=50)


class NotificationSettingsSerializer(serializers.Serializer):
    notify_new_cafes = serializers.BooleanField(required=False)
    notify_friend_activity = serializers.BooleanField(required=False)
    notify_weekly = serializers.BooleanField(required=False)
