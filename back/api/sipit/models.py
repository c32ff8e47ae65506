from decimal import Decimal
from uuid import uuid4

from django.conf import settings
from django.db import models


class Metric(models.TextChoices):
    """レビューの4評価軸。並び順は同点時の優先順位も兼ねる。"""
    FOOD = "FOOD", "Food"
    DRINKS = "DRINKS", "Drinks"
    AMBIENCE = "AMBIENCE", "Ambience"
    SERVICE = "SERVICE", "Service"


class UserProfile(models.Model):
    """ユーザーの拡張プロフィール情報。
    - 表示名、誕生日、パーソナリティタイプなど任意項目を保持する
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    name = models.CharField(max_length=150, blank=True, null=True)
    phone_number = models.CharField(max_length=32, blank=True, null=True)
    birthday = models.DateField(blank=True, null=True)
    personality_type = models.CharField(max_length=32, blank=True, null=True)
    profile_picture_url = models.URLField(max_length=1000, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_profiles"

    def __str__(self) -> str:
        return f"Profile({self.user_id})"


class UserPreferences(models.Model):
    """検索半径・気分メトリクス・通知設定。"""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="preferences")
    preferred_radius_km = models.FloatField(default=5.0)
    current_mood_metric = models.CharField(max_length=16, choices=Metric.choices, blank=True, null=True)
    last_mood_update = models.DateTimeField(blank=True, null=True)
    notify_new_cafes = models.BooleanField(default=True)
    notify_friend_activity = models.BooleanField(default=True)
    notify_weekly = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_preferences"

    def __str__(self) -> str:
        return f"Preferences({self.user_id})"


class Cafe(models.Model):
    """カフェ。Google の place_id をキーに同期される。
    - google_place_id は一意かつ作成後不変
    - cached_at は最後に Google のデータで同期した時刻
    """
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    google_place_id = models.CharField(max_length=255, unique=True)
    name = models.TextField()
    address = models.TextField()
    latitude = models.FloatField()
    longitude = models.FloatField()
    photos = models.JSONField(default=list, blank=True)  # 写真URL（順序保持）
    cached_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "cafes"

    def __str__(self) -> str:
        return self.name


class CafeRatings(models.Model):
    """カフェ単位の評価集計（1:1）。RatingAggregator 以外から書き込まない。"""
    cafe = models.OneToOneField(Cafe, on_delete=models.CASCADE, related_name="ratings", db_column="cafe_id")
    avg_food = models.DecimalField(max_digits=3, decimal_places=1, default=Decimal("0"))
    avg_drinks = models.DecimalField(max_digits=3, decimal_places=1, default=Decimal("0"))
    avg_ambience = models.DecimalField(max_digits=3, decimal_places=1, default=Decimal("0"))
    avg_service = models.DecimalField(max_digits=3, decimal_places=1, default=Decimal("0"))
    total_reviews = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "cafe_ratings"

    def __str__(self) -> str:
        return f"Ratings({self.cafe_id})"

    def average_for(self, metric: str) -> Decimal:
        return getattr(self, METRIC_AVERAGE_FIELDS[metric])


class Review(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="reviews")
    cafe = models.ForeignKey(Cafe, on_delete=models.CASCADE, related_name="reviews", db_column="cafe_id")
    food_rating = models.PositiveSmallIntegerField()
    drinks_rating = models.PositiveSmallIntegerField()
    ambience_rating = models.PositiveSmallIntegerField()
    service_rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True, null=True)
    photos = models.JSONField(default=list, blank=True)
    mood_tags = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "reviews"
        constraints = [
            models.UniqueConstraint(fields=["user", "cafe"], name="uniq_review_user_cafe"),
        ]
        indexes = [
            models.Index(fields=["cafe", "created_at"], name="idx_reviews_cafe_created"),
        ]

    def __str__(self) -> str:
        return f"Review({self.id})"


# メトリクス -> レビューの評価フィールド / 集計フィールド
METRIC_RATING_FIELDS = {
    Metric.FOOD: "food_rating",
    Metric.DRINKS: "drinks_rating",
    Metric.AMBIENCE: "ambience_rating",
    Metric.SERVICE: "service_rating",
}
METRIC_AVERAGE_FIELDS = {
    Metric.FOOD: "avg_food",
    Metric.DRINKS: "avg_drinks",
    Metric.AMBIENCE: "avg_ambience",
    Metric.SERVICE: "avg_service",
}


class PersonalMenuItem(models.Model):
    """ユーザーの「マイメニュー」。Review とは独立し、カフェは place_id で参照する。"""
    TYPE_FOOD = "food"
    TYPE_DRINK = "drink"
    TYPE_CHOICES = (
        (TYPE_FOOD, "Food"),
        (TYPE_DRINK, "Drink"),
    )

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="menu_items")
    cafe_place_id = models.CharField(max_length=255, db_index=True)
    cafe_name = models.TextField()  # 非正規化
    item_name = models.CharField(max_length=200)
    item_type = models.CharField(max_length=8, choices=TYPE_CHOICES)
    rating = models.PositiveSmallIntegerField()
    photos = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "personal_menu_items"

    def __str__(self) -> str:
        return f"{self.item_name}({self.item_type})"


class Follow(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    follower = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="following_set")
    following = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="follower_set")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "follows"
        constraints = [
            models.UniqueConstraint(fields=["follower", "following"], name="uniq_follow_pair"),
        ]

    def __str__(self) -> str:
        return f"Follow({self.follower_id} -> {self.following_id})"


class CafeFollow(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cafe_follows")
    cafe = models.ForeignKey(Cafe, on_delete=models.CASCADE, related_name="followers")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "cafe_follows"
        constraints = [
            models.UniqueConstraint(fields=["user", "cafe"], name="uniq_cafe_follow"),
        ]


class SavedCafe(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="saved_cafes")
    cafe = models.ForeignKey(Cafe, on_delete=models.CASCADE, related_name="saved_by")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "saved_cafes"
        constraints = [
            models.UniqueConstraint(fields=["user", "cafe"], name="uniq_saved_cafe"),
        ]


class VisitedCafe(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="visited_cafes")
    cafe = models.ForeignKey(Cafe, on_delete=models.CASCADE, related_name="visited_by")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "visited_cafes"
        constraints = [
            models.UniqueConstraint(fields=["user", "cafe"], name="uniq_visited_cafe"),
        ]


class Notification(models.Model):
    TYPE_FRIEND_REVIEW = "FRIEND_REVIEW"
    TYPE_NEW_FOLLOWER = "NEW_FOLLOWER"
    TYPE_CHOICES = (
        (TYPE_FRIEND_REVIEW, "Friend Review"),
        (TYPE_NEW_FOLLOWER, "New Follower"),
    )

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    body = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "notifications"
        indexes = [
            models.Index(fields=["user", "read", "created_at"], name="idx_notifications_user"),
        ]

    def __str__(self) -> str:
        return f"Notification({self.id})"
