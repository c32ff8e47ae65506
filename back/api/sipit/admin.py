from django.contrib import admin
from sipit.models import Cafe, CafeRatings, Notification, PersonalMenuItem, Review, UserPreferences, UserProfile


@admin.register(Cafe)
class CafeAdmin(admin.ModelAdmin):
    list_display = ("name", "google_place_id", "address", "cached_at")
    search_fields = ("name", "google_place_id", "address")


@admin.register(CafeRatings)
class CafeRatingsAdmin(admin.ModelAdmin):
    list_display = ("cafe", "avg_food", "avg_drinks", "avg_ambience", "avg_service", "total_reviews")
    # 集計値は RatingAggregator のみが書き込む
    readonly_fields = ("avg_food", "avg_drinks", "avg_ambience", "avg_service", "total_reviews")


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "cafe", "user", "food_rating", "drinks_rating", "ambience_rating", "service_rating", "created_at")
    search_fields = ("cafe__name", "user__email")


@admin.register(PersonalMenuItem)
class PersonalMenuItemAdmin(admin.ModelAdmin):
    list_display = ("item_name", "item_type", "cafe_name", "user", "rating")
    list_filter = ("item_type",)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "name", "personality_type")
    search_fields = ("user__email", "name")


@admin.register(UserPreferences)
class UserPreferencesAdmin(admin.ModelAdmin):
    list_display = ("user", "preferred_radius_km", "current_mood_metric", "notify_friend_activity")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "type", "read", "created_at")
    list_filter = ("type", "read")
