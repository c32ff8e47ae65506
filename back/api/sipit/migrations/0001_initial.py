import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


METRIC_CHOICES = [
    ("FOOD", "Food"),
    ("DRINKS", "Drinks"),
    ("AMBIENCE", "Ambience"),
    ("SERVICE", "Service"),
]


def _user_fk(related_name):
    return models.ForeignKey(
        on_delete=django.db.models.deletion.CASCADE,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


def _cafe_fk(related_name, **kwargs):
    return models.ForeignKey(
        on_delete=django.db.models.deletion.CASCADE,
        related_name=related_name,
        to="sipit.cafe",
        **kwargs,
    )


def _rating_field():
    return models.DecimalField(decimal_places=1, default=Decimal("0"), max_digits=3)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Cafe",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("google_place_id", models.CharField(max_length=255, unique=True)),
                ("name", models.TextField()),
                ("address", models.TextField()),
                ("latitude", models.FloatField()),
                ("longitude", models.FloatField()),
                ("photos", models.JSONField(blank=True, default=list)),
                ("cached_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"db_table": "cafes"},
        ),
        migrations.CreateModel(
            name="CafeRatings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "cafe",
                    models.OneToOneField(
                        db_column="cafe_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ratings",
                        to="sipit.cafe",
                    ),
                ),
                ("avg_food", _rating_field()),
                ("avg_drinks", _rating_field()),
                ("avg_ambience", _rating_field()),
                ("avg_service", _rating_field()),
                ("total_reviews", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"db_table": "cafe_ratings"},
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=150, null=True)),
                ("phone_number", models.CharField(blank=True, max_length=32, null=True)),
                ("birthday", models.DateField(blank=True, null=True)),
                ("personality_type", models.CharField(blank=True, max_length=32, null=True)),
                ("profile_picture_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"db_table": "user_profiles"},
        ),
        migrations.CreateModel(
            name="UserPreferences",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="preferences",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("preferred_radius_km", models.FloatField(default=5.0)),
                ("current_mood_metric", models.CharField(blank=True, choices=METRIC_CHOICES, max_length=16, null=True)),
                ("last_mood_update", models.DateTimeField(blank=True, null=True)),
                ("notify_new_cafes", models.BooleanField(default=True)),
                ("notify_friend_activity", models.BooleanField(default=True)),
                ("notify_weekly", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"db_table": "user_preferences"},
        ),
        migrations.CreateModel(
            name="Review",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user", _user_fk("reviews")),
                ("cafe", _cafe_fk("reviews", db_column="cafe_id")),
                ("food_rating", models.PositiveSmallIntegerField()),
                ("drinks_rating", models.PositiveSmallIntegerField()),
                ("ambience_rating", models.PositiveSmallIntegerField()),
                ("service_rating", models.PositiveSmallIntegerField()),
                ("comment", models.TextField(blank=True, null=True)),
                ("photos", models.JSONField(blank=True, default=list)),
                ("mood_tags", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "reviews",
                "constraints": [models.UniqueConstraint(fields=("user", "cafe"), name="uniq_review_user_cafe")],
                "indexes": [models.Index(fields=["cafe", "created_at"], name="idx_reviews_cafe_created")],
            },
        ),
        migrations.CreateModel(
            name="PersonalMenuItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user", _user_fk("menu_items")),
                ("cafe_place_id", models.CharField(db_index=True, max_length=255)),
                ("cafe_name", models.TextField()),
                ("item_name", models.CharField(max_length=200)),
                ("item_type", models.CharField(choices=[("food", "Food"), ("drink", "Drink")], max_length=8)),
                ("rating", models.PositiveSmallIntegerField()),
                ("photos", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"db_table": "personal_menu_items"},
        ),
        migrations.CreateModel(
            name="Follow",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("follower", _user_fk("following_set")),
                ("following", _user_fk("follower_set")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "follows",
                "constraints": [models.UniqueConstraint(fields=("follower", "following"), name="uniq_follow_pair")],
            },
        ),
        migrations.CreateModel(
            name="CafeFollow",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user", _user_fk("cafe_follows")),
                ("cafe", _cafe_fk("followers")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "cafe_follows",
                "constraints": [models.UniqueConstraint(fields=("user", "cafe"), name="uniq_cafe_follow")],
            },
        ),
        migrations.CreateModel(
            name="SavedCafe",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user", _user_fk("saved_cafes")),
                ("cafe", _cafe_fk("saved_by")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "saved_cafes",
                "constraints": [models.UniqueConstraint(fields=("user", "cafe"), name="uniq_saved_cafe")],
            },
        ),
        migrations.CreateModel(
            name="VisitedCafe",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user", _user_fk("visited_cafes")),
                ("cafe", _cafe_fk("visited_by")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "visited_cafes",
                "constraints": [models.UniqueConstraint(fields=("user", "cafe"), name="uniq_visited_cafe")],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user", _user_fk("notifications")),
                (
                    "type",
                    models.CharField(
                        choices=[("FRIEND_REVIEW", "Friend Review"), ("NEW_FOLLOWER", "New Follower")],
                        max_length=32,
                    ),
                ),
                ("title", models.CharField(max_length=200)),
                ("body", models.TextField()),
                ("data", models.JSONField(blank=True, default=dict)),
                ("read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "notifications",
                "indexes": [models.Index(fields=["user", "read", "created_at"], name="idx_notifications_user")],
            },
        ),
    ]
