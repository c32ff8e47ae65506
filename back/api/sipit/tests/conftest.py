import itertools

import pytest
from django.apps import apps
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from sipit.exceptions import UpstreamError
from sipit.models import UserPreferences, UserProfile
from sipit.services import build_services
from sipit.services.places import PlaceDetails

User = get_user_model()

PASSWORD = "brew-Matcha-42!"


class FakeCatalog:
    """GooglePlacesClient の代わり。add() した place だけを返す。"""

    def __init__(self):
        self.places: dict[str, PlaceDetails] = {}
        self.nearby_calls = 0
        self.details_calls = 0
        self.fail = False

    def add(self, place_id, name="Sip Cafe", latitude=35.6812, longitude=139.7671, **extra) -> PlaceDetails:
        place = PlaceDetails(
            place_id=place_id,
            name=name,
            address=extra.pop("address", f"{name} street 1"),
            latitude=latitude,
            longitude=longitude,
            photo_refs=extra.pop("photo_refs", []),
            **extra,
        )
        self.places[place_id] = place
        return place

    def _check(self):
        if self.fail:
            raise UpstreamError("Google Places API error: UNKNOWN_ERROR", details={"status": "UNKNOWN_ERROR"})

    def search_nearby(self, latitude, longitude, radius_m):
        self._check()
        self.nearby_calls += 1
        return list(self.places.values())

    def search_by_text(self, query, latitude=None, longitude=None):
        self._check()
        return [p for p in self.places.values() if query.lower() in p.name.lower()]

    def search_by_name(self, query, limit=20):
        return self.search_by_text(query)[:limit]

    def get_details(self, place_id):
        self._check()
        self.details_calls += 1
        return self.places.get(place_id)

    def photo_url(self, photo_reference, max_width=800):
        return f"https://photos.test/{photo_reference}?w={max_width}"

    def close(self):
        pass


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture(autouse=True)
def services(catalog):
    """アプリのサービスを FakeCatalog + テスト用キャッシュで組み直す（外部通信なし）。"""
    cache.clear()
    config = apps.get_app_config("sipit")
    original = config.services
    config.services = build_services(catalog=catalog, cache=cache)
    yield config.services
    config.services = original


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(name=None, email=None, notify_friend_activity=True):
        n = next(counter)
        email = email or f"user{n}@example.com"
        user = User.objects.create_user(username=email, email=email, password=PASSWORD)
        UserProfile.objects.create(user=user, name=name or f"User {n}")
        UserPreferences.objects.create(user=user, notify_friend_activity=notify_friend_activity)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user(name="Alice")


@pytest.fixture
def other_user(make_user):
    return make_user(name="Bob")


@pytest.fixture
def cafe(db, services, catalog):
    return services.cafes.upsert_from_record(catalog.add("place-1", name="Blue Bottle", photo_refs=["ref-a"]))


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def review_payload(cafe):
    def _payload(**overrides):
        payload = {
            "cafe_id": str(cafe.id),
            "food_rating": 4,
            "drinks_rating": 4,
            "ambience_rating": 4,
            "service_rating": 4,
        }
        payload.update(overrides)
        return payload

    return _payload
