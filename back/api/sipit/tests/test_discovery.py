import pytest

from sipit.models import Cafe
from sipit.services.discovery import CafeDiscovery


@pytest.mark.django_db
def test_nearby_syncs_and_adds_distance(services, catalog):
    catalog.add("near", name="Near", latitude=35.6812, longitude=139.7671)
    catalog.add("far", name="Far", latitude=35.7000, longitude=139.7671)

    cafes = services.discovery.nearby(35.6812, 139.7671, 5)

    assert Cafe.objects.count() == 2
    by_place = {c["google_place_id"]: c for c in cafes}
    assert by_place["near"]["distance"] == pytest.approx(0)
    assert by_place["far"]["distance"] == pytest.approx(2.09, abs=0.05)
    assert by_place["near"]["ratings"]["total_reviews"] == 0


@pytest.mark.django_db(transaction=True)
def test_nearby_is_cached_until_ratings_change(services, catalog, user):
    catalog.add("place-1", name="Blue Bottle")

    first = services.discovery.nearby(35.0, 139.0, 5)
    services.discovery.nearby(35.0, 139.0, 5)
    assert catalog.nearby_calls == 1

    cafe = Cafe.objects.get(google_place_id="place-1")
    services.reviews.create(user, cafe.id, food_rating=5, drinks_rating=5, ambience_rating=5, service_rating=5)

    refreshed = services.discovery.nearby(35.0, 139.0, 5)
    assert catalog.nearby_calls == 2
    assert first[0]["ratings"]["total_reviews"] == 0
    assert refreshed[0]["ratings"]["total_reviews"] == 1


def test_sort_by_metric_is_descending_and_stable():
    cafes = [
        {"id": "a", "ratings": {"avg_food": 3, "avg_service": 1}},
        {"id": "b", "ratings": {"avg_food": 4, "avg_service": 1}},
        {"id": "c", "ratings": {"avg_food": 3, "avg_service": 2}},
        {"id": "d", "ratings": None},
    ]

    assert [c["id"] for c in CafeDiscovery.sort_by_metric(cafes, "FOOD")] == ["b", "a", "c", "d"]
    assert [c["id"] for c in CafeDiscovery.sort_by_metric(cafes, "SERVICE")] == ["c", "a", "b", "d"]


@pytest.mark.django_db
def test_search_persists_matches(services, catalog):
    catalog.add("p1", name="Matcha Stand")
    catalog.add("p2", name="Espresso Bar")

    cafes = services.discovery.search("matcha")

    assert [c.google_place_id for c in cafes] == ["p1"]
    assert Cafe.objects.filter(google_place_id="p1").exists()
