from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from sipit.models import Follow, Notification, PersonalMenuItem, UserPreferences

pytestmark = pytest.mark.django_db

PASSWORD = "brew-Matcha-42!"


def error_code(response):
    return response.json()["error"]["code"]


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ---- 認証


def test_signup_login_and_me(api_client):
    response = api_client.post(
        "/api/auth/signup",
        {"email": "mika@example.com", "password": PASSWORD, "name": "Mika"},
        format="json",
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["name"] == "Mika"
    assert body["user"]["preferences"]["preferred_radius_km"] == 5.0
    assert UserPreferences.objects.filter(user__email="mika@example.com").exists()

    login = api_client.post("/api/auth/login", {"email": "mika@example.com", "password": PASSWORD}, format="json")
    assert login.status_code == 200

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.json()['access_token']}")
    me = api_client.get("/api/me")
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "mika@example.com"


def test_signup_duplicate_email(api_client, user):
    response = api_client.post("/api/auth/signup", {"email": user.email, "password": PASSWORD}, format="json")
    assert response.status_code == 400
    assert error_code(response) == "VALIDATION_ERROR"
    assert "email" in response.json()["error"]["details"]


def test_login_wrong_password(api_client, user):
    response = api_client.post("/api/auth/login", {"email": user.email, "password": "nope-nope-1"}, format="json")
    assert response.status_code == 401
    assert error_code(response) == "UNAUTHORIZED"


def test_refresh_and_logout(api_client, user):
    login = api_client.post("/api/auth/login", {"email": user.email, "password": PASSWORD}, format="json").json()

    refreshed = api_client.post("/api/auth/refresh", {"refresh_token": login["refresh_token"]}, format="json")
    assert refreshed.status_code == 200
    assert "access_token" in refreshed.json()

    refresh_token = refreshed.json()["refresh_token"]
    assert api_client.post("/api/auth/logout", {"refresh_token": refresh_token}, format="json").status_code == 204
    reused = api_client.post("/api/auth/refresh", {"refresh_token": refresh_token}, format="json")
    assert reused.status_code == 401
    assert error_code(reused) == "UNAUTHORIZED"


def test_token_endpoints_validate_input(api_client):
    missing = api_client.post("/api/auth/refresh", {}, format="json")
    assert missing.status_code == 400
    assert missing.json()["error"]["details"] == {"field": "refresh_token"}

    garbage = api_client.post("/api/auth/logout", {"refresh_token": "not-a-token"}, format="json")
    assert garbage.status_code == 401
    assert error_code(garbage) == "UNAUTHORIZED"


def test_update_profile(auth_client, user):
    response = auth_client.put("/api/me", {"personality_type": "ENFP", "name": "Alice B"}, format="json")
    assert response.status_code == 200
    user.profile.refresh_from_db()
    assert (user.profile.name, user.profile.personality_type) == ("Alice B", "ENFP")


# ---- カフェ


def test_nearby_validates_query(api_client):
    response = api_client.get("/api/cafes/nearby", {"longitude": 139.7})
    assert response.status_code == 400
    assert error_code(response) == "VALIDATION_ERROR"
    assert "latitude" in response.json()["error"]["details"]

    response = api_client.get("/api/cafes/nearby", {"latitude": 35, "longitude": 139, "radius_km": 80})
    assert response.status_code == 400


@pytest.mark.django_db(transaction=True)
def test_nearby_sorts_and_paginates(api_client, services, catalog, make_user):
    for place_id in ("a", "b", "c"):
        catalog.add(place_id, name=f"Cafe {place_id}")
    api_client.get("/api/cafes/nearby", {"latitude": 35.68, "longitude": 139.76})

    cafe_b = services.cafes.find_by_external_id("b")
    services.reviews.create(make_user(), cafe_b.id, food_rating=5, drinks_rating=1, ambience_rating=1, service_rating=1)

    response = api_client.get(
        "/api/cafes/nearby", {"latitude": 35.68, "longitude": 139.76, "sort_by": "FOOD", "limit": 2}
    )
    assert response.status_code == 200
    body = response.json()
    assert [c["google_place_id"] for c in body["cafes"]] == ["b", "a"]
    assert body["cafes"][0]["ratings"]["avg_food"] == 5.0
    assert "distance" in body["cafes"][0]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}
    assert body["sorted_by"] == "FOOD"


def test_nearby_upstream_failure(api_client, catalog):
    catalog.fail = True
    response = api_client.get("/api/cafes/nearby", {"latitude": 35, "longitude": 139})
    assert response.status_code == 502
    assert error_code(response) == "UPSTREAM_ERROR"


def test_cafe_by_id(api_client, cafe, catalog):
    response = api_client.get(f"/api/cafes/{cafe.id}")
    assert response.status_code == 200
    assert response.json()["cafe"]["name"] == "Blue Bottle"

    catalog.fail = True
    degraded = api_client.get(f"/api/cafes/{cafe.id}")
    assert degraded.status_code == 200
    assert degraded.json()["cafe"]["google_details"] is None


def test_cafe_details_by_place_id(auth_client, services, user, other_user, cafe):
    services.social.follow_cafe(other_user, cafe.google_place_id)
    services.social.save_cafe(user, cafe.google_place_id)
    services.reviews.create(
        other_user, cafe.id, food_rating=4, drinks_rating=4, ambience_rating=4, service_rating=4, mood_tags=["cozy"]
    )

    response = auth_client.get(f"/api/cafes/details/{cafe.google_place_id}")

    assert response.status_code == 200
    data = response.json()["cafe"]
    assert data["followers_count"] == 1
    assert data["reviews_count"] == 1
    assert (data["is_following"], data["is_saved"], data["is_visited"]) == (False, True, False)
    assert data["sip_it_rating"] == 4.0
    assert data["best_for_tags"] == [{"tag": "cozy", "count": 1}]
    assert data["google_details"]["google_rating"] is None


def test_cafe_details_unknown_place(api_client):
    response = api_client.get("/api/cafes/details/nowhere")
    assert response.status_code == 404
    assert error_code(response) == "NOT_FOUND"


def test_cafe_search_and_sync(auth_client, catalog, cafe):
    catalog.add("p-matcha", name="Matcha House")
    response = auth_client.get("/api/cafes/search", {"query": "matcha"})
    assert [c["google_place_id"] for c in response.json()["cafes"]] == ["p-matcha"]

    catalog.add("place-1", name="Blue Bottle Aoyama")
    synced = auth_client.post("/api/cafes/sync/place-1")
    assert synced.status_code == 200
    assert synced.json()["cafe"]["name"] == "Blue Bottle Aoyama"


def test_cafe_follow_and_photos(auth_client, api_client, services, user, cafe):
    assert auth_client.post(f"/api/cafes/{cafe.google_place_id}/follow").status_code == 200
    assert auth_client.delete(f"/api/cafes/{cafe.google_place_id}/follow").status_code == 200

    services.reviews.create(
        user, cafe.id, food_rating=4, drinks_rating=4, ambience_rating=4, service_rating=4, photos=["https://img.test/1.jpg"]
    )
    response = api_client.get(f"/api/cafes/{cafe.google_place_id}/photos")
    assert response.json()["count"] == 1
    assert response.json()["photos"][0]["user"]["name"] == "Alice"


# ---- レビュー


def test_review_requires_auth(api_client, review_payload):
    response = api_client.post("/api/reviews", review_payload(), format="json")
    assert response.status_code == 401
    assert error_code(response) == "UNAUTHORIZED"


def test_review_lifecycle(auth_client, other_user, cafe, review_payload):
    created = auth_client.post("/api/reviews", review_payload(food_rating=5), format="json")
    assert created.status_code == 201
    review_id = created.json()["review"]["id"]

    duplicate = auth_client.post("/api/reviews", review_payload(), format="json")
    assert duplicate.status_code == 409
    assert error_code(duplicate) == "CONFLICT"

    foreign = client_for(other_user).put(f"/api/reviews/{review_id}", {"food_rating": 1}, format="json")
    assert foreign.status_code == 403
    assert error_code(foreign) == "FORBIDDEN"

    updated = auth_client.put(f"/api/reviews/{review_id}", {"comment": "Lovely"}, format="json")
    assert updated.json()["review"]["comment"] == "Lovely"

    listing = auth_client.get(f"/api/cafes/{cafe.id}/reviews")
    assert listing.json()["pagination"]["total"] == 1

    assert auth_client.delete(f"/api/reviews/{review_id}").status_code == 200
    assert auth_client.get(f"/api/cafes/{cafe.id}/reviews").json()["reviews"] == []


def test_review_rating_out_of_range(auth_client, review_payload):
    response = auth_client.post("/api/reviews", review_payload(service_rating=6), format="json")
    assert response.status_code == 400
    assert "service_rating" in response.json()["error"]["details"]


def test_review_list_bad_page(api_client, cafe):
    response = api_client.get(f"/api/cafes/{cafe.id}/reviews", {"page": 0})
    assert response.status_code == 400
    assert response.json()["error"]["details"] == {"field": "page"}


# ---- ユーザー / フォロー / フィード


def test_user_profile_counts(api_client, services, user, other_user, cafe, catalog):
    second = services.cafes.upsert_from_record(catalog.add("place-2", name="Fuglen"))
    services.reviews.create(user, cafe.id, food_rating=2, drinks_rating=5, ambience_rating=3, service_rating=3)
    services.reviews.create(user, second.id, food_rating=2, drinks_rating=4, ambience_rating=3, service_rating=3)
    services.social.follow_user(other_user, user.id)

    data = api_client.get(f"/api/users/{user.id}").json()["user"]

    assert data["expertise"] == "DRINKS"
    assert data["reviews_count"] == 2
    assert data["cafes_visited_count"] == 2
    assert (data["followers_count"], data["following_count"]) == (1, 0)


def test_follow_endpoints(auth_client, user, other_user):
    assert auth_client.post(f"/api/users/{other_user.id}/follow").status_code == 201
    assert error_code(auth_client.post(f"/api/users/{other_user.id}/follow")) == "CONFLICT"
    assert auth_client.post(f"/api/users/{user.id}/follow").status_code == 400

    followers = auth_client.get(f"/api/users/{other_user.id}/followers").json()
    assert [f["id"] for f in followers["followers"]] == [user.id]

    assert auth_client.delete(f"/api/users/{other_user.id}/follow").status_code == 200
    assert auth_client.get("/api/users/999999").status_code == 404


@pytest.mark.django_db(transaction=True)
def test_feed_shows_followed_reviews(auth_client, services, user, other_user, make_user, cafe):
    stranger = make_user()
    Follow.objects.create(follower=user, following=other_user)
    services.reviews.create(other_user, cafe.id, food_rating=4, drinks_rating=4, ambience_rating=4, service_rating=4)
    services.reviews.create(stranger, cafe.id, food_rating=1, drinks_rating=1, ambience_rating=1, service_rating=1)

    feed = auth_client.get("/api/feed").json()
    assert [r["user"]["id"] for r in feed["reviews"]] == [other_user.id]
    assert feed["reviews"][0]["cafe"]["name"] == "Blue Bottle"

    assert Notification.objects.filter(user=user, type=Notification.TYPE_FRIEND_REVIEW).count() == 1


def test_discover_feed_bounding_box(api_client, services, user, other_user, cafe, catalog):
    far = services.cafes.upsert_from_record(catalog.add("far", name="Far", latitude=34.70, longitude=135.49))
    services.reviews.create(user, cafe.id, food_rating=4, drinks_rating=4, ambience_rating=4, service_rating=4)
    services.reviews.create(other_user, far.id, food_rating=3, drinks_rating=3, ambience_rating=3, service_rating=3)

    nearby = api_client.get("/api/feed/discover", {"latitude": 35.68, "longitude": 139.76, "radius_km": 5}).json()
    assert [r["cafe"]["google_place_id"] for r in nearby["reviews"]] == ["place-1"]

    everything = api_client.get("/api/feed/discover").json()
    assert everything["pagination"]["total"] == 2


def test_search_users_and_cafes(api_client, user, other_user, catalog):
    response = api_client.get("/api/search/users", {"query": "ALI"})
    assert [u["id"] for u in response.json()["users"]] == [user.id]

    catalog.add("g1", name="Glitch Coffee", photo_refs=["x"])
    cafes = api_client.get("/api/search/cafes", {"query": "glitch"}).json()
    assert cafes["count"] == 1
    assert cafes["cafes"][0]["place_id"] == "g1"
    assert cafes["cafes"][0]["photos"] == ["https://photos.test/x?w=800"]

    assert api_client.get("/api/search/users").status_code == 400


# ---- マイメニュー


def test_menu_crud_and_grouping(auth_client, api_client, user, other_user, cafe):
    payload = {
        "cafe_place_id": cafe.google_place_id,
        "cafe_name": cafe.name,
        "item_name": "Cortado",
        "item_type": "drink",
        "rating": 5,
    }
    created = auth_client.post("/api/menu", payload, format="json")
    assert created.status_code == 201
    item_id = created.json()["item"]["id"]
    auth_client.post("/api/menu", {**payload, "cafe_place_id": "elsewhere", "cafe_name": "Elsewhere"}, format="json")

    foreign = client_for(other_user).put(f"/api/menu/{item_id}", {"rating": 1}, format="json")
    assert foreign.status_code == 403
    assert auth_client.put(f"/api/menu/{item_id}", {"rating": 4}, format="json").json()["item"]["rating"] == 4

    menu = api_client.get(f"/api/users/{user.id}/menu").json()
    assert menu["total_items"] == 2
    assert [group["cafe_place_id"] for group in menu["menu"]] == ["elsewhere", cafe.google_place_id]

    assert auth_client.delete(f"/api/menu/{item_id}").status_code == 200
    assert PersonalMenuItem.objects.count() == 1


# ---- 保存 / 訪問済み


def test_saved_and_visited_endpoints(auth_client, cafe):
    place = cafe.google_place_id
    assert auth_client.post(f"/api/saved-cafes/{place}").status_code == 201
    assert auth_client.post(f"/api/saved-cafes/{place}").status_code == 409
    assert auth_client.get(f"/api/saved-cafes/{place}/status").json() == {"is_saved": True}
    saved = auth_client.get("/api/saved-cafes").json()
    assert saved["count"] == 1
    assert "saved_at" in saved["cafes"][0]
    assert auth_client.delete(f"/api/saved-cafes/{place}").status_code == 200

    assert auth_client.post("/api/visited-cafes/not-loaded").status_code == 404
    assert auth_client.post(f"/api/visited-cafes/{place}").status_code == 201
    assert auth_client.get(f"/api/visited-cafes/{place}/status").json() == {"is_visited": True}


# ---- 通知 / 設定


def test_notification_endpoints(auth_client, user, other_user):
    mine = Notification.objects.create(user=user, type=Notification.TYPE_NEW_FOLLOWER, title="t", body="b")
    theirs = Notification.objects.create(user=other_user, type=Notification.TYPE_NEW_FOLLOWER, title="t", body="b")

    assert auth_client.get("/api/notifications/unread-count").json() == {"count": 1}
    assert auth_client.put(f"/api/notifications/{theirs.id}/read").status_code == 403
    assert auth_client.put(f"/api/notifications/{mine.id}/read").json()["notification"]["read"] is True
    assert auth_client.get("/api/notifications", {"unread_only": "true"}).json()["pagination"]["total"] == 0
    assert auth_client.put("/api/notifications/read-all").json()["updated"] == 0
    assert auth_client.delete(f"/api/notifications/{mine.id}").status_code == 200


def test_preferences_and_mood_prompt(auth_client, user):
    assert auth_client.get("/api/preferences/should-show-mood-prompt").json()["should_show_prompt"] is True

    mood = auth_client.put("/api/preferences/mood", {"mood_metric": "DRINKS"}, format="json")
    assert mood.json()["preferences"]["current_mood_metric"] == "DRINKS"
    assert auth_client.get("/api/preferences/should-show-mood-prompt").json()["should_show_prompt"] is False

    UserPreferences.objects.filter(user=user).update(last_mood_update=timezone.now() - timedelta(hours=7))
    assert auth_client.get("/api/preferences/should-show-mood-prompt").json()["should_show_prompt"] is True

    assert auth_client.put("/api/preferences/radius", {"radius_km": 0.1}, format="json").status_code == 400
    radius = auth_client.put("/api/preferences/radius", {"radius_km": 12}, format="json")
    assert radius.json()["preferences"]["preferred_radius_km"] == 12.0

    toggles = auth_client.put("/api/preferences/notifications", {"notify_weekly": True}, format="json")
    assert toggles.json()["preferences"]["notify_weekly"] is True
    assert toggles.json()["preferences"]["notify_friend_activity"] is True
