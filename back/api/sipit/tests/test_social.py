import pytest
from django.contrib.auth.models import AnonymousUser

from sipit.exceptions import ConflictError, NotFoundError, ValidationFailed
from sipit.models import CafeFollow, Follow, Notification


@pytest.mark.django_db
def test_follow_user_notifies_and_rejects_duplicates(services, user, other_user):
    services.social.follow_user(user, other_user.id)

    assert Follow.objects.filter(follower=user, following=other_user).exists()
    notification = Notification.objects.get(user=other_user)
    assert notification.type == Notification.TYPE_NEW_FOLLOWER
    assert notification.data == {"follower_id": str(user.id)}

    with pytest.raises(ConflictError):
        services.social.follow_user(user, other_user.id)
    assert Notification.objects.filter(user=other_user).count() == 1


@pytest.mark.django_db
def test_follow_self_and_unknown(services, user):
    with pytest.raises(ValidationFailed):
        services.social.follow_user(user, user.id)
    with pytest.raises(NotFoundError):
        services.social.follow_user(user, 987654)


@pytest.mark.django_db
def test_unfollow_user(services, user, other_user):
    with pytest.raises(NotFoundError):
        services.social.unfollow_user(user, other_user.id)

    services.social.follow_user(user, other_user.id)
    services.social.unfollow_user(user, other_user.id)
    assert not Follow.objects.exists()


@pytest.mark.django_db
def test_followers_and_following_pages(services, user, make_user):
    fans = [make_user() for _ in range(3)]
    for fan in fans:
        services.social.follow_user(fan, user.id)

    followers, total = services.social.followers(user.id, page=1, limit=2)
    assert total == 3
    assert len(followers) == 2

    following, total = services.social.following(fans[0].id)
    assert total == 1
    assert following[0].following_id == user.id


@pytest.mark.django_db
def test_follow_cafe_fetches_unknown_cafe_and_is_idempotent(services, catalog, user):
    catalog.add("fresh-place", name="Fresh")

    services.social.follow_cafe(user, "fresh-place")
    services.social.follow_cafe(user, "fresh-place")

    assert CafeFollow.objects.filter(user=user, cafe__google_place_id="fresh-place").count() == 1

    services.social.unfollow_cafe(user, "fresh-place")
    assert not CafeFollow.objects.exists()
    with pytest.raises(NotFoundError):
        services.social.unfollow_cafe(user, "never-loaded")


@pytest.mark.django_db
def test_save_cafe_rules(services, user, cafe):
    with pytest.raises(NotFoundError):
        services.social.save_cafe(user, "never-loaded")
    assert services.social.is_saved(user, "never-loaded") is False

    services.social.save_cafe(user, cafe.google_place_id)
    assert services.social.is_saved(user, cafe.google_place_id) is True
    with pytest.raises(ConflictError):
        services.social.save_cafe(user, cafe.google_place_id)

    assert [s.cafe_id for s in services.social.saved_cafes(user)] == [cafe.id]

    services.social.unsave_cafe(user, cafe.google_place_id)
    with pytest.raises(NotFoundError):
        services.social.unsave_cafe(user, cafe.google_place_id)


@pytest.mark.django_db
def test_visited_cafe_rules(services, user, cafe):
    services.social.mark_visited(user, cafe.google_place_id)
    with pytest.raises(ConflictError):
        services.social.mark_visited(user, cafe.google_place_id)
    assert services.social.is_visited(user, cafe.google_place_id) is True
    assert len(services.social.visited_cafes(user)) == 1

    services.social.unmark_visited(user, cafe.google_place_id)
    assert services.social.is_visited(user, cafe.google_place_id) is False
    with pytest.raises(NotFoundError):
        services.social.unmark_visited(user, cafe.google_place_id)


@pytest.mark.django_db
def test_cafe_status(services, user, cafe):
    assert services.social.cafe_status(AnonymousUser(), cafe) == {
        "is_following": False,
        "is_saved": False,
        "is_visited": False,
    }

    services.social.follow_cafe(user, cafe.google_place_id)
    services.social.save_cafe(user, cafe.google_place_id)
    assert services.social.cafe_status(user, cafe) == {
        "is_following": True,
        "is_saved": True,
        "is_visited": False,
    }
