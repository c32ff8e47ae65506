import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from sipit.exceptions import ConflictError, NotFoundError, ValidationFailed
from sipit.models import CafeFollow, Follow, SavedCafe, VisitedCafe
from sipit.pagination import paginate
from sipit.services.cafes import CafeRepository
from sipit.services.notifications import NotificationService

logger = logging.getLogger(__name__)

User = get_user_model()

NOT_LOADED_MESSAGE = "Cafe not found. Please visit the cafe profile first to load it into the system."


class SocialService:
    """ユーザー/カフェのフォロー、保存、訪問済みの関係。
    - いずれも (ユーザー, 対象) の組で一意
    - カフェのフォローのみ重複を許容（既存ならそのまま成功）
    """

    def __init__(self, repository: CafeRepository, notifications: NotificationService):
        self.repository = repository
        self.notifications = notifications

    # ---- users

    def follow_user(self, follower, following_id) -> Follow:
        if str(follower.id) == str(following_id):
            raise ValidationFailed("Cannot follow yourself")
        target = User.objects.filter(pk=following_id).first()
        if target is None:
            raise NotFoundError("User not found", details={"user_id": str(following_id)})
        try:
            with transaction.atomic():
                follow = Follow.objects.create(follower=follower, following=target)
        except IntegrityError:
            raise ConflictError("Already following this user")
        logger.info("user followed follower=%s following=%s", follower.id, target.id)
        self.notifications.notify_new_follower(follower, target)
        return follow

    def unfollow_user(self, follower, following_id) -> None:
        deleted, _ = Follow.objects.filter(follower=follower, following_id=following_id).delete()
        if not deleted:
            raise NotFoundError("Follow relationship not found")

    def followers(self, user_id, page: int = 1, limit: int = 20):
        qs = Follow.objects.filter(following_id=user_id).select_related("follower", "follower__profile")
        return paginate(qs.order_by("-created_at"), page, limit)

    def following(self, user_id, page: int = 1, limit: int = 20):
        qs = Follow.objects.filter(follower_id=user_id).select_related("following", "following__profile")
        return paginate(qs.order_by("-created_at"), page, limit)

    # ---- cafes

    def follow_cafe(self, user, place_id: str) -> CafeFollow:
        cafe = self.repository.get_or_fetch(place_id)
        follow, _ = CafeFollow.objects.get_or_create(user=user, cafe=cafe)
        return follow

    def unfollow_cafe(self, user, place_id: str) -> None:
        cafe = self._known_cafe(place_id, "Cafe not found")
        CafeFollow.objects.filter(user=user, cafe=cafe).delete()

    def _known_cafe(self, place_id: str, message: str = NOT_LOADED_MESSAGE):
        cafe = self.repository.find_by_external_id(place_id)
        if cafe is None:
            raise NotFoundError(message, details={"place_id": place_id})
        return cafe

    def _add(self, model, user, place_id: str, conflict_message: str):
        cafe = self._known_cafe(place_id)
        try:
            with transaction.atomic():
                return model.objects.create(user=user, cafe=cafe)
        except IntegrityError:
            raise ConflictError(conflict_message, details={"place_id": place_id})

    def _remove(self, model, user, place_id: str, missing_message: str) -> None:
        cafe = self._known_cafe(place_id, "Cafe not found")
        deleted, _ = model.objects.filter(user=user, cafe=cafe).delete()
        if not deleted:
            raise NotFoundError(missing_message, details={"place_id": place_id})

    def _exists(self, model, user, place_id: str) -> bool:
        cafe = self.repository.find_by_external_id(place_id)
        return cafe is not None and model.objects.filter(user=user, cafe=cafe).exists()

    def _cafes_of(self, model, user):
        return (
            model.objects.filter(user=user)
            .select_related("cafe", "cafe__ratings")
            .order_by("-created_at")
        )

    def save_cafe(self, user, place_id: str) -> SavedCafe:
        return self._add(SavedCafe, user, place_id, "Cafe already saved")

    def unsave_cafe(self, user, place_id: str) -> None:
        self._remove(SavedCafe, user, place_id, "Cafe not saved")

    def is_saved(self, user, place_id: str) -> bool:
        return self._exists(SavedCafe, user, place_id)

    def saved_cafes(self, user):
        return list(self._cafes_of(SavedCafe, user))

    def mark_visited(self, user, place_id: str) -> VisitedCafe:
        return self._add(VisitedCafe, user, place_id, "Cafe already marked as visited")

    def unmark_visited(self, user, place_id: str) -> None:
        self._remove(VisitedCafe, user, place_id, "Cafe not marked as visited")

    def is_visited(self, user, place_id: str) -> bool:
        return self._exists(VisitedCafe, user, place_id)

    def visited_cafes(self, user):
        return list(self._cafes_of(VisitedCafe, user))

    def cafe_status(self, user, cafe) -> dict:
        """カフェ詳細向けの is_following / is_saved / is_visited。未ログインは全て False。"""
        if user is None or not user.is_authenticated:
            return {"is_following": False, "is_saved": False, "is_visited": False}
        return {
            "is_following": CafeFollow.objects.filter(user=user, cafe=cafe).exists(),
            "is_saved": SavedCafe.objects.filter(user=user, cafe=cafe).exists(),
            "is_visited": VisitedCafe.objects.filter(user=user, cafe=cafe).exists(),
        }
