import logging

from django.db import IntegrityError, transaction

from sipit.exceptions import ConflictError, ForbiddenError, NotFoundError
from sipit.models import Cafe, Review
from sipit.pagination import paginate
from sipit.services.notifications import NotificationService
from sipit.services.ratings import RatingAggregator

logger = logging.getLogger(__name__)

RATING_FIELDS = ("food_rating", "drinks_rating", "ambience_rating", "service_rating")
UPDATABLE_FIELDS = (*RATING_FIELDS, "comment", "photos", "mood_tags")


class ReviewService:
    """レビューの作成/更新/削除。
    - (user, cafe) につきレビューは1件まで
    - 書き込みと評価の再集計は同じトランザクション。再集計が失敗したらレビューの書き込みも残らない
    - フォロワー通知はコミット後に送る
    """

    def __init__(self, aggregator: RatingAggregator, notifications: NotificationService):
        self.aggregator = aggregator
        self.notifications = notifications

    def create(
        self,
        user,
        cafe_id,
        *,
        food_rating: int,
        drinks_rating: int,
        ambience_rating: int,
        service_rating: int,
        comment: str | None = None,
        photos: list[str] | None = None,
        mood_tags: list[str] | None = None,
    ) -> Review:
        cafe = Cafe.objects.filter(pk=cafe_id).first()
        if cafe is None:
            raise NotFoundError("Cafe not found", details={"cafe_id": str(cafe_id)})

        conflict = ConflictError(
            "You have already reviewed this cafe. Use update instead.",
            details={"cafe_id": str(cafe_id)},
        )
        if Review.objects.filter(user=user, cafe=cafe).exists():
            raise conflict

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    user=user,
                    cafe=cafe,
                    food_rating=food_rating,
                    drinks_rating=drinks_rating,
                    ambience_rating=ambience_rating,
                    service_rating=service_rating,
                    comment=comment,
                    photos=photos or [],
                    mood_tags=mood_tags or [],
                )
                self.aggregator.recompute(cafe.id)
                transaction.on_commit(lambda: self.notifications.notify_friend_review(user, cafe, review))
        except IntegrityError:
            # 同一ユーザーの同時投稿（一意制約）
            raise conflict

        logger.info("review created review=%s cafe=%s user=%s", review.id, cafe.id, user.id)
        return review

    def _owned(self, review_id, user, action: str) -> Review:
        review = Review.objects.filter(pk=review_id).first()
        if review is None:
            raise NotFoundError("Review not found", details={"review_id": str(review_id)})
        if review.user_id != user.id:
            raise ForbiddenError(f"You can only {action} your own reviews")
        return review

    def update(self, review_id, user, **fields) -> Review:
        review = self._owned(review_id, user, "update")
        changes = {name: value for name, value in fields.items() if name in UPDATABLE_FIELDS}
        with transaction.atomic():
            for name, value in changes.items():
                setattr(review, name, value)
            review.save(update_fields=[*changes, "updated_at"])
            self.aggregator.recompute(review.cafe_id)
        return review

    def delete(self, review_id, user) -> None:
        review = self._owned(review_id, user, "delete")
        cafe_id = review.cafe_id
        with transaction.atomic():
            review.delete()
            self.aggregator.recompute(cafe_id)
        logger.info("review deleted review=%s cafe=%s", review_id, cafe_id)

    def list_for_cafe(self, cafe_id, page: int = 1, limit: int = 20):
        qs = Review.objects.filter(cafe_id=cafe_id).select_related("user", "user__profile").order_by("-created_at")
        return paginate(qs, page, limit)

    def list_for_user(self, user_id, page: int = 1, limit: int = 20):
        qs = Review.objects.filter(user_id=user_id).select_related("cafe").order_by("-created_at")
        return paginate(qs, page, limit)

    @staticmethod
    def _flatten_photos(reviews) -> list[dict]:
        return [
            {"url": url, "review": review, "created_at": review.created_at}
            for review in reviews
            for url in review.photos or []
        ]

    def photos_for_cafe(self, cafe) -> list[dict]:
        reviews = Review.objects.filter(cafe=cafe).select_related("user", "user__profile").order_by("-created_at")
        return self._flatten_photos(reviews)

    def photos_for_user(self, user_id) -> list[dict]:
        reviews = Review.objects.filter(user_id=user_id).select_related("cafe").order_by("-created_at")
        return self._flatten_photos(reviews)
