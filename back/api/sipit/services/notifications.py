import logging

from django.db import DatabaseError, transaction

from sipit.exceptions import ForbiddenError, NotFoundError
from sipit.models import Follow, Notification
from sipit.pagination import paginate

logger = logging.getLogger(__name__)


class NotificationService:
    """通知レコードの作成と既読管理。実際のプッシュ配信は別コンポーネントの責務。"""

    def notify_friend_review(self, author, cafe, review) -> int:
        """フォロワーへの「友達のレビュー」通知（ベストエフォート）。
        - notify_friend_activity を有効にしているフォロワーのみ
        - まとめて挿入し、失敗したら1件ずつ挿入する。失敗はログのみでレビュー作成は失敗させない
        """
        try:
            follower_ids = list(
                Follow.objects.filter(following=author, follower__preferences__notify_friend_activity=True)
                .values_list("follower_id", flat=True)
            )
        except DatabaseError:
            logger.exception("follower lookup for friend-review notification failed author=%s", author.id)
            return 0

        notifications = [
            Notification(
                user_id=follower_id,
                type=Notification.TYPE_FRIEND_REVIEW,
                title="New Review",
                body=f"{author.email} reviewed {cafe.name}",
                data={"review_id": str(review.id), "cafe_id": str(cafe.id), "user_id": str(author.id)},
            )
            for follower_id in follower_ids
        ]
        if not notifications:
            return 0

        try:
            with transaction.atomic():
                Notification.objects.bulk_create(notifications)
            return len(notifications)
        except DatabaseError:
            logger.exception("bulk friend-review notification failed, retrying one by one")

        created = 0
        for notification in notifications:
            try:
                with transaction.atomic():
                    notification.save(force_insert=True)
                created += 1
            except DatabaseError:
                logger.exception("friend-review notification failed for user=%s", notification.user_id)
        return created

    def notify_new_follower(self, follower, following) -> Notification:
        return Notification.objects.create(
            user=following,
            type=Notification.TYPE_NEW_FOLLOWER,
            title="New Follower",
            body=f"{follower.email} started following you",
            data={"follower_id": str(follower.id)},
        )

    def list_for_user(self, user, page: int = 1, limit: int = 20, unread_only: bool = False):
        qs = Notification.objects.filter(user=user)
        if unread_only:
            qs = qs.filter(read=False)
        return paginate(qs.order_by("-created_at"), page, limit)

    def unread_count(self, user) -> int:
        return Notification.objects.filter(user=user, read=False).count()

    def _owned(self, notification_id, user, action: str) -> Notification:
        notification = Notification.objects.filter(pk=notification_id).first()
        if notification is None:
            raise NotFoundError("Notification not found", details={"notification_id": str(notification_id)})
        if notification.user_id != user.id:
            raise ForbiddenError(f"You can only {action} your own notifications")
        return notification

    def mark_read(self, notification_id, user) -> Notification:
        notification = self._owned(notification_id, user, "mark")
        if not notification.read:
            notification.read = True
            notification.save(update_fields=["read"])
        return notification

    def mark_all_read(self, user) -> int:
        return Notification.objects.filter(user=user, read=False).update(read=True)

    def delete(self, notification_id, user) -> None:
        self._owned(notification_id, user, "delete").delete()
