from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.exceptions import NotFoundError
from sipit.models import UserProfile
from sipit.pagination import page_params, page_payload
from sipit.serializers import MenuItemSerializer, ReviewWithCafeSerializer, UserSummarySerializer
from sipit.services import get_services
from sipit.views import photo_payload

User = get_user_model()


def _get_user(user_id) -> User:
    user = User.objects.select_related("profile").filter(pk=user_id).first()
    if user is None:
        raise NotFoundError("User not found", details={"user_id": str(user_id)})
    return user


class UserDetailView(APIView):
    """公開プロフィール。
    - expertise: レビュー平均が最も高いメトリクス（レビューなしは null）
    - cafes_visited_count: レビューしたカフェの数（重複なし）
    """
    permission_classes = [AllowAny]

    def get(self, request, user_id: int):
        user = _get_user(user_id)
        profile = getattr(user, "profile", None) or UserProfile(user=user)
        data = {
            "id": user.id,
            "name": profile.name,
            "personality_type": profile.personality_type,
            "profile_picture_url": profile.profile_picture_url,
            "created_at": user.date_joined,
            "expertise": get_services().insights.expertise_for_user(user.id),
            "reviews_count": user.reviews.count(),
            "followers_count": user.follower_set.count(),
            "following_count": user.following_set.count(),
            "cafes_visited_count": user.reviews.values("cafe_id").distinct().count(),
        }
        return Response({"user": data})


class UserFollowView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, user_id: int):
        get_services().social.follow_user(request.user, user_id)
        return Response(
            {"success": True, "message": "Successfully followed user"},
            status=status.HTTP_201_CREATED,
        )

    def delete(self, request, user_id: int):
        get_services().social.unfollow_user(request.user, user_id)
        return Response({"success": True, "message": "Successfully unfollowed user"})


class UserFollowersView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id: int):
        page, limit = page_params(request.query_params)
        follows, total = get_services().social.followers(_get_user(user_id).id, page, limit)
        return Response(
            {
                "followers": UserSummarySerializer([f.follower for f in follows], many=True).data,
                "pagination": page_payload(page, limit, total),
            }
        )


class UserFollowingView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id: int):
        page, limit = page_params(request.query_params)
        follows, total = get_services().social.following(_get_user(user_id).id, page, limit)
        return Response(
            {
                "following": UserSummarySerializer([f.following for f in follows], many=True).data,
                "pagination": page_payload(page, limit, total),
            }
        )


class UserReviewsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id: int):
        page, limit = page_params(request.query_params)
        reviews, total = get_services().reviews.list_for_user(_get_user(user_id).id, page, limit)
        return Response(
            {
                "reviews": ReviewWithCafeSerializer(reviews, many=True).data,
                "pagination": page_payload(page, limit, total),
            }
        )


class UserPhotosView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id: int):
        photos = get_services().reviews.photos_for_user(_get_user(user_id).id)
        items = [photo_payload(p, with_cafe=True) for p in photos]
        return Response({"photos": items, "count": len(items)})


class UserMenuView(APIView):
    """マイメニュー（カフェごとにまとめて返す）。"""
    permission_classes = [AllowAny]

    def get(self, request, user_id: int):
        groups, total = get_services().menu.menu_for_user(_get_user(user_id).id)
        cafes = [
            {
                "cafe_place_id": group["cafe_place_id"],
                "cafe_name": group["cafe_name"],
                "items": MenuItemSerializer(group["items"], many=True).data,
            }
            for group in groups
        ]
        return Response({"menu": cafes, "total_items": total})
