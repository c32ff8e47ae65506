from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.exceptions import validation_error
from sipit.serializers import SearchQuerySerializer, UserSummarySerializer
from sipit.services import get_services

User = get_user_model()


class SearchCafesView(APIView):
    """Google Places の名称検索（保存はしない）。"""
    permission_classes = [AllowAny]

    def get(self, request):
        serializer = SearchQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        q = serializer.validated_data
        catalog = get_services().catalog
        cafes = [
            {
                "place_id": record.place_id,
                "name": record.name,
                "address": record.address,
                "latitude": record.latitude,
                "longitude": record.longitude,
                "photos": [catalog.photo_url(ref) for ref in record.photo_refs],
                "rating": record.rating,
                "user_ratings_total": record.user_ratings_total,
            }
            for record in catalog.search_by_name(q["query"], q["limit"])
        ]
        return Response({"cafes": cafes, "count": len(cafes)})


class SearchUsersView(APIView):
    """名前またはメールアドレスの部分一致（大文字小文字を区別しない）。"""
    permission_classes = [AllowAny]

    def get(self, request):
        serializer = SearchQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        q = serializer.validated_data
        users = (
            User.objects.filter(Q(profile__name__icontains=q["query"]) | Q(email__icontains=q["query"]))
            .select_related("profile")
            .annotate(
                followers_count=Count("follower_set", distinct=True),
                following_count=Count("following_set", distinct=True),
                reviews_count=Count("reviews", distinct=True),
            )
            .order_by("-date_joined")[: q["limit"]]
        )
        items = [
            {
                **UserSummarySerializer(user).data,
                "email": user.email,
                "followers_count": user.followers_count,
                "following_count": user.following_count,
                "reviews_count": user.reviews_count,
            }
            for user in users
        ]
        return Response({"users": items, "count": len(items)})
