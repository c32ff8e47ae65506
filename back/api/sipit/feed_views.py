from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.exceptions import validation_error
from sipit.models import Follow, Review
from sipit.pagination import page_params, page_payload, paginate
from sipit.serializers import DiscoverQuerySerializer, ReviewWithCafeSerializer

# 緯度1度あたりのおおよその距離（km）
KM_PER_DEGREE = 111


def _review_page(qs, page: int, limit: int) -> Response:
    reviews, total = paginate(
        qs.select_related("user", "user__profile", "cafe").order_by("-created_at"), page, limit
    )
    return Response(
        {
            "reviews": ReviewWithCafeSerializer(reviews, many=True).data,
            "pagination": page_payload(page, limit, total),
        }
    )


class FeedView(APIView):
    """フォロー中ユーザーのレビュー（新しい順）。"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        page, limit = page_params(request.query_params)
        following = Follow.objects.filter(follower=request.user).values("following_id")
        return _review_page(Review.objects.filter(user_id__in=following), page, limit)


class DiscoverFeedView(APIView):
    """周辺カフェのレビュー。位置指定なしなら全レビュー。
    範囲は radius_km / 111 度の矩形で近似する。
    """
    permission_classes = [AllowAny]

    def get(self, request):
        page, limit = page_params(request.query_params)
        serializer = DiscoverQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        q = serializer.validated_data

        qs = Review.objects.all()
        if q.get("latitude") is not None and q.get("longitude") is not None:
            delta = q["radius_km"] / KM_PER_DEGREE
            qs = qs.filter(
                cafe__latitude__gte=q["latitude"] - delta,
                cafe__latitude__lte=q["latitude"] + delta,
                cafe__longitude__gte=q["longitude"] - delta,
                cafe__longitude__lte=q["longitude"] + delta,
            )
        return _review_page(qs, page, limit)
