from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.exceptions import validation_error
from sipit.pagination import page_params, page_payload
from sipit.serializers import ReviewCreateSerializer, ReviewSerializer, ReviewUpdateSerializer
from sipit.services import get_services


class ReviewCreateView(APIView):
    """レビュー投稿。評価の再集計とフォロワーへの通知まで行う。"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ReviewCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)

        data = dict(serializer.validated_data)
        cafe_id = data.pop("cafe_id")
        review = get_services().reviews.create(request.user, cafe_id, **data)
        return Response({"review": ReviewSerializer(review).data}, status=status.HTTP_201_CREATED)


class ReviewDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, review_id):
        serializer = ReviewUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        review = get_services().reviews.update(review_id, request.user, **serializer.validated_data)
        return Response({"review": ReviewSerializer(review).data})

    def delete(self, request, review_id):
        get_services().reviews.delete(review_id, request.user)
        return Response({"success": True, "message": "Review deleted successfully"})


class CafeReviewListView(APIView):
    """カフェのレビュー一覧（新しい順、page/limit）。"""
    permission_classes = [AllowAny]

    def get(self, request, cafe_id):
        page, limit = page_params(request.query_params)
        services = get_services()
        services.cafes.get(cafe_id)
        reviews, total = services.reviews.list_for_cafe(cafe_id, page, limit)
        return Response(
            {
                "reviews": ReviewSerializer(reviews, many=True).data,
                "pagination": page_payload(page, limit, total),
            }
        )
