from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.exceptions import NotFoundError, validation_error
from sipit.pagination import page_payload
from sipit.serializers import (
    CafeSearchQuerySerializer,
    CafeSerializer,
    NearbyCafesQuerySerializer,
    UserSummarySerializer,
)
from sipit.services import get_services


class PingView(APIView):
    def get(self, request):
        return Response({"pong": True})


class CafeNearbyView(APIView):
    """近隣カフェ一覧。
    必須: latitude, longitude
    任意: radius_km(既定5, 0.5〜50), sort_by(FOOD|DRINKS|AMBIENCE|SERVICE), page, limit(最大100)
    仕様: 検索結果（評価スナップショット + 距離）はキャッシュし、並び替え・ページングはその後に行う。
    """
    permission_classes = [AllowAny]

    def get(self, request):
        serializer = NearbyCafesQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        q = serializer.validated_data

        discovery = get_services().discovery
        cafes = discovery.nearby(q["latitude"], q["longitude"], q["radius_km"])
        ranked = discovery.sort_by_metric(cafes, q["sort_by"])

        offset = (q["page"] - 1) * q["limit"]
        return Response(
            {
                "cafes": ranked[offset : offset + q["limit"]],
                "pagination": page_payload(q["page"], q["limit"], len(ranked)),
                "sorted_by": q["sort_by"],
            }
        )


class CafeDetailView(APIView):
    """保存済みカフェ（UUID）。Google 側の追加情報は取得できなければ null。"""
    permission_classes = [AllowAny]

    def get(self, request, cafe_id):
        services = get_services()
        cafe = services.cafes.get(cafe_id)
        data = CafeSerializer(cafe).data
        data["google_details"] = services.cafes.google_details(cafe)
        return Response({"cafe": data})


class CafeSearchView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        serializer = CafeSearchQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        q = serializer.validated_data
        cafes = get_services().discovery.search(
            q["query"], q.get("latitude"), q.get("longitude"), limit=q["limit"]
        )
        return Response({"cafes": CafeSerializer(cafes, many=True).data, "query": q["query"]})


class CafeSyncView(APIView):
    """Google Places の最新情報で Cafe を作成/上書きする（評価は保持）。"""
    permission_classes = [IsAuthenticated]

    def post(self, request, place_id: str):
        cafe = get_services().cafes.sync_from_catalog(place_id)
        return Response({"cafe": CafeSerializer(cafe).data})


class CafePlaceDetailsView(APIView):
    """place_id 指定のカフェ詳細。
    - 未登録なら Google Places から取得して作成する
    - フォロワー数/レビュー数、ログインユーザーのフォロー・保存・訪問状態、集計（insights）を含む
    """
    permission_classes = [AllowAny]

    def get(self, request, place_id: str):
        services = get_services()
        cafe = services.cafes.get_or_fetch(place_id)

        data = CafeSerializer(cafe).data
        data["followers_count"] = cafe.followers.count()
        data["reviews_count"] = cafe.reviews.count()
        data.update(services.social.cafe_status(request.user, cafe))
        data.update(services.insights.for_cafe(cafe))
        data["google_details"] = services.cafes.google_details(cafe)
        return Response({"cafe": data})


class CafeFollowView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, place_id: str):
        get_services().social.follow_cafe(request.user, place_id)
        return Response({"success": True, "message": "Successfully followed cafe"})

    def delete(self, request, place_id: str):
        get_services().social.unfollow_cafe(request.user, place_id)
        return Response({"success": True, "message": "Successfully unfollowed cafe"})


def photo_payload(photo: dict, with_cafe: bool = False) -> dict:
    review = photo["review"]
    item = {
        "url": photo["url"],
        "review_id": str(review.id),
        "created_at": photo["created_at"],
    }
    if with_cafe:
        item["cafe"] = {"id": str(review.cafe.id), "name": review.cafe.name, "google_place_id": review.cafe.google_place_id}
    else:
        item["user"] = UserSummarySerializer(review.user).data
    return item


class CafePhotosView(APIView):
    """レビューに添付された写真（新しい順）。"""
    permission_classes = [AllowAny]

    def get(self, request, place_id: str):
        services = get_services()
        cafe = services.cafes.find_by_external_id(place_id)
        if cafe is None:
            raise NotFoundError("Cafe not found", details={"place_id": place_id})
        photos = [photo_payload(p) for p in services.reviews.photos_for_cafe(cafe)]
        return Response({"photos": photos, "count": len(photos)})
