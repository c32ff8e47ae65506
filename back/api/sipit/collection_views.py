"""保存済み / 訪問済みカフェ。カフェは事前に詳細画面などで読み込まれている必要がある。"""
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.serializers import CafeSerializer
from sipit.services import get_services


def _cafe_entries(entries, stamp: str) -> list[dict]:
    return [{**CafeSerializer(entry.cafe).data, stamp: entry.created_at} for entry in entries]


class SavedCafeListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        entries = get_services().social.saved_cafes(request.user)
        cafes = _cafe_entries(entries, "saved_at")
        return Response({"cafes": cafes, "count": len(cafes)})


class SavedCafeView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, place_id: str):
        get_services().social.save_cafe(request.user, place_id)
        return Response({"success": True, "message": "Cafe saved"}, status=status.HTTP_201_CREATED)

    def delete(self, request, place_id: str):
        get_services().social.unsave_cafe(request.user, place_id)
        return Response({"success": True, "message": "Cafe removed from saved"})


class SavedCafeStatusView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, place_id: str):
        return Response({"is_saved": get_services().social.is_saved(request.user, place_id)})


class VisitedCafeListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        entries = get_services().social.visited_cafes(request.user)
        cafes = _cafe_entries(entries, "visited_at")
        return Response({"cafes": cafes, "count": len(cafes)})


class VisitedCafeView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, place_id: str):
        get_services().social.mark_visited(request.user, place_id)
        return Response({"success": True, "message": "Cafe marked as visited"}, status=status.HTTP_201_CREATED)

    def delete(self, request, place_id: str):
        get_services().social.unmark_visited(request.user, place_id)
        return Response({"success": True, "message": "Cafe removed from visited"})


class VisitedCafeStatusView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, place_id: str):
        return Response({"is_visited": get_services().social.is_visited(request.user, place_id)})
