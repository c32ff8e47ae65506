from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.exceptions import validation_error
from sipit.serializers import MenuItemCreateSerializer, MenuItemSerializer, MenuItemUpdateSerializer
from sipit.services import get_services


class MenuItemCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = MenuItemCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        item = get_services().menu.create(request.user, **serializer.validated_data)
        return Response({"item": MenuItemSerializer(item).data}, status=status.HTTP_201_CREATED)


class MenuItemDetailView(APIView):
    """更新・削除は作成したユーザーのみ（それ以外は 403）。"""
    permission_classes = [IsAuthenticated]

    def put(self, request, item_id):
        serializer = MenuItemUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        item = get_services().menu.update(item_id, request.user, **serializer.validated_data)
        return Response({"item": MenuItemSerializer(item).data})

    def delete(self, request, item_id):
        get_services().menu.delete(item_id, request.user)
        return Response({"success": True, "message": "Menu item deleted"})
