from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sipit.pagination import page_params, page_payload
from sipit.serializers import NotificationSerializer
from sipit.services import get_services


class NotificationListView(APIView):
    """通知一覧（新しい順）。unread_only=true で未読のみ。"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        page, limit = page_params(request.query_params)
        unread_only = request.query_params.get("unread_only", "").lower() in ("1", "true", "yes")
        notifications, total = get_services().notifications.list_for_user(
            request.user, page, limit, unread_only=unread_only
        )
        return Response(
            {
                "notifications": NotificationSerializer(notifications, many=True).data,
                "pagination": page_payload(page, limit, total),
            }
        )


class NotificationUnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"count": get_services().notifications.unread_count(request.user)})


class NotificationReadView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, notification_id):
        notification = get_services().notifications.mark_read(notification_id, request.user)
        return Response({"notification": NotificationSerializer(notification).data})


class NotificationReadAllView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        updated = get_services().notifications.mark_all_read(request.user)
        return Response({"success": True, "updated": updated})


class NotificationDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, notification_id):
        get_services().notifications.delete(notification_id, request.user)
        return Response({"success": True, "message": "Notification deleted"})
