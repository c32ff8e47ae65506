from django.contrib import admin
from django.urls import path
from sipit.auth_views import (
    SignupView,
    LoginView,
    RefreshView,
    LogoutView,
    MeView,
)
from sipit.collection_views import (
    SavedCafeListView,
    SavedCafeView,
    SavedCafeStatusView,
    VisitedCafeListView,
    VisitedCafeView,
    VisitedCafeStatusView,
)
from sipit.feed_views import FeedView, DiscoverFeedView
from sipit.menu_views import MenuItemCreateView, MenuItemDetailView
from sipit.notification_views import (
    NotificationListView,
    NotificationUnreadCountView,
    NotificationReadView,
    NotificationReadAllView,
    NotificationDetailView,
)
from sipit.preference_views import (
    PreferencesView,
    MoodView,
    RadiusView,
    NotificationSettingsView,
    MoodPromptView,
)
from sipit.review_views import ReviewCreateView, ReviewDetailView, CafeReviewListView
from sipit.search_views import SearchCafesView, SearchUsersView
from sipit.user_views import (
    UserDetailView,
    UserFollowView,
    UserFollowersView,
    UserFollowingView,
    UserReviewsView,
    UserPhotosView,
    UserMenuView,
)
from sipit.views import (
    PingView,
    CafeNearbyView,
    CafeDetailView,
    CafeSearchView,
    CafeSyncView,
    CafePlaceDetailsView,
    CafeFollowView,
    CafePhotosView,
)
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/ping/', PingView.as_view(), name='ping'),
    # 認証
    path('api/auth/signup', SignupView.as_view(), name='auth-signup'),
    path('api/auth/login', LoginView.as_view(), name='auth-login'),
    path('api/auth/refresh', RefreshView.as_view(), name='auth-refresh'),
    path('api/auth/logout', LogoutView.as_view(), name='auth-logout'),
    path('api/me', MeView.as_view(), name='me'),
    # カフェ（近隣検索・テキスト検索・同期・詳細）
    path('api/cafes/nearby', CafeNearbyView.as_view(), name='cafes-nearby'),
    path('api/cafes/search', CafeSearchView.as_view(), name='cafes-search'),
    path('api/cafes/sync/<str:place_id>', CafeSyncView.as_view(), name='cafes-sync'),
    path('api/cafes/details/<str:place_id>', CafePlaceDetailsView.as_view(), name='cafes-details'),
    path('api/cafes/<uuid:cafe_id>', CafeDetailView.as_view(), name='cafe-detail'),
    path('api/cafes/<uuid:cafe_id>/reviews', CafeReviewListView.as_view(), name='cafe-reviews'),
    path('api/cafes/<str:place_id>/follow', CafeFollowView.as_view(), name='cafe-follow'),
    path('api/cafes/<str:place_id>/photos', CafePhotosView.as_view(), name='cafe-photos'),
    # レビュー
    path('api/reviews', ReviewCreateView.as_view(), name='reviews-create'),
    path('api/reviews/<uuid:review_id>', ReviewDetailView.as_view(), name='review-detail'),
    # ユーザー / フォロー
    path('api/users/<int:user_id>', UserDetailView.as_view(), name='user-detail'),
    path('api/users/<int:user_id>/follow', UserFollowView.as_view(), name='user-follow'),
    path('api/users/<int:user_id>/followers', UserFollowersView.as_view(), name='user-followers'),
    path('api/users/<int:user_id>/following', UserFollowingView.as_view(), name='user-following'),
    path('api/users/<int:user_id>/reviews', UserReviewsView.as_view(), name='user-reviews'),
    path('api/users/<int:user_id>/photos', UserPhotosView.as_view(), name='user-photos'),
    path('api/users/<int:user_id>/menu', UserMenuView.as_view(), name='user-menu'),
    # マイメニュー
    path('api/menu', MenuItemCreateView.as_view(), name='menu-create'),
    path('api/menu/<uuid:item_id>', MenuItemDetailView.as_view(), name='menu-detail'),
    # 保存済み / 訪問済み
    path('api/saved-cafes', SavedCafeListView.as_view(), name='saved-cafes'),
    path('api/saved-cafes/<str:place_id>', SavedCafeView.as_view(), name='saved-cafe'),
    path('api/saved-cafes/<str:place_id>/status', SavedCafeStatusView.as_view(), name='saved-cafe-status'),
    path('api/visited-cafes', VisitedCafeListView.as_view(), name='visited-cafes'),
    path('api/visited-cafes/<str:place_id>', VisitedCafeView.as_view(), name='visited-cafe'),
    path('api/visited-cafes/<str:place_id>/status', VisitedCafeStatusView.as_view(), name='visited-cafe-status'),
    # フィード・検索
    path('api/feed', FeedView.as_view(), name='feed'),
    path('api/feed/discover', DiscoverFeedView.as_view(), name='feed-discover'),
    path('api/search/cafes', SearchCafesView.as_view(), name='search-cafes'),
    path('api/search/users', SearchUsersView.as_view(), name='search-users'),
    # 通知
    path('api/notifications', NotificationListView.as_view(), name='notifications'),
    path('api/notifications/unread-count', NotificationUnreadCountView.as_view(), name='notifications-unread-count'),
    path('api/notifications/read-all', NotificationReadAllView.as_view(), name='notifications-read-all'),
    path('api/notifications/<uuid:notification_id>/read', NotificationReadView.as_view(), name='notification-read'),
    path('api/notifications/<uuid:notification_id>', NotificationDetailView.as_view(), name='notification-detail'),
    # 設定
    path('api/preferences', PreferencesView.as_view(), name='preferences'),
    path('api/preferences/mood', MoodView.as_view(), name='preferences-mood'),
    path('api/preferences/radius', RadiusView.as_view(), name='preferences-radius'),
    path('api/preferences/notifications', NotificationSettingsView.as_view(), name='preferences-notifications'),
    path('api/preferences/should-show-mood-prompt', MoodPromptView.as_view(), name='preferences-mood-prompt'),
    # OpenAPI スキーマ（JSON）
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    # Swagger UI（/api/schema/ を参照）
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    # Redoc UI（/api/schema/ を参照）
    path('api/schema/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
