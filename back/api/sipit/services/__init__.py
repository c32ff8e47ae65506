"""サービス層。

プロセス起動時（SipitConfig.ready）に一度だけ組み立て、ビューからは get_services() で参照する。
DB・キャッシュ・Google Places クライアントは各サービスのコンストラクタに渡す。
"""
from dataclasses import dataclass

from django.apps import apps
from django.conf import settings
from django.core.cache import caches

from sipit.services.cafes import CafeRepository
from sipit.services.discovery import CafeDiscovery
from sipit.services.insights import CafeInsightEngine
from sipit.services.menu import MenuService
from sipit.services.notifications import NotificationService
from sipit.services.places import GooglePlacesClient
from sipit.services.ratings import NearbyCafeCache, RatingAggregator
from sipit.services.reviews import ReviewService
from sipit.services.social import SocialService


@dataclass
class Services:
    catalog: GooglePlacesClient
    nearby_cache: NearbyCafeCache
    aggregator: RatingAggregator
    cafes: CafeRepository
    discovery: CafeDiscovery
    notifications: NotificationService
    reviews: ReviewService
    social: SocialService
    insights: CafeInsightEngine
    menu: MenuService

    def close(self) -> None:
        self.catalog.close()


def build_services(catalog: GooglePlacesClient | None = None, cache=None) -> Services:
    catalog = catalog or GooglePlacesClient(
        api_key=settings.GOOGLE_MAPS_API_KEY,
        base_url=settings.GOOGLE_PLACES_BASE_URL,
        timeout=settings.GOOGLE_PLACES_TIMEOUT,
    )
    nearby_cache = NearbyCafeCache(cache or caches["default"], ttl=settings.NEARBY_CAFES_TTL)
    aggregator = RatingAggregator(nearby_cache)
    cafes = CafeRepository(catalog, refresh_after=settings.CAFE_REFRESH_AFTER)
    notifications = NotificationService()
    return Services(
        catalog=catalog,
        nearby_cache=nearby_cache,
        aggregator=aggregator,
        cafes=cafes,
        discovery=CafeDiscovery(catalog, cafes, nearby_cache),
        notifications=notifications,
        reviews=ReviewService(aggregator, notifications),
        social=SocialService(cafes, notifications),
        insights=CafeInsightEngine(),
        menu=MenuService(),
    )


def get_services() -> Services:
    return apps.get_app_config("sipit").services
