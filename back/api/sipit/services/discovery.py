import logging

from sipit.models import METRIC_AVERAGE_FIELDS, Metric
from sipit.serializers import CafeSerializer
from sipit.services.cafes import CafeRepository
from sipit.services.places import GooglePlacesClient, distance_km
from sipit.services.ratings import NearbyCafeCache

logger = logging.getLogger(__name__)


class CafeDiscovery:
    """近隣検索・テキスト検索の入口。
    - 近隣検索の結果（評価スナップショット + 距離）は (lat, lng, radius) 単位でキャッシュする
    - 並び替え・ページングはキャッシュの外側で行う
    """

    def __init__(self, catalog: GooglePlacesClient, repository: CafeRepository, nearby_cache: NearbyCafeCache):
        self.catalog = catalog
        self.repository = repository
        self.nearby_cache = nearby_cache

    def nearby(self, latitude: float, longitude: float, radius_km: float) -> list[dict]:
        cafes = self.nearby_cache.get(latitude, longitude, radius_km)
        if cafes is not None:
            logger.debug("nearby cache hit (%s, %s, %s)", latitude, longitude, radius_km)
            return cafes

        records = self.catalog.search_nearby(latitude, longitude, radius_km * 1000)
        cafes = []
        for record in records:
            cafe = self.repository.sync(record)
            item = dict(CafeSerializer(cafe).data)
            item["distance"] = distance_km(latitude, longitude, cafe.latitude, cafe.longitude)
            cafes.append(item)

        self.nearby_cache.set(latitude, longitude, radius_km, cafes)
        return cafes

    @staticmethod
    def sort_by_metric(cafes: list[dict], metric: str = Metric.FOOD) -> list[dict]:
        """指定メトリクスの平均で降順（同点は元の順序を維持）。"""
        field = METRIC_AVERAGE_FIELDS[metric]
        return sorted(cafes, key=lambda c: float((c.get("ratings") or {}).get(field) or 0), reverse=True)

    def search(self, query: str, latitude: float | None = None, longitude: float | None = None, limit: int = 20):
        records = self.catalog.search_by_text(query, latitude, longitude)[:limit]
        return [self.repository.sync(record) for record in records]
