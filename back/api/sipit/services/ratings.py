import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.db.models import Count, Sum

from sipit.models import CafeRatings, Review

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")
ZERO = Decimal("0")

NEARBY_KEY_PREFIX = "cafes:nearby"
NEARBY_EPOCH_KEY = f"{NEARBY_KEY_PREFIX}:epoch"

# 集計フィールド -> レビュー側のフィールド
AGGREGATE_FIELDS = {
    "avg_food": "food_rating",
    "avg_drinks": "drinks_rating",
    "avg_ambience": "ambience_rating",
    "avg_service": "service_rating",
}


def mean1(total, count: int) -> Decimal:
    """平均を小数第1位で四捨五入（ROUND_HALF_UP）。件数0なら0。"""
    if not count:
        return ZERO
    return (Decimal(total) / Decimal(count)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


class NearbyCafeCache:
    """近隣検索結果のキャッシュ（Django cache framework）。
    - キーに世代トークン(epoch)を含め、invalidate() で世代を差し替えて全件を一括で無効化する
    - 評価の変更はどのカフェでも全体無効化（一覧に評価スナップショットを含むため）
    """

    def __init__(self, cache, ttl: int = 300):
        self._cache = cache
        self.ttl = ttl

    def _epoch(self) -> str:
        epoch = self._cache.get(NEARBY_EPOCH_KEY)
        if epoch is None:
            epoch = uuid.uuid4().hex
            # 並行初期化時は先に書かれた値を採用
            if not self._cache.add(NEARBY_EPOCH_KEY, epoch, timeout=None):
                epoch = self._cache.get(NEARBY_EPOCH_KEY, epoch)
        return epoch

    def key(self, latitude: float, longitude: float, radius_km: float) -> str:
        return f"{NEARBY_KEY_PREFIX}:{self._epoch()}:{latitude}:{longitude}:{radius_km}"

    def get(self, latitude: float, longitude: float, radius_km: float) -> list[dict] | None:
        return self._cache.get(self.key(latitude, longitude, radius_km))

    def set(self, latitude: float, longitude: float, radius_km: float, cafes: list[dict]) -> None:
        self._cache.set(self.key(latitude, longitude, radius_km), cafes, timeout=self.ttl)

    def invalidate(self) -> None:
        self._cache.set(NEARBY_EPOCH_KEY, uuid.uuid4().hex, timeout=None)
        logger.debug("nearby cafe cache invalidated")


class RatingAggregator:
    """CafeRatings の唯一の書き込み元。
    - 毎回そのカフェの全レビューを集計し、絶対値で書き戻す（差分更新はしない）
    - 同じレビュー集合に対して何度呼んでも同じ結果になる
    - 近隣キャッシュの無効化は外側のトランザクションのコミット後
    """

    def __init__(self, nearby_cache: NearbyCafeCache):
        self.nearby_cache = nearby_cache

    def recompute(self, cafe_id) -> CafeRatings:
        with transaction.atomic():
            stats = Review.objects.filter(cafe_id=cafe_id).aggregate(
                count=Count("id"),
                **{name: Sum(source) for name, source in AGGREGATE_FIELDS.items()},
            )
            count = stats["count"] or 0
            values = {name: mean1(stats[name] or 0, count) for name in AGGREGATE_FIELDS}
            values["total_reviews"] = count
            ratings, _ = CafeRatings.objects.update_or_create(cafe_id=cafe_id, defaults=values)

        logger.debug("ratings recomputed cafe=%s count=%s", cafe_id, count)
        transaction.on_commit(self.nearby_cache.invalidate)
        return ratings
