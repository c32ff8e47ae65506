"""カフェ詳細・ユーザープロフィール向けの読み取り時集計。

どれも保存はせず、その時点のレビュー/マイメニューから毎回計算する。
"""
from collections import Counter
from decimal import Decimal
from typing import Iterable

from sipit.models import METRIC_AVERAGE_FIELDS, METRIC_RATING_FIELDS, PersonalMenuItem, Review
from sipit.services.ratings import ZERO, mean1

TOP_N = 5


def most_popular_items(items: Iterable, limit: int = TOP_N) -> list[dict]:
    """(item_name, item_type) ごとの件数と平均評価。件数の降順、同数は先に現れた順。"""
    groups: dict[tuple[str, str], dict] = {}
    for item in items:
        key = (item.item_name, item.item_type)
        group = groups.setdefault(key, {"item_name": item.item_name, "item_type": item.item_type, "count": 0, "total": 0})
        group["count"] += 1
        group["total"] += item.rating

    ranked = sorted(groups.values(), key=lambda g: g["count"], reverse=True)[:limit]
    return [
        {
            "item_name": g["item_name"],
            "item_type": g["item_type"],
            "count": g["count"],
            "avg_rating": mean1(g["total"], g["count"]),
        }
        for g in ranked
    ]


def best_for_tags(tag_lists: Iterable[Iterable[str]], limit: int = TOP_N) -> list[dict]:
    counts: Counter = Counter()
    for tags in tag_lists:
        counts.update(tags or [])
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [{"tag": tag, "count": count} for tag, count in ranked]


def sip_it_rating(ratings) -> Decimal:
    """4メトリクス平均の平均（Sip It レーティング）。"""
    if ratings is None:
        return ZERO
    total = sum(getattr(ratings, name) for name in METRIC_AVERAGE_FIELDS.values())
    return mean1(total, len(METRIC_AVERAGE_FIELDS))


def expertise_badge(reviews: Iterable) -> str | None:
    """ユーザーのレビューで平均が最も高いメトリクス。同点は FOOD, DRINKS, AMBIENCE, SERVICE の順で優先。"""
    reviews = list(reviews)
    if not reviews:
        return None
    averages = [
        (metric, sum(getattr(r, field) for r in reviews) / len(reviews))
        for metric, field in METRIC_RATING_FIELDS.items()
    ]
    best_metric, best_avg = averages[0]
    for metric, avg in averages[1:]:
        if avg > best_avg:
            best_metric, best_avg = metric, avg
    return str(best_metric)


class CafeInsightEngine:
    def for_cafe(self, cafe) -> dict:
        items = PersonalMenuItem.objects.filter(cafe_place_id=cafe.google_place_id).order_by("created_at")
        tag_lists = Review.objects.filter(cafe=cafe).order_by("created_at").values_list("mood_tags", flat=True)
        ratings = getattr(cafe, "ratings", None)
        return {
            "sip_it_rating": sip_it_rating(ratings),
            "most_popular_items": most_popular_items(items),
            "best_for_tags": best_for_tags(tag_lists),
        }

    def expertise_for_user(self, user_id) -> str | None:
        return expertise_badge(
            Review.objects.filter(user_id=user_id).only(*METRIC_RATING_FIELDS.values())
        )
