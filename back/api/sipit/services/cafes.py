import logging
from datetime import timedelta
from typing import Callable

from django.db import IntegrityError, transaction
from django.utils import timezone

from sipit.exceptions import NotFoundError, UpstreamError
from sipit.models import Cafe, CafeRatings
from sipit.services.places import GooglePlacesClient, PlaceDetails, PlaceRecord

logger = logging.getLogger(__name__)

SYNCED_FIELDS = ("name", "address", "latitude", "longitude", "photos", "cached_at")


class CafeRepository:
    """Cafe の永続化と Google Places との突き合わせ。
    - Cafe は必ず CafeRatings（ゼロ値）と同じトランザクションで作成する
    - 同期で更新するのは名称/住所/座標/写真/cached_at のみ（id・place_id・評価は不変）
    """

    def __init__(self, catalog: GooglePlacesClient, refresh_after: int = 86400):
        self.catalog = catalog
        self.refresh_after = refresh_after

    def find_by_external_id(self, place_id: str) -> Cafe | None:
        return Cafe.objects.select_related("ratings").filter(google_place_id=place_id).first()

    def get(self, cafe_id) -> Cafe:
        cafe = Cafe.objects.select_related("ratings").filter(pk=cafe_id).first()
        if cafe is None:
            raise NotFoundError("Cafe not found", details={"cafe_id": str(cafe_id)})
        return cafe

    def _fields_from_record(self, record: PlaceRecord) -> dict:
        return {
            "name": record.name,
            "address": record.address,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "photos": [self.catalog.photo_url(ref) for ref in record.photo_refs],
            "cached_at": timezone.now(),
        }

    def upsert_from_record(self, record: PlaceRecord) -> Cafe:
        fields = self._fields_from_record(record)
        cafe = self.find_by_external_id(record.place_id)
        if cafe is None:
            try:
                with transaction.atomic():
                    cafe = Cafe.objects.create(google_place_id=record.place_id, **fields)
                    CafeRatings.objects.create(cafe=cafe)
                logger.info("cafe created place_id=%s", record.place_id)
                return cafe
            except IntegrityError:
                # 並行リクエストが先に作成した -> 取得して更新に切り替える
                logger.info("cafe create raced, updating instead place_id=%s", record.place_id)
                cafe = Cafe.objects.select_related("ratings").get(google_place_id=record.place_id)

        for name, value in fields.items():
            setattr(cafe, name, value)
        cafe.save(update_fields=[*SYNCED_FIELDS, "updated_at"])
        return cafe

    def is_stale(self, cafe: Cafe, max_age: int | None = None) -> bool:
        age = self.refresh_after if max_age is None else max_age
        return cafe.cached_at < timezone.now() - timedelta(seconds=age)

    def sync(self, record: PlaceRecord, max_age: int | None = None) -> Cafe:
        """検索結果の同期。未登録なら作成、古ければ更新、新しければそのまま返す。"""
        cafe = self.find_by_external_id(record.place_id)
        if cafe is not None and not self.is_stale(cafe, max_age):
            return cafe
        return self.upsert_from_record(record)

    def get_or_fetch(self, place_id: str, fetch: Callable[[str], PlaceDetails | None] | None = None) -> Cafe:
        cafe = self.find_by_external_id(place_id)
        if cafe is not None:
            return cafe
        details = (fetch or self.catalog.get_details)(place_id)
        if details is None:
            raise NotFoundError("Cafe not found", details={"place_id": place_id})
        return self.upsert_from_record(details)

    def sync_from_catalog(self, place_id: str) -> Cafe:
        """明示的な同期。Google 側の最新情報で必ず上書きする。"""
        details = self.catalog.get_details(place_id)
        if details is None:
            raise NotFoundError("Cafe not found in Google Places", details={"place_id": place_id})
        return self.upsert_from_record(details)

    def google_details(self, cafe: Cafe) -> dict | None:
        """追加情報（電話番号・営業時間など）。取得失敗時は None（保存済みの Cafe はそのまま返せる）。"""
        try:
            details = self.catalog.get_details(cafe.google_place_id)
        except UpstreamError as exc:
            logger.warning("google details unavailable place_id=%s: %s", cafe.google_place_id, exc.message)
            return None
        return details.as_google_details() if details else None
