"""Google Places API クライアント。

- Nearby Search / Text Search / Place Details を呼び出し、PlaceRecord に正規化する
- リトライはしない（呼び出し側が判断する）。失敗は UpstreamError として伝播する
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import requests

from sipit.exceptions import UpstreamError

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
TEXT_SEARCH_RADIUS_M = 10000
DEFAULT_PHOTO_WIDTH = 800
DETAIL_FIELDS = (
    "place_id,name,formatted_address,geometry,photos,rating,user_ratings_total,types,"
    "formatted_phone_number,opening_hours,website,reviews"
)


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """2点間の大円距離（km、haversine）。"""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass
class PlaceRecord:
    place_id: str
    name: str
    address: str
    latitude: float
    longitude: float
    photo_refs: list[str] = field(default_factory=list)
    rating: float | None = None
    user_ratings_total: int | None = None
    types: list[str] = field(default_factory=list)

    @classmethod
    def _base_fields(cls, payload: dict[str, Any]) -> dict[str, Any]:
        location = (payload.get("geometry") or {}).get("location") or {}
        return {
            "place_id": payload["place_id"],
            "name": payload.get("name") or "",
            "address": payload.get("formatted_address") or payload.get("vicinity") or "Address not available",
            "latitude": float(location.get("lat", 0.0)),
            "longitude": float(location.get("lng", 0.0)),
            "photo_refs": [p["photo_reference"] for p in payload.get("photos") or [] if p.get("photo_reference")],
            "rating": payload.get("rating"),
            "user_ratings_total": payload.get("user_ratings_total"),
            "types": list(payload.get("types") or []),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PlaceRecord":
        return cls(**cls._base_fields(payload))


@dataclass
class PlaceDetails(PlaceRecord):
    phone_number: str | None = None
    website: str | None = None
    opening_hours: dict | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PlaceDetails":
        return cls(
            **cls._base_fields(payload),
            phone_number=payload.get("formatted_phone_number"),
            website=payload.get("website"),
            opening_hours=payload.get("opening_hours"),
        )

    def as_google_details(self) -> dict:
        """カフェ詳細レスポンスの googleDetails 部分。"""
        return {
            "phone_number": self.phone_number,
            "website": self.website,
            "opening_hours": self.opening_hours,
            "google_rating": self.rating,
            "google_ratings_total": self.user_ratings_total,
        }


class GooglePlacesClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{path}"
        logger.debug("google places request: %s", path)
        try:
            response = self.session.get(url, params={**params, "key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("google places request failed: %s (%s)", path, exc)
            raise UpstreamError("place catalog request failed", details={"path": path}) from exc
        if not response.ok:
            logger.error("google places http error: %s status=%s", path, response.status_code)
            raise UpstreamError(
                "place catalog returned an error",
                details={"path": path, "status_code": response.status_code},
            )
        return response.json()

    def _search(self, path: str, params: dict[str, Any]) -> list[PlaceRecord]:
        data = self._get(path, params)
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.error("google places api error: %s status=%s", path, status)
            raise UpstreamError(f"Google Places API error: {status}", details={"status": status})
        return [PlaceRecord.from_payload(item) for item in data.get("results") or []]

    def search_nearby(self, latitude: float, longitude: float, radius_m: float) -> list[PlaceRecord]:
        return self._search(
            "place/nearbysearch/json",
            {"location": f"{latitude},{longitude}", "radius": radius_m, "type": "cafe"},
        )

    def search_by_text(
        self, query: str, latitude: float | None = None, longitude: float | None = None
    ) -> list[PlaceRecord]:
        params: dict[str, Any] = {"query": f"{query} cafe", "type": "cafe"}
        if latitude is not None and longitude is not None:
            params["location"] = f"{latitude},{longitude}"
            params["radius"] = TEXT_SEARCH_RADIUS_M
        return self._search("place/textsearch/json", params)

    def search_by_name(self, query: str, limit: int = 20) -> list[PlaceRecord]:
        return self.search_by_text(query)[:limit]

    def get_details(self, place_id: str) -> PlaceDetails | None:
        """詳細を取得する。プロバイダが OK 以外を返した場合は None。"""
        data = self._get("place/details/json", {"place_id": place_id, "fields": DETAIL_FIELDS})
        if data.get("status") != "OK":
            logger.warning("google places details status=%s place_id=%s", data.get("status"), place_id)
            return None
        return PlaceDetails.from_payload(data["result"])

    def photo_url(self, photo_reference: str, max_width: int = DEFAULT_PHOTO_WIDTH) -> str:
        return (
            f"{self.base_url}/place/photo?maxwidth={max_width}"
            f"&photo_reference={photo_reference}&key={self.api_key}"
        )

    distance_km = staticmethod(distance_km)
