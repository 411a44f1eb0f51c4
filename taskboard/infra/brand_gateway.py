from __future__ import annotations

from typing import Any, Optional

from taskboard.domain.entities import BrandEntity

from .http import ApiClient


def to_brand_entity(data: dict[str, Any]) -> BrandEntity:
    known = {"_id", "id", "name", "company", "companyName", "status", "description"}
    return BrandEntity(
        id=str(data.get("_id") or data.get("id") or ""),
        name=str(data.get("name") or ""),
        company=str(data.get("company") or data.get("companyName") or ""),
        status=str(data.get("status") or "active"),
        description=data.get("description") or None,
        meta={k: v for k, v in data.items() if k not in known},
    )


class BrandGateway:
    def __init__(self, client: ApiClient, prefix: str = "brands") -> None:
        self._client = client
        self._prefix = prefix

    def list_brands(
        self,
        search: str | None = None,
        status: str | None = None,
        company: str | None = None,
    ) -> list[BrandEntity]:
        params = {
            key: value
            for key, value in (("search", search), ("status", status), ("company", company))
            if value
        }
        body = self._client.get(self._prefix, params=params or None)
        rows = body.get("data") or []
        return [to_brand_entity(row) for row in rows if isinstance(row, dict)]

    def get_brand(self, brand_id: str) -> Optional[BrandEntity]:
        data = self._client.get(f"{self._prefix}/{brand_id}").get("data")
        return to_brand_entity(data) if isinstance(data, dict) else None

    def create_brand(self, payload: dict[str, Any]) -> Optional[BrandEntity]:
        data = self._client.post(self._prefix, json=payload).get("data")
        return to_brand_entity(data) if isinstance(data, dict) else None

    def update_brand(self, brand_id: str, payload: dict[str, Any]) -> Optional[BrandEntity]:
        data = self._client.put(f"{self._prefix}/{brand_id}", json=payload).get("data")
        return to_brand_entity(data) if isinstance(data, dict) else None

    def delete_brand(self, brand_id: str) -> None:
        self._client.delete(f"{self._prefix}/{brand_id}")
