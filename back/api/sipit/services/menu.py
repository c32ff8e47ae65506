from sipit.exceptions import ForbiddenError, NotFoundError
from sipit.models import PersonalMenuItem

UPDATABLE_FIELDS = ("item_name", "item_type", "rating", "photos", "notes")


class MenuService:
    """マイメニュー（PersonalMenuItem）の CRUD。更新・削除は所有者のみ。"""

    def create(self, user, **fields) -> PersonalMenuItem:
        fields.setdefault("photos", [])
        return PersonalMenuItem.objects.create(user=user, **fields)

    def _owned(self, item_id, user, action: str) -> PersonalMenuItem:
        item = PersonalMenuItem.objects.filter(pk=item_id).first()
        if item is None:
            raise NotFoundError("Menu item not found", details={"item_id": str(item_id)})
        if item.user_id != user.id:
            raise ForbiddenError(f"Not authorized to {action} this item")
        return item

    def update(self, item_id, user, **fields) -> PersonalMenuItem:
        item = self._owned(item_id, user, "update")
        changes = {name: value for name, value in fields.items() if name in UPDATABLE_FIELDS}
        for name, value in changes.items():
            setattr(item, name, value)
        item.save(update_fields=[*changes, "updated_at"])
        return item

    def delete(self, item_id, user) -> None:
        self._owned(item_id, user, "delete").delete()

    def menu_for_user(self, user_id) -> tuple[list[dict], int]:
        """カフェ（place_id）ごとにまとめたマイメニュー。新しい順。"""
        items = list(PersonalMenuItem.objects.filter(user_id=user_id).order_by("-created_at"))
        by_cafe: dict[str, dict] = {}
        for item in items:
            group = by_cafe.setdefault(
                item.cafe_place_id,
                {"cafe_place_id": item.cafe_place_id, "cafe_name": item.cafe_name, "items": []},
            )
            group["items"].append(item)
        return list(by_cafe.values()), len(items)
