# backend/app/services/admin_operations.py
"""
Content mutations behind the admin session gate.

Each action validates its `data` payload and touches exactly the rows
it names. Callers must have passed `authorize_session` first.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import InvalidAction, InvalidInput, NotFound
from backend.app.models.admin_secret import SiteSetting
from backend.app.models.project import Category, Project, ProjectImage, SocialLink
from backend.app.models.store import StoreOrder, StoreProduct, StoreStat
from backend.app.schemas.admin import (
    CategoryCreate,
    CategoryResponse,
    IdPayload,
    OrderStatusUpdate,
    PrimaryImage,
    ProjectCreate,
    ProjectImagesCreate,
    ProjectImageUpdate,
    ProjectResponse,
    ProjectUpdate,
    SettingUpdate,
    SocialLinksUpdate,
    StoreOrderResponse,
    StoreProductCreate,
)

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)

COMPLETED_ORDERS_KEY = "completed_orders"


def parse_payload(model: Type[P], data: Dict[str, Any]) -> P:
    try:
        return model.model_validate(data or {})
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(loc) for loc in first.get("loc", ())) or "data"
        raise InvalidInput(f"Invalid {field}: {first.get('msg', 'invalid value')}") from exc


class AdminOperations:
    def __init__(self, db: AsyncSession):
        self.db = db
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "add_project": self.add_project,
            "update_project": self.update_project,
            "delete_project": self.delete_project,
            "add_project_images": self.add_project_images,
            "update_project_image": self.update_project_image,
            "delete_project_image": self.delete_project_image,
            "set_primary_image": self.set_primary_image,
            "add_category": self.add_category,
            "delete_category": self.delete_category,
            "update_social_links": self.update_social_links,
            "update_setting": self.update_setting,
            "get_store_orders": self.get_store_orders,
            "update_order_status": self.update_order_status,
            "add_store_product": self.add_store_product,
            "delete_store_product": self.delete_store_product,
        }

    async def run(self, action: Any, data: Any) -> Dict[str, Any]:
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            raise InvalidAction()
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidInput("Invalid data: must be an object")
        logger.info("Admin operation: %s", action)
        return await handler(data)

    async def _get_or_404(self, model, row_id: int, label: str):
        row = await self.db.get(model, row_id)
        if row is None:
            raise NotFound(f"{label} not found")
        return row

    # --- Projects ------------------------------------------------------------

    async def add_project(self, data):
        payload = parse_payload(ProjectCreate, data)
        project = Project(**payload.model_dump())
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)
        return {"success": True, "project": ProjectResponse.model_validate(project).model_dump()}

    async def update_project(self, data):
        payload = parse_payload(ProjectUpdate, data)
        project = await self._get_or_404(Project, payload.id, "Project")

        for key, value in payload.model_dump(exclude_unset=True, exclude={"id"}).items():
            setattr(project, key, value)

        self.db.add(project)
        await self.db.commit()
        return {"success": True}

    async def delete_project(self, data):
        payload = parse_payload(IdPayload, data)
        project = await self._get_or_404(Project, payload.id, "Project")

        # SQLite does not enforce ON DELETE CASCADE without a pragma
        images = await self.db.execute(select(ProjectImage).where(ProjectImage.project_id == project.id))
        for image in images.scalars().all():
            await self.db.delete(image)
        await self.db.delete(project)
        await self.db.commit()
        return {"success": True}

    async def add_project_images(self, data):
        payload = parse_payload(ProjectImagesCreate, data)
        await self._get_or_404(Project, payload.project_id, "Project")

        for index, image in enumerate(payload.images):
            self.db.add(
                ProjectImage(
                    project_id=payload.project_id,
                    image_url=image.image_url,
                    is_primary=image.is_primary,
                    display_order=image.display_order if image.display_order is not None else index,
                )
            )
        await self.db.commit()
        return {"success": True}

    async def update_project_image(self, data):
        payload = parse_payload(ProjectImageUpdate, data)
        image = await self._get_or_404(ProjectImage, payload.id, "Image")

        for key, value in payload.model_dump(exclude_unset=True, exclude={"id"}).items():
            if value is not None:
                setattr(image, key, value)

        self.db.add(image)
        await self.db.commit()
        return {"success": True}

    async def delete_project_image(self, data):
        payload = parse_payload(IdPayload, data)
        image = await self._get_or_404(ProjectImage, payload.id, "Image")
        await self.db.delete(image)
        await self.db.commit()
        return {"success": True}

    async def set_primary_image(self, data):
        payload = parse_payload(PrimaryImage, data)
        image = await self._get_or_404(ProjectImage, payload.image_id, "Image")
        if image.project_id != payload.project_id:
            raise InvalidInput("Image does not belong to this project")

        await self.db.execute(
            update(ProjectImage)
            .where(ProjectImage.project_id == payload.project_id)
            .values(is_primary=False)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            update(ProjectImage)
            .where(ProjectImage.id == image.id)
            .values(is_primary=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return {"success": True}

    # --- Categories / social links / settings -------------------------------

    async def add_category(self, data):
        payload = parse_payload(CategoryCreate, data)
        category = Category(name=payload.name, is_default=False)
        self.db.add(category)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise InvalidInput("Category already exists.") from exc
        await self.db.refresh(category)
        return {"success": True, "category": CategoryResponse.model_validate(category).model_dump()}

    async def delete_category(self, data):
        payload = parse_payload(IdPayload, data)
        category = await self._get_or_404(Category, payload.id, "Category")
        if category.is_default:
            raise InvalidInput("Cannot delete default categories.")
        await self.db.delete(category)
        await self.db.commit()
        return {"success": True}

    async def update_social_links(self, data):
        payload = parse_payload(SocialLinksUpdate, data)

        for platform, username in payload.model_dump(exclude_unset=True).items():
            result = await self.db.execute(select(SocialLink).where(SocialLink.platform == platform))
            link = result.scalars().first()
            if link:
                link.username = username or ""
            else:
                link = SocialLink(platform=platform, username=username or "")
            self.db.add(link)

        await self.db.commit()
        return {"success": True}

    async def update_setting(self, data):
        payload = parse_payload(SettingUpdate, data)

        result = await self.db.execute(select(SiteSetting).where(SiteSetting.key == payload.key))
        setting = result.scalars().first()
        if setting:
            setting.value = payload.value
        else:
            setting = SiteSetting(key=payload.key, value=payload.value)
        self.db.add(setting)
        await self.db.commit()
        return {"success": True}

    # --- Store ----------------------------------------------------------------

    async def get_store_orders(self, data):
        result = await self.db.execute(select(StoreOrder).order_by(StoreOrder.id.desc()))
        orders = [StoreOrderResponse.model_validate(o).model_dump() for o in result.scalars().all()]
        return {"success": True, "orders": orders}

    async def update_order_status(self, data):
        payload = parse_payload(OrderStatusUpdate, data)
        order = await self._get_or_404(StoreOrder, payload.order_id, "Order")

        newly_accepted = payload.status == "accepted" and order.status != "accepted"
        order.status = payload.status
        self.db.add(order)

        if newly_accepted:
            result = await self.db.execute(select(StoreStat).where(StoreStat.key == COMPLETED_ORDERS_KEY))
            stat = result.scalars().first()
            if stat:
                stat.value += 1
            else:
                stat = StoreStat(key=COMPLETED_ORDERS_KEY, value=1)
            self.db.add(stat)

        await self.db.commit()
        return {"success": True}

    async def add_store_product(self, data):
        payload = parse_payload(StoreProductCreate, data)
        product = StoreProduct(**payload.model_dump())
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        return {"success": True, "product_id": product.id}

    async def delete_store_product(self, data):
        payload = parse_payload(IdPayload, data)
        product = await self._get_or_404(StoreProduct, payload.id, "Product")

        orders = await self.db.execute(select(StoreOrder).where(StoreOrder.product_id == product.id))
        for order in orders.scalars().all():
            await self.db.delete(order)
        await self.db.delete(product)
        await self.db.commit()
        return {"success": True}
