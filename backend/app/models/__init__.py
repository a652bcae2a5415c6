from backend.app.models.admin_secret import AdminSecret, SiteSetting
from backend.app.models.admin_session import AdminSession
from backend.app.models.auth_attempt import AuthAttempt
from backend.app.models.project import Category, Project, ProjectImage, SocialLink
from backend.app.models.store import StoreOrder, StoreProduct, StoreStat
from backend.app.models.stored_image import StoredImage

__all__ = [
    "AdminSecret",
    "SiteSetting",
    "AdminSession",
    "AuthAttempt",
    "Category",
    "Project",
    "ProjectImage",
    "SocialLink",
    "StoreOrder",
    "StoreProduct",
    "StoreStat",
    "StoredImage",
]
