# flatshop/data/seed.py
from pathlib import Path

from flatshop.services.user_service import PERMISSIONS, UserService
from flatshop.utils import settings
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)


def seed(directory: str | Path | None = None):
    users = UserService(directory)
    # only seed if empty
    if users.repo.all():
        return None

    admin = users.register(
        settings.ADMIN_USERNAME,
        settings.ADMIN_PASSWORD,
        permissions=list(PERMISSIONS),
        is_admin=True,
    )
    logger.info(f"Seeded admin user {admin.user_id} ({admin.username})")
    return admin
