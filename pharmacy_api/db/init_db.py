"""Create all tables. Run on app startup.

On an empty database a bootstrap ADMIN user is created with a random
password that is logged once. Change it after first login.
"""
import logging
import secrets

from pharmacy_api.core.config import settings
from pharmacy_api.core.permissions import Role
from pharmacy_api.core.security import get_password_hash
from pharmacy_api.db.base import Base
from pharmacy_api.db.session import engine, SessionLocal
from pharmacy_api import models  # noqa: F401 - register models
from pharmacy_api.models.user import User

logger = logging.getLogger(__name__)


def init_db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.query(User).count() == 0:
            default_password = secrets.token_urlsafe(16)
            db.add(User(
                name="Administrator",
                username=settings.DEFAULT_ADMIN_USERNAME,
                email=settings.DEFAULT_ADMIN_EMAIL,
                hashed_password=get_password_hash(default_password),
                role=Role.ADMIN.value,
            ))
            db.commit()
            logger.warning(
                "Default admin user created: username=%s password=%s (change it immediately)",
                settings.DEFAULT_ADMIN_USERNAME,
                default_password,
            )
    finally:
        db.close()
