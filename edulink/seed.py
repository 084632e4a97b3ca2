from __future__ import annotations

import logging
import os

from sqlalchemy import select

from .auth.core import hash_password
from .config import settings
from .database import db_session
from .models import Profile, Testimonial

logger = logging.getLogger("edulink.seed")

_DEFAULT_PASSWORD = "changeme123"

_LAUNCH_TESTIMONIALS = [
    {
        "name": "Sarah M.",
        "role": "Computer Science Student",
        "message": (
            "EduLink Writers saved my semester! The quality of work was exceptional, "
            "and the admin approval process gave me confidence in every submission."
        ),
        "rating": 5,
    },
    {
        "name": "James K.",
        "role": "Professional Writer",
        "message": (
            "As a writer, the subscription model is fair and the M-Pesa integration "
            "makes payments seamless. I've earned my platinum badge in just 3 months!"
        ),
        "rating": 5,
    },
    {
        "name": "Grace A.",
        "role": "Business Student",
        "message": (
            "The wallet system is so convenient. I fund it once and can post multiple "
            "assignments. The writers here truly understand academic standards."
        ),
        "rating": 5,
    },
]


def seed_admin() -> None:
    """
    Create an approved admin account on first startup if no profiles exist.

    Defaults (for local dev only — change before production):
      EDULINK_ADMIN_EMAIL    = admin@edulink.local
      EDULINK_ADMIN_PASSWORD = changeme123
    """
    email = os.getenv("EDULINK_ADMIN_EMAIL", "admin@edulink.local")
    password = os.getenv("EDULINK_ADMIN_PASSWORD", _DEFAULT_PASSWORD)
    env = settings.environment

    with db_session() as session:
        existing = session.execute(select(Profile).limit(1)).scalar_one_or_none()
        if existing:
            return

        if password == _DEFAULT_PASSWORD:
            if env != "development":
                logger.error(
                    "Refusing to seed default admin password in %s environment; "
                    "set EDULINK_ADMIN_PASSWORD.", env,
                )
                return
            logger.warning("Seeding admin with the default password; set EDULINK_ADMIN_PASSWORD.")

        session.add(Profile(
            email=email,
            display_name="EduLink Admin",
            password_hash=hash_password(password),
            role="admin",
            approval_status="approved",
        ))
        logger.info("Default admin created: %s", email)


def seed_testimonials() -> None:
    """Publish the launch testimonials when the table is empty."""
    with db_session() as session:
        existing = session.execute(select(Testimonial).limit(1)).scalar_one_or_none()
        if existing:
            return
        for item in _LAUNCH_TESTIMONIALS:
            session.add(Testimonial(status="approved", **item))
