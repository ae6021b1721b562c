"""
Bootstrap the fully-privileged role and the first administrator.

Safe to run repeatedly: an existing full-administrative role or administrator
account is reused instead of created again.

Usage:
    SEED_ADMIN_EMAIL=admin@example.com SEED_ADMIN_PHONE=9876543210 \
    SEED_ADMIN_PASSWORD='Admin@123' python -m scripts.seed_admin
"""
import asyncio
import logging
import os
import sys

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.auth.permissions import get_permission_catalog
from app.crud.role import RoleRepository
from app.crud.user import UserRepository
from app.database import AsyncSessionLocal
from app.security.passwords import BcryptPasswordHasher
from app.use_cases.auth.signup_user import signup_user
from app.use_cases.roles.manage_roles import create_role

logger = logging.getLogger("rbac.seed")

DEFAULT_ROLE_TITLE = "Super Admin"


async def seed_admin(
    *,
    email: str,
    phone: str,
    password: str,
    firstname: str = "System",
    lastname: str | None = "Administrator",
    role_title: str = DEFAULT_ROLE_TITLE,
) -> None:
    catalog = get_permission_catalog()
    async with AsyncSessionLocal() as session:
        role_port = RoleRepository(session)
        user_port = UserRepository(session)

        role = await role_port.get_by_permissions(catalog.all_permissions())
        if role is None:
            role = await create_role(
                role_port, role_title, catalog.all_permissions(), catalog
            )
            print(f"Created role '{role.title}' with {len(catalog)} permissions")
        else:
            print(f"Reusing full-administrative role '{role.title}'")

        user = await user_port.get_by_email(email.strip().lower())
        if user is None:
            user = await signup_user(
                user_port,
                BcryptPasswordHasher(),
                firstname=firstname,
                lastname=lastname,
                email=email,
                phone=phone,
                password=password,
            )
            print(f"Created administrator {user.email}")
        else:
            print(f"Reusing existing account {user.email}")

        if user.role_id == role.id:
            print("Administrator already holds the role, nothing to do")
            return

        previous_role_id = user.role_id
        try:
            await user_port.update(user.id, role_id=role.id)
            await role_port.adjust_user_count(role.id, 1)
            if previous_role_id is not None:
                await role_port.adjust_user_count(previous_role_id, -1)
            await user_port.commit()
        except Exception:
            await user_port.rollback()
            raise
        print(f"Assigned '{role.title}' to {user.email}")


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    missing = [
        name
        for name in ("SEED_ADMIN_EMAIL", "SEED_ADMIN_PHONE", "SEED_ADMIN_PASSWORD")
        if not os.getenv(name)
    ]
    if missing:
        raise SystemExit(f"Missing environment variables: {', '.join(missing)}")

    asyncio.run(
        seed_admin(
            email=os.environ["SEED_ADMIN_EMAIL"],
            phone=os.environ["SEED_ADMIN_PHONE"],
            password=os.environ["SEED_ADMIN_PASSWORD"],
            firstname=os.getenv("SEED_ADMIN_FIRSTNAME", "System"),
            lastname=os.getenv("SEED_ADMIN_LASTNAME", "Administrator"),
            role_title=os.getenv("SEED_ADMIN_ROLE_TITLE", DEFAULT_ROLE_TITLE),
        )
    )


if __name__ == "__main__":
    main()
