import logging

from ...domain.ports.services import PasswordHasher
from ...domain.ports.user import UserData, UserRepository
from ...domain.validation import (
    validate_email,
    validate_name,
    validate_password,
    validate_phone,
    validation_error,
)
from ...errors import ConflictError

logger = logging.getLogger("rbac.auth")


async def signup_user(
    user_port: UserRepository,
    hasher: PasswordHasher,
    *,
    firstname: str | None,
    lastname: str | None,
    email: str | None,
    phone: str | None,
    password: str | None,
) -> UserData:
    clean_firstname = validate_name(firstname, "firstname", required=True)
    if clean_firstname is None:
        raise validation_error("firstname", "required")
    clean_lastname = validate_name(lastname, "lastname", required=False)
    clean_email = validate_email(email)
    clean_phone = validate_phone(phone)
    clean_password = validate_password(password)

    try:
        if await user_port.get_by_email(clean_email) is not None:
            raise ConflictError(
                "User with this email already exists", details={"field": "email"}
            )
        if await user_port.get_by_phone(clean_phone) is not None:
            raise ConflictError(
                "This phone number is linked to another user. "
                "Please provide a different phone number",
                details={"field": "phone"},
            )
        user = await user_port.create(
            firstname=clean_firstname,
            lastname=clean_lastname,
            email=clean_email,
            phone=clean_phone,
            password_hash=await hasher.hash(clean_password),
        )
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise

    logger.info("user_signed_up user_id=%s", user.id)
    return user
