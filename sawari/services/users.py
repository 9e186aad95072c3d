from typing import List, Optional

from fastapi import Request, UploadFile
from sqlalchemy import select as sa_select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.models.models import User, new_id
from sawari.schemas.user import ProfileUpdate, RegisterIn
from sawari.services import auth as auth_service
from sawari.services.audit import record_admin_action
from sawari.services.errors import ConflictError, NotFoundError, ValidationFailed
from sawari.services.storage import MB, FileStorage, read_image

PROFILE_PICTURE_MAX_BYTES = 2 * MB


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(sa_select(User).where(User.email == email.lower()))
    return res.scalars().first()


async def register_user(db: AsyncSession, data: RegisterIn) -> User:
    if await get_user_by_email(db, data.email):
        raise ConflictError("Email already registered")
    user = User(
        id=new_id(),
        email=data.email.lower(),
        name=data.name,
        phone_number=data.phone_number,
        hashed_password=auth_service.hash_password(data.password),
        role="user",
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        # a concurrent registration took the address between the lookup and the insert
        await db.rollback()
        raise ConflictError("Email already registered") from exc
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(db, email)
    if not user or not user.is_active or not auth_service.verify_password(password, user.hashed_password):
        return None
    return user


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    user.name = data.name
    user.phone_number = data.phone_number
    user.dob = data.dob
    await db.commit()
    return user


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    if not auth_service.verify_password(current_password, user.hashed_password):
        raise ValidationFailed("Incorrect current password.")
    user.hashed_password = auth_service.hash_password(new_password)
    await db.commit()


async def update_profile_picture(db: AsyncSession, storage: FileStorage, user: User, upload: UploadFile) -> User:
    data, ext = await read_image(upload, PROFILE_PICTURE_MAX_BYTES)
    user.photo_url = await storage.replace(user.photo_url, f"profile_pictures/{user.id}.{ext}", data, upload.content_type)
    await db.commit()
    return user


async def list_users(db: AsyncSession) -> List[User]:
    res = await db.execute(sa_select(User).order_by(User.created_at))
    return list(res.scalars().all())


async def set_role(db: AsyncSession, user_id: str, role: str, actor: User, request: Optional[Request] = None) -> User:
    if user_id == actor.id:
        raise ConflictError("You cannot change your own role.")
    user = await get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    previous, user.role = user.role, role
    await record_admin_action(db, actor, "update_user_role", "user", user_id, {"from": previous, "to": role}, request)
    await db.commit()
    return user


async def delete_user(db: AsyncSession, user_id: str, actor: User, request: Optional[Request] = None) -> None:
    # bookings made by the user stay in place
    if user_id == actor.id:
        raise ConflictError("You cannot delete your own account here.")
    user = await get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    await db.delete(user)
    await record_admin_action(db, actor, "delete_user", "user", user_id, {"email": user.email}, request)
    await db.commit()
