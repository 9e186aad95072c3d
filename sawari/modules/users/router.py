from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.auth.deps import get_current_user
from sawari.db.session import get_session
from sawari.models.models import User
from sawari.schemas.user import PasswordChange, ProfileUpdate, UserOut
from sawari.services import users as user_service
from sawari.services.storage import FileStorage, get_storage

router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=UserOut)
async def update_me(payload: ProfileUpdate, db: AsyncSession = Depends(get_session), current_user: User = Depends(get_current_user)):
    return await user_service.update_profile(db, current_user, payload)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(payload: PasswordChange, db: AsyncSession = Depends(get_session), current_user: User = Depends(get_current_user)):
    await user_service.change_password(db, current_user, payload.current_password, payload.new_password)


@router.post("/me/photo", response_model=UserOut)
async def update_photo(
    photo: UploadFile = File(...),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
):
    return await user_service.update_profile_picture(db, storage, current_user, photo)
