from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.config import settings
from sawari.db.session import get_session
from sawari.redis_client import redis_client
from sawari.schemas.user import RegisterIn, TokenOut, UserOut
from sawari.services import auth as auth_service
from sawari.services import users as user_service

router = APIRouter(tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserOut)
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_session)):
    return await user_service.register_user(db, payload)


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_session)):
    identifier = form_data.username.lower()
    rl_key = f"rl:login:{identifier}"
    attempts = await redis_client.get(rl_key)
    if attempts and int(attempts) >= settings.LOGIN_RATE_LIMIT_ATTEMPTS:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many login attempts, try later")

    user = await user_service.authenticate(db, identifier, form_data.password)
    if user is None:
        await redis_client.incr(rl_key)
        await redis_client.expire(rl_key, settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    await redis_client.delete(rl_key)
    return TokenOut(access_token=auth_service.create_access_token(user.id, user.role))
