from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, Cookie, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.core.config import settings
from cinema_orders.db.session import get_db
from cinema_orders.models.user_models import User, UserGroup
from cinema_orders.schemas.auth_schema import TokenPayload


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> int:
    """Return the user id carried by an access token or raise 401."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY_ACCESS,
            algorithms=[settings.JWT_SIGNING_ALGORITHM],
        )
        token_data = TokenPayload(**payload)
        return int(token_data.sub)
    except (JWTError, ValueError):
        raise _credentials_error()


async def load_active_user(db: AsyncSession, user_id: int) -> User:
    user = await db.scalar(select(User).where(User.id == user_id))
    if not user or not user.is_active:
        raise _credentials_error()
    return user


async def get_current_user(
    authorization: str | None = Depends(oauth2_scheme),
    access_token: str | None = Cookie(None, include_in_schema=False),
    db: AsyncSession = Depends(get_db),
):
    token = authorization or access_token
    if not token:
        raise _credentials_error()

    return await load_active_user(db, decode_access_token(token))


async def get_current_admin(
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(UserGroup.name).where(UserGroup.id == current_user.group_id)
    )
    group_name: str | None = result.scalar_one_or_none()
    if not group_name or group_name.lower() != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admins only",
        )
    return current_user


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": subject, "exp": expire}
    return jwt.encode(
        to_encode, settings.SECRET_KEY_ACCESS, algorithm=settings.JWT_SIGNING_ALGORITHM
    )
