"""API Dependencies - Authentication and roles"""
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from domain.auth import Role, User, UserInDB
from infrastructure.security import decode_access_token, get_password_hash, verify_password
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

# Demo accounts until the user store is wired in
fake_users_db = {
    "admin": {
        "username": "admin",
        "full_name": "Resort Manager",
        "email": "admin@example.com",
        "plain_password": "admin123",
        "role": Role.ADMIN,
        "user_id": "123e4567-e89b-12d3-a456-426614174000"
    },
    "reception": {
        "username": "reception",
        "full_name": "Front Desk",
        "email": "reception@example.com",
        "plain_password": "reception123",
        "role": Role.STAFF,
        "user_id": "123e4567-e89b-12d3-a456-426614174001"
    },
    "guest": {
        "username": "guest",
        "full_name": "Returning Guest",
        "email": "guest@example.com",
        "plain_password": "guest123",
        "role": Role.CUSTOMER,
        "user_id": "123e4567-e89b-12d3-a456-426614174002"
    }
}

_hashed_passwords: Dict[str, str] = {}


def get_user(db, username: str) -> Optional[UserInDB]:
    record = db.get(username)
    if record is None:
        return None
    fields = {k: v for k, v in record.items() if k != "plain_password"}
    if "plain_password" in record:
        # hashing is slow, do it once per account
        if username not in _hashed_passwords:
            _hashed_passwords[username] = get_password_hash(record["plain_password"])
        fields["hashed_password"] = _hashed_passwords[username]
    return UserInDB(**fields)


def authenticate_user(db, username: str, password: str) -> Optional[UserInDB]:
    user = get_user(db, username)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


def _user_from_token(token: str) -> Optional[UserInDB]:
    claims = decode_access_token(token)
    if not claims or claims.get("sub") is None:
        return None
    token_data = TokenData(username=claims["sub"])
    return get_user(fake_users_db, token_data.username)


async def get_current_user(token: str = Depends(oauth2_scheme)) -> UserInDB:
    user = _user_from_token(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_current_staff_user(current_user: User = Depends(get_current_active_user)) -> User:
    """Reception and management only"""
    if not current_user.is_staff():
        raise HTTPException(status_code=403, detail="Staff access required")
    return current_user


async def get_optional_user(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[User]:
    """Signed-in user for public endpoints, or None for walk-in guests"""
    if not token:
        return None
    user = _user_from_token(token)
    if user is None or user.disabled:
        return None
    return user
