from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import bcrypt
import secrets
import uuid
from fastapi import HTTPException, status

from alumnet.core.config import settings

ACCESS_TOKEN_TYPE = "access"
LOG_PURGE_TOKEN_TYPE = "logs_purge"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": ACCESS_TOKEN_TYPE})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> Dict[str, Any]:
    """Decode JWT token"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def generate_otp(length: Optional[int] = None) -> str:
    """Generate a numeric one-time password"""
    length = length or settings.OTP_LENGTH
    return "".join(secrets.choice("0123456789") for _ in range(length))


def create_log_purge_token(admin_id: str) -> str:
    """
    Short-lived, single-use token an admin must echo back to purge activity logs.

    The `jti` claim identifies the token; the purge records it as consumed so the
    same token cannot authorize a second purge.
    """
    expire = datetime.utcnow() + timedelta(minutes=settings.LOG_PURGE_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(admin_id),
        "type": LOG_PURGE_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_log_purge_token(token: Optional[str], admin_id: str) -> Optional[str]:
    """Token id of a valid purge token issued to this admin, else None"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != LOG_PURGE_TOKEN_TYPE or payload.get("sub") != str(admin_id):
        return None
    return payload.get("jti") or None


def verify_log_purge_token(token: Optional[str], admin_id: str) -> bool:
    """Check a purge confirmation token was issued to this admin and is still valid"""
    return decode_log_purge_token(token, admin_id) is not None
