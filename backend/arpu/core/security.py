from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import bcrypt
import hashlib
import hmac
import secrets
from fastapi import HTTPException, status

from arpu.core.config import settings


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit
    password_bytes = plain_password.encode('utf-8')[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
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

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(data: Dict[str, Any]) -> str:
    """Create JWT refresh token"""
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_token_pair(user) -> Dict[str, str]:
    """Access + refresh tokens carrying the claims every dependency reads"""
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
    }
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token({"sub": str(user.id)}),
        "token_type": "bearer",
    }


def decode_token(token: str) -> Dict[str, Any]:
    """Decode JWT token"""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


PASSWORD_RESET_TOKEN = "password_reset"
EMAIL_VERIFICATION_TOKEN = "email_verification"


def create_purpose_token(user, purpose: str, expires_delta: timedelta) -> str:
    """JWT for emailed links, bound to the user's id and email"""
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "type": purpose,
        "exp": datetime.utcnow() + expires_delta,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_purpose_token(token: str, purpose: str) -> Optional[Dict[str, Any]]:
    """Payload of a valid token of the given type, None for anything else"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != purpose:
        return None
    return payload


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def sign_payload(secret: str, message: bytes) -> str:
    """Hex HMAC-SHA256, the scheme Razorpay uses for checkout and webhook signatures"""
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(secret: str, message: bytes, signature: Optional[str]) -> bool:
    """Constant-time comparison of a received signature"""
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign_payload(secret, message), signature)


def generate_numeric_suffix(digits: int = 4) -> str:
    """Random zero-padded digits for human-facing codes"""
    return str(secrets.randbelow(10 ** digits)).zfill(digits)
