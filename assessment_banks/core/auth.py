from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import Any, Dict, Optional
import jwt
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from assessment_banks.core.config import settings
from assessment_banks.core.database import get_db
from assessment_banks.models.contexts import User

class TokenData(BaseModel):
    sub: str

bearer = HTTPBearer()

def encode_token(claims: Dict[str, Any], ttl_minutes: int) -> str:
    now = datetime.now(timezone.utc)
    payload = dict(claims, iat=int(now.timestamp()), exp=int((now + timedelta(minutes=ttl_minutes)).timestamp()))
    return jwt.encode(payload, settings.APP_SECRET.get_secret_value(), algorithm=settings.JWT_ALGORITHM)

def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.APP_SECRET.get_secret_value(), algorithms=[settings.JWT_ALGORITHM])

def create_token(user_id: Any, ttl_minutes: Optional[int] = None) -> str:
    return encode_token({"sub": str(user_id)}, ttl_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> TokenData:
    try:
        payload = decode_token(creds.credentials)
        return TokenData(sub=payload["sub"])
    except (jwt.PyJWTError, KeyError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

def get_current_db_user(token: TokenData = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
    user = db.get(User, int(token.sub)) if token.sub.isdigit() else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user
