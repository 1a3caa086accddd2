from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError
from sqlalchemy.orm import Session

from scheduling.auth import jwt_handler
from scheduling.core.errors import Unauthorized
from scheduling.database import get_db
from scheduling.models.user import User

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_current_specialist(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_specialist:
        raise Unauthorized("Only specialists can manage schedules.")
    return current_user


def get_current_client(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_client:
        raise Unauthorized("Only clients can book sessions.")
    return current_user
