import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from . import config
from .database import get_db
from .errors import CallableError
from .models import User

# Tokens are issued by the external auth service; this service only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login", auto_error=False)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    unauthenticated = CallableError("unauthenticated", "User must be authenticated")
    if not token:
        raise unauthenticated
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except jwt.InvalidTokenError:
        raise unauthenticated

    user_id = payload.get("sub")
    if user_id is None:
        raise unauthenticated

    user = db.get(User, str(user_id))
    if user is None:
        raise unauthenticated
    return user
