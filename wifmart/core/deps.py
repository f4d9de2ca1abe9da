import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from wifmart.core.exceptions import AuthorizationError
from wifmart.core.security import decode_access_token
from wifmart.db.firebase_ops import FirestoreBaseModel, get_firestore_ops_instance
from wifmart.models.schemas import User

logger = logging.getLogger("wifmart.auth")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
) -> User:
    """
    Resolve the bearer token to a stored user.

    Any failure is a 401 so the client re-authenticates instead of the
    request being dropped.
    """
    user_id_from_token = decode_access_token(token)
    if not user_id_from_token:
        raise _credentials_exception()

    current_user = firestore_ops.get(collection_name="users", document_id=user_id_from_token, pydantic_model=User)
    if not current_user:
        logger.warning(f"Token subject {user_id_from_token} does not match any user")
        raise _credentials_exception()
    return current_user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user

