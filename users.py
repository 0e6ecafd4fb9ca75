"""
User registration and login.
"""
from typing import Any, Dict

from passlib.context import CryptContext

from database import USERS, Store, stringify_ids, utcnow
from errors import AuthenticationError, ValidationError
from logger import get_logger
from schemas import LoginRequest, RegisterRequest

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    """User document as returned by the API: ids as strings, no password hash."""
    user = stringify_ids(doc)
    user.pop("passwordHash", None)
    return user


def register(store: Store, payload: RegisterRequest) -> Dict[str, Any]:
    email = payload.email.lower()
    if store.find_one(USERS, {"email": email}):
        raise ValidationError("Email already registered")
    user_doc = {
        "name": payload.name,
        "email": email,
        "passwordHash": hash_password(payload.password),
        "role": payload.role,
        "approved": False,
        "createdAt": utcnow(),
    }
    try:
        saved = store.insert(USERS, user_doc)
    except ValidationError as e:
        # unique index caught a concurrent registration
        raise ValidationError("Email already registered") from e
    logger.info("user_registered", user_id=str(saved["_id"]), role=payload.role)
    return public_user(saved)


def authenticate(store: Store, payload: LoginRequest) -> Dict[str, Any]:
    user = store.find_one(USERS, {"email": payload.email.lower()})
    if not user or not verify_password(payload.password, user.get("passwordHash", "")):
        logger.warning("login_failed")
        raise AuthenticationError("Invalid credentials")
    logger.info("user_logged_in", user_id=str(user["_id"]))
    return public_user(user)
