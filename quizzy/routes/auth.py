"""
Admin authentication for the Quizzy blog API.
Signed bearer tokens, also accepted from a session cookie.
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from quizzy import config
from quizzy.db.database import get_db
from quizzy.db.models import Author
from quizzy.schemas import LoginIn, MessageOut, TokenOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

# Rate limiter for login attempts
limiter = Limiter(key_func=get_remote_address)

serializer = URLSafeTimedSerializer(config.SECRET_KEY, salt="quizzy-admin")


def create_access_token(author_id: str) -> str:
    """Create a signed token for an author."""
    return serializer.dumps({"id": author_id})


def decode_access_token(token: str) -> str:
    """Return the author id inside a token, or raise 401."""
    try:
        data = serializer.loads(token, max_age=config.SESSION_MAX_AGE)
    except SignatureExpired:
        raise HTTPException(status_code=401, detail="Token expired")
    except BadSignature:
        raise HTTPException(status_code=401, detail="Invalid token")

    author_id = data.get("id") if isinstance(data, dict) else None
    if not author_id:
        raise HTTPException(status_code=401, detail="Invalid token structure")
    return author_id


def get_request_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, falling back to the session cookie."""
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer"):
        token = authorization[len("Bearer"):].strip()
        if not token:
            raise HTTPException(status_code=401, detail="No token provided")
        return token
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def check_admin(author: Optional[Author]) -> Author:
    if not author:
        raise HTTPException(status_code=401, detail="Admin not found")
    if not author.is_admin:
        raise HTTPException(status_code=403, detail="Access denied. Admin role required.")
    if author.banned or not author.active:
        raise HTTPException(status_code=403, detail="Admin account is disabled or banned")
    return author


def require_admin(request: Request, db: Session = Depends(get_db)) -> Author:
    """Dependency that resolves the calling admin or rejects the request."""
    token = get_request_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="No authorization header provided")

    author_id = decode_access_token(token)
    author = check_admin(db.get(Author, author_id))
    request.state.admin_id = author.id
    return author


@router.post("/login", response_model=TokenOut)
@limiter.limit(config.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    credentials: LoginIn,
    db: Session = Depends(get_db)
):
    """Exchange the admin password for a token."""
    try:
        admin_password = config.get_admin_password()
    except ValueError:
        # No password configured - use generic error to avoid info disclosure
        raise HTTPException(status_code=401, detail="Invalid credentials")

    # Check password (constant-time comparison)
    if not secrets.compare_digest(credentials.password.encode(), admin_password.encode()):
        logger.warning(f"Failed admin login for {credentials.email}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    author = db.query(Author).filter(Author.email == credentials.email).first()
    if not author:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    check_admin(author)

    token = create_access_token(author.id)
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="lax",
        max_age=config.SESSION_MAX_AGE
    )
    logger.info(f"Admin login: {author.email}")
    return TokenOut(token=token)


@router.post("/logout", response_model=MessageOut)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(
        key=config.SESSION_COOKIE_NAME,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="lax"
    )
    return MessageOut(message="Logged out")
