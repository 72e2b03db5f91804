# auth.py
from datetime import datetime, timedelta, UTC
import logging
import asyncpg
from jose import jwt, JWTError
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status, APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

import config
from database import Database, get_db


logger = logging.getLogger(__name__)

# --- 1. Settings and shared objects ---
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)
# auto_error=False: a missing header is reported by get_current_user, not by FastAPI
security = HTTPBearer(auto_error=False)

router = APIRouter(
    prefix='/api',
    tags=['Authentication']
)


# --- 2. Pydantic models ---
# Fields are optional so that absence is reported as "Missing fields" (400)
class Credentials(BaseModel):
    username: str | None = None
    password: str | None = None

class Token(BaseModel):
    token: str

class Message(BaseModel):
    message: str


# --- 3. Password hashing ---
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a plain password against a stored bcrypt hash."""
    if pwd_context.identify(hashed_password) is None:
        logger.warning('Stored password hash could not be identified')
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # bcrypt refuses some plaintexts outright, e.g. ones with a NUL byte
        logger.info('Password rejected by the bcrypt backend')
        return False

def get_password_hash(password: str) -> str:
    """Hashes a password with a fresh random salt. Raises ValueError for passwords bcrypt cannot take."""
    return pwd_context.hash(password)


# --- 4. Tokens ---
def create_access_token(user_id: int, username: str, expires_minutes: int | None = None) -> str:
    """
    Signs a token carrying the user's id and username.

    Without ``expires_minutes`` (and with JWT_EXPIRE_MINUTES unset) the token
    has no "exp" claim and stays valid until the secret changes.
    """
    if expires_minutes is None:
        expires_minutes = config.JWT_EXPIRE_MINUTES
    to_encode = {'sub': str(user_id), 'id': user_id, 'username': username}
    if expires_minutes is not None:
        to_encode['exp'] = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

def decode_access_token(token: str) -> dict:
    """Raises JWTError if the signature, structure or expiry is invalid."""
    return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])


# --- 5. Dependency for protected endpoints ---
async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> dict:
    # Returns the decoded claims, or stops the request with 401
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    try:
        return decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


async def get_user_from_db(db: Database, username: str) -> dict | None:
    async with db.acquire() as conn:
        user = await conn.fetchrow('SELECT id, username, password FROM users WHERE username = $1', username)
    return dict(user) if user else None


# --- 6. Endpoints ---

@router.post('/register', response_model=Message)
async def register(user_in: Credentials | None = None, db: Database = Depends(get_db)):
    # No body at all reads the same as an empty one
    user_in = user_in or Credentials()
    if not user_in.username or not user_in.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")

    # bcrypt is slow on purpose, keep it off the event loop
    try:
        hashed_password = await run_in_threadpool(get_password_hash, user_in.password)
    except ValueError:
        logger.info('Registration rejected, password not accepted by the hasher for %r', user_in.username)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password not accepted")
    try:
        async with db.acquire() as conn:
            await conn.execute(
                'INSERT INTO users (username, password) VALUES ($1, $2)',
                user_in.username, hashed_password
            )
    except asyncpg.UniqueViolationError:
        logger.info('Registration rejected, username %r already exists', user_in.username)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    except Exception:
        logger.exception('Registration failed for %r', user_in.username)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Registration failed")

    logger.info('User %r registered', user_in.username)
    return {'message': 'User registered successfully'}


@router.post('/login', response_model=Token)
async def login(user_in: Credentials | None = None, db: Database = Depends(get_db)):
    """Exchanges a username and password for a bearer token."""
    user_in = user_in or Credentials()
    if not user_in.username or not user_in.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")

    try:
        user = await get_user_from_db(db, user_in.username)
    except Exception:
        logger.exception('Login lookup failed for %r', user_in.username)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Login failed")

    if user is None:
        logger.info('Login failed, unknown user %r', user_in.username)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User not found")

    if not await run_in_threadpool(verify_password, user_in.password, user['password']):
        logger.warning('Login failed, wrong password for %r', user_in.username)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid password")

    return {'token': create_access_token(user['id'], user['username'])}
