from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
import logging

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import AdminSession

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

ADMIN_SUBJECT = "admin"


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class Admin(BaseModel):
	username: str = ADMIN_SUBJECT
	session_id: str


class LoginRequest(BaseModel):
	passphrase: str


_passphrase_hash: dict = {}


def _hashed_passphrase() -> str:
	# Re-hashed whenever the configured passphrase changes
	current = settings.admin_passphrase
	if _passphrase_hash.get("plain") != current:
		_passphrase_hash["plain"] = current
		_passphrase_hash["hash"] = pwd_context.hash(current)
	return _passphrase_hash["hash"]


def verify_passphrase(passphrase: str) -> bool:
	return bool(passphrase) and pwd_context.verify(passphrase, _hashed_passphrase())


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=1)
	return datetime.now(timezone.utc) + delta


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	to_encode.update({"exp": _resolve_expiry(expires_delta)})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@router.post("/token", response_model=Token)
async def login(req: LoginRequest, db: Session = Depends(get_db)):
	if not verify_passphrase(req.passphrase):
		logger.warning("Admin login rejected")
		raise HTTPException(status_code=401, detail="Incorrect password.")
	session_id = uuid.uuid4().hex
	db.add(AdminSession(session_id=session_id))
	db.commit()
	return Token(access_token=create_access_token({"sub": ADMIN_SUBJECT, "jti": session_id}))


def get_current_admin(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Admin:
	credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		subject: str | None = payload.get("sub")
		jti: str | None = payload.get("jti")
		if subject != ADMIN_SUBJECT or jti is None:
			raise credentials_exception
	except JWTError:
		raise credentials_exception
	# A session row must still exist, so logging out revokes the token
	row = db.get(AdminSession, jti)
	if row is None:
		raise credentials_exception
	row.last_activity_at = datetime.utcnow()
	db.commit()
	return Admin(session_id=jti)


@router.get("/me", response_model=Admin)
async def me(admin: Admin = Depends(get_current_admin)):
	return admin


@router.post("/logout", status_code=204)
async def logout(admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
	row = db.get(AdminSession, admin.session_id)
	if row is not None:
		db.delete(row)
		db.commit()
