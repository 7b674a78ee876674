# DOMESTICA/backend/app/auth.py

"""
Identité de l'appelant.

Les jetons sont émis par le fournisseur d'authentification externe; ici on se limite
à les vérifier et à résoudre currentUser() -> {id, role, approval_state}.
Claims attendus: "sub" (id de l'utilisateur, id de l'employée pour le rôle worker)
et "role" ("admin" ou "worker").
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import ALGORITHM, SECRET_KEY
from app.constants import ROLE_ADMIN, ROLE_WORKER, ROLES, WORKER_ACTIVE
from app.database import get_db
from app.models import models
from app.utils import utc_now

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class TokenClaims:
    id: int
    role: str


@dataclass
class CurrentUser:
    id: int
    role: str
    approval_state: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_worker(self) -> bool:
        return self.role == ROLE_WORKER


def create_access_token(data: dict, expires_minutes: int = 60) -> str:
    """Signe un jeton (utilisé par les scripts de dev et les tests)"""
    to_encode = data.copy()
    to_encode["exp"] = utc_now() + timedelta(minutes=expires_minutes)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _credentials_exception(detail: str = "Identifiants invalides") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenClaims:
    """Jeton vérifié, sans consulter la base (utilisé aussi pour l'auto-inscription)"""
    if credentials is None:
        raise _credentials_exception("Non authentifié")
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = int(payload.get("sub"))
        role = payload.get("role")
    except (JWTError, TypeError, ValueError):
        raise _credentials_exception()

    if role not in ROLES:
        raise _credentials_exception("Rôle inconnu")
    return TokenClaims(id=user_id, role=role)


def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Dépendance FastAPI: résout l'appelant à partir du jeton Bearer"""
    user_id, role = claims.id, claims.role
    if role == ROLE_ADMIN:
        return CurrentUser(id=user_id, role=role, approval_state=WORKER_ACTIVE)

    worker = db.query(models.Worker).filter(models.Worker.id == user_id).first()
    if not worker:
        raise _credentials_exception("Employée inconnue")
    return CurrentUser(id=worker.id, role=role, approval_state=worker.approval_state)


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Réservé aux administrateurs")
    return current_user


def require_active_user(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Admin, ou employée approuvée (les comptes en attente/bloqués n'agissent pas)"""
    if current_user.is_worker and current_user.approval_state != WORKER_ACTIVE:
        raise HTTPException(status_code=403, detail="Compte non approuvé ou bloqué")
    return current_user


def require_worker(current_user: CurrentUser = Depends(require_active_user)) -> CurrentUser:
    if not current_user.is_worker:
        raise HTTPException(status_code=403, detail="Réservé aux employées")
    return current_user
