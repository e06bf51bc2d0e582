from __future__ import annotations

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from potmonitor.db.session import get_db
from potmonitor.services.nodes import find_node_by_token
from potmonitor.services.users import find_user_by_token

bearer_scheme = HTTPBearer(auto_error=False)


class AuthUser(BaseModel):
    user_id: str
    username: str
    email: str


class AuthNode(BaseModel):
    node_id: str
    user_id: str | None = None


def _bearer_token(bearer: HTTPAuthorizationCredentials | None, missing_detail: str) -> str:
    if not bearer or bearer.scheme.lower() != "bearer" or not bearer.credentials.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=missing_detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return bearer.credentials.strip()


def get_current_user(
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthUser:
    token = _bearer_token(bearer, "Missing token")
    user = find_user_by_token(db, token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthUser(user_id=user["id"], username=user["username"], email=user["email"])


def get_current_node(
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthNode:
    token = _bearer_token(bearer, "Missing node token")
    node = find_node_by_token(db, token)
    if not node:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid node token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthNode(node_id=node["id"], user_id=node["user_id"])
