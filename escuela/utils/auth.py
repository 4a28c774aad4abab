from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from escuela.database import get_db
from escuela.models.user import User
from escuela.schemas.user import Identity
from escuela.utils.errors import Forbidden, Unauthenticated
from escuela.utils.identity import resolve
from escuela.utils.permissions import Capabilities, capabilities_for

# El token ya viene verificado por el proveedor de identidad: token = id externo.
bearer_scheme = HTTPBearer(auto_error=False)


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    x_user_email: str | None = Header(None),
    x_user_first_name: str | None = Header(None),
    x_user_last_name: str | None = Header(None),
) -> Identity:
    if credentials is None or not credentials.credentials.strip():
        raise Unauthenticated()
    return Identity(
        id=credentials.credentials.strip(),
        email=x_user_email,
        first_name=x_user_first_name,
        last_name=x_user_last_name,
    )


def get_current_user(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)) -> User:
    return resolve(db, identity).user


def require_capability(name: str):
    """
    Dependencia que exige una capacidad derivada: "manage", "view", "export" o "delete".
    """
    attr = f"can_{name}"

    def checker(user: User = Depends(get_current_user)) -> User:
        caps: Capabilities = capabilities_for(user)
        if not getattr(caps, attr, False):
            raise Forbidden()
        return user

    return checker


def require_admin(user: User = Depends(get_current_user)) -> User:
    if capabilities_for(user).role != "admin":
        raise Forbidden("Solo los administradores pueden realizar esta acción")
    return user
