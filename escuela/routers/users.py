import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from escuela.database import get_db
from escuela.models.institution import Institution
from escuela.models.user import User
from escuela.schemas.user import UserOut, UserUpdate
from escuela.utils.auth import require_admin, require_capability
from escuela.utils.errors import NotFound, ValidationFailure
from escuela.utils.identity import get_user
from escuela.utils.storage import commit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db), user: User = Depends(require_capability("manage"))):
    return db.query(User).order_by(User.created_at, User.id).all()


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """
    Cambia rol, permisos o institución de un usuario. Solo administradores.
    """
    target = get_user(db, user_id)
    if not target:
        raise NotFound("Usuario no encontrado")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("institution_id") and not db.get(Institution, changes["institution_id"]):
        raise ValidationFailure(field_errors={"institution_id": "La institución no existe"})
    if "permissions" in changes and changes["permissions"] is None:
        changes["permissions"] = []
    if "role" in changes and changes["role"] is None:
        del changes["role"]

    for name, value in changes.items():
        setattr(target, name, value)
    commit(db, "usuario")
    db.refresh(target)
    logger.info("Usuario %s actualizado por %s: %s", user_id, admin.id, sorted(changes))
    return target
