"""
Política de arranque: el primer usuario del sistema recibe el rol admin.

"Primer usuario" no se guarda como bandera: se decide contando filas de
``users`` en el momento de la creación. El reclamo del rol se cierra con la
fila única ``bootstrap_claims`` (slot=1) insertada en la misma transacción
que el usuario administrador; si dos identidades compiten, solo un INSERT
puede ganar y la otra recibe ``NotEligible``.
"""
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from escuela.models.user import BootstrapClaim, User
from escuela.schemas.user import Identity
from escuela.utils.errors import NotEligible, StorageError
from escuela.utils.permissions import ADMIN_PERMISSIONS, DEFAULT_PERMISSIONS, DEFAULT_ROLE

logger = logging.getLogger(__name__)


def count_users(db: Session) -> int:
    try:
        return db.query(func.count(User.id)).scalar() or 0
    except SQLAlchemyError as exc:
        logger.exception("Error contando usuarios")
        raise StorageError("Error al verificar usuarios") from exc


def is_first_user(db: Session) -> bool:
    return count_users(db) == 0


def new_user(identity: Identity, role: str, permissions: list[str]) -> User:
    return User(
        id=identity.id,
        email=identity.email,
        first_name=identity.first_name,
        last_name=identity.last_name,
        display_name=identity.display_name or None,
        role=role,
        permissions=list(permissions),
    )


def claim_first_admin(db: Session, identity: Identity) -> User:
    """
    Crea al usuario como administrador solo si el sistema sigue vacío.
    Todo ocurre en una transacción; cualquier resultado ambiguo se propaga
    como error y nunca se concede el rol.
    """
    try:
        if count_users(db) > 0:
            raise NotEligible()

        user = new_user(identity, "admin", ADMIN_PERMISSIONS)
        db.add(user)
        db.flush()
        db.add(BootstrapClaim(slot=BootstrapClaim.SLOT, user_id=user.id))
        db.flush()
        db.commit()
    except NotEligible:
        db.rollback()
        logger.warning("Reclamo de administrador rechazado para %s: el sistema ya tiene usuarios", identity.id)
        raise
    except IntegrityError as exc:
        # otra identidad insertó el reclamo (o el usuario) antes que nosotros
        db.rollback()
        logger.warning("Reclamo de administrador perdido por %s: %s", identity.id, exc.orig)
        raise NotEligible() from exc
    except StorageError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error al reclamar el primer administrador para %s", identity.id)
        raise StorageError("Error al configurar el administrador") from exc

    db.refresh(user)
    logger.info("Primer administrador configurado: %s", user.id)
    return user


def create_with_policy(db: Session, identity: Identity) -> tuple[User, bool]:
    """
    Inserta al usuario aplicando la política de arranque.
    Devuelve (usuario, es_primero). Un IntegrityError sobre la clave del
    usuario se propaga para que el llamador relea la fila existente.
    """
    if is_first_user(db):
        try:
            return claim_first_admin(db, identity), True
        except NotEligible:
            logger.info("Otro usuario se registró primero; %s recibe el rol por defecto", identity.id)

    user = new_user(identity, DEFAULT_ROLE, DEFAULT_PERMISSIONS)
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error creando usuario %s", identity.id)
        raise StorageError("Error al crear usuario") from exc

    db.refresh(user)
    return user, False
