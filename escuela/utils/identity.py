import logging
from typing import NamedTuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from escuela.models.user import User
from escuela.schemas.user import Identity
from escuela.utils.bootstrap import create_with_policy
from escuela.utils.errors import StorageError

logger = logging.getLogger(__name__)


class Resolution(NamedTuple):
    user: User
    created: bool
    is_first_user: bool


def get_user(db: Session, user_id: str) -> User | None:
    try:
        return db.get(User, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Error buscando usuario %s", user_id)
        raise StorageError("Error al obtener usuario") from exc


def resolve(db: Session, identity: Identity) -> Resolution:
    """
    Busca al usuario local de la identidad externa o lo crea.
    Un usuario existente se devuelve sin modificar.
    """
    user = get_user(db, identity.id)
    if user is not None:
        return Resolution(user, False, False)

    try:
        user, first = create_with_policy(db, identity)
    except IntegrityError:
        # creación concurrente de la misma identidad: gana la fila ya guardada
        existing = get_user(db, identity.id)
        if existing is None:
            raise StorageError("Error al crear usuario")
        logger.info("Usuario %s creado en paralelo; se devuelve el existente", identity.id)
        return Resolution(existing, False, False)

    logger.info("Usuario creado: %s (rol=%s)", user.id, user.role)
    return Resolution(user, True, first)
