import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from escuela.utils.errors import DuplicateEntity, StorageError

logger = logging.getLogger(__name__)


def commit(db: Session, what: str) -> None:
    """
    Confirma la transacción; IntegrityError -> DuplicateEntity (409),
    cualquier otro error de SQLAlchemy -> StorageError (500).
    """
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Conflicto de integridad al guardar %s: %s", what, exc.orig)
        raise DuplicateEntity(f"Ya existe un registro de {what} con estos datos") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error al guardar %s", what)
        raise StorageError(f"Error al guardar {what}") from exc
