"""
Promueve un usuario a administrador (o lo crea como tal).

Uso:
    python -m escuela.setup_admin USER_ID [--email EMAIL] [--name "Nombre Apellido"]
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from escuela import models  # noqa: F401
from escuela.database import Base, SessionLocal, engine
from escuela.models.user import User
from escuela.schemas.user import Identity
from escuela.utils.bootstrap import new_user
from escuela.utils.errors import EscuelaError
from escuela.utils.permissions import ADMIN_PERMISSIONS
from escuela.utils.storage import commit

logger = logging.getLogger(__name__)


def promote(db: Session, identity: Identity) -> tuple[User, bool]:
    """Devuelve (usuario, creado)."""
    user = db.get(User, identity.id)
    created = user is None
    if created:
        user = new_user(identity, "admin", ADMIN_PERMISSIONS)
        db.add(user)
    else:
        user.role = "admin"
        user.permissions = list(ADMIN_PERMISSIONS)
    commit(db, "usuario")
    db.refresh(user)
    return user, created


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Configura un usuario administrador")
    parser.add_argument("user_id", help="id del usuario en el proveedor de identidad")
    parser.add_argument("--email")
    parser.add_argument("--name", default="")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    Base.metadata.create_all(bind=engine)

    first_name, _, last_name = args.name.strip().partition(" ")
    identity = Identity(id=args.user_id, email=args.email, first_name=first_name or None, last_name=last_name or None)

    db = SessionLocal()
    try:
        user, created = promote(db, identity)
    except EscuelaError as exc:
        logger.error("No se pudo configurar el administrador: %s", exc.message)
        return 1
    finally:
        db.close()

    logger.info("Usuario administrador %s: %s", "creado" if created else "actualizado", user.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
