import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from escuela.database import get_db
from escuela.schemas.user import Identity, SetupFirstAdminRequest, UserOut
from escuela.utils.auth import get_identity
from escuela.utils.bootstrap import count_users
from escuela.utils.errors import EscuelaError, Forbidden, NotEligible, NotFound
from escuela.utils.identity import get_user, resolve
from escuela.utils.permissions import capabilities_for, fallback
from escuela.utils.setup_flow import FirstAdminSetup, SetupState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/check-first-user")
def check_first_user(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    """
    Indica si el sistema todavía no tiene usuarios.
    """
    total = count_users(db)
    return {"success": True, "isFirstUser": total == 0, "totalUsers": total}


@router.post("/initialize")
def initialize_user(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    """
    Busca o crea el usuario local de la identidad actual.
    Repetir la llamada devuelve el mismo registro sin cambios.
    """
    result = resolve(db, identity)
    if not result.created:
        message = "Usuario ya registrado"
    elif result.is_first_user:
        message = "Usuario administrador creado exitosamente"
    else:
        message = "Usuario registrado exitosamente"

    return {
        "success": True,
        "user": UserOut.model_validate(result.user).model_dump(mode="json"),
        "isFirstUser": result.is_first_user,
        "message": message,
    }


@router.post("/setup-first-admin")
def setup_first_admin(
    payload: SetupFirstAdminRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    """
    Reclama el rol de administrador cuando el sistema está vacío.
    Si otra identidad ya se registró responde 409 NOT_ELIGIBLE.
    """
    if payload.clerk_id != identity.id:
        raise Forbidden("La identidad enviada no coincide con la sesión actual")

    first_name, _, last_name = (payload.name or "").strip().partition(" ")
    claimant = Identity(
        id=identity.id,
        email=payload.email or identity.email,
        first_name=first_name or identity.first_name,
        last_name=last_name or identity.last_name,
    )

    flow = FirstAdminSetup(db)
    if flow.check() is SetupState.INELIGIBLE:
        logger.info("setup-first-admin rechazado para %s: ya configurado", identity.id)
        raise NotEligible()

    flow.claim(claimant)
    return {
        "success": True,
        "message": "Configuración completada. Ahora eres administrador del sistema.",
        "user": UserOut.model_validate(flow.user).model_dump(mode="json"),
    }


@router.get("/permissions")
def get_permissions(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    """
    Capacidades de la identidad actual. Si el usuario no puede resolverse
    se devuelven permisos mínimos en vez de un error.
    """
    try:
        caps = capabilities_for(resolve(db, identity).user)
    except EscuelaError as exc:
        logger.error("No se pudo resolver %s, permisos mínimos: %s", identity.id, exc.message)
        caps = fallback()

    return {
        "success": True,
        **caps.as_dict(),
        "user": {
            "id": identity.id,
            "email": identity.email,
            "name": identity.display_name,
        },
    }


@router.get("/me", response_model=UserOut)
def get_profile(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    """
    Perfil guardado del usuario actual.
    """
    user = get_user(db, identity.id)
    if not user:
        raise NotFound("Usuario no inicializado")
    return user
