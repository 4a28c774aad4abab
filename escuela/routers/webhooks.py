import hmac
import logging

from fastapi import APIRouter, Header

from escuela.config import settings
from escuela.schemas.user import WebhookEvent
from escuela.utils.errors import Unauthenticated

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

HANDLED_EVENTS = ("user.created", "user.updated", "user.deleted")


@router.post("/identity")
def identity_event(event: WebhookEvent, x_webhook_secret: str | None = Header(None)):
    """
    Eventos del ciclo de vida del proveedor de identidad.
    Solo se registran; no modifican usuarios locales.
    """
    if settings.webhook_secret and not hmac.compare_digest(x_webhook_secret or "", settings.webhook_secret):
        raise Unauthenticated("Secreto del webhook inválido")

    user_id = event.data.get("id")
    if event.type in HANDLED_EVENTS:
        logger.info("Webhook %s para usuario %s", event.type, user_id)
    else:
        logger.info("Evento no manejado: %s", event.type)

    return {"received": True, "type": event.type}
