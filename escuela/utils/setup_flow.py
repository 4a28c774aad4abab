"""
Flujo de configuración del primer administrador.

    CHECKING -> ELIGIBLE -> CLAIMING -> COMPLETE
    CHECKING -> INELIGIBLE

Desde CLAIMING un error de almacenamiento vuelve a ELIGIBLE (reintentable) y
un ``NotEligible`` termina en INELIGIBLE ("ya configurado").
"""
import enum
import logging

from sqlalchemy.orm import Session

from escuela.models.user import User
from escuela.schemas.user import Identity
from escuela.utils.bootstrap import claim_first_admin, is_first_user
from escuela.utils.errors import NotEligible, StorageError

logger = logging.getLogger(__name__)


class SetupState(str, enum.Enum):
    CHECKING = "checking"
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    CLAIMING = "claiming"
    COMPLETE = "complete"


TRANSITIONS = {
    SetupState.CHECKING: {SetupState.ELIGIBLE, SetupState.INELIGIBLE},
    SetupState.ELIGIBLE: {SetupState.CLAIMING},
    SetupState.CLAIMING: {SetupState.COMPLETE, SetupState.ELIGIBLE, SetupState.INELIGIBLE},
    SetupState.INELIGIBLE: set(),
    SetupState.COMPLETE: set(),
}


class FirstAdminSetup:
    """Una pasada de un cliente por el flujo de primer administrador."""

    def __init__(self, db: Session):
        self.db = db
        self.state = SetupState.CHECKING
        self.user: User | None = None
        self.error: str | None = None

    def _move(self, target: SetupState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise ValueError(f"Transición inválida: {self.state.value} -> {target.value}")
        self.state = target

    @property
    def terminal(self) -> bool:
        return not TRANSITIONS[self.state]

    def check(self) -> SetupState:
        if self.state is not SetupState.CHECKING:
            raise ValueError(f"check() solo es válido en CHECKING, estado actual: {self.state.value}")
        self._move(SetupState.ELIGIBLE if is_first_user(self.db) else SetupState.INELIGIBLE)
        return self.state

    def claim(self, identity: Identity) -> SetupState:
        self._move(SetupState.CLAIMING)
        self.error = None
        try:
            self.user = claim_first_admin(self.db, identity)
        except NotEligible as exc:
            self.error = exc.message
            self._move(SetupState.INELIGIBLE)
            raise
        except StorageError as exc:
            self.error = exc.message
            self._move(SetupState.ELIGIBLE)
            raise
        self._move(SetupState.COMPLETE)
        return self.state
