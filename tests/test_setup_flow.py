import pytest

import escuela.utils.setup_flow as setup_flow
from escuela.schemas.user import Identity
from escuela.utils.errors import NotEligible, StorageError
from escuela.utils.identity import resolve
from escuela.utils.setup_flow import FirstAdminSetup, SetupState


def test_happy_path(db):
    flow = FirstAdminSetup(db)
    assert flow.state is SetupState.CHECKING
    assert flow.check() is SetupState.ELIGIBLE
    assert flow.claim(Identity(id="U1")) is SetupState.COMPLETE
    assert flow.user.role == "admin"
    assert flow.terminal


def test_ineligible_is_terminal(db):
    resolve(db, Identity(id="U1"))
    flow = FirstAdminSetup(db)
    assert flow.check() is SetupState.INELIGIBLE
    assert flow.terminal
    with pytest.raises(ValueError):
        flow.claim(Identity(id="U2"))


def test_claim_requires_check_first(db):
    flow = FirstAdminSetup(db)
    with pytest.raises(ValueError):
        flow.claim(Identity(id="U1"))


def test_check_only_once(db):
    flow = FirstAdminSetup(db)
    flow.check()
    with pytest.raises(ValueError):
        flow.check()


def test_lost_race_ends_ineligible(db):
    flow = FirstAdminSetup(db)
    flow.check()
    # otra identidad se registra entre la verificación y el reclamo
    resolve(db, Identity(id="U0"))

    with pytest.raises(NotEligible):
        flow.claim(Identity(id="U1"))
    assert flow.state is SetupState.INELIGIBLE
    assert flow.user is None
    assert flow.error == "El sistema ya está configurado"


def test_storage_error_returns_to_eligible(db, monkeypatch):
    def failing_claim(session, identity):
        raise StorageError("Error al configurar el administrador")

    monkeypatch.setattr(setup_flow, "claim_first_admin", failing_claim)
    flow = FirstAdminSetup(db)
    flow.check()

    with pytest.raises(StorageError):
        flow.claim(Identity(id="U1"))
    assert flow.state is SetupState.ELIGIBLE
    assert flow.user is None

    # reintento después del error
    monkeypatch.undo()
    assert flow.claim(Identity(id="U1")) is SetupState.COMPLETE
