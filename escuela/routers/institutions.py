import logging
from datetime import datetime
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from escuela.database import get_db
from escuela.models import Course, Institution, Student, User
from escuela.schemas.institution import (
    InstitutionCreate,
    InstitutionListItem,
    InstitutionOut,
    InstitutionPage,
    InstitutionStatsBatch,
    InstitutionUpdate,
    SortField,
    SortOrder,
)
from escuela.utils.auth import get_current_user, require_capability
from escuela.utils.errors import DuplicateEntity, HasDependents, NotFound, ValidationFailure
from escuela.utils.storage import commit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/institutions", tags=["institutions"])

SUGGESTIONS_LIMIT = 5
STATS_BATCH_LIMIT = 50


def _get_or_404(db: Session, institution_id: str) -> Institution:
    institution = db.get(Institution, institution_id)
    if not institution:
        raise NotFound("Institución no encontrada")
    return institution


def _check_unique(db: Session, name: str | None, email: str | None, exclude_id: str | None = None):
    if name:
        q = db.query(Institution).filter(func.lower(Institution.name) == name.lower())
        if exclude_id:
            q = q.filter(Institution.id != exclude_id)
        existing = q.first()
        if existing:
            raise DuplicateEntity(
                f'La institución "{existing.name}" ya existe en el sistema',
                {"name": "Ya existe una institución con este nombre"},
            )
    if email:
        q = db.query(Institution).filter(func.lower(Institution.email) == email.lower())
        if exclude_id:
            q = q.filter(Institution.id != exclude_id)
        existing = q.first()
        if existing:
            raise DuplicateEntity(
                f'El email {email} ya está registrado para "{existing.name}"',
                {"email": "Este email ya está siendo usado por otra institución"},
            )


def counts_for(db: Session, ids: list[str]) -> dict[str, dict[str, int]]:
    """
    Conteos de cursos, estudiantes y profesores por institución.
    """
    result = {i: {"courses_count": 0, "students_count": 0, "professors_count": 0} for i in ids}
    if not ids:
        return result

    queries = {
        "courses_count": db.query(Course.institution_id, func.count(Course.id))
        .filter(Course.institution_id.in_(ids))
        .group_by(Course.institution_id),
        "students_count": db.query(Student.institution_id, func.count(Student.id))
        .filter(Student.institution_id.in_(ids))
        .group_by(Student.institution_id),
        "professors_count": db.query(User.institution_id, func.count(User.id))
        .filter(User.institution_id.in_(ids))
        .group_by(User.institution_id),
    }
    for key, q in queries.items():
        for inst_id, n in q.all():
            result[inst_id][key] = int(n)
    return result


def contains_pattern(text: str) -> str:
    """Patrón LIKE "contiene" con % y _ escapados."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _filtered(db: Session, search: str, date_from: datetime | None, date_to: datetime | None):
    q = db.query(Institution)
    if search:
        q = q.filter(Institution.name.ilike(contains_pattern(search), escape="\\"))
    if date_from:
        q = q.filter(Institution.created_at >= date_from)
    if date_to:
        q = q.filter(Institution.created_at <= date_to)
    return q


@router.get("", response_model=InstitutionPage)
def list_institutions(
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: SortField = Query("created_at", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Lista paginada con búsqueda por nombre y filtro de fechas.
    """
    q = _filtered(db, search, date_from, date_to)
    total = q.count()

    column = getattr(Institution, sort_by)
    q = q.order_by(column.asc() if sort_order == "asc" else column.desc())
    offset = (page - 1) * limit
    rows = q.offset(offset).limit(limit).all()

    counts = counts_for(db, [r.id for r in rows])
    items = [
        InstitutionListItem(**InstitutionOut.model_validate(r).model_dump(), **counts[r.id])
        for r in rows
    ]
    return InstitutionPage(
        institutions=items,
        total=total,
        page=page,
        limit=limit,
        hasMore=total > offset + limit,
    )


@router.get("/export")
def export_institutions(
    search: str = "",
    include_stats: bool = Query(False, alias="includeStats"),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("export")),
):
    """
    Filas para exportar. El formato del archivo lo genera el cliente.
    """
    rows = _filtered(db, search, date_from, date_to).order_by(Institution.created_at.desc()).all()
    data = [InstitutionOut.model_validate(r).model_dump(mode="json") for r in rows]
    body = {"success": True, "data": data, "total": len(data)}
    if include_stats:
        body["stats"] = counts_for(db, [r.id for r in rows])
    logger.info("Exportación de %d instituciones por %s", len(data), user.id)
    return body


@router.get("/suggestions")
def suggest_names(
    q: str = "",
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Autocompletado del buscador: nombres que contienen `q`."""
    text = q.strip()
    if len(text) < 2:
        return {"success": True, "suggestions": []}

    rows = (
        db.query(Institution.name)
        .filter(Institution.name.ilike(contains_pattern(text), escape="\\"))
        .distinct()
        .order_by(Institution.name)
        .limit(SUGGESTIONS_LIMIT)
        .all()
    )
    return {"success": True, "suggestions": [name for (name,) in rows]}


@router.post("/stats/batch")
def batch_stats(
    payload: InstitutionStatsBatch,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    ids = payload.institution_ids
    if not ids:
        raise ValidationFailure(
            "Se requiere un array de IDs de instituciones",
            {"institutionIds": "Se requiere un array de IDs de instituciones"},
        )
    if len(ids) > STATS_BATCH_LIMIT:
        raise ValidationFailure(
            "Máximo 50 instituciones por solicitud",
            {"institutionIds": "Máximo 50 instituciones por solicitud"},
        )

    existing = [row.id for row in db.query(Institution.id).filter(Institution.id.in_(ids)).all()]
    return {"success": True, "data": counts_for(db, existing)}


@router.post("", response_model=InstitutionOut, status_code=status.HTTP_201_CREATED)
def create_institution(
    payload: InstitutionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("manage")),
):
    _check_unique(db, payload.name, payload.email)

    institution = Institution(
        id=str(uuid4()),
        name=payload.name,
        address=payload.address,
        phone=payload.phone,
        email=payload.email,
        created_by=user.id,
    )
    db.add(institution)
    commit(db, "institución")
    db.refresh(institution)

    logger.info("Institución creada: %s por %s", institution.id, user.id)
    return institution


@router.get("/{institution_id}", response_model=InstitutionOut)
def get_institution(
    institution_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _get_or_404(db, institution_id)


@router.put("/{institution_id}", response_model=InstitutionOut)
def update_institution(
    institution_id: str,
    payload: InstitutionUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("manage")),
):
    institution = _get_or_404(db, institution_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is None:
        changes.pop("name", None)
    _check_unique(db, changes.get("name"), changes.get("email"), exclude_id=institution_id)

    for name, value in changes.items():
        setattr(institution, name, value)
    commit(db, "institución")
    db.refresh(institution)

    logger.info("Institución actualizada: %s por %s", institution_id, user.id)
    return institution


@router.delete("/{institution_id}")
def delete_institution(
    institution_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("delete")),
):
    """
    Elimina la institución si no tiene cursos ni profesores asociados.
    """
    institution = _get_or_404(db, institution_id)

    if db.query(Course.id).filter(Course.institution_id == institution_id).first():
        raise HasDependents("No se puede eliminar la institución porque tiene cursos asociados")
    if db.query(User.id).filter(User.institution_id == institution_id).first():
        raise HasDependents("No se puede eliminar la institución porque tiene profesores asociados")

    db.delete(institution)
    commit(db, "institución")

    logger.info("Institución eliminada: %s por %s", institution_id, user.id)
    return {"success": True, "message": "Institución eliminada exitosamente"}
