# escuela/routers/stats.py
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from escuela.database import get_db
from escuela.models import Course, Grade, Institution, Student, Subject, User
from escuela.utils.auth import get_current_user
from escuela.utils.errors import NotFound

router = APIRouter(prefix="/api", tags=["stats"])

# ------------------------------------------------------------
# Rangos de notas (escala 0..10)
# ------------------------------------------------------------
GRADE_BUCKETS = [("0-4", 0.0, 4.0), ("4-6", 4.0, 6.0), ("6-8", 6.0, 8.0), ("8-10", 8.0, 10.0)]


def bucket_of(value: float) -> str | None:
    for label, low, high in GRADE_BUCKETS:
        # el último rango incluye el 10
        if low <= value < high or (high == 10.0 and value == 10.0):
            return label
    return None


def distribution(values) -> dict:
    """
    Convierte una lista de notas en {rango: porcentaje}.
    """
    counts = {label: 0 for label, _, _ in GRADE_BUCKETS}
    total = 0
    for v in values:
        if v is None:
            continue
        label = bucket_of(float(v))
        if label is None:
            continue
        counts[label] += 1
        total += 1

    total = max(total, 1)
    return {label: round(counts[label] * 100.0 / total, 2) for label in counts}


def average(values) -> float | None:
    nums = [float(v) for v in values if v is not None]
    if not nums:
        return None
    return round(sum(nums) / len(nums), 2)


def _grade_values(db: Session, institution_id: str | None = None) -> list[float]:
    q = db.query(Grade.grade).filter(Grade.grade.isnot(None))
    if institution_id is not None:
        q = q.join(Student, Grade.student_id == Student.id).filter(Student.institution_id == institution_id)
    return [g for (g,) in q.all()]


# ------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------
@router.get("/institutions/{institution_id}/stats")
def institution_stats(
    institution_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Estadísticas de una institución:
    - cursos, estudiantes, materias y profesores
    - promedio y distribución de notas (%)
    """
    if not db.get(Institution, institution_id):
        raise NotFound("Institución no encontrada")

    courses = db.query(func.count(Course.id)).filter(Course.institution_id == institution_id).scalar() or 0
    students = db.query(func.count(Student.id)).filter(Student.institution_id == institution_id).scalar() or 0
    subjects = (
        db.query(func.count(Subject.id))
        .join(Course, Subject.course_id == Course.id)
        .filter(Course.institution_id == institution_id)
        .scalar()
        or 0
    )
    professors = db.query(func.count(User.id)).filter(User.institution_id == institution_id).scalar() or 0
    grades = _grade_values(db, institution_id)

    return {
        "success": True,
        "data": {
            "courses_count": int(courses),
            "students_count": int(students),
            "subjects_count": int(subjects),
            "professors_count": int(professors),
            "grades_count": len(grades),
            "average_grade": average(grades),
            "grade_distribution": distribution(grades),
        },
    }


@router.get("/stats/summary")
def dashboard_summary(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """
    Totales del tablero principal.
    """
    grades = _grade_values(db)
    return {
        "institutions": db.query(func.count(Institution.id)).scalar() or 0,
        "courses": db.query(func.count(Course.id)).scalar() or 0,
        "students": db.query(func.count(Student.id)).scalar() or 0,
        "subjects": db.query(func.count(Subject.id)).scalar() or 0,
        "average_grade": average(grades),
        "grade_distribution": distribution(grades),
    }
