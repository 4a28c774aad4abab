import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from escuela.database import get_db
from escuela.models import Course, Grade, Institution, Student, Subject, User
from escuela.schemas.academics import (
    CourseCreate,
    CourseOut,
    GradeCreate,
    GradeOut,
    StudentCreate,
    StudentOut,
    SubjectCreate,
    SubjectOut,
)
from escuela.utils.auth import get_current_user, require_capability
from escuela.utils.errors import ValidationFailure
from escuela.utils.storage import commit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["academics"])


def _require(db: Session, model, pk: str | None, field: str, label: str):
    """Comprueba que la fila referenciada exista; si no, error de validación en el campo."""
    if pk is None:
        return None
    row = db.get(model, pk)
    if row is None:
        raise ValidationFailure(field_errors={field: f"{label} no existe"})
    return row


# --- Cursos ---

@router.get("/courses", response_model=list[CourseOut])
def list_courses(
    institution_id: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    q = db.query(Course)
    if institution_id:
        q = q.filter(Course.institution_id == institution_id)
    return q.order_by(Course.name).all()


@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("manage")),
):
    _require(db, Institution, payload.institution_id, "institution_id", "La institución")

    course = Course(id=str(uuid4()), **payload.model_dump())
    db.add(course)
    commit(db, "curso")
    db.refresh(course)
    logger.info("Curso creado: %s por %s", course.id, user.id)
    return course


# --- Estudiantes ---

@router.get("/students", response_model=list[StudentOut])
def list_students(
    institution_id: str | None = None,
    course_id: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    q = db.query(Student)
    if institution_id:
        q = q.filter(Student.institution_id == institution_id)
    if course_id:
        q = q.filter(Student.course_id == course_id)
    return q.order_by(Student.last_name, Student.first_name).all()


@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("manage")),
):
    _require(db, Institution, payload.institution_id, "institution_id", "La institución")
    course = _require(db, Course, payload.course_id, "course_id", "El curso")
    if course is not None and course.institution_id != payload.institution_id:
        raise ValidationFailure(field_errors={"course_id": "El curso no pertenece a la institución"})

    student = Student(id=str(uuid4()), **payload.model_dump())
    db.add(student)
    commit(db, "estudiante")
    db.refresh(student)
    logger.info("Estudiante creado: %s por %s", student.id, user.id)
    return student


# --- Materias ---

@router.get("/subjects", response_model=list[SubjectOut])
def list_subjects(
    course_id: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    q = db.query(Subject)
    if course_id:
        q = q.filter(Subject.course_id == course_id)
    return q.order_by(Subject.name).all()


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("manage")),
):
    _require(db, Course, payload.course_id, "course_id", "El curso")
    _require(db, User, payload.professor_id, "professor_id", "El profesor")

    subject = Subject(id=str(uuid4()), **payload.model_dump())
    db.add(subject)
    commit(db, "materia")
    db.refresh(subject)
    logger.info("Materia creada: %s por %s", subject.id, user.id)
    return subject


# --- Notas ---

@router.get("/grades", response_model=list[GradeOut])
def list_grades(
    student_id: str | None = None,
    subject_id: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    q = db.query(Grade)
    if student_id:
        q = q.filter(Grade.student_id == student_id)
    if subject_id:
        q = q.filter(Grade.subject_id == subject_id)
    return q.order_by(Grade.date.desc()).all()


@router.post("/grades", response_model=GradeOut, status_code=status.HTTP_201_CREATED)
def create_grade(
    payload: GradeCreate,
    db: Session = Depends(get_db),
    # no hay capacidad propia de carga de notas: la de exportación (rol profesor
    # o permiso export_data) es la que habilita a cargar notas
    user: User = Depends(require_capability("export")),
):
    """
    Carga una nota; el profesor es el usuario actual.
    """
    _require(db, Student, payload.student_id, "student_id", "El estudiante")
    _require(db, Subject, payload.subject_id, "subject_id", "La materia")

    grade = Grade(id=str(uuid4()), professor_id=user.id, **payload.model_dump())
    db.add(grade)
    commit(db, "nota")
    db.refresh(grade)
    return grade
