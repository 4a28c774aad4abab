from datetime import date as Date

from pydantic import BaseModel, Field, field_validator

from escuela.schemas.institution import _blank_to_none


class CourseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    institution_id: str
    year: int | None = Field(None, ge=2020, le=2030)
    division: str | None = Field(None, max_length=20)


class CourseOut(CourseCreate):
    id: str

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    dni: str | None = Field(None, max_length=20)
    birth_date: Date | None = None
    institution_id: str
    course_id: str | None = None

    @field_validator("dni", mode="before")
    @classmethod
    def empty_dni_is_none(cls, value):
        return _blank_to_none(value)


class StudentOut(StudentCreate):
    id: str

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    course_id: str
    professor_id: str | None = None


class SubjectOut(SubjectCreate):
    id: str

    class Config:
        from_attributes = True


class GradeCreate(BaseModel):
    student_id: str
    subject_id: str
    grade: float | None = Field(None, ge=0, le=10)
    observation: str | None = None
    date: Date


class GradeOut(GradeCreate):
    id: str
    professor_id: str

    class Config:
        from_attributes = True


