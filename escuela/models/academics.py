from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from escuela.database import Base
from escuela.models.user import utcnow


class Course(Base):
    __tablename__ = "courses"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    year = Column(Integer, nullable=True)
    division = Column(String, nullable=True)

    institution_id = Column(String, ForeignKey("institutions.id"), nullable=False)
    institution = relationship("Institution", back_populates="courses")

    students = relationship("Student", back_populates="course")
    subjects = relationship("Subject", back_populates="course", cascade="all, delete-orphan")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Student(Base):
    __tablename__ = "students"

    id = Column(String, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    dni = Column(String, unique=True, nullable=True)
    birth_date = Column(Date, nullable=True)

    institution_id = Column(String, ForeignKey("institutions.id"), nullable=False)
    institution = relationship("Institution", back_populates="students")

    course_id = Column(String, ForeignKey("courses.id"), nullable=True)
    course = relationship("Course", back_populates="students")

    grades = relationship("Grade", back_populates="student", cascade="all, delete-orphan")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)

    course_id = Column(String, ForeignKey("courses.id"), nullable=False)
    course = relationship("Course", back_populates="subjects")

    professor_id = Column(String, ForeignKey("users.id"), nullable=True)

    grades = relationship("Grade", back_populates="subject", cascade="all, delete-orphan")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Grade(Base):
    __tablename__ = "grades"

    id = Column(String, primary_key=True, index=True)
    grade = Column(Float, nullable=True)                   # 0..10
    observation = Column(Text, nullable=True)
    date = Column(Date, nullable=False)

    student_id = Column(String, ForeignKey("students.id"), nullable=False)
    student = relationship("Student", back_populates="grades")

    subject_id = Column(String, ForeignKey("subjects.id"), nullable=False)
    subject = relationship("Subject", back_populates="grades")

    # profesor que cargó la nota
    professor_id = Column(String, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
