from escuela.models.user import BootstrapClaim, User
from escuela.models.institution import Institution
from escuela.models.academics import Course, Grade, Student, Subject

__all__ = [
    "BootstrapClaim",
    "Course",
    "Grade",
    "Institution",
    "Student",
    "Subject",
    "User",
]
