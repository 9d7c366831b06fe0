import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from resultportal.core.cohorts import CohortDirectory
from resultportal.services.storage import Storage, StorageError

logger = logging.getLogger(__name__)

STUDENT_ROLE = "Student"
ADMIN_ROLE = "Admin"
ADMIN_ID_PATTERN = re.compile(r"^ADM[0-9]{3}$", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AuthServiceError(Exception):
    pass


@dataclass
class AuthResult:
    id: str
    name: str
    branch: str
    email: str
    role: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AuthService:
    def __init__(self, storage: Storage, cohorts: CohortDirectory) -> None:
        self.storage = storage
        self.cohorts = cohorts

    def register(
        self,
        user_id: str,
        name: str,
        password: str,
        role: Optional[str] = None,
        branch: str = "",
        email: Optional[str] = None,
    ) -> AuthResult:
        final_role = role or STUDENT_ROLE
        user_id = user_id.strip()
        name = name.strip()
        password = password.strip()

        if not name:
            raise AuthServiceError("Name is required")
        if not password:
            raise AuthServiceError("Password is required")

        if final_role == STUDENT_ROLE:
            result = self._register_student(user_id, name, password, branch.strip(), email)
        elif final_role == ADMIN_ROLE:
            result = self._register_admin(user_id, name, password)
        else:
            raise AuthServiceError("Invalid role specified.")

        logger.info("Registered %s %s", result.role.lower(), result.id)
        return result

    def _register_student(
        self, student_id: str, name: str, password: str, branch: str, email: Optional[str]
    ) -> AuthResult:
        if ADMIN_ID_PATTERN.match(student_id):
            raise AuthServiceError("This ID pattern is reserved for Admin registration.")
        if not self.cohorts.student_id_pattern().match(student_id):
            raise AuthServiceError("Invalid student ID; expected format YYBC1A05XX (e.g. 28BC1A0500)")
        if not branch:
            raise AuthServiceError("Branch is required")

        final_email = (email or "").strip() or f"{student_id.lower()}@student.portal.com"
        if not EMAIL_PATTERN.match(final_email):
            raise AuthServiceError("Please enter a valid email address.")

        existing = self.storage.find_students_by_id_or_email(student_id, final_email)
        if any(s.id == student_id for s in existing):
            raise AuthServiceError("Student ID already exists")
        if any(s.email == final_email for s in existing):
            raise AuthServiceError("Email address is already in use")

        try:
            self.storage.create_student(student_id, name, branch, final_email, password)
        except StorageError as exc:
            raise AuthServiceError("Registration failed") from exc
        return AuthResult(id=student_id, name=name, branch=branch, email=final_email, role=STUDENT_ROLE)

    def _register_admin(self, admin_id: str, name: str, password: str) -> AuthResult:
        if not ADMIN_ID_PATTERN.match(admin_id):
            raise AuthServiceError("Admin registration requires an ID in the format ADMxxx (e.g., ADM001).")
        admin_id = admin_id.upper()
        if self.storage.get_admin(admin_id) is not None:
            raise AuthServiceError("Admin ID already exists")

        try:
            self.storage.create_admin(admin_id, name, password)
        except StorageError as exc:
            raise AuthServiceError("Registration failed") from exc
        return self._admin_result(admin_id, name)

    def login(self, user_id: str, password: str) -> AuthResult:
        user_id = user_id.strip()
        password = password.strip()

        student = self.storage.login_student(user_id, password)
        if student is not None:
            return AuthResult(
                id=student.id,
                name=student.name,
                branch=student.branch,
                email=student.email,
                role=STUDENT_ROLE,
            )

        admin = self.storage.login_admin(user_id.upper(), password)
        if admin is not None:
            return self._admin_result(admin.id, admin.name)

        logger.info("Failed login for %s", user_id)
        raise AuthServiceError("Invalid credentials")

    def role_of(self, user_id: str) -> Optional[str]:
        if self.storage.get_admin(user_id.upper()) is not None:
            return ADMIN_ROLE
        if self.storage.get_student(user_id) is not None:
            return STUDENT_ROLE
        return None

    @staticmethod
    def _admin_result(admin_id: str, name: str) -> AuthResult:
        return AuthResult(id=admin_id, name=name, branch="N/A", email=f"{admin_id}@portal.com", role=ADMIN_ROLE)
