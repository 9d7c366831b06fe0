import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from resultportal.config.logging_config import setup_logging
from resultportal.config.settings import settings
from resultportal.core.catalog import SubjectCatalog
from resultportal.core.cohorts import CohortDirectory, InvalidCohortSelector
from resultportal.services.analytics_service import AnalyticsService
from resultportal.services.auth_service import ADMIN_ROLE, AuthService, AuthServiceError
from resultportal.services.marks_service import MarksService, MarksServiceError, StudentNotFound
from resultportal.services.presenters import subject_to_dict
from resultportal.services.storage import Storage, StorageError
from resultportal.services.subject_service import SubjectService, SubjectServiceError

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Result Portal API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RegisterPayload(BaseModel):
    id: str
    name: str
    password: str
    role: Optional[str] = None
    branch: str = ""
    email: Optional[str] = None


class LoginPayload(BaseModel):
    id: str
    password: str


class MarkSplit(BaseModel):
    internal: Any = 0
    external: Any = 0


class MarksPayload(BaseModel):
    student_id: str
    marks: Dict[str, Optional[MarkSplit]]


class SubjectPayload(BaseModel):
    name: str
    code: str
    semester: int = Field(ge=1, le=8)
    max_internal: int = Field(default=30, ge=0)
    max_external: int = Field(default=70, ge=0)
    credits: Optional[float] = Field(default=None, gt=0)
    pass_internal: Optional[int] = Field(default=None, ge=0)
    pass_external: Optional[int] = Field(default=None, ge=0)
    is_lab: bool = False


@lru_cache(maxsize=1)
def get_storage() -> Storage:
    return Storage.from_settings()


@lru_cache(maxsize=1)
def get_catalog() -> SubjectCatalog:
    return SubjectCatalog.from_settings()


@lru_cache(maxsize=1)
def get_cohorts() -> CohortDirectory:
    return CohortDirectory.from_settings()


def _auth(storage: Storage, cohorts: CohortDirectory) -> AuthService:
    return AuthService(storage, cohorts)


def _required_uid(x_user_id: Optional[str]) -> str:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing x-user-id header")
    return x_user_id.strip()


def _require_role(uid: str, auth: AuthService) -> str:
    role = auth.role_of(uid)
    if role is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return role


def _require_admin(uid: str, auth: AuthService) -> None:
    if _require_role(uid, auth) != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")


def _require_self_or_admin(uid: str, student_id: str, auth: AuthService) -> None:
    if _require_role(uid, auth) != ADMIN_ROLE and uid != student_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot access another student's marks")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/auth/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterPayload,
    storage: Storage = Depends(get_storage),
    cohorts: CohortDirectory = Depends(get_cohorts),
) -> Dict:
    try:
        result = _auth(storage, cohorts).register(
            payload.id,
            payload.name,
            payload.password,
            role=payload.role,
            branch=payload.branch,
            email=payload.email,
        )
        return {"message": "Registration successful", "user": result.to_dict()}
    except AuthServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@app.post("/auth/login")
def login(
    payload: LoginPayload,
    storage: Storage = Depends(get_storage),
    cohorts: CohortDirectory = Depends(get_cohorts),
) -> Dict:
    try:
        return _auth(storage, cohorts).login(payload.id, payload.password).to_dict()
    except AuthServiceError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


@app.post("/marks/{semester}")
def save_marks(
    semester: int,
    payload: MarksPayload,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
    catalog: SubjectCatalog = Depends(get_catalog),
    cohorts: CohortDirectory = Depends(get_cohorts),
) -> Dict:
    uid = _required_uid(x_user_id)
    _require_self_or_admin(uid, payload.student_id.strip(), _auth(storage, cohorts))

    service = MarksService(storage, catalog, cohorts, absent_counts_as_fail=settings.absent_counts_as_fail)
    marks = {key: (split.model_dump() if split else None) for key, split in payload.marks.items()}
    try:
        saved = service.save_marks(payload.student_id, semester, marks)
        return {"message": "Marks saved successfully", "saved": saved}
    except StudentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (MarksServiceError, InvalidCohortSelector) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error occurred during save."
        ) from exc


@app.get("/marks/{student_id}")
def get_dashboard(
    student_id: str,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
    catalog: SubjectCatalog = Depends(get_catalog),
    cohorts: CohortDirectory = Depends(get_cohorts),
) -> Dict:
    uid = _required_uid(x_user_id)
    _require_self_or_admin(uid, student_id, _auth(storage, cohorts))

    service = MarksService(storage, catalog, cohorts, absent_counts_as_fail=settings.absent_counts_as_fail)
    try:
        return service.dashboard(student_id)
    except StudentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidCohortSelector as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error") from exc


@app.get("/admin/subjects")
def list_subjects(
    semester: Optional[int] = None,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
    cohorts: CohortDirectory = Depends(get_cohorts),
) -> List[Dict]:
    uid = _required_uid(x_user_id)
    _require_role(uid, _auth(storage, cohorts))
    return [subject_to_dict(s) for s in SubjectService(storage).list_subjects(semester)]


@app.post("/admin/subjects", status_code=status.HTTP_201_CREATED)
def add_subject(
    payload: SubjectPayload,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
    cohorts: CohortDirectory = Depends(get_cohorts),
) -> Dict:
    uid = _required_uid(x_user_id)
    _require_admin(uid, _auth(storage, cohorts))
    try:
        subject = SubjectService(storage).add_subject(**payload.model_dump())
        return {"message": "Subject added successfully.", "subject": subject_to_dict(subject)}
    except SubjectServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@app.get("/admin/analytics/{year}")
def cohort_analytics(
    year: int,
    x_user_id: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
    catalog: SubjectCatalog = Depends(get_catalog),
    cohorts: CohortDirectory = Depends(get_cohorts),
) -> Dict:
    uid = _required_uid(x_user_id)
    _require_admin(uid, _auth(storage, cohorts))

    service = AnalyticsService(storage, catalog, cohorts, absent_counts_as_fail=settings.absent_counts_as_fail)
    try:
        return service.cohort_report(year)
    except InvalidCohortSelector as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error fetching analytics."
        ) from exc
