from __future__ import annotations

import hashlib
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Iterable

from resultportal.config.settings import settings
from resultportal.models.entities import Admin, RawMarkRecord, Student, Subject

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class Storage:
    def __init__(self, db_path: str = "resultportal.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.RLock()
        self._init_schema()

    @classmethod
    def from_settings(cls) -> "Storage":
        return cls(settings.db_path)

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.executescript(
            """
            CREATE TABLE IF NOT EXISTS students (
              id TEXT PRIMARY KEY,
              name TEXT NOT NULL,
              branch TEXT NOT NULL,
              email TEXT UNIQUE NOT NULL,
              password_hash TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS admins (
              id TEXT PRIMARY KEY,
              name TEXT NOT NULL,
              password_hash TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS subjects (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              name TEXT NOT NULL,
              code TEXT UNIQUE NOT NULL,
              semester INTEGER NOT NULL,
              max_internal INTEGER NOT NULL,
              max_external INTEGER NOT NULL,
              credits REAL NOT NULL,
              is_lab INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS marks (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              student_id TEXT NOT NULL,
              subject_id INTEGER NOT NULL,
              semester INTEGER NOT NULL,
              internal_marks INTEGER NOT NULL DEFAULT 0,
              external_marks INTEGER NOT NULL DEFAULT 0,
              UNIQUE(student_id, subject_id, semester),
              FOREIGN KEY(student_id) REFERENCES students(id),
              FOREIGN KEY(subject_id) REFERENCES subjects(id)
            );
            """
        )
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    @staticmethod
    def _hash_password(password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    @staticmethod
    def _to_subject(row: sqlite3.Row) -> Subject:
        return Subject(
            id=int(row["id"]),
            name=row["name"],
            code=row["code"],
            semester=int(row["semester"]),
            max_internal=int(row["max_internal"]),
            max_external=int(row["max_external"]),
            credits=float(row["credits"]),
            is_lab=bool(row["is_lab"]),
        )

    @staticmethod
    def _to_mark(row: sqlite3.Row) -> RawMarkRecord:
        return RawMarkRecord(
            student_id=row["student_id"],
            semester=int(row["semester"]),
            subject_name=row["subject_name"],
            is_lab=bool(row["is_lab"]),
            internal_marks=int(row["internal_marks"] or 0),
            external_marks=int(row["external_marks"] or 0),
            subject_id=int(row["subject_id"]),
        )

    def _write(self, sql: str, params: tuple) -> sqlite3.Cursor:
        with self._lock:
            try:
                with self.conn:
                    return self.conn.execute(sql, params)
            except sqlite3.Error as exc:
                logger.error("Storage write failed: %s", exc)
                raise StorageError(str(exc)) from exc

    def _read(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return list(self.conn.execute(sql, params).fetchall())
            except sqlite3.Error as exc:
                logger.error("Storage read failed: %s", exc)
                raise StorageError(str(exc)) from exc

    # Accounts

    def create_student(self, student_id: str, name: str, branch: str, email: str, password: str) -> None:
        self._write(
            "INSERT INTO students(id, name, branch, email, password_hash) VALUES(?,?,?,?,?)",
            (student_id, name, branch, email, self._hash_password(password)),
        )

    def create_admin(self, admin_id: str, name: str, password: str) -> None:
        self._write(
            "INSERT INTO admins(id, name, password_hash) VALUES(?,?,?)",
            (admin_id, name, self._hash_password(password)),
        )

    def find_students_by_id_or_email(self, student_id: str, email: str) -> list[Student]:
        rows = self._read(
            "SELECT id, name, branch, email FROM students WHERE id=? OR email=?",
            (student_id, email),
        )
        return [Student(row["id"], row["name"], row["branch"], row["email"]) for row in rows]

    def get_student(self, student_id: str) -> Student | None:
        rows = self._read("SELECT id, name, branch, email FROM students WHERE id=?", (student_id,))
        if not rows:
            return None
        row = rows[0]
        return Student(row["id"], row["name"], row["branch"], row["email"])

    def get_admin(self, admin_id: str) -> Admin | None:
        rows = self._read("SELECT id, name FROM admins WHERE id=?", (admin_id,))
        return Admin(rows[0]["id"], rows[0]["name"]) if rows else None

    def login_student(self, student_id: str, password: str) -> Student | None:
        rows = self._read(
            "SELECT id, name, branch, email, password_hash FROM students WHERE id=?",
            (student_id,),
        )
        if not rows or rows[0]["password_hash"] != self._hash_password(password):
            return None
        row = rows[0]
        return Student(row["id"], row["name"], row["branch"], row["email"])

    def login_admin(self, admin_id: str, password: str) -> Admin | None:
        rows = self._read("SELECT id, name, password_hash FROM admins WHERE id=?", (admin_id,))
        if not rows or rows[0]["password_hash"] != self._hash_password(password):
            return None
        return Admin(rows[0]["id"], rows[0]["name"])

    def list_students_with_prefix(self, prefix: str) -> list[Student]:
        rows = self._read(
            "SELECT id, name, branch, email FROM students WHERE id LIKE ? ORDER BY id",
            (f"{prefix}%",),
        )
        return [Student(row["id"], row["name"], row["branch"], row["email"]) for row in rows]

    # Subjects

    def add_subject(
        self,
        name: str,
        code: str,
        semester: int,
        max_internal: int,
        max_external: int,
        credits: float,
        is_lab: bool,
    ) -> int:
        cur = self._write(
            """INSERT INTO subjects(name, code, semester, max_internal, max_external, credits, is_lab)
               VALUES(?,?,?,?,?,?,?)""",
            (name, code, semester, max_internal, max_external, credits, 1 if is_lab else 0),
        )
        return int(cur.lastrowid)

    def get_subject(self, subject_id: int) -> Subject | None:
        rows = self._read("SELECT * FROM subjects WHERE id=?", (subject_id,))
        return self._to_subject(rows[0]) if rows else None

    def get_subject_by_code(self, code: str) -> Subject | None:
        rows = self._read("SELECT * FROM subjects WHERE code=?", (code,))
        return self._to_subject(rows[0]) if rows else None

    def list_subjects(self, semester: int | None = None) -> list[Subject]:
        if semester is None:
            rows = self._read("SELECT * FROM subjects ORDER BY semester, is_lab, name")
        else:
            rows = self._read(
                "SELECT * FROM subjects WHERE semester=? ORDER BY is_lab, name",
                (semester,),
            )
        return [self._to_subject(row) for row in rows]

    # Marks

    def replace_marks(
        self,
        student_id: str,
        semester: int,
        entries: Iterable[tuple[int, int, int]],
    ) -> int:
        """Replace a student's marks for one semester in a single transaction.

        ``entries`` holds ``(subject_id, internal, external)`` triples. Returns
        the number of rows written.
        """
        entries = list(entries)
        with self._lock:
            try:
                with self.conn:
                    self.conn.execute(
                        "DELETE FROM marks WHERE student_id=? AND semester=?",
                        (student_id, semester),
                    )
                    self.conn.executemany(
                        """INSERT INTO marks(student_id, subject_id, semester, internal_marks, external_marks)
                           VALUES(?,?,?,?,?)""",
                        [(student_id, subject_id, semester, internal, external) for subject_id, internal, external in entries],
                    )
            except sqlite3.Error as exc:
                logger.error("Marks replacement for %s semester %s rolled back: %s", student_id, semester, exc)
                raise StorageError(str(exc)) from exc
        return len(entries)

    _MARKS_QUERY = """SELECT m.student_id, m.semester, m.subject_id, m.internal_marks, m.external_marks,
                             s.name AS subject_name, s.is_lab
                      FROM marks m JOIN subjects s ON s.id=m.subject_id"""

    def list_marks(self, student_id: str) -> list[RawMarkRecord]:
        rows = self._read(
            f"{self._MARKS_QUERY} WHERE m.student_id=? ORDER BY m.semester, s.is_lab, s.name",
            (student_id,),
        )
        return [self._to_mark(row) for row in rows]

    def list_marks_for_prefix(self, prefix: str) -> dict[str, list[RawMarkRecord]]:
        rows = self._read(
            f"{self._MARKS_QUERY} WHERE m.student_id LIKE ? ORDER BY m.student_id, m.semester, s.is_lab, s.name",
            (f"{prefix}%",),
        )
        grouped: dict[str, list[RawMarkRecord]] = {}
        for row in rows:
            grouped.setdefault(row["student_id"], []).append(self._to_mark(row))
        return grouped
