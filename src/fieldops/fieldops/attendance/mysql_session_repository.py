from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, Optional, Sequence

from ..core.enums import ArrivalStatus, DepartureStatus, ReviewStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import AttendanceSession, GeoFix, NewSession, SessionClosure, TrackPoint
from .repository import AttendanceSessionRepository

_COLUMNS = """
    session_id, worker_id, project_id, work_date, check_in_time, check_out_time,
    check_in_fix, check_out_fix, auto_logged, arrival_status, departure_status,
    review_status, reviewed_by, reviewed_at, review_notes, completed_task_ids,
    session_notes, check_in_selfie, check_out_selfie
"""


def _row_to_session(r: dict, track: Sequence[TrackPoint] = ()) -> AttendanceSession:
    departure = r.get("departure_status")
    return AttendanceSession(
        session_id=int(r["session_id"]),
        worker_id=int(r["worker_id"]),
        project_id=int(r["project_id"]),
        work_date=r["work_date"],
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        check_in_fix=GeoFix.from_dict(from_json(r.get("check_in_fix"))),
        check_out_fix=GeoFix.from_dict(from_json(r.get("check_out_fix"))),
        location_track=tuple(track),
        auto_logged=bool(r.get("auto_logged")),
        arrival_status=ArrivalStatus(r["arrival_status"]),
        departure_status=DepartureStatus(departure) if departure else None,
        review_status=ReviewStatus(r["review_status"]),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=r.get("reviewed_at"),
        review_notes=r.get("review_notes"),
        completed_task_ids=tuple(int(t) for t in from_json(r.get("completed_task_ids"), [])),
        session_notes=r.get("session_notes"),
        check_in_selfie=r.get("check_in_selfie"),
        check_out_selfie=r.get("check_out_selfie"),
    )


class _MySQLTransaction:
    def __init__(self, cur, worker_id: int):
        self._cur = cur
        self._worker_id = worker_id

    def list_open_for_worker(self, work_date: date) -> Sequence[AttendanceSession]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_sessions
            WHERE worker_id=%s AND work_date=%s AND check_out_time IS NULL
            ORDER BY check_in_time DESC
            """,
            (self._worker_id, work_date),
        )
        return [_row_to_session(r) for r in fetchall(self._cur)]

    def create(self, new: NewSession) -> AttendanceSession:
        self._cur.execute(
            """
            INSERT INTO attendance_sessions(
                worker_id, project_id, work_date, check_in_time, check_in_fix,
                auto_logged, arrival_status, review_status, check_in_selfie
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                new.worker_id,
                new.project_id,
                new.work_date,
                new.check_in_time,
                to_json(new.check_in_fix.to_dict()),
                int(new.auto_logged),
                new.arrival_status.value,
                ReviewStatus.PENDING.value,
                new.check_in_selfie,
            ),
        )
        return AttendanceSession(
            session_id=int(self._cur.lastrowid),
            worker_id=new.worker_id,
            project_id=new.project_id,
            work_date=new.work_date,
            check_in_time=new.check_in_time,
            check_in_fix=new.check_in_fix,
            auto_logged=new.auto_logged,
            arrival_status=new.arrival_status,
            check_in_selfie=new.check_in_selfie,
        )


class MySQLSessionRepository(AttendanceSessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def worker_transaction(self, worker_id: int) -> Iterator[_MySQLTransaction]:
        # The lock row serializes concurrent start-session calls for one worker
        # until this transaction commits or rolls back.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT IGNORE INTO worker_session_locks(worker_id) VALUES(%s)", (int(worker_id),))
            cur.execute("SELECT worker_id FROM worker_session_locks WHERE worker_id=%s FOR UPDATE", (int(worker_id),))
            fetchone(cur)
            yield _MySQLTransaction(cur, int(worker_id))

    def _load_track(self, cur, session_id: int) -> list[TrackPoint]:
        cur.execute(
            """
            SELECT lat, lng, recorded_at
            FROM session_location_points
            WHERE session_id=%s
            ORDER BY point_id ASC
            """,
            (session_id,),
        )
        return [TrackPoint(lat=float(p["lat"]), lng=float(p["lng"]), timestamp=p["recorded_at"]) for p in fetchall(cur)]

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._get_with_track(cur, int(session_id))

    def _get_with_track(self, cur, session_id: int) -> Optional[AttendanceSession]:
        cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (session_id,))
        r = fetchone(cur)
        if not r:
            return None
        return _row_to_session(r, self._load_track(cur, session_id))

    def _find_for_day(self, *, worker_id: int, project_id: int, work_date: date, open_only: bool):
        open_clause = "AND check_out_time IS NULL" if open_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE worker_id=%s AND project_id=%s AND work_date=%s {open_clause}
                ORDER BY check_in_time DESC
                LIMIT 1
                """,
                (worker_id, project_id, work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return _row_to_session(r, self._load_track(cur, int(r["session_id"])))

    def find_latest_open(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        return self._find_for_day(worker_id=worker_id, project_id=project_id, work_date=work_date, open_only=True)

    def find_latest_for_day(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        return self._find_for_day(worker_id=worker_id, project_id=project_id, work_date=work_date, open_only=False)

    def list_open_for_worker(self, *, worker_id: int, work_date: date) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            return _MySQLTransaction(cur, int(worker_id)).list_open_for_worker(work_date)

    def close(self, session_id: int, closure: SessionClosure) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET check_out_time=%s, check_out_fix=%s, departure_status=%s,
                    check_out_selfie=%s, completed_task_ids=%s, session_notes=%s
                WHERE session_id=%s AND check_out_time IS NULL
                """,
                (
                    closure.check_out_time,
                    to_json(closure.check_out_fix.to_dict()) if closure.check_out_fix else None,
                    closure.departure_status.value,
                    closure.check_out_selfie,
                    to_json(list(closure.completed_task_ids)),
                    closure.session_notes,
                    int(session_id),
                ),
            )
            if cur.rowcount <= 0:
                return None
            return self._get_with_track(cur, int(session_id))

    def append_track(self, session_id: int, points: Sequence[TrackPoint]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO session_location_points(session_id, lat, lng, recorded_at)
                VALUES(%s,%s,%s,%s)
                """,
                [(int(session_id), p.lat, p.lng, p.timestamp) for p in points],
            )
            return len(points)

    def update_review(
        self,
        *,
        session_id: int,
        status: ReviewStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        notes: Optional[str] = None,
    ) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET review_status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s
                WHERE session_id=%s
                """,
                (status.value, int(reviewed_by), reviewed_at, notes, int(session_id)),
            )
            return self._get_with_track(cur, int(session_id))

    def list_by_review_status(self, status: ReviewStatus, *, limit: int) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE review_status=%s AND check_out_time IS NOT NULL
                ORDER BY check_in_time DESC
                LIMIT %s
                """,
                (status.value, int(limit)),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_for_project(
        self,
        *,
        project_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceSession]:
        clauses = ["project_id=%s"]
        params: list[object] = [int(project_id)]

        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE {where}
                ORDER BY work_date ASC, check_in_time ASC, session_id ASC
                """,
                tuple(params),
            )
            return [_row_to_session(r) for r in fetchall(cur)]
