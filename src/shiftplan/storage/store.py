"""
Schedule Store - Persistent Storage
===================================
SQLite persistence for profiles, teams, schedule entries, holidays, swap and
vacation requests and FlexTime records.

Every public method opens its own connection; multi-row changes that must
succeed or fail together (swap approval, vacation approval) run in one
transaction.
"""
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from shiftplan.analysis.counts import DEFAULT_COUNTRY, ShiftCount, count_shifts
from shiftplan.analysis.flextime import MonthlySummary, TimeEntry
from shiftplan.errors import NotFoundError, StorageError
from shiftplan.models.requests import ShiftSwapRequest, SwapStatus, VacationRequest, VacationStatus
from shiftplan.models.schedule import Holiday, ScheduleEntry
from shiftplan.models.team import CapacityConfig, Person, Team, TeamMember
from shiftplan.utils.logging_setup import get_logger

logger = get_logger("shiftplan.storage.store")

DEFAULT_DB_PATH = Path("data/shiftplan.db")

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS profiles (
        user_id TEXT PRIMARY KEY,
        first_name TEXT,
        last_name TEXT,
        email TEXT,
        initials TEXT,
        country_code TEXT,
        region_code TEXT,
        role TEXT DEFAULT 'teammember'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        parent_team_id TEXT REFERENCES teams(id),
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_members (
        team_id TEXT REFERENCES teams(id) ON DELETE CASCADE,
        user_id TEXT,
        is_manager INTEGER DEFAULT 0,
        PRIMARY KEY (team_id, user_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_capacity_config (
        team_id TEXT PRIMARY KEY REFERENCES teams(id) ON DELETE CASCADE,
        min_staff_required INTEGER DEFAULT 1,
        max_staff_allowed INTEGER,
        applies_to_weekends INTEGER DEFAULT 0,
        notes TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_planning_partners (
        team_a TEXT REFERENCES teams(id) ON DELETE CASCADE,
        team_b TEXT REFERENCES teams(id) ON DELETE CASCADE,
        PRIMARY KEY (team_a, team_b)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS schedule_entries (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        date TEXT NOT NULL,
        shift_type TEXT DEFAULT 'normal',
        activity_type TEXT DEFAULT 'work',
        availability_status TEXT DEFAULT 'available',
        notes TEXT,
        UNIQUE (user_id, team_id, date)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_entries_team_date ON schedule_entries(team_id, date)",
    """
    CREATE TABLE IF NOT EXISTS holidays (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        name TEXT,
        country_code TEXT,
        region_code TEXT,
        user_id TEXT,
        is_public INTEGER DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS shift_swap_requests (
        id TEXT PRIMARY KEY,
        requesting_user_id TEXT NOT NULL,
        requesting_entry_id TEXT NOT NULL,
        target_user_id TEXT NOT NULL,
        target_entry_id TEXT NOT NULL,
        swap_date TEXT NOT NULL,
        team_id TEXT NOT NULL,
        status TEXT DEFAULT 'pending',
        reason TEXT,
        reviewed_by TEXT,
        reviewed_at TIMESTAMP,
        review_notes TEXT,
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vacation_requests (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        requested_date TEXT NOT NULL,
        is_full_day INTEGER DEFAULT 1,
        start_time TEXT,
        end_time TEXT,
        notes TEXT,
        status TEXT DEFAULT 'pending',
        approver_id TEXT,
        approved_at TIMESTAMP,
        rejected_at TIMESTAMP,
        rejection_reason TEXT,
        group_id TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS daily_time_entries (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        entry_date TEXT NOT NULL,
        entry_type TEXT DEFAULT 'work',
        work_start_time TEXT,
        work_end_time TEXT,
        break_duration_minutes INTEGER DEFAULT 0,
        fza_hours REAL,
        target_hours REAL,
        actual_hours_worked REAL,
        flextime_delta REAL,
        comment TEXT,
        UNIQUE (user_id, entry_date)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS monthly_flextime_summary (
        user_id TEXT NOT NULL,
        year INTEGER NOT NULL,
        month INTEGER NOT NULL,
        starting_balance REAL,
        month_delta REAL,
        ending_balance REAL,
        carryover_limit REAL,
        updated_at TIMESTAMP,
        PRIMARY KEY (user_id, year, month)
    )
    """,
]


def _new_id() -> str:
    return uuid.uuid4().hex


def _iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value else None


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _entry_from_row(row: sqlite3.Row) -> ScheduleEntry:
    return ScheduleEntry.from_dict(dict(row))


def _swap_from_row(row: sqlite3.Row) -> ShiftSwapRequest:
    d = dict(row)
    return ShiftSwapRequest(
        id=d["id"],
        requesting_user_id=d["requesting_user_id"],
        requesting_entry_id=d["requesting_entry_id"],
        target_user_id=d["target_user_id"],
        target_entry_id=d["target_entry_id"],
        swap_date=d["swap_date"],
        team_id=d["team_id"],
        status=d["status"] or SwapStatus.PENDING,
        reason=d["reason"] or "",
        reviewed_by=d["reviewed_by"],
        reviewed_at=_dt(d["reviewed_at"]),
        review_notes=d["review_notes"],
        created_at=_dt(d["created_at"]),
    )


def _vacation_from_row(row: sqlite3.Row) -> VacationRequest:
    d = dict(row)
    return VacationRequest(
        id=d["id"],
        user_id=d["user_id"],
        team_id=d["team_id"],
        requested_date=d["requested_date"],
        is_full_day=bool(d["is_full_day"]),
        start_time=d["start_time"],
        end_time=d["end_time"],
        notes=d["notes"] or "",
        status=d["status"] or VacationStatus.PENDING,
        approver_id=d["approver_id"],
        approved_at=_dt(d["approved_at"]),
        rejected_at=_dt(d["rejected_at"]),
        rejection_reason=d["rejection_reason"],
        group_id=d["group_id"],
    )


class ScheduleStore:
    """
    SQLite-backed storage for the scheduling data.

    Usage:
        store = ScheduleStore(Path("data/shiftplan.db"))
        team = store.insert_team("Support")
        store.upsert_entry(ScheduleEntry("u1", team.id, "2024-06-01", "weekend"))
        entries = store.list_entries(team_ids=[team.id])
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """One transaction: commit on success, roll back and raise StorageError on failure."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self):
        with self._connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        logger.debug(f"Database initialized at {self.db_path}")

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def upsert_person(self, person: Person) -> Person:
        with self._connect() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO profiles
                (user_id, first_name, last_name, email, initials, country_code, region_code, role)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                person.user_id, person.first_name, person.last_name, person.email,
                person.initials, person.country_code, person.region_code, person.role,
            ))
        return person

    def get_person(self, user_id: str) -> Optional[Person]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        return Person.from_dict(dict(row)) if row else None

    def list_people(self, user_ids: Optional[Iterable[str]] = None) -> Dict[str, Person]:
        """Profiles by user_id (all profiles when ``user_ids`` is None)."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM profiles ORDER BY last_name, first_name").fetchall()
        people = {r["user_id"]: Person.from_dict(dict(r)) for r in rows}
        if user_ids is None:
            return people
        return {u: people[u] for u in user_ids if u in people}

    def list_user_ids_by_role(self, roles: Sequence[str]) -> List[str]:
        marks = ",".join("?" for _ in roles)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT user_id FROM profiles WHERE role IN ({marks})", tuple(roles)
            ).fetchall()
        return [r["user_id"] for r in rows]

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    def insert_team(self, name: str, description: str = "", parent_team_id: Optional[str] = None) -> Team:
        team = Team(id=_new_id(), name=name, description=description, parent_team_id=parent_team_id)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO teams (id, name, description, parent_team_id, created_at) VALUES (?, ?, ?, ?, ?)",
                (team.id, team.name, team.description, team.parent_team_id, datetime.now().isoformat()),
            )
        logger.info(f"Created team {name!r} ({team.id})")
        return team

    def find_team_by_name(self, name: str) -> Optional[Team]:
        """Case-insensitive lookup on the trimmed name."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id FROM teams WHERE lower(trim(name)) = lower(trim(?))", (name,)
            ).fetchone()
        return self.get_team(row["id"]) if row else None

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
            if not row:
                return None
            members = conn.execute(
                "SELECT team_id, user_id, is_manager FROM team_members WHERE team_id = ?", (team_id,)
            ).fetchall()
        return Team(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            parent_team_id=row["parent_team_id"],
            members=[TeamMember(m["team_id"], m["user_id"], bool(m["is_manager"])) for m in members],
        )

    def require_team(self, team_id: str) -> Team:
        team = self.get_team(team_id)
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        return team

    def list_teams(self) -> List[Team]:
        with self._connect() as conn:
            ids = [r["id"] for r in conn.execute("SELECT id FROM teams ORDER BY name").fetchall()]
        return [self.get_team(i) for i in ids]

    def delete_team(self, team_id: str):
        with self._connect() as conn:
            conn.execute("DELETE FROM schedule_entries WHERE team_id = ?", (team_id,))
            conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))
        logger.info(f"Deleted team {team_id}")

    def add_member(self, team_id: str, user_id: str, is_manager: bool = False):
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO team_members (team_id, user_id, is_manager) VALUES (?, ?, ?)",
                (team_id, user_id, int(is_manager)),
            )

    def remove_member(self, team_id: str, user_id: str):
        with self._connect() as conn:
            conn.execute("DELETE FROM team_members WHERE team_id = ? AND user_id = ?", (team_id, user_id))

    def set_capacity(self, config: CapacityConfig):
        with self._connect() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO team_capacity_config
                (team_id, min_staff_required, max_staff_allowed, applies_to_weekends, notes)
                VALUES (?, ?, ?, ?, ?)
            """, (
                config.team_id, config.min_staff_required, config.max_staff_allowed,
                int(config.applies_to_weekends), config.notes,
            ))

    def get_capacity(self, team_id: str) -> Optional[CapacityConfig]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM team_capacity_config WHERE team_id = ?", (team_id,)
            ).fetchone()
        if not row:
            return None
        return CapacityConfig(
            team_id=row["team_id"],
            min_staff_required=row["min_staff_required"],
            max_staff_allowed=row["max_staff_allowed"],
            applies_to_weekends=bool(row["applies_to_weekends"]),
            notes=row["notes"] or "",
        )

    def add_partnership(self, team_a: str, team_b: str):
        """Partner two teams for cross-team swaps (symmetric)."""
        a, b = sorted((team_a, team_b))
        with self._connect() as conn:
            conn.execute("INSERT OR IGNORE INTO team_planning_partners (team_a, team_b) VALUES (?, ?)", (a, b))

    def are_partnered(self, team_a: str, team_b: str) -> bool:
        a, b = sorted((team_a, team_b))
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM team_planning_partners WHERE team_a = ? AND team_b = ?", (a, b)
            ).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Schedule entries
    # ------------------------------------------------------------------

    def upsert_entry(self, entry: ScheduleEntry) -> ScheduleEntry:
        """Insert or replace the entry for (user, team, date)."""
        with self._connect() as conn:
            self._upsert_entry(conn, entry)
        return entry

    def _upsert_entry(self, conn: sqlite3.Connection, entry: ScheduleEntry):
        existing = conn.execute(
            "SELECT id FROM schedule_entries WHERE user_id = ? AND team_id = ? AND date = ?",
            (entry.user_id, entry.team_id, entry.date.isoformat()),
        ).fetchone()
        entry.id = existing["id"] if existing else (entry.id or _new_id())
        d = entry.to_dict()
        conn.execute("""
            INSERT OR REPLACE INTO schedule_entries
            (id, user_id, team_id, date, shift_type, activity_type, availability_status, notes)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            d["id"], d["user_id"], d["team_id"], d["date"], d["shift_type"],
            d["activity_type"], d["availability_status"], d["notes"],
        ))

    def bulk_upsert_entries(self, entries: Iterable[ScheduleEntry]) -> int:
        count = 0
        with self._connect() as conn:
            for entry in entries:
                self._upsert_entry(conn, entry)
                count += 1
        logger.info(f"Saved {count} schedule entries")
        return count

    def get_entry(self, entry_id: str) -> Optional[ScheduleEntry]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM schedule_entries WHERE id = ?", (entry_id,)).fetchone()
        return _entry_from_row(row) if row else None

    def list_entries(
        self,
        team_ids: Optional[Sequence[str]] = None,
        user_ids: Optional[Sequence[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ScheduleEntry]:
        """Entries filtered by team, user and inclusive date bounds."""
        sql = "SELECT * FROM schedule_entries WHERE 1=1"
        params: list = []
        if team_ids:
            sql += f" AND team_id IN ({','.join('?' for _ in team_ids)})"
            params.extend(team_ids)
        if user_ids:
            sql += f" AND user_id IN ({','.join('?' for _ in user_ids)})"
            params.extend(user_ids)
        if start_date:
            sql += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            sql += " AND date <= ?"
            params.append(end_date.isoformat())
        sql += " ORDER BY date, user_id"
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_entry_from_row(r) for r in rows]

    def delete_entries(self, user_id: str, dates: Sequence[date], team_id: Optional[str] = None) -> int:
        with self._connect() as conn:
            return self._delete_entries(conn, user_id, dates, team_id)

    def _delete_entries(self, conn, user_id: str, dates: Sequence[date], team_id: Optional[str]) -> int:
        if not dates:
            return 0
        sql = f"DELETE FROM schedule_entries WHERE user_id = ? AND date IN ({','.join('?' for _ in dates)})"
        params = [user_id] + [d.isoformat() for d in dates]
        if team_id:
            sql += " AND team_id = ?"
            params.append(team_id)
        return conn.execute(sql, params).rowcount

    # ------------------------------------------------------------------
    # Holidays
    # ------------------------------------------------------------------

    def add_holiday(self, holiday: Holiday) -> Holiday:
        holiday.id = holiday.id or _new_id()
        with self._connect() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO holidays
                (id, date, name, country_code, region_code, user_id, is_public)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                holiday.id, holiday.date.isoformat(), holiday.name, holiday.country_code,
                holiday.region_code, holiday.user_id, int(holiday.is_public),
            ))
        return holiday

    def list_holidays(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[Holiday]:
        sql = "SELECT * FROM holidays WHERE 1=1"
        params: list = []
        if start_date:
            sql += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            sql += " AND date <= ?"
            params.append(end_date.isoformat())
        with self._connect() as conn:
            rows = conn.execute(sql + " ORDER BY date", params).fetchall()
        return [
            Holiday(
                id=r["id"], date=r["date"], name=r["name"] or "",
                country_code=r["country_code"], region_code=r["region_code"],
                user_id=r["user_id"], is_public=bool(r["is_public"]),
            )
            for r in rows
        ]

    def shift_counts(
        self,
        user_ids: Sequence[str],
        team_ids: Optional[Sequence[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        default_country: str = DEFAULT_COUNTRY,
    ) -> List[ShiftCount]:
        """Weekend/night/holiday counts for ``user_ids`` over stored entries."""
        if not user_ids:
            return []
        entries = self.list_entries(team_ids=team_ids, user_ids=user_ids, start_date=start_date, end_date=end_date)
        return count_shifts(
            entries,
            user_ids,
            holidays=self.list_holidays(start_date, end_date),
            people=self.list_people(user_ids),
            team_ids=team_ids,
            start_date=start_date,
            end_date=end_date,
            default_country=default_country,
        )

    # ------------------------------------------------------------------
    # Swap requests
    # ------------------------------------------------------------------

    def insert_swap(self, request: ShiftSwapRequest) -> ShiftSwapRequest:
        request.id = request.id or _new_id()
        request.created_at = request.created_at or datetime.now()
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO shift_swap_requests
                (id, requesting_user_id, requesting_entry_id, target_user_id, target_entry_id,
                 swap_date, team_id, status, reason, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                request.id, request.requesting_user_id, request.requesting_entry_id,
                request.target_user_id, request.target_entry_id, request.swap_date.isoformat(),
                request.team_id, request.status.value, request.reason, request.created_at.isoformat(),
            ))
        return request

    def get_swap(self, request_id: str) -> Optional[ShiftSwapRequest]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM shift_swap_requests WHERE id = ?", (request_id,)).fetchone()
        return _swap_from_row(row) if row else None

    def list_swaps(
        self,
        status: Optional[SwapStatus] = None,
        team_id: Optional[str] = None,
        swap_date: Optional[date] = None,
        user_id: Optional[str] = None,
    ) -> List[ShiftSwapRequest]:
        sql = "SELECT * FROM shift_swap_requests WHERE 1=1"
        params: list = []
        if status:
            sql += " AND status = ?"
            params.append(SwapStatus(status).value)
        if team_id:
            sql += " AND team_id = ?"
            params.append(team_id)
        if swap_date:
            sql += " AND swap_date = ?"
            params.append(swap_date.isoformat())
        if user_id:
            sql += " AND (requesting_user_id = ? OR target_user_id = ?)"
            params.extend([user_id, user_id])
        with self._connect() as conn:
            rows = conn.execute(sql + " ORDER BY created_at DESC", params).fetchall()
        return [_swap_from_row(r) for r in rows]

    def update_swap_status(self, request: ShiftSwapRequest):
        with self._connect() as conn:
            self._update_swap_status(conn, request)

    def _update_swap_status(self, conn, request: ShiftSwapRequest):
        cur = conn.execute("""
            UPDATE shift_swap_requests
            SET status = ?, reviewed_by = ?, reviewed_at = ?, review_notes = ?
            WHERE id = ?
        """, (
            request.status.value, request.reviewed_by, _iso(request.reviewed_at),
            request.review_notes, request.id,
        ))
        if cur.rowcount == 0:
            raise NotFoundError(f"Swap request {request.id} not found")

    def apply_swap(self, request: ShiftSwapRequest, note: str):
        """
        Exchange the shift types of both entries and store the request's new
        status in a single transaction.
        """
        with self._connect() as conn:
            rows = {
                r["id"]: r for r in conn.execute(
                    "SELECT id, shift_type FROM schedule_entries WHERE id IN (?, ?)",
                    (request.requesting_entry_id, request.target_entry_id),
                ).fetchall()
            }
            if request.requesting_entry_id not in rows or request.target_entry_id not in rows:
                raise NotFoundError("One or both schedule entries no longer exist")
            req_shift = rows[request.requesting_entry_id]["shift_type"]
            tgt_shift = rows[request.target_entry_id]["shift_type"]
            conn.execute(
                "UPDATE schedule_entries SET shift_type = ?, notes = ? WHERE id = ?",
                (tgt_shift, note, request.requesting_entry_id),
            )
            conn.execute(
                "UPDATE schedule_entries SET shift_type = ?, notes = ? WHERE id = ?",
                (req_shift, note, request.target_entry_id),
            )
            self._update_swap_status(conn, request)
        logger.info(f"Swapped {req_shift}↔{tgt_shift} for request {request.id}")

    # ------------------------------------------------------------------
    # Vacation requests
    # ------------------------------------------------------------------

    def insert_vacations(self, requests: Sequence[VacationRequest]) -> List[VacationRequest]:
        with self._connect() as conn:
            for r in requests:
                r.id = r.id or _new_id()
                conn.execute("""
                    INSERT INTO vacation_requests
                    (id, user_id, team_id, requested_date, is_full_day, start_time, end_time,
                     notes, status, group_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    r.id, r.user_id, r.team_id, r.requested_date.isoformat(), int(r.is_full_day),
                    r.start_time.strftime("%H:%M") if r.start_time else None,
                    r.end_time.strftime("%H:%M") if r.end_time else None,
                    r.notes, r.status.value, r.group_id,
                ))
        return list(requests)

    def list_vacations(
        self,
        group_id: Optional[str] = None,
        ids: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None,
        status: Optional[VacationStatus] = None,
    ) -> List[VacationRequest]:
        sql = "SELECT * FROM vacation_requests WHERE 1=1"
        params: list = []
        if group_id:
            sql += " AND group_id = ?"
            params.append(group_id)
        if ids:
            sql += f" AND id IN ({','.join('?' for _ in ids)})"
            params.extend(ids)
        if user_id:
            sql += " AND user_id = ?"
            params.append(user_id)
        if status:
            sql += " AND status = ?"
            params.append(VacationStatus(status).value)
        with self._connect() as conn:
            rows = conn.execute(sql + " ORDER BY requested_date", params).fetchall()
        return [_vacation_from_row(r) for r in rows]

    def _update_vacation(self, conn, r: VacationRequest):
        conn.execute("""
            UPDATE vacation_requests
            SET status = ?, approver_id = ?, approved_at = ?, rejected_at = ?, rejection_reason = ?
            WHERE id = ?
        """, (
            r.status.value, r.approver_id, _iso(r.approved_at), _iso(r.rejected_at),
            r.rejection_reason, r.id,
        ))

    def update_vacations(self, requests: Sequence[VacationRequest]):
        with self._connect() as conn:
            for r in requests:
                self._update_vacation(conn, r)

    def apply_vacation_approval(self, requests: Sequence[VacationRequest], entries: Sequence[ScheduleEntry]):
        """
        Replace the user's entries in the request's team on the requested dates
        with vacation entries and mark the requests approved, in one transaction.
        Entries in other teams are left alone.
        """
        with self._connect() as conn:
            by_member: Dict[Tuple[str, str], List[date]] = {}
            for r in requests:
                by_member.setdefault((r.user_id, r.team_id), []).append(r.requested_date)
            for (user_id, team_id), dates in by_member.items():
                self._delete_entries(conn, user_id, dates, team_id)
            for r in requests:
                self._update_vacation(conn, r)
            for e in entries:
                self._upsert_entry(conn, e)

    # ------------------------------------------------------------------
    # FlexTime
    # ------------------------------------------------------------------

    def upsert_time_entry(self, entry: TimeEntry) -> TimeEntry:
        calc = entry.calculate()
        with self._connect() as conn:
            existing = conn.execute(
                "SELECT id FROM daily_time_entries WHERE user_id = ? AND entry_date = ?",
                (entry.user_id, entry.entry_date.isoformat()),
            ).fetchone()
            entry.id = existing["id"] if existing else (entry.id or _new_id())
            conn.execute("""
                INSERT OR REPLACE INTO daily_time_entries
                (id, user_id, entry_date, entry_type, work_start_time, work_end_time,
                 break_duration_minutes, fza_hours, target_hours, actual_hours_worked,
                 flextime_delta, comment)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                entry.id, entry.user_id, entry.entry_date.isoformat(), entry.entry_type.value,
                entry.work_start_time, entry.work_end_time, entry.break_duration_minutes,
                entry.fza_hours, calc.target_hours, calc.actual_hours, calc.flex_delta, entry.comment,
            ))
        return entry

    def list_time_entries(self, user_id: str, year: int, month: int) -> List[TimeEntry]:
        prefix = f"{year:04d}-{month:02d}-%"
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM daily_time_entries WHERE user_id = ? AND entry_date LIKE ? ORDER BY entry_date",
                (user_id, prefix),
            ).fetchall()
        return [
            TimeEntry(
                id=r["id"], user_id=r["user_id"], entry_date=r["entry_date"],
                entry_type=r["entry_type"], work_start_time=r["work_start_time"],
                work_end_time=r["work_end_time"], break_duration_minutes=r["break_duration_minutes"],
                fza_hours=r["fza_hours"], comment=r["comment"] or "",
            )
            for r in rows
        ]

    def save_monthly_summary(self, summary: MonthlySummary):
        with self._connect() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO monthly_flextime_summary
                (user_id, year, month, starting_balance, month_delta, ending_balance,
                 carryover_limit, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                summary.user_id, summary.year, summary.month, summary.previous_balance,
                summary.month_delta, summary.ending_balance, summary.carryover_limit,
                datetime.now().isoformat(),
            ))

    def get_ending_balance(self, user_id: str, year: int, month: int) -> float:
        """Stored ending balance for a month (0 when none was saved)."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT ending_balance FROM monthly_flextime_summary WHERE user_id = ? AND year = ? AND month = ?",
                (user_id, year, month),
            ).fetchone()
        return float(row["ending_balance"] or 0.0) if row else 0.0
