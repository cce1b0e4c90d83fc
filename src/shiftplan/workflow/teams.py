"""Team management and schedule entry editing."""
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Union

from shiftplan.errors import NotFoundError, NotificationError, ValidationError
from shiftplan.models.schedule import Holiday, ScheduleEntry
from shiftplan.models.shift import (
    WEEKDAY_NAMES,
    ActivityType,
    AvailabilityStatus,
    ShiftType,
    is_weekend,
    parse_date,
)
from shiftplan.models.team import CapacityConfig, Person, Team
from shiftplan.notify.messages import schedule_changed
from shiftplan.storage.store import ScheduleStore
from shiftplan.utils.logging_setup import get_logger, log_check
from shiftplan.workflow.validation import sanitize_input, validate_email, validate_role

logger = get_logger("shiftplan.workflow.teams")


def weekend_shift_error(
    shift_type: Union[str, ShiftType, None],
    day: Union[str, date],
    holidays: Iterable[Holiday],
    country_code: Optional[str] = None,
) -> Optional[str]:
    """
    None when the shift may be placed on ``day``, otherwise the reason.

    Weekend shifts belong on Saturday/Sunday or on a public holiday. With a
    country code the holiday must be for that country; without one any
    public (non user-specific) holiday qualifies.
    """
    if ShiftType.from_string(shift_type) != ShiftType.WEEKEND:
        return None
    day = parse_date(day)
    if is_weekend(day):
        return None
    public = [h for h in holidays if h.date == day and h.is_public and h.user_id is None]
    if public:
        if not country_code or any(h.country_code == country_code.upper() for h in public):
            return None
    return (
        "Weekend shifts can only be assigned on weekends or public holidays. "
        f"{WEEKDAY_NAMES[day.weekday()]} is a regular weekday."
    )


class TeamService:
    def __init__(self, store: ScheduleStore, mailer=None):
        self.store = store
        self.mailer = mailer

    def save_profile(self, person: Person) -> Person:
        """Validate and store a profile. Names are sanitised, email and role checked."""
        person.first_name = sanitize_input(person.first_name)
        person.last_name = sanitize_input(person.last_name)
        if not person.user_id:
            raise ValidationError("User id is required")
        if person.email and not validate_email(person.email):
            raise ValidationError(f"Invalid email address: {person.email}")
        if not validate_role(person.role):
            raise ValidationError(f"Invalid role: {person.role}")
        return self.store.upsert_person(person)

    def notify_schedule_change(self, user_id: str, entries: Sequence[ScheduleEntry], team_name: str = "") -> bool:
        """Email the person a list of their changed days. False when nothing was sent."""
        if self.mailer is None or not entries:
            return False
        person = self.store.get_person(user_id)
        if person is None:
            return False
        try:
            return self.mailer.send(schedule_changed(person, entries, team_name))
        except NotificationError as e:
            logger.warning(f"Schedule change notice for {user_id} not delivered: {e}")
            return False

    def create_team(self, name: str, description: str = "", parent_team_id: Optional[str] = None) -> Team:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Team name is required")
        if self.store.find_team_by_name(name) is not None:
            raise ValidationError(f"A team named '{name}' already exists")
        if parent_team_id and self.store.get_team(parent_team_id) is None:
            raise NotFoundError(f"Parent team {parent_team_id} not found")
        return self.store.insert_team(name, (description or "").strip(), parent_team_id)

    def add_member(self, team_id: str, user_id: str, is_manager: bool = False):
        self.store.require_team(team_id)
        self.store.add_member(team_id, user_id, is_manager)
        logger.info(f"Added {user_id} to team {team_id}{' as manager' if is_manager else ''}")

    def remove_member(self, team_id: str, user_id: str):
        self.store.remove_member(team_id, user_id)

    def set_capacity(
        self,
        team_id: str,
        min_staff_required: int = 1,
        max_staff_allowed: Optional[int] = None,
        applies_to_weekends: bool = False,
        notes: str = "",
    ) -> CapacityConfig:
        self.store.require_team(team_id)
        if min_staff_required < 1:
            raise ValidationError("Minimum staff must be at least 1")
        if max_staff_allowed is not None and max_staff_allowed < min_staff_required:
            raise ValidationError("Maximum staff cannot be below minimum staff")
        config = CapacityConfig(team_id, min_staff_required, max_staff_allowed, applies_to_weekends, notes)
        self.store.set_capacity(config)
        return config

    def add_partnership(self, team_a: str, team_b: str):
        if team_a == team_b:
            raise ValidationError("A team cannot partner with itself")
        self.store.require_team(team_a)
        self.store.require_team(team_b)
        self.store.add_partnership(team_a, team_b)
        logger.info(f"Teams {team_a} and {team_b} are now planning partners")

    def _country_of(self, user_id: str) -> Optional[str]:
        person = self.store.get_person(user_id)
        return person.country_code if person else None

    def save_entry(self, entry: ScheduleEntry) -> ScheduleEntry:
        """Insert or update an entry, enforcing the weekend shift rule."""
        self.store.require_team(entry.team_id)
        error = weekend_shift_error(
            entry.shift_type, entry.date,
            self.store.list_holidays(entry.date, entry.date),
            self._country_of(entry.user_id),
        )
        log_check(logger, "weekend_shift_date", error is None, f"{entry.user_id} {entry.date}")
        if error:
            raise ValidationError(error)
        return self.store.upsert_entry(entry)

    def bulk_generate(
        self,
        team_id: str,
        user_ids: Sequence[str],
        start_date: Union[str, date],
        end_date: Union[str, date],
        shift_type: Union[str, ShiftType] = ShiftType.NORMAL,
        activity_type: Union[str, ActivityType] = ActivityType.WORK,
        weekdays: Sequence[int] = (0, 1, 2, 3, 4),
        overwrite: bool = False,
    ) -> List[ScheduleEntry]:
        """
        Create entries for every user on every selected weekday in the range.

        Existing entries are kept unless ``overwrite`` is set. Days where a
        weekend shift is not allowed are skipped.
        """
        self.store.require_team(team_id)
        start, end = parse_date(start_date), parse_date(end_date)
        if end < start:
            raise ValidationError("End date must not be before start date")

        holidays = self.store.list_holidays(start, end)
        existing = {
            (e.user_id, e.date) for e in self.store.list_entries(team_ids=[team_id], start_date=start, end_date=end)
        }
        countries = {u: self._country_of(u) for u in user_ids}

        created = []
        skipped = 0
        day = start
        while day <= end:
            if day.weekday() in weekdays:
                for user_id in user_ids:
                    if not overwrite and (user_id, day) in existing:
                        continue
                    if weekend_shift_error(shift_type, day, holidays, countries[user_id]):
                        skipped += 1
                        continue
                    created.append(ScheduleEntry(
                        user_id=user_id,
                        team_id=team_id,
                        date=day,
                        shift_type=shift_type,
                        activity_type=activity_type,
                        availability_status=AvailabilityStatus.AVAILABLE,
                    ))
            day += timedelta(days=1)

        self.store.bulk_upsert_entries(created)
        if skipped:
            logger.warning(f"Skipped {skipped} weekend shift(s) on regular weekdays")
        return created
