"""Tests for team management and schedule editing."""
from datetime import date
from unittest.mock import MagicMock

import pytest

from shiftplan.errors import NotFoundError, NotificationError, ValidationError
from shiftplan.models.schedule import Holiday, ScheduleEntry
from shiftplan.models.shift import ShiftType
from shiftplan.models.team import Person
from shiftplan.workflow.teams import TeamService, weekend_shift_error


@pytest.fixture
def service(seeded_store, mailer):
    return TeamService(seeded_store, mailer=mailer)


class TestWeekendShiftRule:
    """Tests for weekend_shift_error."""

    def test_other_shift_types_always_allowed(self):
        assert weekend_shift_error("early", "2024-06-04", []) is None
        assert weekend_shift_error(None, "2024-06-04", []) is None

    def test_weekend_day(self):
        assert weekend_shift_error("weekend", "2024-06-08", []) is None

    def test_regular_weekday(self):
        assert weekend_shift_error(ShiftType.WEEKEND, "2024-06-04", []) == (
            "Weekend shifts can only be assigned on weekends or public holidays. "
            "Tuesday is a regular weekday."
        )

    def test_public_holiday(self, sample_holidays):
        assert weekend_shift_error("weekend", "2024-05-27", sample_holidays) is None
        assert weekend_shift_error("weekend", "2024-05-27", sample_holidays, "us") is None

    def test_holiday_of_other_country(self, sample_holidays):
        assert weekend_shift_error("weekend", "2024-05-27", sample_holidays, "DE") is not None

    def test_personal_day_off_does_not_count(self):
        holidays = [Holiday("2024-06-04", "Birthday", user_id="u1")]
        assert weekend_shift_error("weekend", "2024-06-04", holidays) is not None


class TestTeams:
    """Tests for TeamService team operations."""

    def test_create_team(self, service):
        team = service.create_team("  Night Desk ", " Overnight ")
        assert team.name == "Night Desk"
        assert team.description == "Overnight"

    def test_name_required(self, service):
        with pytest.raises(ValidationError, match="Team name is required"):
            service.create_team("   ")

    def test_duplicate_name(self, service):
        with pytest.raises(ValidationError, match="A team named 'SUPPORT' already exists"):
            service.create_team("SUPPORT")

    def test_unknown_parent(self, service):
        with pytest.raises(NotFoundError):
            service.create_team("Child", parent_team_id="missing")

    def test_sub_team(self, service, team_id):
        child = service.create_team("Support L2", parent_team_id=team_id)
        assert child.parent_team_id == team_id

    def test_members(self, service, seeded_store, team_id):
        service.add_member(team_id, "p1", is_manager=True)
        assert "p1" in seeded_store.get_team(team_id).manager_ids
        service.remove_member(team_id, "p1")
        assert "p1" not in seeded_store.get_team(team_id).member_ids

    def test_add_member_to_unknown_team(self, service):
        with pytest.raises(NotFoundError):
            service.add_member("missing", "u1")

    def test_capacity_rules(self, service, team_id):
        with pytest.raises(ValidationError, match="Minimum staff must be at least 1"):
            service.set_capacity(team_id, 0)
        with pytest.raises(ValidationError, match="Maximum staff cannot be below minimum staff"):
            service.set_capacity(team_id, 3, 2)
        config = service.set_capacity(team_id, 2, 5, notes="Summer")
        assert config.max_staff_allowed == 5

    def test_partnership(self, service, seeded_store, team_id):
        other = service.create_team("Sales")
        service.add_partnership(team_id, other.id)
        assert seeded_store.are_partnered(other.id, team_id)
        with pytest.raises(ValidationError):
            service.add_partnership(team_id, team_id)


class TestEntries:
    """Tests for save_entry and bulk_generate."""

    def test_save_entry(self, service, seeded_store, team_id):
        service.save_entry(ScheduleEntry("u3", team_id, "2024-06-05", "late"))
        assert seeded_store.list_entries(user_ids=["u3"])[0].shift_type == ShiftType.LATE

    def test_weekend_shift_on_weekday_rejected(self, service, team_id):
        with pytest.raises(ValidationError, match="Wednesday is a regular weekday"):
            service.save_entry(ScheduleEntry("u3", team_id, "2024-06-05", "weekend"))

    def test_weekend_shift_on_holiday_for_user_country(self, service, seeded_store, team_id, sample_holidays):
        for h in sample_holidays:
            seeded_store.add_holiday(h)
        service.save_entry(ScheduleEntry("u1", team_id, "2024-05-27", "weekend"))
        with pytest.raises(ValidationError):
            service.save_entry(ScheduleEntry("u3", team_id, "2024-05-27", "weekend"))

    def test_save_entry_unknown_team(self, service):
        with pytest.raises(NotFoundError):
            service.save_entry(ScheduleEntry("u1", "missing", "2024-06-05"))

    def test_bulk_generate_weekdays(self, service, team_id):
        created = service.bulk_generate(team_id, ["u3"], "2024-06-03", "2024-06-09")
        assert [e.date.day for e in created] == [3, 4, 5, 6, 7]

    def test_bulk_generate_keeps_existing(self, service, seeded_store, team_id):
        created = service.bulk_generate(team_id, ["u1"], "2024-06-04", "2024-06-06", shift_type="late")
        assert [e.date.day for e in created] == [4, 6]
        assert seeded_store.list_entries(user_ids=["u1"], start_date=date(2024, 6, 5))[0].shift_type == ShiftType.EARLY

    def test_bulk_generate_overwrite(self, service, seeded_store, team_id):
        service.bulk_generate(team_id, ["u1"], "2024-06-05", "2024-06-05", shift_type="late", overwrite=True)
        assert seeded_store.list_entries(user_ids=["u1"])[0].shift_type == ShiftType.LATE

    def test_bulk_generate_skips_forbidden_weekend_days(self, service, team_id):
        created = service.bulk_generate(
            team_id, ["u3"], "2024-06-07", "2024-06-09", shift_type="weekend", weekdays=range(7)
        )
        assert [e.date.day for e in created] == [8, 9]

    def test_bulk_generate_bad_range(self, service, team_id):
        with pytest.raises(ValidationError):
            service.bulk_generate(team_id, ["u3"], "2024-06-09", "2024-06-03")


class TestProfiles:
    def test_save_profile_sanitises_names(self, service, seeded_store):
        service.save_profile(Person("n1", "<b>Nina</b>", "O'Neil", "nina@example.com"))
        stored = seeded_store.get_person("n1")
        assert stored.first_name == "bNina/b"
        assert stored.last_name == "ONeil"

    def test_invalid_email(self, service):
        with pytest.raises(ValidationError, match="Invalid email address: nope"):
            service.save_profile(Person("n1", "Nina", email="nope"))

    def test_invalid_role(self, service):
        person = Person("n1", "Nina")
        person.role = "boss"
        with pytest.raises(ValidationError, match="Invalid role: boss"):
            service.save_profile(person)

    def test_user_id_required(self, service):
        with pytest.raises(ValidationError, match="User id is required"):
            service.save_profile(Person(""))


class TestScheduleChangeNotice:
    def test_sent_to_person(self, service, team_id, mailer):
        entries = [ScheduleEntry("u1", team_id, "2024-06-05", "late")]
        assert service.notify_schedule_change("u1", entries, "Support") is True
        message = mailer.outbox[-1]
        assert message.recipients == ["alice@example.com"]
        assert "Your schedule in Support has changed:" in message.body
        assert "Wed Jun 5, 2024: Late" in message.body

    def test_nothing_to_send(self, seeded_store, team_id):
        entries = [ScheduleEntry("u1", team_id, "2024-06-05", "late")]
        assert TeamService(seeded_store).notify_schedule_change("u1", entries) is False
        service = TeamService(seeded_store, mailer=MagicMock())
        assert service.notify_schedule_change("u1", []) is False
        assert service.notify_schedule_change("ghost", entries) is False

    def test_delivery_failure(self, seeded_store, team_id, caplog):
        failing = MagicMock()
        failing.send.side_effect = NotificationError("smtp down")
        entries = [ScheduleEntry("u1", team_id, "2024-06-05", "late")]
        assert TeamService(seeded_store, mailer=failing).notify_schedule_change("u1", entries) is False
        assert "not delivered" in caplog.text
