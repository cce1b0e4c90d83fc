"""Pytest configuration and fixtures."""
import logging
import sys
from datetime import date
from pathlib import Path

# Add src and the project root (for app/) to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from shiftplan.models.schedule import Holiday, ScheduleEntry
from shiftplan.models.team import Person
from shiftplan.notify.mailer import LogMailer
from shiftplan.storage.store import ScheduleStore

# A Monday; all fixture dates are relative to it
TODAY = date(2024, 6, 3)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def sample_people():
    """A small team: one manager, one planner, three team members."""
    people = [
        Person("u1", "Alice", "Archer", "alice@example.com", "AA", "US", role="teammember"),
        Person("u2", "Bob", "Baker", "bob@example.com", "BB", "US", role="teammember"),
        Person("u3", "Carol", "Cole", "carol@example.com", "CC", "DE", "BY", role="teammember"),
        Person("m1", "Mona", "Miller", "mona@example.com", "MM", "US", role="manager"),
        Person("p1", "Pete", "Planner", "pete@example.com", "PP", "US", role="planner"),
    ]
    return {p.user_id: p for p in people}


@pytest.fixture
def sample_entries():
    """
    Team t1 around TODAY:
      u1: two past weekend days, one past late shift, one future early shift
      u2: one past normal shift, one future weekend day
      u3: nothing
    """
    return [
        ScheduleEntry("u1", "t1", "2024-05-25", "weekend"),      # Saturday
        ScheduleEntry("u1", "t1", "2024-05-26", "weekend"),      # Sunday
        ScheduleEntry("u1", "t1", "2024-05-28", "late"),
        ScheduleEntry("u1", "t1", "2024-06-10", "early"),
        ScheduleEntry("u2", "t1", "2024-05-29", "normal"),
        ScheduleEntry("u2", "t1", "2024-06-08", "weekend"),      # Saturday
    ]


@pytest.fixture
def sample_holidays():
    return [
        Holiday("2024-05-27", "Memorial Day", country_code="US"),
        Holiday("2024-05-30", "Fronleichnam", country_code="DE", region_code="BY"),
    ]


@pytest.fixture
def store(tmp_path):
    """Empty SQLite store in a temporary directory."""
    return ScheduleStore(tmp_path / "test.db")


@pytest.fixture
def mailer():
    return LogMailer()


@pytest.fixture
def seeded_store(store, sample_people):
    """
    Store with team "Support" (u1, u2, u3, manager m1), capacity min 1, and
    entries for u1 (early) and u2 (normal) on 2024-06-05.
    """
    for person in sample_people.values():
        store.upsert_person(person)
    team = store.insert_team("Support")
    for uid in ("u1", "u2", "u3"):
        store.add_member(team.id, uid)
    store.add_member(team.id, "m1", is_manager=True)
    store.upsert_entry(ScheduleEntry("u1", team.id, "2024-06-05", "early"))
    store.upsert_entry(ScheduleEntry("u2", team.id, "2024-06-05", "normal"))
    return store


@pytest.fixture
def team_id(seeded_store):
    return seeded_store.find_team_by_name("Support").id


@pytest.fixture(autouse=True)
def detach_log_handlers():
    """Drop handlers installed by setup_logging so later tests never write to closed streams."""
    yield
    logger = logging.getLogger("shiftplan")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
