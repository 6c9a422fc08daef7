# backend/tutorbook/services/availability_service.py
"""
Availability Service.

Loads a subject offering's weekly schedule into an ``AvailabilityStore``,
applies one edit, and writes the whole schedule back in a single
transaction. The JSON column is always replaced wholesale.

Rows written before the capacity and overlap rules existed are loaded
leniently for reads and removals; adding or editing a window always runs
against the strict rules.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import WeekDay
from ..core.exceptions import NotFoundException
from ..domain.availability import AvailabilityStore, DayAvailability
from ..domain.slot_eligibility import filter_eligible_windows
from ..domain.time_window import TimeWindow
from ..models.subject_offering import SubjectOffering
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .subject_offering_service import SubjectOfferingService

logger = logging.getLogger(__name__)

# New windows start as 09:00-10:00 until the tutor edits them.
DEFAULT_NEW_WINDOW = TimeWindow.of("09:00", "10:00")


class AvailabilityService(BaseService):
    """Tutor schedule editing plus the student-facing eligible-slot query."""

    def __init__(self, db: Session, offering_service: Optional[SubjectOfferingService] = None):
        super().__init__(db)
        self.offering_repository = RepositoryFactory.create_subject_offering_repository(db)
        self.offering_service = offering_service or SubjectOfferingService(db)

    # Reads

    @BaseService.measure_operation("get_availability")
    def get_availability(self, offering_id: str) -> List[DayAvailability]:
        offering = self.offering_service.get_offering(offering_id)
        return offering.availability_store(strict=False).days()

    @BaseService.measure_operation("get_eligible_slots")
    def get_eligible_slots(
        self, offering_id: str, day: Union[WeekDay, str], duration_hours: int
    ) -> List[TimeWindow]:
        """Windows on ``day`` long enough for ``duration_hours``; empty is a normal answer."""
        offering = self.offering_service.get_offering(offering_id)
        store = offering.availability_store(strict=False)
        return filter_eligible_windows(store.windows_for(day), duration_hours)

    # Writes

    @BaseService.measure_operation("replace_availability")
    def replace_availability(
        self, user_id: str, offering_id: str, payload: Sequence[Mapping[str, object]]
    ) -> List[DayAvailability]:
        """Validate a complete schedule and swap it in as a whole."""
        offering = self._load_owned(user_id, offering_id)
        store = AvailabilityStore.from_payload(
            payload,
            max_windows_per_day=settings.max_windows_per_day,
            reject_overlaps=settings.reject_overlapping_windows,
        )
        self._save(offering, store)
        self.log_operation(
            "replace_availability",
            subject_offering_id=offering.id,
            window_count=sum(len(d.windows) for d in store.days()),
        )
        return store.days()

    @BaseService.measure_operation("add_window")
    def add_window(
        self,
        user_id: str,
        offering_id: str,
        day: Union[WeekDay, str],
        window: Optional[TimeWindow] = None,
    ) -> DayAvailability:
        offering = self._load_owned(user_id, offering_id)
        store = offering.availability_store(strict=True)
        new_window = window or DEFAULT_NEW_WINDOW
        windows = store.add_window(day, new_window)
        self._save(offering, store)
        weekday = WeekDay.parse(day) if isinstance(day, str) else day
        self.log_operation(
            "add_window",
            subject_offering_id=offering.id,
            weekday=weekday.value,
            time_slot=new_window.to_slot_string(),
        )
        return DayAvailability(weekday, windows)

    @BaseService.measure_operation("update_window")
    def update_window(
        self,
        user_id: str,
        offering_id: str,
        day: Union[WeekDay, str],
        index: int,
        new_start: Optional[str] = None,
        new_end: Optional[str] = None,
    ) -> DayAvailability:
        offering = self._load_owned(user_id, offering_id)
        store = offering.availability_store(strict=True)
        windows = store.update_window(day, index, new_start=new_start, new_end=new_end)
        self._save(offering, store)
        weekday = WeekDay.parse(day) if isinstance(day, str) else day
        self.log_operation(
            "update_window",
            subject_offering_id=offering.id,
            weekday=weekday.value,
            index=index,
            time_slot=windows[index].to_slot_string(),
        )
        return DayAvailability(weekday, windows)

    @BaseService.measure_operation("remove_window")
    def remove_window(
        self, user_id: str, offering_id: str, day: Union[WeekDay, str], index: int
    ) -> DayAvailability:
        offering = self._load_owned(user_id, offering_id)
        store = offering.availability_store(strict=False)
        windows = store.remove_window(day, index)
        self._save(offering, store)
        weekday = WeekDay.parse(day) if isinstance(day, str) else day
        self.log_operation(
            "remove_window", subject_offering_id=offering.id, weekday=weekday.value, index=index
        )
        return DayAvailability(weekday, windows)

    # Helpers

    def _load_owned(self, user_id: str, offering_id: str) -> SubjectOffering:
        offering = self.offering_repository.get_for_update(offering_id)
        if offering is None:
            raise NotFoundException(
                "Subject offering not found",
                code="SUBJECT_OFFERING_NOT_FOUND",
                details={"subject_offering_id": offering_id},
            )
        self.offering_service.ensure_owner(offering, user_id)
        return offering

    def _save(self, offering: SubjectOffering, store: AvailabilityStore) -> None:
        with self.transaction():
            offering.availability = store.to_payload()
            self.db.flush()
