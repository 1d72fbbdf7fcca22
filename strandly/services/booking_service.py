"""Availability and booking lifecycle on top of the CMS bookings collection."""

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from strandly.cms import CMSClient
from strandly.config import Config, get_config
from strandly.errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from strandly.guardrails import InputValidator
from strandly.models import (
    Booking,
    BookingRequest,
    BookingStatus,
    Service,
    Stylist,
    TimeSlot,
    User,
)
from strandly.services.content_service import ContentService

logger = logging.getLogger(__name__)

BOOKINGS = "bookings"
MAX_BOOKINGS_PER_QUERY = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


class BookingService:
    """Computes open slots and creates or cancels bookings.

    The CMS stores the bookings; this service decides which start times are
    valid. Creations for the same stylist are serialised within the process
    so two requests cannot both pass the overlap check for one slot.
    """

    def __init__(
        self,
        cms: CMSClient,
        content: ContentService,
        config: Config | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the booking service.

        Args:
            cms: CMS client used for booking reads and writes
            content: Content service for stylist and service lookups
            config: Application config (defaults to the global config)
            clock: Returns the current aware datetime
        """
        self.cms = cms
        self.content = content
        self.config = config or get_config()
        self.tz = ZoneInfo(self.config.timezone)
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, stylist_id: str) -> asyncio.Lock:
        return self._locks.setdefault(stylist_id, asyncio.Lock())

    def _earliest_start(self) -> datetime:
        return self._clock() + timedelta(minutes=self.config.booking_lead_minutes)

    def _within_horizon(self, day: date) -> bool:
        today = self._clock().astimezone(self.tz).date()
        return today <= day <= today + timedelta(days=self.config.booking_horizon_days)

    async def _load(
        self, stylist_id: str, service_id: str
    ) -> tuple[Stylist, Service]:
        stylist = await self.content.get_stylist_by_id(stylist_id)
        if not stylist.active:
            msg = f"Stylist {stylist_id} is not taking bookings"
            raise NotFoundError(msg)

        service = await self.content.get_service_by_id(service_id)
        if not stylist.offers(service.id):
            msg = f"{stylist.name} does not offer {service.name}"
            raise InvalidRequestError(msg)
        return stylist, service

    def _candidate_slots(
        self, stylist: Stylist, service: Service, day: date
    ) -> list[TimeSlot]:
        """Every slot on the grid that fits inside the stylist's hours."""
        duration = timedelta(minutes=service.duration_minutes)
        step = timedelta(minutes=self.config.booking_slot_minutes)

        # Step in UTC so slots keep their real length across DST changes
        slots = []
        for hours in stylist.hours_for(day.weekday()):
            cursor = _to_utc(datetime.combine(day, hours.start, tzinfo=self.tz))
            shift_end = _to_utc(datetime.combine(day, hours.end, tzinfo=self.tz))
            while cursor + duration <= shift_end:
                slots.append(
                    TimeSlot(
                        start=cursor.astimezone(self.tz),
                        end=(cursor + duration).astimezone(self.tz),
                    )
                )
                cursor += step
        return slots

    async def _active_bookings(
        self, stylist_id: str, start: datetime, end: datetime
    ) -> list[Booking]:
        """Non-cancelled bookings of a stylist intersecting ``[start, end)``."""
        result = await self.cms.find(
            BOOKINGS,
            where={
                "stylist": {"equals": stylist_id},
                "status": {"not_equals": BookingStatus.CANCELLED},
                "start": {"less_than": end.astimezone(timezone.utc)},
                "end": {"greater_than": start.astimezone(timezone.utc)},
            },
            limit=MAX_BOOKINGS_PER_QUERY,
            depth=0,
        )
        bookings = [Booking.model_validate(doc) for doc in result.get("docs", [])]
        return [b for b in bookings if b.is_active and b.overlaps(start, end)]

    async def available_slots(
        self, stylist_id: str, service_id: str, day: date
    ) -> list[TimeSlot]:
        """List open start times for a service with a stylist on a given day."""
        stylist, service = await self._load(stylist_id, service_id)
        if not self._within_horizon(day):
            return []

        earliest = self._earliest_start()
        candidates = [
            s for s in self._candidate_slots(stylist, service, day) if s.start >= earliest
        ]
        if not candidates:
            return []

        taken = await self._active_bookings(
            stylist.id,
            min((s.start for s in candidates), key=_to_utc),
            max((s.end for s in candidates), key=_to_utc),
        )
        return [
            slot
            for slot in candidates
            if not any(b.overlaps(slot.start, slot.end) for b in taken)
        ]

    async def create_booking(
        self,
        request: BookingRequest,
        user: User | None = None,
        locale: str | None = None,
    ) -> Booking:
        """Validate a booking request and store it in the CMS as pending.

        Raises:
            InvalidRequestError: Bad input or a start time that is not bookable
            PermissionDeniedError: Logged-in customer booking for someone else
            ConflictError: The slot is already taken
        """
        is_valid, error = InputValidator.validate_booking_request(request)
        if not is_valid:
            raise InvalidRequestError(error)

        if (
            user is not None
            and not user.is_staff
            and user.email.lower() != request.customer_email.lower()
        ):
            msg = "Bookings can only be made under your own email address"
            raise PermissionDeniedError(msg)

        stylist, service = await self._load(request.stylist_id, request.service_id)

        start = request.start.astimezone(self.tz)
        slot = next(
            (
                s
                for s in self._candidate_slots(stylist, service, start.date())
                if _to_utc(s.start) == _to_utc(start)
            ),
            None,
        )
        if (
            slot is None
            or not self._within_horizon(start.date())
            or start < self._earliest_start()
        ):
            msg = f"{start.isoformat()} is not a bookable time for {stylist.name}"
            raise InvalidRequestError(msg)

        async with self._lock_for(stylist.id):
            clashes = await self._active_bookings(stylist.id, slot.start, slot.end)
            if clashes:
                logger.info(
                    f"Slot {slot.start.isoformat()} with stylist {stylist.id} already taken"
                )
                msg = "That time has just been booked. Please choose another slot."
                raise ConflictError(msg)

            doc = await self.cms.create(
                BOOKINGS,
                {
                    "stylist": stylist.id,
                    "service": service.id,
                    "start": slot.start.astimezone(timezone.utc).isoformat(),
                    "end": slot.end.astimezone(timezone.utc).isoformat(),
                    "customerName": request.customer_name.strip(),
                    "customerEmail": request.customer_email.strip().lower(),
                    "customerPhone": request.customer_phone,
                    "notes": request.notes,
                    "status": BookingStatus.PENDING.value,
                    "locale": locale,
                },
            )

        booking = Booking.model_validate(doc)
        logger.info(
            f"Created booking {booking.id} with stylist {stylist.id} "
            f"at {booking.start.isoformat()}"
        )
        return booking

    async def list_bookings(
        self,
        user: User,
        stylist_id: str | None = None,
        upcoming_only: bool = True,
    ) -> list[Booking]:
        """List a customer's own bookings, or a stylist's bookings for staff."""
        where: dict = {}
        if stylist_id:
            if not user.is_staff:
                msg = "Only staff can view a stylist's bookings"
                raise PermissionDeniedError(msg)
            where["stylist"] = {"equals": stylist_id}
        else:
            where["customerEmail"] = {"equals": user.email.lower()}

        if upcoming_only:
            where["end"] = {"greater_than": self._clock()}

        result = await self.cms.find(
            BOOKINGS, where=where, sort="start", limit=MAX_BOOKINGS_PER_QUERY, depth=0
        )
        return [Booking.model_validate(doc) for doc in result.get("docs", [])]

    async def cancel_booking(self, booking_id: str, user: User) -> Booking:
        """Cancel a booking on behalf of its owner or a staff member.

        Raises:
            PermissionDeniedError: The user neither owns the booking nor is staff
            ConflictError: The booking is closed or has already started
        """
        booking = Booking.model_validate(
            await self.cms.find_by_id(BOOKINGS, booking_id, depth=0)
        )

        if not user.is_staff and booking.customer_email.lower() != user.email.lower():
            msg = "You can only cancel your own bookings"
            raise PermissionDeniedError(msg)

        if booking.status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
            msg = f"Booking is already {booking.status.value}"
            raise ConflictError(msg)

        if booking.start <= self._clock():
            msg = "Bookings cannot be cancelled after they have started"
            raise ConflictError(msg)

        updated = await self.cms.update(
            BOOKINGS, booking.id, {"status": BookingStatus.CANCELLED.value}
        )
        logger.info(f"Booking {booking.id} cancelled by user {user.id}")
        return Booking.model_validate(updated)
