from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import logging

from ..models.appointment import Appointment
from ..models.doctor import Doctor
from ..models.user import User, PHONE_PLACEHOLDER
from ..core.config import settings
from ..core.errors import (
    DoctorUnavailable, MissingContact, NotFound, StorageFailure, Unauthorized
)
from ..schemas.appointment import BookAppointment
from . import slot_ledger

logger = logging.getLogger(__name__)

class BookingService:
    """
    Booking and cancellation against the doctors' slot ledgers.

    The appointment row and the ledger update are committed together. The
    doctor row is versioned, so if another request changed the ledger
    between our read and our commit the UPDATE matches no row, SQLAlchemy
    raises ``StaleDataError`` and the whole check is run again on fresh data.
    """

    def __init__(self, db: Session, max_attempts: Optional[int] = None):
        self.db = db
        self.max_attempts = max_attempts or settings.LEDGER_COMMIT_RETRIES

    def book_appointment(self, user_id: int, request: BookAppointment) -> Appointment:
        """Reserve the slot and record the appointment."""
        for attempt in range(1, self.max_attempts + 1):
            doctor = self.db.get(Doctor, request.doc_id)
            if not doctor:
                raise NotFound("Doctor not found")

            user = self.db.get(User, user_id)
            if not user:
                raise NotFound("User not found")

            if not doctor.available:
                raise DoctorUnavailable()

            if not user.phone or user.phone == PHONE_PLACEHOLDER:
                raise MissingContact()

            # Raises SlotUnavailable when taken
            ledger = slot_ledger.book(
                doctor.slots_booked, request.slot_date, request.slot_time
            )

            appointment = Appointment(
                user_id=user.id,
                doctor_id=doctor.id,
                user_data=user.snapshot(),
                doc_data=doctor.snapshot(),
                amount=doctor.fees,
                slot_date=request.slot_date,
                slot_time=request.slot_time,
            )
            self.db.add(appointment)
            doctor.slots_booked = ledger

            if self._commit(f"booking doctor {doctor.id} {request.slot_date} {request.slot_time}"):
                self.db.refresh(appointment)
                logger.info(
                    f"Appointment {appointment.id} booked: doctor {doctor.id}, "
                    f"{request.slot_date} {request.slot_time}"
                )
                return appointment

            logger.warning(
                f"Ledger of doctor {request.doc_id} changed during booking "
                f"(attempt {attempt}/{self.max_attempts}), retrying"
            )

        raise StorageFailure("Slot could not be reserved, please try again")

    def cancel_appointment(self, user_id: int, appointment_id: int) -> Appointment:
        """Cancel the user's appointment and free its slot.

        Cancelling an already cancelled appointment succeeds without touching
        the ledger, since the slot may have been booked again by then.
        """
        for attempt in range(1, self.max_attempts + 1):
            appointment = self.db.get(Appointment, appointment_id)
            if not appointment:
                raise NotFound("Appointment not found")

            if appointment.user_id != user_id:
                raise Unauthorized()

            if appointment.cancelled:
                logger.info(f"Appointment {appointment_id} already cancelled")
                return appointment

            appointment.cancelled = True

            doctor = self.db.get(Doctor, appointment.doctor_id)
            if doctor:
                doctor.slots_booked = slot_ledger.release(
                    doctor.slots_booked, appointment.slot_date, appointment.slot_time
                )

            if self._commit(f"cancelling appointment {appointment_id}"):
                logger.info(f"Appointment {appointment_id} cancelled")
                return appointment

            logger.warning(
                f"Ledger changed while cancelling appointment {appointment_id} "
                f"(attempt {attempt}/{self.max_attempts}), retrying"
            )

        raise StorageFailure("Appointment could not be cancelled, please try again")

    def list_appointments(self, user_id: int) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.user_id == user_id)
            .order_by(Appointment.id)
            .all()
        )

    def list_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.id).all()

    def _commit(self, action: str) -> bool:
        """Commit the unit of work. False means a version conflict; retry."""
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error while {action}: {str(e)}")
            raise StorageFailure()
        return True
