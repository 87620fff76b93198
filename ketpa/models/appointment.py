from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Float, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Snapshots taken at booking time
    user_data = Column(JSON, nullable=False)
    doc_data = Column(JSON, nullable=False)
    amount = Column(Float, nullable=False)

    # Slot labels, stored as given ("DD_MM_YYYY", "hh:mm AM/PM")
    slot_date = Column(String(10), nullable=False)
    slot_time = Column(String(10), nullable=False)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    cancelled = Column(Boolean, default=False, nullable=False)
    payment = Column(Boolean, default=False, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")

    def snapshot(self) -> dict:
        """Plain copy handed to the notifier, safe to use after the session closes."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "doctor_id": self.doctor_id,
            "user_data": self.user_data,
            "doc_data": self.doc_data,
            "amount": self.amount,
            "slot_date": self.slot_date,
            "slot_time": self.slot_time,
            "cancelled": self.cancelled,
        }

    def __repr__(self):
        return f"<Appointment(id={self.id}, user_id={self.user_id}, doctor_id={self.doctor_id}, slot='{self.slot_date} {self.slot_time}')>"
