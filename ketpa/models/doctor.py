from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Float, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=True)

    # Professional information
    speciality = Column(String(100), nullable=True)
    degree = Column(String(100), nullable=True)
    experience = Column(String(50), nullable=True)
    about = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    fees = Column(Float, nullable=False, default=0)

    # Clinic
    clinic_name = Column(String(255), nullable=True)
    address = Column(JSON, nullable=True)  # {"line1": ..., "line2": ...}
    location = Column(String(500), nullable=True)  # maps URL

    # Availability
    available = Column(Boolean, default=True, nullable=False)

    # Slot ledger: {"DD_MM_YYYY": ["hh:mm AM", ...]}
    slots_booked = Column(JSON, nullable=False, default=dict)
    # Incremented on every UPDATE; a stale write raises StaleDataError
    ledger_version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="doctor")

    __mapper_args__ = {"version_id_col": ledger_version}

    def snapshot(self) -> dict:
        """Booking-time copy of the doctor, without ledger or credentials."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "speciality": self.speciality,
            "degree": self.degree,
            "experience": self.experience,
            "image": self.image,
            "fees": self.fees,
            "clinic_name": self.clinic_name,
            "address": dict(self.address) if self.address else None,
            "location": self.location,
        }

    def __repr__(self):
        return f"<Doctor(id={self.id}, name='{self.name}', speciality='{self.speciality}')>"
