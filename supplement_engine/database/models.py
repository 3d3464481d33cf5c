"""SQLAlchemy models for estimates, supplement history and mined patterns."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Estimate(Base):
    """Repair estimate as written by the estimating screens."""

    __tablename__ = "estimates"

    id = Column(String(36), primary_key=True)
    total = Column(Float, nullable=False, default=0)
    vehicle_make = Column(String(100), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    vehicle_year = Column(Integer, nullable=True)
    vin = Column(String(17), nullable=True)
    damage_description = Column(Text, nullable=True)
    insurance_company = Column(String(255), nullable=True)
    insurance_external_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship(
        "EstimateLineItem",
        back_populates="estimate",
        order_by="EstimateLineItem.position",
        cascade="all, delete-orphan",
    )
    supplements = relationship("InsuranceSupplement", back_populates="estimate")

    def __repr__(self):
        return f"<Estimate(id={self.id}, vehicle={self.vehicle_make} {self.vehicle_model}, total={self.total})>"


class EstimateLineItem(Base):
    """Line item on an estimate."""

    __tablename__ = "estimate_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    estimate_id = Column(String(36), ForeignKey("estimates.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)
    type = Column(String(20), nullable=False, default="other")  # labor, parts, paint, other
    description = Column(Text, nullable=False, default="")
    quantity = Column(Float, default=1, nullable=False)
    unit_price = Column(Float, default=0, nullable=False)
    total = Column(Float, default=0, nullable=False)
    category = Column(String(100), nullable=True)

    estimate = relationship("Estimate", back_populates="items")

    def __repr__(self):
        return f"<EstimateLineItem(id={self.id}, type={self.type}, description={self.description})>"


class InsuranceSupplement(Base):
    """Supplement submitted to an insurer for an estimate."""

    __tablename__ = "insurance_supplements"

    id = Column(String(36), primary_key=True)
    estimate_id = Column(String(36), ForeignKey("estimates.id"), nullable=True, index=True)
    reason = Column(Text, nullable=False)
    total_amount = Column(Float, nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, submitted, approved, rejected
    approved_amount = Column(Float, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    items = Column(JSON, nullable=True)  # [{"type": "labor", "description": ..., "total": ...}]

    estimate = relationship("Estimate", back_populates="supplements")

    __table_args__ = (
        Index("idx_supplement_status_approved", "status", "approved_at"),
    )

    def __repr__(self):
        return f"<InsuranceSupplement(id={self.id}, status={self.status}, approved_amount={self.approved_amount})>"


class SupplementPatternRecord(Base):
    """Aggregated pattern mined from approved supplements.

    NULL in a vehicle or damage column means the pattern applies to any value.
    """

    __tablename__ = "supplement_patterns"

    id = Column(String(36), primary_key=True)
    vehicle_make = Column(String(100), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    vehicle_year = Column(Integer, nullable=True)
    damage_location = Column(String(50), nullable=True)
    initial_damage_type = Column(String(50), nullable=True)
    initial_estimate_range = Column(String(20), nullable=False)
    supplement_trigger = Column(String(255), nullable=False)
    supplement_category = Column(String(20), nullable=False, default="other")
    supplement_type = Column(String(50), nullable=False, default="Other")
    frequency_count = Column(Integer, default=0, nullable=False)
    approval_count = Column(Integer, default=0, nullable=False)
    rejection_count = Column(Integer, default=0, nullable=False)
    avg_approval_rate = Column(Float, default=0, nullable=False)
    avg_amount = Column(Float, default=0, nullable=False)
    avg_days_to_approval = Column(Float, default=0, nullable=False)
    confidence_score = Column(Integer, default=0, nullable=False)
    last_seen_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_pattern_vehicle", "vehicle_make", "vehicle_model", "vehicle_year"),
        Index("idx_pattern_damage", "damage_location", "initial_damage_type"),
        Index("idx_pattern_confidence", "confidence_score"),
    )

    def __repr__(self):
        return f"<SupplementPatternRecord(id={self.id}, trigger={self.supplement_trigger}, confidence={self.confidence_score})>"
