import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID primary key"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    role = Column(String(20), default="customer", nullable=False)  # customer, admin
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    carts = relationship("Cart", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user")
    appointments = relationship("Appointment", back_populates="user")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String(100), unique=True, index=True, nullable=False)
    price_amount = Column(Numeric(12, 3), nullable=False)
    price_currency = Column(String(3), nullable=False, default="BHD")
    stock_quantity = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="carts")
    # Items go with the cart
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
    )


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)  # Preserves insertion order
    quantity = Column(Integer, nullable=False)
    unit_price_amount = Column(Numeric(12, 3), nullable=False)
    unit_price_currency = Column(String(3), nullable=False)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_id)
    order_number = Column(String(30), unique=True, index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Numeric(12, 3), nullable=False)
    currency = Column(String(3), nullable=False)
    # Status workflow: pending → confirmed → processing → shipped → delivered
    # pending/confirmed/processing → cancelled; any (once paid) → refunded
    status = Column(String(20), default="pending", nullable=False, index=True)
    payment_status = Column(String(20), default="pending", nullable=False)  # pending, completed, failed, refunded
    payment_id = Column(String(255), nullable=True)

    # Addresses are stored flat, one column per field
    shipping_street = Column(String(255), nullable=False)
    shipping_city = Column(String(100), nullable=False)
    shipping_state = Column(String(100), nullable=False, default="")
    shipping_postal_code = Column(String(20), nullable=False, default="")
    shipping_country = Column(String(100), nullable=False)
    billing_street = Column(String(255), nullable=False)
    billing_city = Column(String(100), nullable=False)
    billing_state = Column(String(100), nullable=False, default="")
    billing_postal_code = Column(String(20), nullable=False, default="")
    billing_country = Column(String(100), nullable=False)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    shipped_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    unit_price_amount = Column(Numeric(12, 3), nullable=False)
    unit_price_currency = Column(String(3), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    specialty = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(50), nullable=True)
    biography = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    availability = relationship(
        "DoctorAvailability", back_populates="doctor", cascade="all, delete-orphan"
    )
    appointments = relationship("Appointment", back_populates="doctor")


class DoctorAvailability(Base):
    __tablename__ = "doctor_availability"

    id = Column(String(36), primary_key=True, default=generate_id)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday ... 6 = Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    doctor = relationship("Doctor", back_populates="availability")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    appointment_number = Column(String(30), unique=True, index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)

    # Scheduling - end_time is denormalised so overlap checks stay a plain range query
    appointment_date = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    duration_in_minutes = Column(Integer, nullable=False)

    # Status workflow: scheduled → confirmed → (in_progress →) completed
    # scheduled/confirmed → cancelled | no_show
    status = Column(String(20), default="scheduled", nullable=False, index=True)

    # Patient details
    patient_name = Column(String(255), nullable=False)
    patient_age = Column(Integer, nullable=False)
    medical_history = Column(Text, nullable=True)
    current_concerns = Column(Text, nullable=True)
    emergency_contact = Column(String(255), nullable=True)
    emergency_phone = Column(String(50), nullable=True)

    # Zoom integration
    zoom_meeting_id = Column(String(100), nullable=True)
    zoom_join_url = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")
    status_audits = relationship(
        "AppointmentStatusAudit", back_populates="appointment", cascade="all, delete-orphan"
    )


class AppointmentStatusAudit(Base):
    """Append-only trail of admin status overrides"""

    __tablename__ = "appointment_status_audits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=False, index=True)
    admin_user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    previous_status = Column(String(20), nullable=False)
    new_status = Column(String(20), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    appointment = relationship("Appointment", back_populates="status_audits")
