'''
ORM models for the food ledger.

Balances are never stored: they are summed from the append-only payments
table on every read.
'''
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKeyConstraint, Index, Integer, Numeric, PrimaryKeyConstraint, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import datetime
import decimal

class Base(DeclarativeBase):
    pass


class Admins(Base):
    __tablename__ = 'admins'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='admins_pkey'),
        UniqueConstraint('full_name', name='admins_full_name_key')
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(100))
    password: Mapped[str] = mapped_column(String(255))

    created_payments: Mapped[list['Payments']] = relationship('Payments', back_populates='creator')


class Guardians(Base):
    __tablename__ = 'guardians'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='guardians_pkey'),
        UniqueConstraint('full_name', name='guardians_full_name_key')
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(100))
    password: Mapped[str] = mapped_column(String(255))

    students: Mapped[list['Students']] = relationship('Students', back_populates='guardian')


class Students(Base):
    __tablename__ = 'students'
    __table_args__ = (
        ForeignKeyConstraint(['guardian_id'], ['guardians.id'], ondelete='SET NULL', name='students_guardian_id_fkey'),
        PrimaryKeyConstraint('id', name='students_pkey'),
        UniqueConstraint('student_code', name='students_student_code_key'),
        Index('idx_students_guardian_id', 'guardian_id')
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String(100))
    student_code: Mapped[str] = mapped_column(String(32))
    guardian_id: Mapped[Optional[int]] = mapped_column(Integer)

    guardian: Mapped[Optional['Guardians']] = relationship('Guardians', back_populates='students')
    payments: Mapped[list['Payments']] = relationship('Payments', back_populates='student')


class Payments(Base):
    __tablename__ = 'payments'
    __table_args__ = (
        CheckConstraint('amount <> 0', name='payments_amount_nonzero'),
        ForeignKeyConstraint(['student_id'], ['students.id'], name='payments_student_id_fkey'),
        ForeignKeyConstraint(['created_by'], ['admins.id'], name='payments_created_by_fkey'),
        ForeignKeyConstraint(['reversal_of_id'], ['payments.id'], name='payments_reversal_of_id_fkey'),
        PrimaryKeyConstraint('id', name='payments_pkey'),
        UniqueConstraint('reversal_of_id', name='payments_reversal_of_id_key'),
        Index('idx_payments_student_date', 'student_id', 'payment_date')
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer)
    payment_date: Mapped[datetime.date] = mapped_column(Date)
    amount: Mapped[decimal.Decimal] = mapped_column(Numeric(10, 2))
    description: Mapped[str] = mapped_column(Text)
    created_by: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())
    reversal_of_id: Mapped[Optional[int]] = mapped_column(Integer)

    student: Mapped['Students'] = relationship('Students', back_populates='payments')
    creator: Mapped['Admins'] = relationship('Admins', back_populates='created_payments')
