from __future__ import annotations

from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, Text, Float, Boolean, DateTime, JSON, CheckConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Patient(Base):
	__tablename__ = "patients"

	id = Column(Integer, primary_key=True)
	telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
	name = Column(String, nullable=False)
	age = Column(Integer)
	gender = Column(String)  # Masculino | Feminino
	weight = Column(Float)  # kg
	height = Column(Float)  # cm
	activity_level = Column(String, default="sedentary")
	objective = Column(Text)
	restrictions = Column(Text)
	plan_status = Column(String, default="inactive", nullable=False)
	plan_start_date = Column(DateTime)
	plan_end_date = Column(DateTime)
	created_at = Column(DateTime, default=datetime.now)
	updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

	__table_args__ = (
		CheckConstraint("plan_status in ('active','inactive')", name="patients_plan_status_chk"),
	)

	@property
	def first_name(self) -> str:
		return (self.name or "").split(" ")[0]


class WeightEntry(Base):
	__tablename__ = "weight_entries"

	id = Column(Integer, primary_key=True)
	telegram_id = Column(BigInteger, nullable=False, index=True)
	weight = Column(Float, nullable=False)
	notes = Column(Text)
	recorded_at = Column(DateTime, default=datetime.now, nullable=False)


class FoodRecord(Base):
	__tablename__ = "food_records"

	id = Column(Integer, primary_key=True)
	telegram_id = Column(BigInteger, nullable=False, index=True)
	record_type = Column(String, default="recordatorio_24h")
	data = Column(JSON, nullable=False)
	created_at = Column(DateTime, default=datetime.now, nullable=False)


class Reminder(Base):
	__tablename__ = "reminders"

	id = Column(Integer, primary_key=True)
	telegram_id = Column(BigInteger, nullable=False, index=True)
	type = Column(String, nullable=False)
	message = Column(Text, nullable=False)
	scheduled_for = Column(DateTime, nullable=False)
	sent = Column(Boolean, default=False, nullable=False)
	sent_at = Column(DateTime)

	__table_args__ = (
		CheckConstraint("type in ('plan_renewal','weight_check','custom')", name="reminders_type_chk"),
	)


class ChatMessage(Base):
	__tablename__ = "chat_messages"

	id = Column(Integer, primary_key=True)
	patient_id = Column(BigInteger, nullable=False, index=True)
	sender = Column(String, nullable=False)
	type = Column(String, default="text", nullable=False)
	content = Column(Text)
	file_id = Column(String)
	file_name = Column(String)
	read = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.now, nullable=False)

	__table_args__ = (
		CheckConstraint("sender in ('patient','admin')", name="chat_messages_sender_chk"),
		CheckConstraint("type in ('text','photo','document')", name="chat_messages_type_chk"),
	)


class PatientFile(Base):
	__tablename__ = "patient_files"

	id = Column(Integer, primary_key=True)
	telegram_id = Column(BigInteger, nullable=False, index=True)
	category = Column(String, default="document", nullable=False)
	kind = Column(String, nullable=False)
	file_id = Column(String, nullable=False)  # Telegram file_id, the file itself stays on Telegram
	file_name = Column(String)
	caption = Column(Text)
	uploaded_at = Column(DateTime, default=datetime.now, nullable=False)

	__table_args__ = (
		CheckConstraint("category in ('document','food_diary')", name="patient_files_category_chk"),
		CheckConstraint("kind in ('photo','document')", name="patient_files_kind_chk"),
	)
