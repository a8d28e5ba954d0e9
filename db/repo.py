from __future__ import annotations

from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session
from sqlalchemy import select, func, and_
from db.models import Patient, WeightEntry, FoodRecord, Reminder, ChatMessage, PatientFile


# --------- Patients ---------

def get_patient(session: Session, telegram_id: int) -> Optional[Patient]:
	return session.execute(select(Patient).where(Patient.telegram_id == telegram_id)).scalar_one_or_none()


def upsert_patient(session: Session, telegram_id: int, fields: Dict[str, Any]) -> Patient:
	patient = get_patient(session, telegram_id)
	if patient is None:
		patient = Patient(telegram_id=telegram_id)
		session.add(patient)
	for key, value in fields.items():
		setattr(patient, key, value)
	session.flush()
	return patient


def delete_patient(session: Session, telegram_id: int) -> bool:
	patient = get_patient(session, telegram_id)
	if patient is None:
		return False
	session.delete(patient)
	session.flush()
	return True


def list_patients(session: Session) -> List[Patient]:
	return list(session.execute(select(Patient).order_by(Patient.name)).scalars())


def list_patients_ending_between(session: Session, start: datetime, end: datetime) -> List[Patient]:
	stmt = (
		select(Patient)
		.where(and_(Patient.plan_end_date >= start, Patient.plan_end_date <= end))
		.order_by(Patient.plan_end_date)
	)
	return list(session.execute(stmt).scalars())


def list_patients_ended_before(session: Session, moment: datetime) -> List[Patient]:
	stmt = select(Patient).where(Patient.plan_end_date < moment).order_by(Patient.plan_end_date.desc())
	return list(session.execute(stmt).scalars())


# --------- Weight history ---------

def add_weight_entry(session: Session, telegram_id: int, weight: float, notes: str | None = None, recorded_at: datetime | None = None) -> WeightEntry:
	entry = WeightEntry(telegram_id=telegram_id, weight=weight, notes=notes, recorded_at=recorded_at or datetime.now())
	session.add(entry)
	session.flush()
	return entry


def get_weight_history(session: Session, telegram_id: int) -> List[WeightEntry]:
	stmt = select(WeightEntry).where(WeightEntry.telegram_id == telegram_id).order_by(WeightEntry.recorded_at.asc(), WeightEntry.id.asc())
	return list(session.execute(stmt).scalars())


def get_oldest_weight_entry(session: Session, telegram_id: int) -> Optional[WeightEntry]:
	stmt = select(WeightEntry).where(WeightEntry.telegram_id == telegram_id).order_by(WeightEntry.recorded_at.asc()).limit(1)
	return session.execute(stmt).scalar_one_or_none()


# --------- Food records ---------

def add_food_record(session: Session, telegram_id: int, data: Dict[str, Any], record_type: str = "recordatorio_24h", created_at: datetime | None = None) -> FoodRecord:
	record = FoodRecord(telegram_id=telegram_id, data=data, record_type=record_type, created_at=created_at or datetime.now())
	session.add(record)
	session.flush()
	return record


def get_latest_food_record_since(session: Session, telegram_id: int, since: datetime) -> Optional[FoodRecord]:
	stmt = (
		select(FoodRecord)
		.where(and_(FoodRecord.telegram_id == telegram_id, FoodRecord.created_at >= since))
		.order_by(FoodRecord.created_at.desc())
		.limit(1)
	)
	return session.execute(stmt).scalar_one_or_none()


def list_food_records(session: Session, telegram_id: int) -> List[FoodRecord]:
	stmt = select(FoodRecord).where(FoodRecord.telegram_id == telegram_id).order_by(FoodRecord.created_at.desc())
	return list(session.execute(stmt).scalars())


def count_food_records(session: Session) -> int:
	return int(session.execute(select(func.count(FoodRecord.id))).scalar_one())


def list_recent_food_records(session: Session, offset: int, limit: int) -> tuple[List[FoodRecord], int]:
	total = session.execute(select(func.count(FoodRecord.id))).scalar_one()
	stmt = select(FoodRecord).order_by(FoodRecord.created_at.desc()).offset(offset).limit(limit)
	return list(session.execute(stmt).scalars()), int(total)


def get_food_record(session: Session, record_id: int) -> Optional[FoodRecord]:
	return session.get(FoodRecord, record_id)


# --------- Reminders ---------

def add_reminder(session: Session, telegram_id: int, type_: str, message: str, scheduled_for: datetime) -> Reminder:
	reminder = Reminder(telegram_id=telegram_id, type=type_, message=message, scheduled_for=scheduled_for, sent=False)
	session.add(reminder)
	session.flush()
	return reminder


def get_pending_reminders(session: Session, now: datetime) -> List[Reminder]:
	stmt = (
		select(Reminder)
		.where(and_(Reminder.sent.is_(False), Reminder.scheduled_for <= now))
		.order_by(Reminder.scheduled_for.asc())
	)
	return list(session.execute(stmt).scalars())


def get_patient_reminders(session: Session, telegram_id: int) -> List[Reminder]:
	stmt = (
		select(Reminder)
		.where(and_(Reminder.telegram_id == telegram_id, Reminder.sent.is_(False)))
		.order_by(Reminder.scheduled_for.asc())
	)
	return list(session.execute(stmt).scalars())


def mark_reminder_sent(session: Session, reminder_id: int, sent_at: datetime) -> bool:
	reminder = session.get(Reminder, reminder_id)
	if reminder is None:
		return False
	reminder.sent = True
	reminder.sent_at = sent_at
	session.flush()
	return True


def delete_reminder(session: Session, reminder_id: int, telegram_id: int | None = None) -> bool:
	reminder = session.get(Reminder, reminder_id)
	if reminder is None or (telegram_id is not None and reminder.telegram_id != telegram_id):
		return False
	session.delete(reminder)
	session.flush()
	return True


def delete_pending_reminders(session: Session, telegram_id: int, type_: str) -> int:
	rows = session.execute(
		select(Reminder).where(
			and_(Reminder.telegram_id == telegram_id, Reminder.type == type_, Reminder.sent.is_(False))
		)
	).scalars().all()
	for row in rows:
		session.delete(row)
	session.flush()
	return len(rows)


# --------- Chat messages ---------

def add_chat_message(
	session: Session,
	patient_id: int,
	sender: str,
	type_: str,
	content: str | None,
	file_id: str | None = None,
	file_name: str | None = None,
) -> ChatMessage:
	msg = ChatMessage(patient_id=patient_id, sender=sender, type=type_, content=content, file_id=file_id, file_name=file_name, read=False)
	session.add(msg)
	session.flush()
	return msg


def get_chat_history(session: Session, patient_id: int, limit: int) -> List[ChatMessage]:
	stmt = select(ChatMessage).where(ChatMessage.patient_id == patient_id).order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc()).limit(limit)
	rows = list(session.execute(stmt).scalars())
	rows.reverse()
	return rows


def count_unread_from_patient(session: Session, patient_id: int) -> int:
	stmt = select(func.count(ChatMessage.id)).where(
		and_(ChatMessage.patient_id == patient_id, ChatMessage.sender == "patient", ChatMessage.read.is_(False))
	)
	return int(session.execute(stmt).scalar_one())


def mark_patient_messages_read(session: Session, patient_id: int) -> int:
	rows = session.execute(
		select(ChatMessage).where(
			and_(ChatMessage.patient_id == patient_id, ChatMessage.sender == "patient", ChatMessage.read.is_(False))
		)
	).scalars().all()
	for row in rows:
		row.read = True
	session.flush()
	return len(rows)


# --------- Patient files ---------

def add_patient_file(
	session: Session,
	telegram_id: int,
	category: str,
	kind: str,
	file_id: str,
	file_name: str | None = None,
	caption: str | None = None,
	uploaded_at: datetime | None = None,
) -> PatientFile:
	row = PatientFile(
		telegram_id=telegram_id,
		category=category,
		kind=kind,
		file_id=file_id,
		file_name=file_name,
		caption=caption,
		uploaded_at=uploaded_at or datetime.now(),
	)
	session.add(row)
	session.flush()
	return row


def list_patient_files(session: Session, telegram_id: int, category: str | None = None) -> List[PatientFile]:
	stmt = select(PatientFile).where(PatientFile.telegram_id == telegram_id)
	if category is not None:
		stmt = stmt.where(PatientFile.category == category)
	stmt = stmt.order_by(PatientFile.uploaded_at.desc(), PatientFile.id.desc())
	return list(session.execute(stmt).scalars())


def get_patient_file(session: Session, file_row_id: int) -> Optional[PatientFile]:
	return session.get(PatientFile, file_row_id)
