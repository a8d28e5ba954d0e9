from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.dates as mdates

from db.database import session_scope
from db.models import WeightEntry
from db import repo
from services.nutrition import calculate_bmr, gender_code
from services.patients import PatientNotFound

logger = logging.getLogger(__name__)

HISTORY_PREVIEW = 10


@dataclass
class WeightUpdate:
	weight: float
	previous_weight: Optional[float]
	difference: Optional[float]
	bmr: Optional[int]


@dataclass
class WeightStats:
	has_history: bool
	total_entries: int = 0
	start_weight: float = 0.0
	latest_weight: float = 0.0
	total_change: float = 0.0
	percent_change: float = 0.0
	avg_per_week: float = 0.0
	days_since_start: int = 0


def record_weight(telegram_id: int, weight: float, notes: str | None = None, now: datetime | None = None) -> WeightUpdate:
	now = now or datetime.now()
	with session_scope() as s:
		patient = repo.get_patient(s, telegram_id)
		if patient is None:
			raise PatientNotFound(telegram_id)
		previous = patient.weight
		repo.add_weight_entry(s, telegram_id, weight, notes=notes, recorded_at=now)
		patient.weight = weight
		patient.updated_at = now
		bmr = None
		if patient.height and patient.age and patient.gender:
			bmr = calculate_bmr(weight, patient.height, patient.age, gender_code(patient.gender))
	difference = round(weight - previous, 1) if previous is not None else None
	logger.info("Weight %.1f recorded for %s", weight, telegram_id)
	return WeightUpdate(weight=weight, previous_weight=previous, difference=difference, bmr=bmr)


def get_weight_history(telegram_id: int) -> List[WeightEntry]:
	with session_scope() as s:
		return repo.get_weight_history(s, telegram_id)


def calculate_weight_stats(history: Sequence[WeightEntry], current_weight: float | None = None) -> WeightStats:
	if not history:
		return WeightStats(has_history=False)
	first, last = history[0], history[-1]
	start_weight = first.weight
	latest = current_weight or last.weight
	total_change = latest - start_weight
	days = (last.recorded_at - first.recorded_at).total_seconds() / 86400
	weeks = max(days / 7, 0.1)
	return WeightStats(
		has_history=True,
		total_entries=len(history),
		start_weight=start_weight,
		latest_weight=latest,
		total_change=round(total_change, 1),
		percent_change=round(total_change / start_weight * 100, 1),
		avg_per_week=round(total_change / weeks, 2),
		days_since_start=round(days),
	)


def _signed(value: float) -> str:
	return f"+{value:g}" if value > 0 else f"{value:g}"


def _trend_emoji(value: float) -> str:
	if value > 0:
		return "📈"
	if value < 0:
		return "📉"
	return "➡️"


def format_weight_history(history: Sequence[WeightEntry], stats: WeightStats) -> str:
	if not stats.has_history:
		return (
			"📊 *Histórico de Peso*\n\n"
			"📭 Você ainda não possui registros de peso.\n\n"
			"Use o botão abaixo para adicionar seu primeiro peso!"
		)
	lines = [
		"📊 *Histórico de Evolução de Peso*\n",
		"═══════════════════",
		f"⚖️ *Peso Inicial:* {stats.start_weight:g} kg",
		f"📍 *Peso Atual:* {stats.latest_weight:g} kg",
		f"{_trend_emoji(stats.total_change)} *Variação:* {_signed(stats.total_change)} kg ({stats.percent_change:g}%)",
		f"📅 *Tempo:* {stats.days_since_start} dias",
		f"📈 *Média/semana:* {_signed(stats.avg_per_week)} kg",
		"═══════════════════\n",
		f"📝 *Registros ({stats.total_entries}):*\n",
	]
	for index, entry in enumerate(history[-HISTORY_PREVIEW:], start=1):
		lines.append(f"{index}. {entry.weight:g} kg - {entry.recorded_at.strftime('%d/%m/%Y %H:%M')}")
		if entry.notes:
			lines.append(f"   💬 _{entry.notes}_")
	if len(history) > HISTORY_PREVIEW:
		lines.append(f"\n_... e mais {len(history) - HISTORY_PREVIEW} registro(s)_")
	return "\n".join(lines)


def format_weight_update(update: WeightUpdate) -> str:
	text = f"✅ *Peso registrado!*\n\n⚖️ *Novo peso:* {update.weight:g} kg\n"
	if update.previous_weight is not None and update.difference is not None:
		text += (
			f"📍 *Peso anterior:* {update.previous_weight:g} kg\n"
			f"{_trend_emoji(update.difference)} *Diferença:* {_signed(update.difference)} kg\n"
		)
	if update.bmr is not None:
		text += f"\n🔥 *Nova TMB (basal):* ~{update.bmr} kcal/dia\n💡 Ajuste os macros/calorias conforme nova TMB.\n"
	return text


def render_weight_chart(history: Sequence[WeightEntry]) -> bytes | None:
	"""PNG line chart of the weight history, or None without entries."""
	if not history:
		return None
	dates = [e.recorded_at for e in history]
	weights = [float(e.weight) for e in history]
	fig, ax = plt.subplots(figsize=(6, 3))
	try:
		ax.plot(dates, weights, marker="o")
		ax.set_title("Evolução do peso")
		ax.set_xlabel("Data")
		ax.set_ylabel("Peso, kg")
		ax.xaxis.set_major_formatter(mdates.DateFormatter("%d/%m"))
		fig.autofmt_xdate()
		fig.tight_layout()
		buf = io.BytesIO()
		fig.savefig(buf, format="png")
	finally:
		plt.close(fig)
	return buf.getvalue()

