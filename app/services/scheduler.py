# DOMESTICA/backend/app/services/scheduler.py : planification des visites récurrentes

"""
Expansion d'une configuration de service en visites planifiées.

Fonction pure, sans accès à la base: elle peut être testée indépendamment du stockage.

Deux particularités:
- le prix par visite est arrondi à l'entier, le reste n'est pas redistribué
  (la somme des visites peut différer du prix total de n-1 unités au plus);
- l'espacement dans la semaine vaut floor(7 / visites_par_semaine), donc quand
  la fréquence ne divise pas 7 les visites se regroupent en début de semaine.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List

from app.constants import DAYS_IN_WEEK, MAX_VISITS_PER_WEEK
from app.errors import ValidationError
from app.utils import round_half_up


@dataclass(frozen=True)
class ScheduleConfig:
    weeks: int
    visits_per_week: int
    hours_per_visit: float
    start_date: date
    total_price: float

    @property
    def total_visits(self) -> int:
        return self.weeks * self.visits_per_week

    @property
    def total_hours(self) -> float:
        return self.total_visits * self.hours_per_visit

    @property
    def day_spacing(self) -> int:
        return DAYS_IN_WEEK // self.visits_per_week

    @property
    def price_per_visit(self) -> int:
        return compute_price_per_visit(self.total_price, self.total_visits)


@dataclass(frozen=True)
class VisitDraft:
    sequence: int
    scheduled_date: date
    hours: float
    price: int


def compute_price_per_visit(total_price: float, total_visits: int) -> int:
    if total_visits <= 0:
        return 0
    return round_half_up(total_price / total_visits)


def validate_config(config: ScheduleConfig) -> None:
    """Rejette une configuration invalide avant toute écriture"""
    if not isinstance(config.weeks, int) or config.weeks < 1:
        raise ValidationError("weeks must be an integer >= 1", field="weeks")
    if not isinstance(config.visits_per_week, int) or not 1 <= config.visits_per_week <= MAX_VISITS_PER_WEEK:
        raise ValidationError(
            f"visits_per_week must be between 1 and {MAX_VISITS_PER_WEEK}", field="visits_per_week"
        )
    if config.hours_per_visit is None or not math.isfinite(config.hours_per_visit) or config.hours_per_visit <= 0:
        raise ValidationError("hours_per_visit must be > 0", field="hours_per_visit")
    if config.start_date is None:
        raise ValidationError("start_date is required", field="start_date")
    if config.total_price is None or not math.isfinite(config.total_price) or config.total_price <= 0:
        raise ValidationError("total_price is required and must be > 0", field="total_price")


def generate_visits(config: ScheduleConfig) -> List[VisitDraft]:
    """Produit la liste ordonnée des visites (numérotées 1..semaines×fréquence)"""
    validate_config(config)

    price = config.price_per_visit
    spacing = config.day_spacing
    drafts = []
    sequence = 0
    for week in range(config.weeks):
        for slot in range(config.visits_per_week):
            sequence += 1
            offset = week * DAYS_IN_WEEK + slot * spacing
            drafts.append(VisitDraft(
                sequence=sequence,
                scheduled_date=config.start_date + timedelta(days=offset),
                hours=config.hours_per_visit,
                price=price,
            ))
    return drafts


def schedule_summary(config: ScheduleConfig) -> str:
    """Résumé lisible du calendrier, repris dans le message d'assignation"""
    return f"{config.weeks} semana(s), {config.visits_per_week} visita(s)/semana"
