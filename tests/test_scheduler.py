# DOMESTICA/backend/tests/test_scheduler.py : génération des visites et prix par visite

from datetime import date

import pytest

from app.errors import ValidationError
from app.services.scheduler import (
    ScheduleConfig, compute_price_per_visit, generate_visits, schedule_summary
)
from app.utils import round_half_up


def _config(**overrides):
    values = {
        "weeks": 2,
        "visits_per_week": 3,
        "hours_per_visit": 4,
        "start_date": date(2024, 1, 1),
        "total_price": 3600,
    }
    values.update(overrides)
    return ScheduleConfig(**values)


class TestGenerateVisits:

    def test_two_weeks_three_per_week(self):
        """2 semaines × 3 visites: 6 visites à 600 les 1, 3, 5, 8, 10 et 12 janvier"""
        drafts = generate_visits(_config())

        assert len(drafts) == 6
        assert [d.scheduled_date.day for d in drafts] == [1, 3, 5, 8, 10, 12]
        assert all(d.price == 600 for d in drafts)
        assert all(d.hours == 4 for d in drafts)

    def test_sequences_are_contiguous(self):
        drafts = generate_visits(_config(weeks=4, visits_per_week=5))
        assert [d.sequence for d in drafts] == list(range(1, 21))

    def test_dates_never_decrease(self):
        for frequency in range(1, 8):
            drafts = generate_visits(_config(weeks=3, visits_per_week=frequency))
            dates = [d.scheduled_date for d in drafts]
            assert dates == sorted(dates)
            assert dates[0] == date(2024, 1, 1)

    def test_daily_visits(self):
        drafts = generate_visits(_config(weeks=1, visits_per_week=7, total_price=7000))
        assert [d.scheduled_date.day for d in drafts] == [1, 2, 3, 4, 5, 6, 7]

    def test_frequency_not_dividing_week_clusters_early(self):
        """Espacement floor(7/f): avec f=5 les visites tombent du lundi au vendredi"""
        drafts = generate_visits(_config(weeks=2, visits_per_week=5, total_price=5000))
        assert [d.scheduled_date.day for d in drafts] == [1, 2, 3, 4, 5, 8, 9, 10, 11, 12]

    def test_each_week_starts_seven_days_later(self):
        drafts = generate_visits(_config(weeks=3, visits_per_week=2, total_price=6000))
        firsts = [d.scheduled_date for d in drafts if (d.sequence - 1) % 2 == 0]
        assert firsts == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]


class TestPricing:

    def test_remainder_is_not_redistributed(self):
        """1000 sur 3 visites: 333 chacune, la somme vaut 999"""
        drafts = generate_visits(_config(weeks=1, visits_per_week=3, total_price=1000))
        assert [d.price for d in drafts] == [333, 333, 333]
        assert sum(d.price for d in drafts) == 999

    def test_exact_division(self):
        assert compute_price_per_visit(6000, 4) == 1500

    def test_half_rounds_up(self):
        assert compute_price_per_visit(1001, 2) == 501
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2

    def test_sum_within_visit_count_of_total(self):
        for total in (999, 1000, 1234, 3601):
            config = _config(weeks=1, visits_per_week=7, total_price=total)
            drafts = generate_visits(config)
            assert abs(sum(d.price for d in drafts) - total) <= config.total_visits - 1


class TestValidation:

    @pytest.mark.parametrize("overrides,field", [
        ({"weeks": 0}, "weeks"),
        ({"visits_per_week": 0}, "visits_per_week"),
        ({"visits_per_week": 8}, "visits_per_week"),
        ({"hours_per_visit": 0}, "hours_per_visit"),
        ({"start_date": None}, "start_date"),
        ({"total_price": 0}, "total_price"),
        ({"total_price": None}, "total_price"),
        ({"total_price": float("nan")}, "total_price"),
        ({"total_price": float("inf")}, "total_price"),
        ({"hours_per_visit": float("nan")}, "hours_per_visit"),
        ({"hours_per_visit": float("inf")}, "hours_per_visit"),
    ])
    def test_invalid_config_is_rejected(self, overrides, field):
        with pytest.raises(ValidationError) as exc:
            generate_visits(_config(**overrides))
        assert exc.value.extra["field"] == field

    def test_totals(self):
        config = _config(weeks=3, visits_per_week=2, hours_per_visit=5)
        assert config.total_visits == 6
        assert config.total_hours == 30

    def test_summary(self):
        assert schedule_summary(_config()) == "2 semana(s), 3 visita(s)/semana"
