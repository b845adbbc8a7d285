from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from marketpredict.models import (
    Company,
    Direction,
    EntitySentiment,
    Exchange,
    Prediction,
    StorySentiment,
)


def _prediction(**overrides) -> Prediction:
    fields = dict(
        company_id="ACME",
        prediction_date=datetime(2016, 3, 1, 9, 30, tzinfo=timezone.utc),
        validity_period=86_400_000,
        direction=Direction.DOWN,
        predicted_change=Decimal("-2"),
        predicted_change_percent=Decimal("-2.27"),
        certainty=Decimal("0.5"),
        last_bid=Decimal("100"),
        last_ask=Decimal("102"),
        potential_earning_per_share=Decimal("4"),
    )
    fields.update(overrides)
    return Prediction(**fields)


class TestDirection:
    def test_of_change(self) -> None:
        assert Direction.of_change(Decimal("0.01")) is Direction.UP
        assert Direction.of_change(Decimal("-3")) is Direction.DOWN
        assert Direction.of_change(Decimal("0")) is Direction.NONE

    def test_values_round_trip_from_storage(self) -> None:
        assert Direction("Up") is Direction.UP
        assert Direction("None") is Direction.NONE


class TestPrediction:
    def test_open_by_default(self) -> None:
        p = _prediction()
        assert p.is_resolved is False
        assert p.actual_change is None
        assert p.id is None

    def test_resolved_once_correctness_set(self) -> None:
        assert _prediction(correct=False).is_resolved is True

    def test_expires_at(self) -> None:
        p = _prediction()
        assert p.expires_at == datetime(2016, 3, 2, 9, 30, tzinfo=timezone.utc)

    def test_overdue_only_after_expiry(self) -> None:
        p = _prediction()
        assert p.is_overdue(p.expires_at) is False
        assert p.is_overdue(p.expires_at + timedelta(milliseconds=1)) is True


class TestStorySentiment:
    def test_total_sums_entities(self) -> None:
        story = StorySentiment(
            company_id="ACME",
            story_date=datetime(2016, 3, 1, tzinfo=timezone.utc),
            entity_sentiments=[EntitySentiment("Acme", -2), EntitySentiment("Rival", 5)],
        )
        assert story.total == 3

    def test_empty_story_is_neutral(self) -> None:
        story = StorySentiment(company_id="ACME", story_date=datetime(2016, 3, 1, tzinfo=timezone.utc))
        assert story.total == 0


class TestCompany:
    def test_exchange_defaults_to_end_of_day(self) -> None:
        assert Exchange(id="LSE", name="London").intraday is False
        assert Company(id="ACME", name="Acme", exchange_id="LSE").exchange_id == "LSE"
