"""
Tests for blooddrive.validators module.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from blooddrive.exceptions import ValidationError
from blooddrive.validators import validate_campaign, validate_location, validate_profile, validate_profile_update, validate_signup

TODAY = date(2025, 2, 1)
NOW = datetime(2025, 2, 1, 12, tzinfo=timezone.utc)


class TestSignup:
    def test_valid(self):
        assert validate_signup(" Donor@Example.org ", "password1", "password1", True) == "donor@example.org"

    @pytest.mark.parametrize(
        ("email", "password", "confirm", "terms", "field"),
        [
            ("", "password1", "password1", True, None),
            ("not-an-email", "password1", "password1", True, "email"),
            ("a@b.org", "short", "short", True, "password"),
            ("a@b.org", "password1", "password2", True, "confirm_password"),
            ("a@b.org", "password1", "password1", False, "accepted_terms"),
        ],
    )
    def test_rejections(self, email, password, confirm, terms, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_signup(email, password, confirm, terms)
        assert exc_info.value.field == field


class TestProfile:
    def _valid(self, **overrides):
        fields = {
            "name": " Ana ",
            "last_name": "Rojas",
            "email": "ana@example.org",
            "blood_type": "o+",
            "phone": "7123-4567",
            "birthday": date(1990, 6, 1),
            "height": 165,
            "weight": 60,
            "last_donation": None,
            "today": TODAY,
        }
        fields.update(overrides)
        return validate_profile(**fields)

    def test_builds_completed_profile(self):
        row = self._valid()
        assert row["name"] == "Ana"
        assert row["blood_type"] == "O+"
        assert row["is_complete"] is True
        assert row["role"] == "user"
        assert row["status"] == "active"
        assert row["next_date"] is None

    def test_last_donation_sets_next_date(self):
        row = self._valid(last_donation=date(2025, 1, 10))
        assert row["next_date"] == "2025-03-07"

    def test_required_fields(self):
        with pytest.raises(ValidationError, match="required"):
            self._valid(last_name="  ")

    @pytest.mark.parametrize("phone", ["123", "123456789", "71234-5678"])
    def test_phone_needs_eight_digits(self, phone):
        with pytest.raises(ValidationError) as exc_info:
            self._valid(phone=phone)
        assert exc_info.value.field == "phone"

    def test_blank_phone_is_allowed(self):
        assert self._valid(phone="")["phone"] is None

    @pytest.mark.parametrize("birthday", [date(2007, 2, 2), date(1959, 1, 31)])
    def test_age_range(self, birthday):
        with pytest.raises(ValidationError) as exc_info:
            self._valid(birthday=birthday)
        assert exc_info.value.field == "birthday"

    def test_age_boundaries_accepted(self):
        self._valid(birthday=date(2007, 2, 1))
        self._valid(birthday=date(1959, 2, 2))

    def test_minimum_weight(self):
        with pytest.raises(ValidationError) as exc_info:
            self._valid(weight=49.5)
        assert exc_info.value.field == "weight"
        assert self._valid(weight=50)["weight"] == 50.0

    def test_unknown_blood_type(self):
        with pytest.raises(ValidationError):
            self._valid(blood_type="C+")

    def test_future_last_donation(self):
        with pytest.raises(ValidationError):
            self._valid(last_donation=TODAY + timedelta(days=1))


class TestProfileUpdate:
    def test_only_sent_fields(self):
        changes = validate_profile_update(phone="71234567", weight=None, fields_set={"phone"})
        assert changes == {"phone": "71234567"}

    def test_clearing_a_field(self):
        assert validate_profile_update(height=None, fields_set={"height"}) == {"height": None}

    def test_nothing_to_update(self):
        with pytest.raises(ValidationError, match="Nothing to update"):
            validate_profile_update(fields_set=set())

    def test_same_rules_as_completion(self):
        with pytest.raises(ValidationError):
            validate_profile_update(weight=40, fields_set={"weight"})


class TestCampaign:
    def _valid(self, **overrides):
        fields = {
            "name": "Jornada de invierno",
            "campaign_type": "Jornada",
            "component": "Sangre total",
            "location_id": 1,
            "starts_at": NOW + timedelta(days=3),
            "ends_at": NOW + timedelta(days=3, hours=8),
            "description": "  ",
            "now": NOW,
        }
        fields.update(overrides)
        return validate_campaign(**fields)

    def test_valid_create(self):
        row = self._valid()
        assert row["status"] == "active"
        assert row["descripcion"] is None
        assert row["id_locacion"] == 1
        assert row["fecha_inicio"].startswith("2025-02-04T12:00:00")

    def test_end_must_follow_start(self):
        start = NOW + timedelta(days=3)
        with pytest.raises(ValidationError, match="end date/time must be after the start"):
            self._valid(starts_at=start, ends_at=start)

    def test_create_rejects_past_start(self):
        with pytest.raises(ValidationError, match="future"):
            self._valid(starts_at=NOW - timedelta(hours=1), ends_at=NOW + timedelta(hours=1))

    def test_edit_keeps_past_start(self):
        row = self._valid(
            starts_at=NOW - timedelta(hours=1),
            ends_at=NOW + timedelta(hours=1),
            creating=False,
            status="completed",
        )
        assert row["status"] == "completed"

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"name": ""}, "name"),
            ({"name": "x" * 201}, "name"),
            ({"campaign_type": "Maratón"}, "type"),
            ({"component": "Médula"}, "component"),
            ({"location_id": None}, "location_id"),
            ({"starts_at": None}, "starts_at"),
            ({"description": "x" * 2001}, "description"),
            ({"creating": False, "status": "archived"}, "status"),
        ],
    )
    def test_field_errors(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            self._valid(**overrides)
        assert exc_info.value.field == field

    def test_blood_type_component(self):
        assert self._valid(component="AB-")["componente"] == "AB-"


class TestLocation:
    def _valid(self, **overrides):
        fields = {"name": "Hospital", "address": "Calle 1", "entity_id": 1, "latitude": -16.5, "longitude": -68.1}
        fields.update(overrides)
        return validate_location(**fields)

    def test_valid(self):
        row = self._valid(map_link=" ")
        assert row["map_link"] is None
        assert row["status"] == "active"
        assert row["id_entidad"] == 1

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"latitude": 90.5}, "latitude"),
            ({"longitude": -180.1}, "longitude"),
            ({"address": ""}, "address"),
            ({"entity_id": None}, "entity_id"),
            ({"status": "closed"}, "status"),
        ],
    )
    def test_field_errors(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            self._valid(**overrides)
        assert exc_info.value.field == field

    def test_coordinates_optional(self):
        row = self._valid(latitude=None, longitude=None)
        assert row["latitud"] is None
