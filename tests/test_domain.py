"""
Tests for blooddrive.domain module.

Covers:
- Validation code generation and normalization
- Timestamp/date parsing
- Cooldown and eligibility rules
- Campaign, admin-tab and location filters
- History pagination
- Level progress
- Map links
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from blooddrive import domain


class TestValidationCodes:
    def test_default_code_uses_alphabet_and_length(self):
        for _ in range(200):
            code = domain.generate_validation_code()
            assert len(code) == 4
            assert set(code) <= set(domain.VALIDATION_CODE_ALPHABET)

    def test_ambiguous_characters_never_appear(self):
        codes = "".join(domain.generate_validation_code(8) for _ in range(200))
        assert not set(codes) & {"I", "O", "0", "1"}

    @pytest.mark.parametrize("length", [4, 6, 8])
    def test_custom_length(self, length: int):
        assert len(domain.generate_validation_code(length)) == length

    @pytest.mark.parametrize("length", [0, 3, 9])
    def test_length_out_of_range(self, length: int):
        with pytest.raises(ValueError):
            domain.generate_validation_code(length)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (" x9a7 ", "X9A7"),
            ("abcdefghijk", "ABCDEFGH"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize_code(self, raw, expected):
        assert domain.normalize_code(raw) == expected


class TestParsing:
    def test_parse_timestamp_with_z_suffix(self):
        parsed = domain.parse_timestamp("2025-02-01T08:00:00Z")
        assert parsed == datetime(2025, 2, 1, 8, tzinfo=timezone.utc)

    def test_parse_timestamp_with_fractional_seconds(self):
        parsed = domain.parse_timestamp("2025-02-01T08:00:00.12345+00:00")
        assert parsed.microsecond == 123450

    def test_naive_timestamp_is_utc(self):
        assert domain.parse_timestamp("2025-02-01T08:00:00").tzinfo == timezone.utc

    def test_offset_is_converted_to_utc(self):
        parsed = domain.parse_timestamp("2025-02-01T20:00:00-04:00")
        assert parsed == datetime(2025, 2, 2, 0, tzinfo=timezone.utc)

    def test_empty_values(self):
        assert domain.parse_timestamp(None) is None
        assert domain.parse_timestamp("") is None
        assert domain.parse_date(None) is None

    def test_parse_date_from_timestamp(self):
        assert domain.parse_date("2025-02-01T23:30:00Z") == date(2025, 2, 1)
        assert domain.parse_date("2025-02-01") == date(2025, 2, 1)


class TestCooldown:
    def test_next_eligible_date_is_56_days_later(self):
        assert domain.next_eligible_date(date(2025, 2, 1)) == date(2025, 3, 29)

    def test_advance_uses_validation_date(self):
        assert domain.advance_next_date("2025-01-01", date(2025, 2, 1)) == date(2025, 3, 29)

    def test_advance_never_moves_backwards(self):
        later = date(2025, 6, 1)
        assert domain.advance_next_date(later.isoformat(), date(2025, 2, 1)) == later

    def test_advance_without_previous_date(self):
        assert domain.advance_next_date(None, date(2025, 2, 1)) == date(2025, 3, 29)


class TestEligibility:
    def test_no_next_date_is_eligible(self):
        assert domain.is_eligible(None, "2025-02-01T08:00:00Z")

    def test_next_date_before_start(self):
        assert domain.is_eligible("2025-01-01", "2025-02-01T08:00:00Z")

    def test_next_date_on_start_day(self):
        assert domain.is_eligible("2025-02-01", "2025-02-01T08:00:00Z")

    def test_next_date_after_start(self):
        assert not domain.is_eligible("2025-02-02", "2025-02-01T08:00:00Z")

    def test_can_donate_on(self):
        today = date(2025, 2, 1)
        assert domain.can_donate_on(None, today)
        assert domain.can_donate_on("2025-02-01", today)
        assert not domain.can_donate_on("2025-02-02", today)

    @pytest.mark.parametrize(
        ("birthday", "today", "expected"),
        [
            (date(2000, 5, 10), date(2025, 5, 9), 24),
            (date(2000, 5, 10), date(2025, 5, 10), 25),
            (date(2000, 2, 29), date(2025, 2, 28), 24),
        ],
    )
    def test_age_on(self, birthday, today, expected):
        assert domain.age_on(birthday, today) == expected


def _campaign(cid, start, *, end=None, status="active", tipo="Jornada", componente="Sangre total",
              loc_name="Hospital Central", address="Calle 1, La Paz", entity="Cruz Roja", name="Campaña"):
    return {
        "id": cid,
        "nombre": name,
        "tipo": tipo,
        "componente": componente,
        "status": status,
        "fecha_inicio": start.isoformat(),
        "fecha_fin": (end or start + timedelta(hours=8)).isoformat(),
        "locacion": {"nombre": loc_name, "direccion": address, "entidad": {"nombre": entity}},
    }


class TestCampaignFilters:
    base = datetime(2025, 3, 1, 9, tzinfo=timezone.utc)

    def _items(self):
        return [
            _campaign(1, self.base + timedelta(days=2), address="Av. Arce, La Paz"),
            _campaign(2, self.base, tipo="Emergencia", componente="Plaquetas", address="Calle 5, Cochabamba",
                      loc_name="Clínica Norte", entity="Banco de Sangre"),
            _campaign(3, self.base + timedelta(days=1), address="Plaza 3, Santa Cruz"),
        ]

    def test_sorted_by_start(self):
        assert [c["id"] for c in domain.filter_campaigns(self._items())] == [2, 3, 1]

    def test_text_query_matches_entity_and_component(self):
        assert [c["id"] for c in domain.filter_campaigns(self._items(), q="banco")] == [2]
        assert [c["id"] for c in domain.filter_campaigns(self._items(), q="PLAQUETAS")] == [2]

    def test_city_matches_address(self):
        assert [c["id"] for c in domain.filter_campaigns(self._items(), city="la paz")] == [1]

    def test_date_filter(self):
        result = domain.filter_campaigns(self._items(), on_date=date(2025, 3, 2))
        assert [c["id"] for c in result] == [3]

    def test_embedded_location_as_list(self):
        item = _campaign(4, self.base)
        item["locacion"] = [item["locacion"]]
        assert domain.filter_campaigns([item], q="hospital") == [item]


class TestAdminTabs:
    now = datetime(2025, 3, 1, 12, tzinfo=timezone.utc)

    def test_running_active_campaign_is_active_tab(self):
        c = _campaign(1, self.now - timedelta(hours=1), end=self.now + timedelta(hours=1))
        assert domain.in_admin_tab(c, "active", self.now)
        assert not domain.in_admin_tab(c, "history", self.now)

    def test_ended_campaign_is_history(self):
        c = _campaign(1, self.now - timedelta(days=2))
        assert domain.in_admin_tab(c, "history", self.now)

    def test_cancelled_future_campaign_is_history(self):
        c = _campaign(1, self.now + timedelta(days=2), status="cancelled")
        assert domain.in_admin_tab(c, "history", self.now)
        assert not domain.in_admin_tab(c, "active", self.now)

    def test_search_by_name(self):
        items = [
            _campaign(1, self.now + timedelta(days=1), name="Maratón solidaria"),
            _campaign(2, self.now + timedelta(days=1), name="Jornada escolar"),
        ]
        result = domain.filter_admin_campaigns(items, tab="active", q="maratón", now=self.now)
        assert [c["id"] for c in result] == [1]


class TestLocations:
    def test_filter_by_entity_name(self):
        locs = [
            {"nombre": "Hospital", "direccion": "Calle 1", "entidad": {"nombre": "Cruz Roja"}},
            {"nombre": "Clínica", "direccion": "Calle 2", "entidad": {"nombre": "Caja Nacional"}},
        ]
        assert domain.filter_locations(locs, "caja") == [locs[1]]
        assert domain.filter_locations(locs, "") == locs


class TestHistory:
    def _regs(self, n):
        return [{"id": i, "status": "validated" if i % 3 == 0 else "inscrita"} for i in range(n)]

    def test_filter(self):
        regs = self._regs(6)
        assert [r["id"] for r in domain.filter_history(regs, "validated")] == [0, 3]
        assert len(domain.filter_history(regs, "pending")) == 4
        assert domain.filter_history(regs, "all") == regs

    def test_paginate(self):
        page = domain.paginate(self._regs(23), 3, 10)
        assert page.total == 23
        assert page.total_pages == 3
        assert [r["id"] for r in page.items] == [20, 21, 22]

    def test_paginate_clamps_page(self):
        assert domain.paginate(self._regs(5), 7, 10).page == 1
        assert domain.paginate(self._regs(25), 0, 10).page == 1
        assert domain.paginate(self._regs(25), 9, 10).page == 3

    def test_paginate_empty(self):
        page = domain.paginate([], 1, 10)
        assert page.items == []
        assert page.total_pages == 1


class TestProfileHelpers:
    def test_full_name_and_initials(self):
        assert domain.full_name("Ana", "Rojas") == "Ana Rojas"
        assert domain.full_name(None, None) == "User"
        assert domain.initials("Ana Rojas") == "AR"

    def test_level_progress(self):
        progress = domain.level_progress(25, {"nombre": "Bronce", "orden": 1}, {"nombre": "Plata", "puntaje_minimo": 50})
        assert progress.progress_percentage == 50.0
        assert progress.next_level == "Plata"

    def test_level_progress_capped(self):
        progress = domain.level_progress(80, {"nombre": "Bronce", "orden": 1}, {"nombre": "Plata", "puntaje_minimo": 50})
        assert progress.progress_percentage == 100.0

    def test_top_level(self):
        progress = domain.level_progress(500, {"nombre": "Oro", "orden": 3}, None)
        assert progress.progress_percentage == 100.0
        assert progress.next_level is None


class TestMaps:
    loc = {"latitud": -16.5, "longitud": -68.15, "map_link": None}

    def test_explicit_link_wins(self):
        assert domain.map_href({**self.loc, "map_link": " https://maps.example/x "}) == "https://maps.example/x"

    def test_openstreetmap_fallback(self):
        assert domain.map_href(self.loc) == "https://www.openstreetmap.org/?mlat=-16.5&mlon=-68.15#map=17/-16.5/-68.15"

    def test_no_coordinates(self):
        assert domain.map_href({"latitud": None, "longitud": None}) is None
        assert domain.map_href(None) is None

    def test_static_map_url_uses_lng_lat_order(self):
        url = domain.static_map_url(self.loc, access_token="pk.test")
        assert "pin-s+ff0000(-68.15,-16.5)/-68.15,-16.5,16,0/960x380" in url
        assert url.endswith("access_token=pk.test")

    def test_static_map_requires_key(self):
        assert domain.static_map_url(self.loc, access_token=None) is None
