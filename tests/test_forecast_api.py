"""Integration tests for the forecast API."""
from unittest.mock import patch

import pytest
from sqlalchemy import select

from app.config import settings
from app.forecast.engine import apply_what_if
from app.models import FinancialForecast, ForecastEmployee, ForecastPLLine, Notification
from tests.conftest import auth_headers

PL_EXPORT = """Profit and Loss
Acme Plumbing
Account,Jul 2025,Aug 2025,Total
Income,,,
Sales,"1,000.00",1200.00,2200.00
Total Income,1000.00,1200.00,2200.00
Operating Expenses,,,
Rent,500.00,500.00,1000.00
Total Operating Expenses,500.00,500.00,1000.00
Net Profit,500.00,700.00,1200.00
"""


async def _create_forecast(client, business, user, **overrides):
    payload = {"business_id": business.id, "name": "FY26 Forecast", "fiscal_year": 2026}
    payload.update(overrides)
    response = await client.post("/api/forecasts", json=payload, headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()


async def _add_line(client, forecast_id, user, **payload):
    response = await client.post(
        f"/api/forecasts/{forecast_id}/lines", json=payload, headers=auth_headers(user)
    )
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Forecasts
# =============================================================================

class TestForecastCrud:

    @pytest.mark.asyncio
    async def test_create_defaults_month_ranges(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)

        assert forecast["forecast_start_month"] == "2025-07"
        assert forecast["forecast_end_month"] == "2026-06"
        assert forecast["baseline_start_month"] == "2024-07"
        assert forecast["baseline_end_month"] == "2025-06"
        assert forecast["version_number"] == 1
        assert forecast["is_active"] is True
        assert forecast["user_id"] == owner.id

    @pytest.mark.asyncio
    async def test_calendar_year(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner, year_type="CY")

        assert forecast["forecast_start_month"] == "2026-01"
        assert forecast["forecast_end_month"] == "2026-12"

    @pytest.mark.asyncio
    async def test_outsider_cannot_create(self, client, business, outsider):
        response = await client.post(
            "/api/forecasts",
            json={"business_id": business.id, "name": "Nope", "fiscal_year": 2026},
            headers=auth_headers(outsider),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_filters_by_year(self, client, business, owner):
        await _create_forecast(client, business, owner)
        await _create_forecast(client, business, owner, name="FY27", fiscal_year=2027)

        response = await client.get(
            "/api/forecasts", params={"business_id": business.id, "fiscal_year": 2027},
            headers=auth_headers(owner),
        )
        names = [f["name"] for f in response.json()["forecasts"]]
        assert names == ["FY27"]

    @pytest.mark.asyncio
    async def test_complete_stamps_completed_at(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)

        response = await client.patch(
            f"/api/forecasts/{forecast['id']}", json={"is_completed": True}, headers=auth_headers(owner)
        )

        assert response.json()["is_completed"] is True
        assert response.json()["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_missing_forecast(self, client, owner):
        response = await client.get("/api/forecasts/fcst_missing", headers=auth_headers(owner))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_coach_cannot_delete(self, client, business, owner, coach):
        forecast = await _create_forecast(client, business, owner)

        response = await client.delete(f"/api/forecasts/{forecast['id']}", headers=auth_headers(coach))
        assert response.status_code == 403

        response = await client.delete(f"/api/forecasts/{forecast['id']}", headers=auth_headers(owner))
        assert response.status_code == 200


class TestLocking:

    @pytest.mark.asyncio
    async def test_locked_forecast_rejects_edits(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        url = f"/api/forecasts/{forecast['id']}"

        locked = await client.post(f"{url}/lock", headers=auth_headers(owner))
        assert locked.json()["is_locked"] is True
        assert locked.json()["locked_by"] == owner.id

        assert (await client.patch(url, json={"name": "Edited"}, headers=auth_headers(owner))).status_code == 409
        assert (await client.post(
            f"{url}/lines", json={"account_name": "Sales", "category": "Revenue"}, headers=auth_headers(owner)
        )).status_code == 409
        assert (await client.post(
            f"{url}/apply-scenario", json={"revenue_change": 10}, headers=auth_headers(owner)
        )).status_code == 409
        assert (await client.delete(url, headers=auth_headers(owner))).status_code == 409

        unlocked = await client.post(f"{url}/unlock", headers=auth_headers(owner))
        assert unlocked.json()["is_locked"] is False
        assert (await client.patch(url, json={"name": "Edited"}, headers=auth_headers(owner))).status_code == 200


# =============================================================================
# Lines and what-if
# =============================================================================

class TestLines:

    @pytest.mark.asyncio
    async def test_annual_amount_spread_over_forecast_months(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)

        line = await _add_line(
            client, forecast["id"], owner,
            account_name="Sales", category="Revenue", annual_amount=120000, start_month="2026-01",
        )

        months = line["forecast_months"]
        assert len(months) == 12
        assert months["2025-07"] == 0
        assert months["2026-01"] == 20000
        assert months["2026-06"] == 20000
        assert line["is_manual"] is True

    @pytest.mark.asyncio
    async def test_update_and_delete_line(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        line = await _add_line(client, forecast["id"], owner, account_name="Rent", category="Operating Expenses")

        response = await client.patch(
            f"/api/forecasts/lines/{line['id']}", json={"forecast_months": {"2025-07": 500}},
            headers=auth_headers(owner),
        )
        assert response.json()["forecast_months"] == {"2025-07": 500}

        response = await client.delete(f"/api/forecasts/lines/{line['id']}", headers=auth_headers(owner))
        assert response.status_code == 200

        response = await client.get(f"/api/forecasts/{forecast['id']}/lines", headers=auth_headers(owner))
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_invalid_category_rejected(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)

        response = await client.post(
            f"/api/forecasts/{forecast['id']}/lines",
            json={"account_name": "Mystery", "category": "Miscellaneous"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 422


class TestApplyScenario:

    @pytest.mark.asyncio
    async def test_percentages_apply_per_category(self, client, db, business, owner, coach):
        forecast = await _create_forecast(client, business, owner)
        await _add_line(client, forecast["id"], owner, account_name="Sales", category="Revenue",
                        forecast_months={"2025-07": 1000})
        await _add_line(client, forecast["id"], owner, account_name="Rent", category="Operating Expenses",
                        forecast_months={"2025-07": 400})
        await _add_line(client, forecast["id"], owner, account_name="Interest", category="Other Income",
                        forecast_months={"2025-07": 50})

        response = await client.post(
            f"/api/forecasts/{forecast['id']}/apply-scenario",
            json={"revenue_change": 10, "opex_change": -25},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["lines_updated"] == 3
        assert body["summary"]["revenue"] == pytest.approx(1100)
        assert body["summary"]["opex"] == pytest.approx(300)
        assert body["summary"]["other_income"] == pytest.approx(50)

        result = await db.execute(select(ForecastPLLine).where(ForecastPLLine.forecast_id == forecast["id"]))
        by_name = {line.account_name: line.forecast_months for line in result.scalars().all()}
        assert by_name["Sales"]["2025-07"] == pytest.approx(1100)
        assert by_name["Interest"]["2025-07"] == 50

        # The coach hears about it, the actor does not
        result = await db.execute(select(Notification).where(Notification.type == "forecast_updated"))
        assert [n.user_id for n in result.scalars().all()] == [coach.id]

    @pytest.mark.asyncio
    async def test_requires_parameters(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)

        response = await client.post(
            f"/api/forecasts/{forecast['id']}/apply-scenario", json={}, headers=auth_headers(owner)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_saved_scenario_from_other_forecast(self, client, business, owner):
        first = await _create_forecast(client, business, owner)
        second = await _create_forecast(client, business, owner, name="Other")
        scenario = await client.post(
            f"/api/forecasts/{first['id']}/scenarios",
            json={"name": "Growth", "revenue_multiplier": "1.2"},
            headers=auth_headers(owner),
        )

        response = await client.post(
            f"/api/forecasts/{second['id']}/apply-scenario",
            json={"scenario_id": scenario.json()["id"]},
            headers=auth_headers(owner),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_compare_skips_archived(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        await _add_line(client, forecast["id"], owner, account_name="Sales", category="Revenue",
                        forecast_months={"2025-07": 1000})
        url = f"/api/forecasts/{forecast['id']}/scenarios"
        await client.post(url, json={"name": "Growth", "revenue_multiplier": "1.5"}, headers=auth_headers(owner))
        await client.post(url, json={"name": "Old", "scenario_type": "archived"}, headers=auth_headers(owner))

        response = await client.get(f"{url}/compare", headers=auth_headers(owner))

        body = response.json()
        assert body["baseline"]["revenue"] == 1000
        assert [s["name"] for s in body["scenarios"]] == ["Growth"]
        assert body["scenarios"][0]["parameters"]["revenue_change"] == pytest.approx(50)
        assert body["scenarios"][0]["summary"]["revenue"] == pytest.approx(1500)


# =============================================================================
# Versions
# =============================================================================

class TestVersions:

    @pytest.mark.asyncio
    async def test_version_copies_lines_and_employees(self, client, db, business, owner):
        forecast = await _create_forecast(client, business, owner)
        await _add_line(client, forecast["id"], owner, account_name="Sales", category="Revenue",
                        forecast_months={"2025-07": 1000})
        db.add(ForecastEmployee(forecast_id=forecast["id"], employee_name="Pat Apprentice", annual_salary=55000))
        await db.commit()

        response = await client.post(
            "/api/forecasts/versions",
            json={
                "forecast_id": forecast["id"],
                "version_name": "Growth case",
                "parameters": {"revenue_change": 20, "cogs_change": 0, "opex_change": 5},
            },
            headers=auth_headers(owner),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["lines_copied"] == 1
        assert body["employees_copied"] == 1
        new_forecast = body["forecast"]
        assert new_forecast["version_number"] == 2
        assert new_forecast["parent_forecast_id"] == forecast["id"]
        assert new_forecast["version_notes"] == "Created from What-If: Revenue 20%, COGS 0pp, OpEx 5%"

        lines = (await client.get(f"/api/forecasts/{new_forecast['id']}/lines", headers=auth_headers(owner))).json()
        assert lines[0]["forecast_months"]["2025-07"] == pytest.approx(1200)

        original = (await client.get(f"/api/forecasts/{forecast['id']}", headers=auth_headers(owner))).json()
        assert original["is_active"] is False

    @pytest.mark.asyncio
    async def test_manual_version_notes(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)

        response = await client.post(
            "/api/forecasts/versions",
            json={"forecast_id": forecast["id"], "version_name": "Board budget", "version_type": "budget"},
            headers=auth_headers(owner),
        )

        body = response.json()
        assert body["forecast"]["version_notes"] == "Manual version creation"
        assert body["forecast"]["forecast_type"] == "budget"
        assert body["forecast"]["version_number"] == 1

        original = (await client.get(f"/api/forecasts/{forecast['id']}", headers=auth_headers(owner))).json()
        assert original["is_active"] is True

    @pytest.mark.asyncio
    async def test_list_versions(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        for name in ("v2", "v3"):
            await client.post(
                "/api/forecasts/versions",
                json={"forecast_id": forecast["id"], "version_name": name},
                headers=auth_headers(owner),
            )

        response = await client.get(
            "/api/forecasts/versions", params={"business_id": business.id, "fiscal_year": 2026},
            headers=auth_headers(owner),
        )
        assert [v["version_number"] for v in response.json()["versions"]] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_list_versions_requires_params(self, client, business, owner):
        response = await client.get(
            "/api/forecasts/versions", params={"business_id": business.id}, headers=auth_headers(owner)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_activate(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        version = (await client.post(
            "/api/forecasts/versions",
            json={"forecast_id": forecast["id"], "version_name": "v2"},
            headers=auth_headers(owner),
        )).json()["forecast"]

        response = await client.post(f"/api/forecasts/{forecast['id']}/activate", headers=auth_headers(owner))
        assert response.json()["is_active"] is True

        other = (await client.get(f"/api/forecasts/{version['id']}", headers=auth_headers(owner))).json()
        assert other["is_active"] is False


# =============================================================================
# CSV import
# =============================================================================

class TestImportCSV:

    @pytest.mark.asyncio
    async def test_import_merges_by_account_name(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        await _add_line(client, forecast["id"], owner, account_name="sales", category="Revenue",
                        actual_months={"2025-06": 900})

        response = await client.post(
            f"/api/forecasts/{forecast['id']}/import-csv",
            files={"baseline": ("pl.csv", PL_EXPORT.encode(), "text/csv")},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["lines_created"] == 1
        assert body["lines_updated"] == 1
        assert body["months"] == ["2025-07", "2025-08"]

        lines = (await client.get(f"/api/forecasts/{forecast['id']}/lines", headers=auth_headers(owner))).json()
        by_name = {line["account_name"]: line for line in lines}
        assert by_name["sales"]["actual_months"] == {"2025-06": 900, "2025-07": 1000, "2025-08": 1200}
        assert by_name["Rent"]["category"] == "Operating Expenses"
        assert by_name["Rent"]["is_manual"] is False

    @pytest.mark.asyncio
    async def test_bad_csv(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)

        response = await client.post(
            f"/api/forecasts/{forecast['id']}/import-csv",
            files={"baseline": ("notes.csv", b"just,some,text\n", "text/csv")},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("notes.csv:")


# =============================================================================
# Decisions and audit
# =============================================================================

class TestDecisionsAndAudit:

    @pytest.mark.asyncio
    async def test_record_decision(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        url = f"/api/forecasts/{forecast['id']}/decisions"

        response = await client.post(
            url,
            json={"decision_type": "hire", "decision_data": {"role": "Apprentice"}, "user_reasoning": "Backlog"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 201
        assert response.json()["business_id"] == business.id

        decisions = (await client.get(url, headers=auth_headers(owner))).json()
        assert decisions[0]["decision_data"] == {"role": "Apprentice"}

    @pytest.mark.asyncio
    async def test_audit_log(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        await _add_line(client, forecast["id"], owner, account_name="Sales", category="Revenue")
        url = f"/api/forecasts/{forecast['id']}/audit-log"

        logs = (await client.get(url, headers=auth_headers(owner))).json()
        assert {(log["table_name"], log["action"]) for log in logs} == {
            ("financial_forecasts", "create"),
            ("forecast_pl_lines", "create"),
        }
        assert all(log["user_id"] == owner.id for log in logs)

        filtered = (await client.get(url, params={"action": "create"}, headers=auth_headers(owner))).json()
        assert len(filtered) == 2


# =============================================================================
# Partial updates and failures
# =============================================================================

def _fail_on_second_line():
    calls = []

    def side_effect(line, params):
        calls.append(line.account_name)
        if len(calls) == 2:
            raise RuntimeError("storage went away")
        return apply_what_if(line, params)

    return side_effect


class TestNullUpdates:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"name": None},
        {"forecast_end_month": None},
        {"is_completed": None},
    ])
    async def test_forecast_rejects_null(self, client, business, owner, payload):
        forecast = await _create_forecast(client, business, owner)

        response = await client.patch(f"/api/forecasts/{forecast['id']}", json=payload, headers=auth_headers(owner))

        assert response.status_code == 422
        unchanged = (await client.get(f"/api/forecasts/{forecast['id']}", headers=auth_headers(owner))).json()
        assert unchanged["name"] == "FY26 Forecast"
        assert unchanged["forecast_end_month"] == forecast["forecast_end_month"]

    @pytest.mark.asyncio
    async def test_line_rejects_null(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner)
        line = await _add_line(client, forecast["id"], owner, account_name="Sales", category="Revenue")

        for payload in ({"account_name": None}, {"forecast_months": None}):
            response = await client.patch(
                f"/api/forecasts/lines/{line['id']}", json=payload, headers=auth_headers(owner)
            )
            assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_nullable_fields_still_clear(self, client, business, owner):
        forecast = await _create_forecast(client, business, owner, revenue_goal="500000")

        response = await client.patch(
            f"/api/forecasts/{forecast['id']}", json={"revenue_goal": None}, headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json()["revenue_goal"] is None


class TestFailuresRollBack:

    @pytest.mark.asyncio
    async def test_apply_scenario_failure_leaves_lines_untouched(self, client, db, business, owner):
        forecast = await _create_forecast(client, business, owner)
        await _add_line(client, forecast["id"], owner, account_name="Sales", category="Revenue",
                        forecast_months={"2025-07": 1000})
        await _add_line(client, forecast["id"], owner, account_name="Rent", category="Operating Expenses",
                        forecast_months={"2025-07": 400})

        with patch("app.forecast.service.apply_what_if", side_effect=_fail_on_second_line()):
            with pytest.raises(RuntimeError):
                await client.post(
                    f"/api/forecasts/{forecast['id']}/apply-scenario",
                    json={"revenue_change": 50, "opex_change": 50},
                    headers=auth_headers(owner),
                )

        result = await db.execute(select(ForecastPLLine).where(ForecastPLLine.forecast_id == forecast["id"]))
        by_name = {line.account_name: line.forecast_months for line in result.scalars().all()}
        assert by_name == {"Sales": {"2025-07": 1000}, "Rent": {"2025-07": 400}}

    @pytest.mark.asyncio
    async def test_version_failure_creates_nothing(self, client, db, business, owner):
        forecast = await _create_forecast(client, business, owner)
        await _add_line(client, forecast["id"], owner, account_name="Sales", category="Revenue",
                        forecast_months={"2025-07": 1000})
        await _add_line(client, forecast["id"], owner, account_name="Rent", category="Operating Expenses",
                        forecast_months={"2025-07": 400})

        with patch("app.forecast.service.apply_what_if", side_effect=_fail_on_second_line()):
            with pytest.raises(RuntimeError):
                await client.post(
                    "/api/forecasts/versions",
                    json={
                        "forecast_id": forecast["id"],
                        "version_name": "Half-built",
                        "parameters": {"revenue_change": 10, "cogs_change": 0, "opex_change": 0},
                    },
                    headers=auth_headers(owner),
                )

        result = await db.execute(select(FinancialForecast).where(FinancialForecast.business_id == business.id))
        forecasts = result.scalars().all()
        assert [f.id for f in forecasts] == [forecast["id"]]
        assert forecasts[0].is_active is True

        result = await db.execute(select(ForecastPLLine))
        assert len(result.scalars().all()) == 2


class TestImportLimits:

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected(self, client, business, owner, monkeypatch):
        forecast = await _create_forecast(client, business, owner)
        monkeypatch.setattr(settings, "MAX_IMPORT_BYTES", 100)

        response = await client.post(
            f"/api/forecasts/{forecast['id']}/import-csv",
            files={"baseline": ("big.csv", PL_EXPORT.encode(), "text/csv")},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "big.csv is too large"

        lines = (await client.get(f"/api/forecasts/{forecast['id']}/lines", headers=auth_headers(owner))).json()
        assert lines == []
