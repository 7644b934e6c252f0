import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from leadcrm.models.lead import Lead
from leadcrm.repositories.lead_repo import LeadRepository
from leadcrm.services.follow_ups import FOLLOW_UP_SLOTS
from test_lead_import import truncate_sheet_xml, xlsx_bytes

CSV_UPLOAD = (
    b"Name,Email,Phone,Platform,Do you have a website?\n"
    b"Jane Doe,Jane@Example.com,555-0100,Instagram,yes\n"
    b"John Roe,john@example.com,555-0101,Facebook,no\n"
    b"Jane Again,JANE@example.com,555-0102,TikTok,maybe\n"
    b"No Email,,555-0103,Web,\n"
)


def upload(content: bytes, filename: str = "leads.csv"):
    return {"file": (filename, content, "text/csv")}


class TestListLeads:
    """GET /api/leads"""

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.get("/api/leads")
        assert response.status_code == 401
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_admin_sees_all(self, client, admin, sales_a, make_leads, auth_headers):
        await make_leads(2, assigned_to=sales_a.id)
        await make_leads(1)
        response = await client.get("/api/leads", headers=auth_headers(admin))
        assert response.status_code == 200
        assert len(response.json()["leads"]) == 3

    @pytest.mark.asyncio
    async def test_sales_sees_only_own(self, client, sales_a, sales_b, db, auth_headers):
        db.add(Lead(email="mine@example.com", full_name="Mine", assigned_to=sales_a.id))
        db.add(Lead(email="theirs@example.com", full_name="Theirs", assigned_to=sales_b.id))
        db.add(Lead(email="nobody@example.com", full_name="Nobody"))
        await db.commit()

        response = await client.get("/api/leads", headers=auth_headers(sales_a))
        leads = response.json()["leads"]
        assert [lead["email"] for lead in leads] == ["mine@example.com"]
        assert leads[0]["assignedTo"] == str(sales_a.id)

    @pytest.mark.asyncio
    async def test_sales_cannot_widen_filter(self, client, sales_a, sales_b, make_leads, auth_headers):
        await make_leads(1, assigned_to=sales_b.id)
        response = await client.get(
            "/api/leads",
            params={"assigned_to": str(sales_b.id)},
            headers=auth_headers(sales_a),
        )
        assert response.json()["leads"] == []

    @pytest.mark.asyncio
    async def test_search_and_unassigned_filters(self, client, admin, sales_a, make_leads, auth_headers):
        leads = await make_leads(3)
        await client.post(
            "/api/leads/assign",
            json={"leadId": str(leads[0].id), "userId": str(sales_a.id)},
            headers=auth_headers(admin),
        )

        response = await client.get("/api/leads", params={"unassigned": "true"}, headers=auth_headers(admin))
        assert {lead["id"] for lead in response.json()["leads"]} == {str(leads[1].id), str(leads[2].id)}

        response = await client.get("/api/leads", params={"search": "LEAD2@"}, headers=auth_headers(admin))
        assert [lead["id"] for lead in response.json()["leads"]] == [str(leads[2].id)]


class TestImportLeads:
    """POST /api/leads (spreadsheet upload)"""

    @pytest.mark.asyncio
    async def test_imports_and_dedups(self, client, admin, auth_headers):
        response = await client.post("/api/leads", files=upload(CSV_UPLOAD), headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json() == {"added": 2}

        leads = (await client.get("/api/leads", headers=auth_headers(admin))).json()["leads"]
        by_email = {lead["email"]: lead for lead in leads}
        assert set(by_email) == {"jane@example.com", "john@example.com"}
        assert by_email["jane@example.com"]["hasWebsite"] is True
        assert by_email["john@example.com"]["hasWebsite"] is False
        assert all(lead["assignedTo"] is None for lead in leads)

    @pytest.mark.asyncio
    async def test_reupload_adds_nothing(self, client, admin, auth_headers):
        await client.post("/api/leads", files=upload(CSV_UPLOAD), headers=auth_headers(admin))
        response = await client.post("/api/leads", files=upload(CSV_UPLOAD), headers=auth_headers(admin))
        assert response.json() == {"added": 0}

    @pytest.mark.asyncio
    async def test_admin_only(self, client, sales_a, auth_headers):
        response = await client.post("/api/leads", files=upload(CSV_UPLOAD), headers=auth_headers(sales_a))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_file_required(self, client, admin, auth_headers):
        response = await client.post("/api/leads", headers=auth_headers(admin))
        assert response.status_code == 400
        assert "file" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_malformed_file(self, client, admin, auth_headers):
        response = await client.post(
            "/api/leads",
            files=upload(b"garbage", "leads.xlsx"),
            headers=auth_headers(admin),
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("Failed to parse file")

    @pytest.mark.asyncio
    async def test_truncated_xlsx(self, client, admin, auth_headers):
        content = truncate_sheet_xml(xlsx_bytes([
            ["Name", "Email"],
            ["Jane", "jane@example.com"],
            ["Joe", "joe@example.com"],
        ]))
        response = await client.post(
            "/api/leads",
            files=upload(content, "leads.xlsx"),
            headers=auth_headers(admin),
        )
        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_store_failure_inserts_nothing(self, client, admin, auth_headers, monkeypatch):
        async def failing_bulk_create(self, leads_data):
            self.session.add(Lead(**leads_data[0]))
            await self.session.flush()
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(LeadRepository, "bulk_create", failing_bulk_create)
        response = await client.post("/api/leads", files=upload(CSV_UPLOAD), headers=auth_headers(admin))
        assert response.status_code == 500
        assert response.json() == {"error": "Lead import failed: disk full"}

        monkeypatch.undo()
        leads = (await client.get("/api/leads", headers=auth_headers(admin))).json()["leads"]
        assert leads == []


class TestGetLead:
    """GET /api/leads/{id}"""

    @pytest.mark.asyncio
    async def test_admin_gets_any_lead(self, client, admin, make_leads, auth_headers):
        [lead] = await make_leads(1)
        response = await client.get(f"/api/leads/{lead.id}", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["lead"]["email"] == "lead0@example.com"

    @pytest.mark.asyncio
    async def test_admin_missing_lead(self, client, admin, auth_headers):
        response = await client.get(f"/api/leads/{uuid.uuid4()}", headers=auth_headers(admin))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_sales_owner(self, client, sales_a, make_leads, auth_headers):
        [lead] = await make_leads(1, assigned_to=sales_a.id)
        response = await client.get(f"/api/leads/{lead.id}", headers=auth_headers(sales_a))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_sales_other_owner_forbidden(self, client, sales_a, sales_b, make_leads, auth_headers):
        [lead] = await make_leads(1, assigned_to=sales_b.id)
        response = await client.get(f"/api/leads/{lead.id}", headers=auth_headers(sales_a))
        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    @pytest.mark.asyncio
    async def test_sales_missing_lead_forbidden(self, client, sales_a, auth_headers):
        response = await client.get(f"/api/leads/{uuid.uuid4()}", headers=auth_headers(sales_a))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_bad_id(self, client, admin, auth_headers):
        response = await client.get("/api/leads/not-a-uuid", headers=auth_headers(admin))
        assert response.status_code == 400


class TestFollowUpNotes:
    """GET/POST /api/leads/{id}/notes"""

    @pytest.mark.asyncio
    async def test_add_and_list(self, client, sales_a, make_leads, auth_headers):
        [lead] = await make_leads(1, assigned_to=sales_a.id)
        url = f"/api/leads/{lead.id}/notes"

        first = await client.post(url, json={"content": "  Called, no answer  "}, headers=auth_headers(sales_a))
        assert first.status_code == 200
        assert first.json()["note"]["id"] == "f1"
        assert first.json()["note"]["content"] == "Called, no answer"
        assert first.json()["note"]["userId"] == str(sales_a.id)

        second = await client.post(url, json={"content": "Sent proposal"}, headers=auth_headers(sales_a))
        assert second.json()["note"]["id"] == "f2"

        notes = (await client.get(url, headers=auth_headers(sales_a))).json()["notes"]
        assert [n["content"] for n in notes] == ["Called, no answer", "Sent proposal"]
        assert len({n["createdAt"] for n in notes}) == 1

    @pytest.mark.asyncio
    async def test_capacity(self, client, admin, make_leads, auth_headers, fetch_lead):
        [lead] = await make_leads(1)
        url = f"/api/leads/{lead.id}/notes"
        for i in range(FOLLOW_UP_SLOTS):
            response = await client.post(url, json={"content": f"note {i + 1}"}, headers=auth_headers(admin))
            assert response.json()["note"]["id"] == f"f{i + 1}"

        response = await client.post(url, json={"content": "overflow"}, headers=auth_headers(admin))
        assert response.status_code == 400
        assert response.json() == {"error": "All follow-up slots are filled"}

        stored = await fetch_lead(lead.id)
        assert stored.follow_up_10 == "note 10"

    @pytest.mark.asyncio
    async def test_blank_content(self, client, admin, make_leads, auth_headers):
        [lead] = await make_leads(1)
        response = await client.post(
            f"/api/leads/{lead.id}/notes", json={"content": "   "}, headers=auth_headers(admin)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_other_owner_forbidden(self, client, sales_a, sales_b, make_leads, auth_headers):
        [lead] = await make_leads(1, assigned_to=sales_b.id)
        response = await client.post(
            f"/api/leads/{lead.id}/notes", json={"content": "hi"}, headers=auth_headers(sales_a)
        )
        assert response.status_code == 403


class TestCloseDeal:
    """POST /api/leads/{id}/closed"""

    @pytest.mark.asyncio
    async def test_close_with_month(self, client, sales_a, make_leads, auth_headers):
        [lead] = await make_leads(1, assigned_to=sales_a.id)
        response = await client.post(
            f"/api/leads/{lead.id}/closed",
            json={"amount": 1000, "closedMonth": "2020-01"},
            headers=auth_headers(sales_a),
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True, "closedAmount": 1000.0, "closedMonth": "2020-01"}

        detail = (await client.get(f"/api/leads/{lead.id}", headers=auth_headers(sales_a))).json()["lead"]
        assert detail["commission"] == 100.0
        assert detail["recurringCommission"] == 30.0

    @pytest.mark.asyncio
    async def test_month_defaults_to_current(self, client, admin, make_leads, auth_headers):
        [lead] = await make_leads(1)
        response = await client.post(
            f"/api/leads/{lead.id}/closed", json={"amount": "1000"}, headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert response.json()["closedMonth"].startswith(datetime.now(timezone.utc).strftime("%Y-%m-01"))

        detail = (await client.get(f"/api/leads/{lead.id}", headers=auth_headers(admin))).json()["lead"]
        assert detail["commission"] == 100.0
        assert detail["recurringCommission"] is None

    @pytest.mark.asyncio
    async def test_reclose_keeps_latest(self, client, admin, make_leads, auth_headers, fetch_lead):
        [lead] = await make_leads(1)
        url = f"/api/leads/{lead.id}/closed"
        await client.post(url, json={"amount": 500, "closedMonth": "2026-01"}, headers=auth_headers(admin))
        await client.post(url, json={"amount": 750, "closedMonth": "2026-02"}, headers=auth_headers(admin))

        stored = await fetch_lead(lead.id)
        assert stored.closed_amount == 750
        assert stored.closed_month == "2026-02"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [-1, "abc", None])
    async def test_invalid_amount(self, client, admin, make_leads, auth_headers, amount):
        [lead] = await make_leads(1)
        response = await client.post(
            f"/api/leads/{lead.id}/closed", json={"amount": amount}, headers=auth_headers(admin)
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Amount must be a non-negative number"}

    @pytest.mark.asyncio
    async def test_invalid_json(self, client, admin, make_leads, auth_headers):
        [lead] = await make_leads(1)
        response = await client.post(
            f"/api/leads/{lead.id}/closed",
            content=b"{not json",
            headers={**auth_headers(admin), "Content-Type": "application/json"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_store_failure_surfaces_message(self, client, admin, make_leads, auth_headers, monkeypatch):
        [lead] = await make_leads(1)

        async def failing_close_deal(self, lead_id, amount, closed_month):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(LeadRepository, "close_deal", failing_close_deal)
        response = await client.post(
            f"/api/leads/{lead.id}/closed", json={"amount": 1000}, headers=auth_headers(admin)
        )
        assert response.status_code == 500
        assert response.json() == {"error": "connection reset"}
