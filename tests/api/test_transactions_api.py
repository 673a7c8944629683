"""Tests for account book, transaction and summary endpoints."""

from decimal import Decimal

import pytest
from httpx import AsyncClient


async def _create_book(client: AsyncClient, headers: dict, name: str = "Household") -> dict:
    response = await client.post(
        "/api/account-books", json={"name": name, "tag": "home"}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _create_txn(client: AsyncClient, headers: dict, book_id: int, **fields) -> dict:
    payload = {
        "account_book_id": book_id,
        "amount": "10.00",
        "date": "2025-01-15",
        "type": "expense",
        "category": "Food",
        "description": None,
    }
    payload.update(fields)
    response = await client.post("/api/transactions", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAccountBooks:

    @pytest.mark.asyncio
    async def test_crud(self, async_client: AsyncClient, auth_headers: dict):
        book = await _create_book(async_client, auth_headers)
        assert book["name"] == "Household"

        response = await async_client.get("/api/account-books", headers=auth_headers)
        assert [b["id"] for b in response.json()] == [book["id"]]

        response = await async_client.put(
            f"/api/account-books/{book['id']}",
            json={"name": "Family", "tag": None, "description": "Shared costs"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Family"

        response = await async_client.delete(f"/api/account-books/{book['id']}", headers=auth_headers)
        assert response.status_code == 200
        response = await async_client.get("/api/account-books", headers=auth_headers)
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_delete_removes_transactions(self, async_client: AsyncClient, auth_headers: dict):
        book = await _create_book(async_client, auth_headers)
        await _create_txn(async_client, auth_headers, book["id"])

        await async_client.delete(f"/api/account-books/{book['id']}", headers=auth_headers)

        response = await async_client.get("/api/transactions", headers=auth_headers)
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_foreign_book_is_not_found(self, async_client: AsyncClient, auth_headers: dict, register):
        book = await _create_book(async_client, auth_headers)
        other_headers = await register("other@example.com")

        response = await async_client.delete(f"/api/account-books/{book['id']}", headers=other_headers)
        assert response.status_code == 404


class TestTransactions:

    @pytest.mark.asyncio
    async def test_create_update_delete(self, async_client: AsyncClient, auth_headers: dict):
        book = await _create_book(async_client, auth_headers)
        txn = await _create_txn(async_client, auth_headers, book["id"], amount="42.50")
        assert txn["account_book_name"] == "Household"
        assert Decimal(txn["amount"]) == Decimal("42.50")

        response = await async_client.put(
            f"/api/transactions/{txn['id']}",
            json={
                "account_book_id": book["id"],
                "amount": "50",
                "date": "2025-01-16",
                "type": "income",
                "category": "Salary",
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["type"] == "income"
        assert response.json()["category"] == "Salary"

        response = await async_client.delete(f"/api/transactions/{txn['id']}", headers=auth_headers)
        assert response.status_code == 200
        response = await async_client.delete(f"/api/transactions/{txn['id']}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_transaction_needs_own_book(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/transactions",
            json={
                "account_book_id": 999,
                "amount": "10",
                "date": "2025-01-15",
                "type": "expense",
                "category": "Food",
            },
            headers=auth_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, async_client: AsyncClient, auth_headers: dict):
        book = await _create_book(async_client, auth_headers)
        response = await async_client.post(
            "/api/transactions",
            json={
                "account_book_id": book["id"],
                "amount": "-3",
                "date": "2025-01-15",
                "type": "expense",
                "category": "Food",
            },
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestSummaries:

    @pytest.mark.asyncio
    async def test_summaries(self, async_client: AsyncClient, auth_headers: dict):
        home = await _create_book(async_client, auth_headers, "Household")
        await _create_book(async_client, auth_headers, "Travel")
        await _create_txn(async_client, auth_headers, home["id"], amount="1000", type="income", category="Salary")
        await _create_txn(async_client, auth_headers, home["id"], amount="300", category="Rent")
        await _create_txn(async_client, auth_headers, home["id"], amount="100", category="Food")
        await _create_txn(async_client, auth_headers, home["id"], amount="100", category="Food", date="2025-02-03")

        response = await async_client.get("/api/account-books-summary", headers=auth_headers)
        summary = {s["account_book_name"]: s for s in response.json()}
        assert Decimal(summary["Household"]["total_income"]) == Decimal("1000")
        assert Decimal(summary["Household"]["total_expense"]) == Decimal("500")
        assert Decimal(summary["Travel"]["total_expense"]) == Decimal("0")

        response = await async_client.get("/api/monthly-summary", headers=auth_headers)
        months = response.json()
        assert [m["month"] for m in months] == ["2025-01", "2025-02"]
        assert Decimal(months[0]["total_income"]) == Decimal("1000")
        assert Decimal(months[0]["total_expense"]) == Decimal("400")
        assert Decimal(months[1]["total_expense"]) == Decimal("100")

        response = await async_client.get("/api/top-categories", headers=auth_headers)
        top = response.json()
        assert [c["category"] for c in top] == ["Rent", "Food"]

        response = await async_client.get("/api/category-ratio", headers=auth_headers)
        ratios = {c["category"]: c["percentage"] for c in response.json()}
        assert ratios["Rent"] == pytest.approx(60.0)
        assert ratios["Food"] == pytest.approx(40.0)

    @pytest.mark.asyncio
    async def test_summaries_without_data(self, async_client: AsyncClient, auth_headers: dict):
        for path in ("/api/monthly-summary", "/api/top-categories", "/api/category-ratio"):
            response = await async_client.get(path, headers=auth_headers)
            assert response.status_code == 200
            assert response.json() == []


class TestImport:

    @pytest.mark.asyncio
    async def test_import_valid_file(self, async_client: AsyncClient, auth_headers: dict):
        book = await _create_book(async_client, auth_headers)
        content = (
            "date\tamount\ttype\tcategory\tdescription\taccount_book_id\n"
            f"2025-03-01\t12.50\texpense\tFood\tLunch\t{book['id']}\n"
            f"2025-03-02\t2000\tincome\tSalary\t\t{book['id']}\n"
        )

        response = await async_client.post(
            "/api/transactions/import",
            files={"file": ("march.csv", content.encode(), "text/csv")},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["imported"] == 2

        response = await async_client.get("/api/transactions", headers=auth_headers)
        assert len(response.json()) == 2

    @pytest.mark.asyncio
    async def test_import_reports_row_errors(self, async_client: AsyncClient, auth_headers: dict):
        book = await _create_book(async_client, auth_headers)
        content = (
            "date\tamount\ttype\tcategory\tdescription\taccount_book_id\n"
            f"2025-03-01\t12.50\texpense\tFood\tLunch\t{book['id']}\n"
            f"03/02/2025\t10\texpense\tFood\t\t{book['id']}\n"
            f"2025-03-03\tabc\texpense\tFood\t\t{book['id']}\n"
            "2025-03-04\t10\texpense\tFood\t\t999\n"
        )

        response = await async_client.post(
            "/api/transactions/import",
            files={"file": ("march.csv", content.encode(), "text/csv")},
            headers=auth_headers,
        )
        data = response.json()
        assert data["success"] is False
        assert [e["row"] for e in data["errors"]] == [3, 4, 5]

        response = await async_client.get("/api/transactions", headers=auth_headers)
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_import_rejects_non_finite_amounts(self, async_client: AsyncClient, auth_headers: dict):
        book = await _create_book(async_client, auth_headers)
        content = (
            "date\tamount\ttype\tcategory\tdescription\taccount_book_id\n"
            f"2025-03-01\tInfinity\texpense\tFood\t\t{book['id']}\n"
            f"2025-03-02\tNaN\texpense\tFood\t\t{book['id']}\n"
        )

        response = await async_client.post(
            "/api/transactions/import",
            files={"file": ("march.csv", content.encode(), "text/csv")},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert [e["row"] for e in data["errors"]] == [2, 3]

    @pytest.mark.asyncio
    async def test_import_rejects_other_extensions(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/transactions/import",
            files={"file": ("march.xlsx", b"whatever", "application/octet-stream")},
            headers=auth_headers,
        )
        assert response.json()["success"] is False
