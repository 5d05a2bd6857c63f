import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

from httpx import ASGITransport, AsyncClient

from stock_ledger.api.database import Database
from stock_ledger.api.dependencies import http_error
from stock_ledger.api.main import create_app
from stock_ledger.config import LedgerSettings
from stock_ledger.errors import DividendTransformIncomplete, RechainIncomplete

USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}
ADMIN = {"X-User-Id": "ops", "X-User-Role": "admin"}


def _database(tmp_path: Path) -> Database:
    db_path = tmp_path / "test_ledger.db"
    database = Database(url=f"sqlite+aiosqlite:///{db_path}")
    asyncio.run(database.create_all())
    return database


def _client(database: Database):
    app = create_app(database, LedgerSettings(database_url=database.url))

    @asynccontextmanager
    async def _manager():
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client

    return _manager


async def _company(api_client: AsyncClient, name: str = "SSI") -> int:
    response = await api_client.post("/companies", json={"name": name}, headers=USER)
    assert response.status_code == 201
    return response.json()["id"]


def test_health_reports_ok(tmp_path: Path):
    client_manager = _client(_database(tmp_path))

    async def _scenario():
        async with client_manager() as api_client:
            response = await api_client.get("/health")
            assert response.status_code == 200
            assert response.json() == {"status": "ok", "service": "stock-ledger"}

    asyncio.run(_scenario())


def test_requests_without_user_are_rejected(tmp_path: Path):
    client_manager = _client(_database(tmp_path))

    async def _scenario():
        async with client_manager() as api_client:
            response = await api_client.get("/long-term-orders")
            assert response.status_code == 401

    asyncio.run(_scenario())


def test_company_defaults_and_duplicates(tmp_path: Path):
    client_manager = _client(_database(tmp_path))

    async def _scenario():
        async with client_manager() as api_client:
            created = await api_client.post("/companies", json={"name": "SSI", "is_default": True}, headers=USER)
            assert created.status_code == 201
            payload = created.json()
            assert payload["buy_fee_rate"] == 0.0015
            assert payload["tax_rate"] == 0.001
            assert payload["is_default"] is True

            duplicate = await api_client.post("/companies", json={"name": "ssi"}, headers=USER)
            assert duplicate.status_code == 409

            missing = await api_client.get("/companies/999", headers=USER)
            assert missing.status_code == 404

    asyncio.run(_scenario())


def test_long_term_order_flow(tmp_path: Path):
    client_manager = _client(_database(tmp_path))

    async def _scenario():
        async with client_manager() as api_client:
            company_id = await _company(api_client)

            bought = await api_client.post(
                "/long-term-orders",
                json={
                    "stock_code": "hpg",
                    "company_id": company_id,
                    "type": "BUY",
                    "quantity": 1000,
                    "price": 50000,
                    "trade_date": "2024-01-02",
                },
                headers=USER,
            )
            assert bought.status_code == 201
            assert bought.json()["stock_code"] == "HPG"
            assert bought.json()["fee"] == 75000
            assert bought.json()["cost_basis"] == 50075000

            sold = await api_client.post(
                "/long-term-orders",
                json={
                    "stock_code": "HPG",
                    "company_id": company_id,
                    "type": "SELL",
                    "quantity": 500,
                    "price": 60000,
                    "trade_date": "2024-03-01",
                },
                headers=USER,
            )
            assert sold.status_code == 201
            sold_payload = sold.json()
            assert sold_payload["cost_basis"] == 25037500
            assert sold_payload["profit"] == 4887500

            listing = await api_client.get("/long-term-orders", params={"stock_code": "HPG"}, headers=USER)
            assert [o["type"] for o in listing.json()] == ["SELL", "BUY"]

            positions = await api_client.get("/long-term-orders/positions", headers=USER)
            assert positions.status_code == 200
            [position] = positions.json()
            assert position["quantity"] == 500
            assert position["realized_profit"] == 4887500

            updated = await api_client.put(
                f"/long-term-orders/{sold_payload['id']}",
                json={"quantity": 400},
                headers=USER,
            )
            assert updated.status_code == 200
            assert updated.json()["cost_basis"] == 20030000

            recalculated = await api_client.post(
                "/long-term-orders/recalculate", params={"stock_code": "HPG"}, headers=USER
            )
            assert recalculated.status_code == 200
            assert recalculated.json()["positions"][0]["quantity"] == 600

            hidden = await api_client.get(f"/long-term-orders/{sold_payload['id']}", headers=OTHER_USER)
            assert hidden.status_code == 404
            visible = await api_client.get(f"/long-term-orders/{sold_payload['id']}", headers=ADMIN)
            assert visible.status_code == 200

            deleted = await api_client.delete(f"/long-term-orders/{sold_payload['id']}", headers=USER)
            assert deleted.status_code == 204

            in_use = await api_client.delete(f"/companies/{company_id}", headers=USER)
            assert in_use.status_code == 409

    asyncio.run(_scenario())


def test_order_validation_errors(tmp_path: Path):
    client_manager = _client(_database(tmp_path))

    async def _scenario():
        async with client_manager() as api_client:
            company_id = await _company(api_client)
            base = {"stock_code": "HPG", "type": "BUY", "price": 1000, "trade_date": "2024-01-02"}

            unknown_company = await api_client.post(
                "/long-term-orders", json={**base, "company_id": 999, "quantity": 10}, headers=USER
            )
            assert unknown_company.status_code == 400

            zero_quantity = await api_client.post(
                "/long-term-orders", json={**base, "company_id": company_id, "quantity": 0}, headers=USER
            )
            assert zero_quantity.status_code == 422

    asyncio.run(_scenario())


def test_t0_order_flow(tmp_path: Path):
    client_manager = _client(_database(tmp_path))

    async def _scenario():
        async with client_manager() as api_client:
            company_id = await _company(api_client)
            created = await api_client.post(
                "/t0-orders",
                json={
                    "stock_code": "HPG",
                    "company_id": company_id,
                    "quantity": 1000,
                    "buy_price": 25000,
                    "sell_price": 25500,
                    "trade_date": "2024-05-06",
                },
                headers=USER,
            )
            assert created.status_code == 201
            payload = created.json()
            assert payload["buy_fee"] == 37500
            assert payload["sell_fee"] == 38250
            assert payload["sell_tax"] == 25500
            assert payload["profit_after_fees"] == 398750

            listing = await api_client.get("/t0-orders", headers=USER)
            assert len(listing.json()) == 1
            assert (await api_client.get("/t0-orders", headers=OTHER_USER)).json() == []

            stats = await api_client.get("/stats", headers=USER)
            assert stats.status_code == 200
            assert stats.json()["t0_profit_after_fees"] == 398750

            deleted = await api_client.delete(f"/t0-orders/{payload['id']}", headers=USER)
            assert deleted.status_code == 204

    asyncio.run(_scenario())


def test_dividend_apply_and_delete(tmp_path: Path):
    client_manager = _client(_database(tmp_path))

    async def _scenario():
        async with client_manager() as api_client:
            company_id = await _company(api_client)
            bought = await api_client.post(
                "/long-term-orders",
                json={
                    "stock_code": "HPG",
                    "company_id": company_id,
                    "type": "BUY",
                    "quantity": 1000,
                    "price": 50000,
                    "trade_date": "2024-01-02",
                },
                headers=USER,
            )
            order_id = bought.json()["id"]

            dividend = await api_client.post(
                "/dividends",
                json={"stock_code": "HPG", "dividend_date": "2024-02-01", "type": "STOCK", "value": 10},
                headers=USER,
            )
            assert dividend.status_code == 201
            dividend_id = dividend.json()["id"]
            assert dividend.json()["is_used"] is False

            applied = await api_client.post(f"/dividends/{dividend_id}/apply", headers=USER)
            assert applied.status_code == 200
            assert applied.json()["adjusted"] == 1
            assert applied.json()["dividend"]["is_used"] is True

            order = (await api_client.get(f"/long-term-orders/{order_id}", headers=USER)).json()
            assert order["quantity"] == 1100
            assert order["price"] == 45454

            again = await api_client.post(f"/dividends/{dividend_id}/apply", headers=USER)
            assert again.status_code == 409

            edit = await api_client.put(f"/dividends/{dividend_id}", json={"value": 20}, headers=USER)
            assert edit.status_code == 409

            removed = await api_client.delete(f"/dividends/{dividend_id}", headers=USER)
            assert removed.status_code == 200
            assert removed.json()["adjusted"] == 1

            order = (await api_client.get(f"/long-term-orders/{order_id}", headers=USER)).json()
            assert order["quantity"] == 1000
            assert order["price"] == 49999

            gone = await api_client.get(f"/dividends/{dividend_id}", headers=USER)
            assert gone.status_code == 404

    asyncio.run(_scenario())


def test_incomplete_batches_map_to_server_errors_with_counts():
    transform = http_error(DividendTransformIncomplete(1, 2))
    assert transform.status_code == 500
    assert transform.detail["adjusted"] == 1
    assert transform.detail["remaining"] == 2

    replay = http_error(RechainIncomplete("HPG", 3, 4))
    assert replay.status_code == 500
    assert replay.detail["saved"] == 3
    assert replay.detail["pending"] == 4
