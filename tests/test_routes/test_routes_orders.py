import json

import pytest
from fastapi import FastAPI, status
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.core.security import get_current_user
from cinema_orders.db.session import get_db
from cinema_orders.routes.movies import router as catalog_router
from cinema_orders.routes.orders.orders import router as orders_router
from cinema_orders.services import order_store
from cinema_orders.services.notifier import get_notifier


class DummyUser:
    def __init__(self, id):
        self.id = id


@pytest.fixture(scope="function")
def app(session, customer, notifier):
    app = FastAPI()
    app.include_router(orders_router)
    app.include_router(catalog_router)

    app.dependency_overrides[get_db] = lambda: session
    app.dependency_overrides[get_notifier] = lambda: notifier
    # a plain object survives the rollbacks that expire ORM instances
    current = DummyUser(customer.id)
    app.dependency_overrides[get_current_user] = lambda: current
    return app


@pytest.fixture(scope="function")
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app), base_url="http://test"
    ) as client:
        yield client


def order_body(show_id, seats, **extra):
    body = {"show_id": show_id, "seats": seats, "total_amount": "500", "payment_id": "pay_abc"}
    body.update(extra)
    return body


@pytest.mark.anyio
async def test_place_order(client: AsyncClient, show, popcorn, notifier):
    async with notifier.subscribe("orders", "insert") as sub:
        r = await client.post(
            "/orders/",
            json=order_body(show.id, ["A1", "A2"], items=[{"snack_id": popcorn.id, "quantity": 2}]),
        )
        assert r.status_code == status.HTTP_201_CREATED
        data = r.json()
        assert (await sub.wait(timeout=1)).record_id == data["id"]

    assert data["status"] == "Confirmed"
    assert data["movie_title"] == "Interstellar"
    assert [s["seat_number"] for s in data["seats"]] == ["A1", "A2"]
    assert data["items"][0]["snack_name"] == "Butter Popcorn"
    assert data["items"][0]["quantity"] == 2


@pytest.mark.anyio
async def test_double_booking_is_rejected(client: AsyncClient, show):
    show_id = show.id
    r = await client.post("/orders/", json=order_body(show_id, ["C1"]))
    assert r.status_code == status.HTTP_201_CREATED

    r = await client.post("/orders/", json=order_body(show_id, ["C2", "C1"]))
    assert r.status_code == status.HTTP_409_CONFLICT

    r = await client.get(f"/shows/{show_id}/seats")
    booked = [s["seat_number"] for s in r.json()["seats"] if s["is_booked"]]
    assert booked == ["C1"]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "overrides",
    [
        {"seats": []},
        {"total_amount": "0"},
        {"payment_id": ""},
        {"items": [{"snack_id": 1, "quantity": 0}]},
    ],
)
async def test_place_order_schema_validation(client: AsyncClient, show, overrides):
    body = order_body(show.id, ["A1"])
    body.update(overrides)
    r = await client.post("/orders/", json=body)
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.anyio
async def test_place_order_domain_errors(client: AsyncClient, show):
    show_id = show.id
    r = await client.post("/orders/", json=order_body(show_id, ["A1", "A1"]))
    assert r.status_code == status.HTTP_400_BAD_REQUEST

    r = await client.post("/orders/", json=order_body(show_id, ["Q9"]))
    assert r.status_code == status.HTTP_404_NOT_FOUND

    r = await client.post("/orders/", json=order_body(9999, ["A1"]))
    assert r.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.anyio
async def test_my_orders_split_active_and_history(
    client: AsyncClient, session: AsyncSession, other_customer, show, notifier
):
    r = await client.post("/orders/", json=order_body(show.id, ["D1"]))
    first = r.json()["id"]
    r = await client.post("/orders/", json=order_body(show.id, ["D2"]))
    second = r.json()["id"]
    await order_store.create_order(
        session, other_customer, show.id, ["D3"], [], 100, "pay_other", notifier=notifier
    )

    await order_store.update_status(session, first, "Ready", notifier=notifier)
    await order_store.update_status(session, first, "Collected", notifier=notifier)

    r = await client.get("/orders/")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert [o["id"] for o in data["active"]] == [second]
    assert [o["id"] for o in data["history"]] == [first]


@pytest.mark.anyio
async def test_order_detail_is_owner_only(
    client: AsyncClient, session: AsyncSession, other_customer, show, notifier
):
    foreign = await order_store.create_order(
        session, other_customer, show.id, ["E5"], [], 100, "pay_other", notifier=notifier
    )
    r = await client.get(f"/orders/{foreign.id}")
    assert r.status_code == status.HTTP_404_NOT_FOUND

    r = await client.post("/orders/", json=order_body(show.id, ["E6"]))
    own = r.json()["id"]
    r = await client.get(f"/orders/{own}")
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["payment_id"] == "pay_abc"


@pytest.mark.anyio
async def test_pickup_payload(client: AsyncClient, session: AsyncSession, show, notifier):
    r = await client.post("/orders/", json=order_body(show.id, ["F1", "F2"]))
    order_id = r.json()["id"]

    r = await client.get(f"/orders/{order_id}/pickup")
    assert r.status_code == status.HTTP_200_OK
    payload = r.json()
    assert payload["orderId"] == order_id
    assert payload["paymentId"] == "pay_abc"
    assert payload["seats"] == ["F1", "F2"]
    assert json.loads(payload["qr_data"])["seats"] == ["F1", "F2"]

    await order_store.update_status(session, order_id, "Ready", notifier=notifier)
    await order_store.update_status(session, order_id, "Collected", notifier=notifier)
    r = await client.get(f"/orders/{order_id}/pickup")
    assert r.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.anyio
async def test_catalog_lists_only_bookable_shows(client: AsyncClient, show, popcorn):
    r = await client.get("/shows")
    assert [s["id"] for s in r.json()] == [show.id]

    r = await client.get(f"/shows/{show.id}/seats")
    seats = r.json()["seats"]
    assert len(seats) == 64
    assert seats[0]["seat_number"] == "A1"
    assert seats[-1]["seat_number"] == "H8"

    r = await client.get("/snacks")
    assert [s["name"] for s in r.json()] == ["Butter Popcorn"]

    r = await client.get("/shows/9999/seats")
    assert r.status_code == status.HTTP_404_NOT_FOUND
