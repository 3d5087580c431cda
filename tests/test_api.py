import httpx
import pytest
import pytest_asyncio

from workboard.database.config import connection_engine
from workboard.database.daos.entity_dao import EntityDao
from workboard.main import app


@pytest_asyncio.fixture
async def client(engine):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.mark.asyncio
async def test_entity_crud_roundtrip(client):
    created = await client.post("/entities/cliente", json={"nombre": "ACME", "ciudad": "Madrid"})
    assert created.status_code == 201
    cliente_id = created.json()["id"]

    patched = await client.patch(f"/entities/cliente/{cliente_id}", json={"ciudad": "Sevilla"})
    assert patched.status_code == 200
    assert patched.json()["ciudad"] == "Sevilla"
    assert patched.json()["nombre"] == "ACME"

    fetched = await client.get(f"/entities/cliente/{cliente_id}")
    assert fetched.json()["ciudad"] == "Sevilla"

    deleted = await client.delete(f"/entities/cliente/{cliente_id}")
    assert deleted.json() is True
    assert (await client.get(f"/entities/cliente/{cliente_id}")).status_code == 404


@pytest.mark.asyncio
async def test_list_accepts_filters_ordering_and_search(client):
    for nombre, cliente_id in (("Beta", "c1"), ("Alfa", "c1"), ("Gamma", "c2")):
        await client.post("/entities/proyecto", json={"nombre": nombre, "cliente_id": cliente_id})

    filtered = await client.get("/entities/proyecto", params={"cliente_id": "c1"})
    assert [p["nombre"] for p in filtered.json()] == ["Alfa", "Beta"]

    descending = await client.get("/entities/proyecto", params={"ascending": "false"})
    assert [p["nombre"] for p in descending.json()] == ["Gamma", "Beta", "Alfa"]

    searched = await client.get("/entities/proyecto", params={"search": "GAM"})
    assert [p["nombre"] for p in searched.json()] == ["Gamma"]


@pytest.mark.asyncio
async def test_batch_lookup(client):
    ids = [(await client.post("/entities/miembro", json={"nombre": n})).json()["id"] for n in ("Ana", "Bea")]

    response = await client.post("/entities/miembro/batch", json={"ids": ids + ["desconocido"]})

    assert sorted(m["nombre"] for m in response.json()) == ["Ana", "Bea"]


@pytest.mark.asyncio
async def test_update_missing_entity_is_404(client):
    response = await client.patch("/entities/cliente/00000000-0000-0000-0000-000000000000", json={"nombre": "x"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_messaging_flow(client):
    sent = await client.post("/messages", json={"sender_id": "ana", "recipient_id": "bea", "content": " hola "})
    assert sent.status_code == 201
    message = sent.json()
    assert message["content"] == "hola"
    assert message["read"] is False

    await client.post("/messages", json={"sender_id": "ana", "recipient_id": "bea", "content": "¿me lees?"})

    unread = await client.get("/members/bea/unread_count")
    assert unread.json() == {"member_id": "bea", "unread_count": 2}

    summaries = (await client.get("/members/bea/conversations")).json()
    assert summaries[0]["other_member_id"] == "ana"
    assert summaries[0]["unread_count"] == 2

    conversation = (await client.get("/members/bea/conversations/ana")).json()
    assert [m["content"] for m in conversation] == ["hola", "¿me lees?"]

    read_one = await client.post(f"/messages/{message['id']}/read")
    assert read_one.json()["read"] is True

    marked = await client.post("/members/bea/conversations/ana/read")
    assert marked.json() == {"marked": 1}
    assert (await client.get("/members/bea/unread_count")).json()["unread_count"] == 0

    assert len((await client.get("/members/bea/inbox")).json()) == 2
    assert len((await client.get("/members/ana/sent")).json()) == 2


@pytest.mark.asyncio
async def test_blank_message_is_rejected(client):
    response = await client.post("/messages", json={"sender_id": "ana", "recipient_id": "bea", "content": "   "})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_store_failures_map_to_503_except_unread_count(client):
    await connection_engine.drop_tables()

    assert (await client.get("/members/bea/inbox")).status_code == 503
    unread = await client.get("/members/bea/unread_count")
    assert unread.status_code == 200
    assert unread.json()["unread_count"] == 0


@pytest.mark.asyncio
async def test_boolean_query_filters(client):
    await client.post("/entities/miembro", json={"nombre": "Ana", "activo": True})
    await client.post("/entities/miembro", json={"nombre": "Bea", "activo": False})

    response = await client.get("/entities/miembro", params={"activo": "true"})

    assert [m["nombre"] for m in response.json()] == ["Ana"]


@pytest.mark.asyncio
async def test_connection_failures_map_to_503_except_unread_count(client, monkeypatch):
    async def refused(*args, **kwargs):
        raise ConnectionRefusedError(111, "Connect call failed")

    monkeypatch.setattr(EntityDao, "fetchEntities", refused)

    assert (await client.get("/members/bea/inbox")).status_code == 503
    assert (await client.get("/entities/cliente")).status_code == 503
    unread = await client.get("/members/bea/unread_count")
    assert unread.status_code == 200
    assert unread.json()["unread_count"] == 0
