import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def route(api):
    origin = await api.warehouse("Supplier Dock")
    destination = await api.warehouse("Cold Room", warehouse_type="cold")
    product = await api.product("Yoghurt", sku="YO-1")
    transport = await api.transport("TRK-7")
    return origin, destination, product, transport


async def ship(api, origin, destination, product, transport, quantity=10):
    return await api.post("/shipments/", {
        "origin_warehouse_id": origin["id"],
        "destination_warehouse_id": destination["id"],
        "transport_id": transport["id"],
        "items": [{"product_id": product["id"], "quantity": quantity, "unit_price": "4.00"}],
        "priority": "high",
        "temperature_required": True,
        "min_temperature": 2,
        "max_temperature": 6,
    })


@pytest.mark.asyncio
async def test_create_shipment_reserves_transport(api, route):
    origin, destination, product, transport = route
    shipment = await ship(api, origin, destination, product, transport)

    assert shipment["status"] == "pending"
    assert shipment["shipment_number"].startswith("SH")
    assert shipment["tracking_number"].startswith("TK")
    assert shipment["driver_name"] == "Sam Driver"
    assert float(shipment["total_value"]) == 40.0
    assert shipment["destination_warehouse_name"] == "Cold Room"

    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "in-use"

    response = await api.client.delete(f"/api/v1/transports/{transport['id']}", headers=api.headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Transport is in use"


@pytest.mark.asyncio
async def test_unknown_references_are_rejected(api, route):
    origin, destination, product, transport = route
    payload = {
        "origin_warehouse_id": origin["id"],
        "destination_warehouse_id": destination["id"],
        "transport_id": 999,
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": "1"}],
    }
    await api.post("/shipments/", payload, expected=400)

    payload["transport_id"] = transport["id"]
    payload["destination_warehouse_id"] = 999
    response = await api.client.post("/api/v1/shipments/", headers=api.headers, json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == "Destination warehouse not found"


@pytest.mark.asyncio
async def test_status_workflow(api, route):
    origin, destination, product, transport = route
    shipment = await ship(api, origin, destination, product, transport)
    path = f"/shipments/{shipment['id']}/status"

    response = await api.client.patch(f"/api/v1{path}", headers=api.headers, json={"status": "delivered"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot change status from pending to delivered"

    shipment = await api.request("PATCH", path, json={"status": "in-transit"})
    assert shipment["actual_pickup_date"] is not None

    shipment = await api.request("PATCH", path, json={"status": "delayed"})
    shipment = await api.request("PATCH", path, json={"status": "delivered", "delivery_notes": "Left at dock"})
    assert shipment["status"] == "delivered"
    assert shipment["delivery_notes"] == "Left at dock"
    assert shipment["actual_delivery_date"] is not None

    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "available"
    await api.request("PATCH", path, expected=400, json={"status": "cancelled"})


@pytest.mark.asyncio
async def test_receive_good_items_into_destination(api, route):
    origin, destination, product, transport = route
    shipment = await ship(api, origin, destination, product, transport)
    item_id = shipment["items"][0]["id"]

    shipment = await api.post(f"/shipments/{shipment['id']}/receive", {
        "items": [{"item_id": item_id, "received_quantity": 8, "margin": "25"}],
        "delivery_notes": "Two cups missing",
    })
    assert shipment["status"] == "delivered"
    assert shipment["items"][0]["received_quantity"] == 8
    assert shipment["items"][0]["condition"] == "good"

    batches = await api.get("/batches/", params={"warehouse_id": destination["id"]})
    assert batches["total"] == 1
    batch = batches["data"][0]
    assert batch["quantity"] == 8
    assert float(batch["unit_cost"]) == 4.0
    assert float(batch["selling_price"]) == 5.0

    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "available"

    await api.post(f"/shipments/{shipment['id']}/receive", {
        "items": [{"item_id": item_id, "received_quantity": 8}],
    }, expected=400)


@pytest.mark.asyncio
async def test_damaged_items_are_not_stocked(api, route):
    origin, destination, product, transport = route
    shipment = await ship(api, origin, destination, product, transport)
    item_id = shipment["items"][0]["id"]

    shipment = await api.post(f"/shipments/{shipment['id']}/receive", {
        "items": [{"item_id": item_id, "received_quantity": 10, "condition": "damaged"}],
    })
    assert shipment["items"][0]["condition"] == "damaged"
    assert (await api.get("/batches/", params={"warehouse_id": destination["id"]}))["total"] == 0


@pytest.mark.asyncio
async def test_receive_validates_lines(api, route):
    origin, destination, product, transport = route
    shipment = await ship(api, origin, destination, product, transport)
    item_id = shipment["items"][0]["id"]
    path = f"/shipments/{shipment['id']}/receive"

    await api.post(path, {"items": [{"item_id": item_id, "received_quantity": 11}]}, expected=400)
    await api.post(path, {"items": [{"item_id": 999, "received_quantity": 1}]}, expected=400)
    await api.post(path, {"items": [
        {"item_id": item_id, "received_quantity": 1},
        {"item_id": item_id, "received_quantity": 1},
    ]}, expected=400)

    assert (await api.get(f"/shipments/{shipment['id']}"))["status"] == "pending"


@pytest.mark.asyncio
async def test_location_and_quality_check(api, route):
    origin, destination, product, transport = route
    shipment = await ship(api, origin, destination, product, transport)

    await api.post(f"/shipments/{shipment['id']}/location", {"address": "Highway 1, km 20"})
    shipment = await api.post(f"/shipments/{shipment['id']}/location", {
        "address": "Depot gate", "latitude": 40.1, "longitude": -3.7
    })
    assert shipment["current_location"]["address"] == "Depot gate"
    assert len(shipment["location_history"]) == 2

    shipment = await api.post(f"/shipments/{shipment['id']}/quality-check", {
        "results": "Seals intact",
        "issues": ["one dented crate"],
        "approved": True,
    })
    assert shipment["quality_check"]["approved"] is True
    assert shipment["quality_check"]["checked_by_name"] == "System Administrator"


@pytest.mark.asyncio
async def test_analytics_and_status_listing(api, route):
    origin, destination, product, transport = route
    await ship(api, origin, destination, product, transport)

    analytics = await api.get("/shipments/analytics")
    assert analytics["total"] == 1
    assert analytics["pending"] == 1
    assert len(analytics["recent"]) == 1

    assert len(await api.get("/shipments/status/pending")) == 1
    await api.get("/shipments/status/lost", expected=400)


@pytest.mark.asyncio
async def test_vehicle_numbers_are_unique(api):
    await api.transport("ABC-123")
    response = await api.client.post("/api/v1/transports/", headers=api.headers, json={
        "name": "Second Van",
        "transport_type": "van",
        "capacity": 300,
        "vehicle_number": "abc-123",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Vehicle already created in database"


@pytest.mark.asyncio
async def test_transport_delete_and_status(api):
    transport = await api.transport("XYZ-9")
    transport = await api.request("PATCH", f"/transports/{transport['id']}/status", json={"status": "maintenance"})
    assert transport["status"] == "maintenance"

    await api.request("DELETE", f"/transports/{transport['id']}")
    await api.get(f"/transports/{transport['id']}", expected=404)


@pytest.mark.asyncio
async def test_shipment_marked_delivered_can_still_be_booked_in(api, route):
    origin, destination, product, transport = route
    shipment = await ship(api, origin, destination, product, transport)
    path = f"/shipments/{shipment['id']}"
    item_id = shipment["items"][0]["id"]

    await api.request("PATCH", f"{path}/status", json={"status": "in-transit"})
    delivered = await api.request("PATCH", f"{path}/status", json={"status": "delivered"})
    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "available"
    # the van goes out again on another run
    await ship(api, origin, destination, product, transport, quantity=3)
    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "in-use"

    shipment = await api.post(f"{path}/receive", {
        "items": [{"item_id": item_id, "received_quantity": 10}],
    })
    assert shipment["status"] == "delivered"
    assert shipment["actual_delivery_date"] == delivered["actual_delivery_date"]
    assert shipment["items"][0]["received_quantity"] == 10

    batches = await api.get("/batches/", params={"warehouse_id": destination["id"]})
    assert batches["total"] == 1
    assert batches["data"][0]["quantity"] == 10
    assert (await api.get(f"/transports/{transport['id']}"))["status"] == "in-use"

    response = await api.client.post(f"/api/v1{path}/receive", headers=api.headers, json={
        "items": [{"item_id": item_id, "received_quantity": 10}],
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Shipment already received"
