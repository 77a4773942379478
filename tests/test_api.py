import re
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from access import SecureAccess
from models import OrderItem
from routers.products.helpers import product_helpers
from conftest import auth_headers, INTERNAL_SECRET

VENDOR = {
    "business_name": "Sharma Chaat Corner",
    "owner_name": "Ravi Sharma",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
}


# =================
# PROFILES
# =================

async def test_suppliers_are_public_and_best_rated_first(client, new_account, make_supplier):
    await make_supplier(await new_account(), business_name="Average Agro", rating="3.1")
    await make_supplier(await new_account(), business_name="Top Traders", rating="4.8")
    await make_supplier(await new_account(), business_name="Mumbai Masala", city="Mumbai", rating="5.0")

    response = await client.get("/suppliers/", params={"city": "Pune"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [s["business_name"] for s in data["suppliers"]] == ["Top Traders", "Average Agro"]
    assert data["suppliers"][0]["rating"] == 4.8


async def test_vendor_onboarding_is_once_per_account(client, new_account):
    caller = await new_account()

    first = await client.post("/vendors/", json=VENDOR, headers=auth_headers(caller))
    second = await client.post("/vendors/", json=VENDOR, headers=auth_headers(caller))

    assert first.status_code == 201
    assert first.json()["user_id"] == str(caller.user_id)
    assert first.json()["business_type"] == "street_food"
    assert second.status_code == 422
    assert second.json()["constraint"] == "vendors_user_id_key"


async def test_other_vendors_profiles_read_as_missing(client, new_account, make_vendor):
    owner = await new_account()
    vendor = await make_vendor(owner)
    stranger = await new_account()

    response = await client.get(f"/vendors/{vendor.id}", headers=auth_headers(stranger))

    assert response.status_code == 404
    assert (await client.get(f"/vendors/{vendor.id}", headers=auth_headers(owner))).status_code == 200


async def test_requests_without_a_token_are_refused(client):
    response = await client.post("/vendors/", json=VENDOR)

    assert response.status_code in (401, 403)


async def test_me_reports_owned_profiles(client, new_account, make_supplier):
    caller = await new_account("anita@example.com")
    supplier = await make_supplier(caller)

    response = await client.get("/auth/me", headers=auth_headers(caller))

    assert response.status_code == 200
    assert response.json() == {
        "user_id": str(caller.user_id),
        "email": "anita@example.com",
        "role": "authenticated",
        "vendor_id": None,
        "supplier_id": str(supplier.id),
    }


# =================
# PRODUCTS
# =================

async def test_products_need_a_supplier_profile(client, new_account, make_vendor):
    caller = await new_account()
    await make_vendor(caller)

    response = await client.post(
        "/products/",
        json={"name": "Onions", "category": "vegetables", "unit": "kg", "price_per_unit": 40},
        headers=auth_headers(caller),
    )

    assert response.status_code == 403


async def test_products_on_order_cannot_be_deleted(
    client, new_account, make_vendor, make_supplier, make_product, make_order, access
):
    vendor_caller = await new_account()
    supplier_caller = await new_account()
    vendor = await make_vendor(vendor_caller)
    supplier = await make_supplier(supplier_caller)
    product = await make_product(supplier_caller, supplier.id)
    order = await make_order(vendor_caller, vendor.id)
    await access.insert(vendor_caller, OrderItem, {
        "order_id": order.id,
        "product_id": product.id,
        "quantity": 1,
        "unit_price": 40,
        "total_price": 40,
    })
    await access.db.commit()

    response = await client.delete(f"/products/{product.id}", headers=auth_headers(supplier_caller))

    assert response.status_code == 409
    assert response.json()["constraint"] == "order_items_product_id_fkey"
    assert (await client.get(f"/products/{product.id}")).status_code == 200


async def test_deleting_someone_elses_product_reads_as_missing(client, new_account, make_supplier, make_product):
    owner = await new_account()
    supplier = await make_supplier(owner)
    product = await make_product(owner, supplier.id)
    rival = await new_account()
    await make_supplier(rival, business_name="Rival Foods")

    response = await client.delete(f"/products/{product.id}", headers=auth_headers(rival))

    assert response.status_code == 404


class FakeStorage:
    """In-memory stand-in for the Supabase storage client"""

    def __init__(self):
        self.uploaded = []
        self.removed = []

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options):
        self.storage.uploaded.append(path)
        return {"path": path}

    def get_public_url(self, path):
        return f"https://project.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        self.storage.removed.extend(paths)


PNG = ("onions.png", b"\x89PNG\r\n\x1a\n0000", "image/png")


async def test_uploaded_image_replaces_the_previous_one(client, new_account, make_supplier, make_product, monkeypatch):
    storage = FakeStorage()
    monkeypatch.setattr(product_helpers, "_storage", storage)
    caller = await new_account()
    supplier = await make_supplier(caller)
    product = await make_product(caller, supplier.id)

    first = await client.post(f"/products/{product.id}/upload-image", files={"file": PNG}, headers=auth_headers(caller))
    second = await client.post(f"/products/{product.id}/upload-image", files={"file": PNG}, headers=auth_headers(caller))

    assert first.status_code == 200
    assert second.status_code == 200
    assert storage.removed == storage.uploaded[:1]
    stored = await client.get(f"/products/{product.id}")
    assert stored.json()["image_url"] == second.json()["image_url"]


async def test_failed_image_update_removes_the_uploaded_object(
    client, new_account, make_supplier, make_product, monkeypatch
):
    storage = FakeStorage()
    monkeypatch.setattr(product_helpers, "_storage", storage)

    async def failing_update(self, caller, model, row_id, changes):
        raise RuntimeError("connection reset")

    caller = await new_account()
    supplier = await make_supplier(caller)
    product = await make_product(caller, supplier.id)
    monkeypatch.setattr(SecureAccess, "update", failing_update)

    response = await client.post(f"/products/{product.id}/upload-image", files={"file": PNG}, headers=auth_headers(caller))

    assert response.status_code == 500
    assert len(storage.uploaded) == 1
    assert storage.removed == storage.uploaded


# =================
# ORDERS
# =================

async def test_placing_an_order_prices_lines_and_totals(
    client, new_account, make_vendor, make_supplier, make_product
):
    vendor_caller = await new_account()
    supplier_caller = await new_account()
    await make_vendor(vendor_caller)
    supplier = await make_supplier(supplier_caller)
    product = await make_product(supplier_caller, supplier.id, price_per_unit="40.00")

    response = await client.post(
        "/orders/",
        json={
            "supplier_id": str(supplier.id),
            "items": [{"product_id": str(product.id), "quantity": 2.5}],
            "tax": 5,
            "delivery_charge": 10,
            "group_discount": 15,
            "delivery_address": "12 MG Road, Pune",
        },
        headers=auth_headers(vendor_caller),
    )

    assert response.status_code == 201
    order = response.json()
    assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{6}", order["order_number"])
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["subtotal"] == 100.0
    assert order["total_amount"] == 100.0
    assert len(order["order_items"]) == 1
    assert order["order_items"][0]["total_price"] == 100.0
    assert order["items"][0]["name"] == "Onions"

    items = await client.get(f"/orders/{order['id']}/items", headers=auth_headers(supplier_caller))
    assert items.status_code == 200
    assert [item["product_id"] for item in items.json()] == [str(product.id)]


async def test_line_totals_are_priced_on_the_stored_quantity(
    client, new_account, make_vendor, make_supplier, make_product
):
    vendor_caller = await new_account()
    supplier_caller = await new_account()
    await make_vendor(vendor_caller)
    supplier = await make_supplier(supplier_caller)
    product = await make_product(supplier_caller, supplier.id, price_per_unit="10.00")

    response = await client.post(
        "/orders/",
        json={
            "items": [{"product_id": str(product.id), "quantity": 1.005}],
            "delivery_address": "12 MG Road, Pune",
        },
        headers=auth_headers(vendor_caller),
    )

    assert response.status_code == 201
    order = response.json()
    item = order["order_items"][0]
    assert item["quantity"] == 1.01
    assert Decimal(str(item["quantity"])) * Decimal(str(item["unit_price"])) == Decimal(str(item["total_price"]))
    assert order["items"][0]["quantity"] == "1.01"
    assert order["items"][0]["total_price"] == "10.10"
    assert order["subtotal"] == 10.1


async def test_changing_charges_recomputes_the_total(client, new_account, make_vendor, make_order):
    caller = await new_account()
    vendor = await make_vendor(caller)
    order = await make_order(caller, vendor.id, subtotal="100.00", total_amount="100.00")

    response = await client.put(f"/orders/{order.id}", json={"tax": 18}, headers=auth_headers(caller))

    assert response.status_code == 200
    assert response.json()["tax"] == 18.0
    assert response.json()["total_amount"] == 118.0


async def test_ordering_an_unknown_product_is_a_referential_error(client, new_account, make_vendor):
    caller = await new_account()
    await make_vendor(caller)

    response = await client.post(
        "/orders/",
        json={
            "items": [{"product_id": str(uuid.uuid4()), "quantity": 1}],
            "delivery_address": "12 MG Road, Pune",
        },
        headers=auth_headers(caller),
    )

    assert response.status_code == 409
    assert response.json()["constraint"] == "order_items_product_id_fkey"


async def test_open_pool_is_for_suppliers(client, new_account, make_vendor, make_supplier, make_order):
    vendor_caller = await new_account()
    vendor = await make_vendor(vendor_caller)
    await make_order(vendor_caller, vendor.id)
    supplier_caller = await new_account()
    await make_supplier(supplier_caller)

    refused = await client.get("/orders/open-pool", headers=auth_headers(vendor_caller))
    pool = await client.get("/orders/open-pool", headers=auth_headers(supplier_caller))

    assert refused.status_code == 403
    assert pool.status_code == 200
    assert pool.json()["total"] == 1
    assert pool.json()["orders"][0]["supplier_id"] is None


# =================
# PRODUCT GROUPS
# =================

async def test_group_update_cannot_lift_final_rate_above_actual_rate(
    client, new_account, make_supplier, make_product_group
):
    caller = await new_account()
    supplier = await make_supplier(caller)
    group = await make_product_group(caller, supplier.id, actual_rate="70", final_rate="60")

    rejected = await client.put(f"/product-groups/{group.id}", json={"final_rate": 999}, headers=auth_headers(caller))
    lowered = await client.put(f"/product-groups/{group.id}", json={"actual_rate": 50}, headers=auth_headers(caller))
    accepted = await client.put(f"/product-groups/{group.id}", json={"final_rate": 65}, headers=auth_headers(caller))

    assert rejected.status_code == 422
    assert rejected.json()["field"] == "final_rate"
    assert lowered.status_code == 422
    assert accepted.status_code == 200
    assert accepted.json()["final_rate"] == 65.0
    assert accepted.json()["actual_rate"] == 70.0


# =================
# INTERNAL ROUTES
# =================

async def test_expiring_groups_needs_the_internal_secret(client):
    response = await client.post("/product-groups/expire-overdue", headers={"X-Internal-Secret": "guess"})

    assert response.status_code == 403


async def test_only_overdue_active_groups_expire(client, new_account, make_supplier, make_product_group):
    caller = await new_account()
    supplier = await make_supplier(caller)
    now = datetime.now(timezone.utc)
    overdue = await make_product_group(caller, supplier.id, deadline=now - timedelta(hours=1))
    await make_product_group(caller, supplier.id, deadline=now + timedelta(days=1))
    await make_product_group(caller, supplier.id, deadline=now - timedelta(days=1), status="delivered")

    response = await client.post("/product-groups/expire-overdue", headers={"X-Internal-Secret": INTERNAL_SECRET})

    assert response.status_code == 200
    assert response.json() == {"expired_count": 1, "expired_ids": [str(overdue.id)]}

    listed = await client.get("/product-groups/", params={"status": "expired"})
    assert [group["id"] for group in listed.json()["product_groups"]] == [str(overdue.id)]


async def test_account_removal_is_internal(client, new_account, make_vendor):
    caller = await new_account()
    await make_vendor(caller)

    refused = await client.delete(f"/admin/accounts/{caller.user_id}", headers={"X-Internal-Secret": "guess"})
    removed = await client.delete(f"/admin/accounts/{caller.user_id}", headers={"X-Internal-Secret": INTERNAL_SECRET})
    again = await client.delete(f"/admin/accounts/{caller.user_id}", headers={"X-Internal-Secret": INTERNAL_SECRET})

    assert refused.status_code == 403
    assert removed.status_code == 200
    assert again.status_code == 404
    assert (await client.get("/vendors/me", headers=auth_headers(caller))).status_code == 404


async def test_health_checks_the_database(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok"}
