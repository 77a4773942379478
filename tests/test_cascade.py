import uuid

import pytest

from models import Users, VendorProfile, SupplierProfile, Product, Order, OrderItem, ProductGroup
from utils.errors import AuthorizationDenied, ReferentialIntegrityViolation


async def test_removing_a_supplier_account_cascades_to_its_catalogue(
    new_account, make_supplier, make_product, make_product_group, access, service
):
    caller = await new_account()
    supplier = await make_supplier(caller)
    await make_product(caller, supplier.id)
    await make_product(caller, supplier.id, name="Potatoes")
    await make_product_group(caller, supplier.id)

    removed = await access.remove_account(service, caller.user_id)
    await access.db.commit()

    assert removed == 1
    assert await access.select(service, SupplierProfile) == []
    assert await access.select(service, Product) == []
    assert await access.select(service, ProductGroup) == []


async def test_removing_a_vendor_account_takes_its_orders_and_items(
    new_account, make_vendor, make_supplier, make_product, make_order, access, service
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
        "quantity": 3,
        "unit_price": 40,
        "total_price": 120,
    })
    await access.db.commit()

    await access.remove_account(service, vendor_caller.user_id)
    await access.db.commit()

    assert await access.select(service, VendorProfile) == []
    assert await access.select(service, Order) == []
    assert await access.select(service, OrderItem) == []
    assert len(await access.select(service, Product)) == 1


async def test_only_the_service_role_removes_accounts(new_account, access):
    caller = await new_account()

    with pytest.raises(AuthorizationDenied):
        await access.remove_account(caller, caller.user_id)

    assert await access.db.get(Users, caller.user_id) is not None


async def test_products_on_order_cannot_be_deleted(
    new_account, make_vendor, make_supplier, make_product, make_order, access, service
):
    vendor_caller = await new_account()
    supplier_caller = await new_account()
    vendor = await make_vendor(vendor_caller)
    supplier = await make_supplier(supplier_caller)
    product = await make_product(supplier_caller, supplier.id)
    product_id = product.id
    order = await make_order(vendor_caller, vendor.id)
    await access.insert(vendor_caller, OrderItem, {
        "order_id": order.id,
        "product_id": product_id,
        "quantity": 1,
        "unit_price": 40,
        "total_price": 40,
    })
    await access.db.commit()

    with pytest.raises(ReferentialIntegrityViolation) as exc:
        await access.delete(supplier_caller, Product, product_id)

    assert exc.value.constraint == "order_items_product_id_fkey"
    assert exc.value.status_code == 409
    assert [p.id for p in await access.select(service, Product)] == [product_id]


async def test_unreferenced_products_can_be_deleted(new_account, make_supplier, make_product, access, anonymous):
    caller = await new_account()
    supplier = await make_supplier(caller)
    product = await make_product(caller, supplier.id)

    assert await access.delete(caller, Product, product.id) == 1
    await access.db.commit()

    assert await access.select(anonymous, Product) == []


async def test_writes_must_reference_existing_rows(new_account, make_supplier, make_product, access, service):
    caller = await new_account()
    supplier = await make_supplier(caller)
    product = await make_product(caller, supplier.id)

    with pytest.raises(ReferentialIntegrityViolation) as exc:
        await access.update(service, Product, product.id, {"supplier_id": uuid.UUID(int=0)})

    assert exc.value.constraint == "products_supplier_id_fkey"
