from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Query, Response
from typing import Optional
from models import Product, SupplierProfile
from access import SecureAccess, get_access
from dependencies.caller import Caller
from routers.auth.auth import get_current_caller, get_optional_caller
from utils.errors import MarketplaceError
from utils.request_helpers import parse_uuid, not_found
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import ProductCreate, ProductUpdate, ProductResponse, ProductListResponse, ProductImageUpload
from .helpers import product_helpers
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


async def _require_supplier(access: SecureAccess, caller: Caller) -> SupplierProfile:
    supplier = await access.own_profile(caller, SupplierProfile)
    if supplier is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="A supplier profile is required to manage products"
        )
    return supplier


# =================
# CATALOGUE ROUTES (PUBLIC)
# =================

@router.get("/", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None),
    supplier_id: Optional[str] = Query(None),
    in_stock: Optional[bool] = Query(None),
    caller: Caller = Depends(get_optional_caller),
    access: SecureAccess = Depends(get_access)
):
    """Browse the product catalogue"""
    criteria = []
    if category:
        criteria.append(Product.category == category)
    if supplier_id:
        criteria.append(Product.supplier_id == parse_uuid(supplier_id, "supplier ID"))
    if in_stock is not None:
        criteria.append(Product.stock_available == in_stock)

    total = await access.count(caller, Product, *criteria)
    products = await access.select(
        caller,
        Product,
        *criteria,
        order_by=(Product.created_at.desc(), Product.name),
        offset=(page - 1) * limit,
        limit=limit
    )

    return ProductListResponse(
        products=safe_model_validate_list(ProductResponse, products),
        page=page,
        limit=limit,
        total=total
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    caller: Caller = Depends(get_optional_caller),
    access: SecureAccess = Depends(get_access)
):
    """Get a single product"""
    product = await access.get(caller, Product, parse_uuid(product_id, "product ID"))
    if product is None:
        raise not_found("Product")
    return safe_model_validate(ProductResponse, product)


# =================
# SUPPLIER PRODUCT MANAGEMENT
# =================

@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """List a new product under the caller's supplier profile"""
    try:
        supplier = await _require_supplier(access, caller)

        product = await access.insert(caller, Product, {
            **product_data.model_dump(),
            "supplier_id": supplier.id,
        })
        await access.db.commit()

        return safe_model_validate(ProductResponse, product)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error creating product: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create product"
        )


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_update: ProductUpdate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Update one of the caller's products"""
    try:
        product = await access.update(
            caller,
            Product,
            parse_uuid(product_id, "product ID"),
            product_update.model_dump(exclude_unset=True)
        )
        if product is None:
            raise not_found("Product")
        await access.db.commit()

        return safe_model_validate(ProductResponse, product)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error updating product: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update product"
        )


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Delete one of the caller's products; refused while order items reference it"""
    try:
        deleted = await access.delete(caller, Product, parse_uuid(product_id, "product ID"))
        if not deleted:
            raise not_found("Product")
        await access.db.commit()

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error deleting product: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete product"
        )


# =================
# PRODUCT IMAGE ROUTES
# =================

@router.post("/{product_id}/upload-image", response_model=ProductImageUpload)
async def upload_product_image(
    product_id: str,
    file: UploadFile = File(..., description="Product image file (JPEG, PNG, GIF, or WebP, max 5MB)"),
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Upload and attach an image to one of the caller's products"""
    try:
        product_uuid = parse_uuid(product_id, "product ID")
        supplier = await _require_supplier(access, caller)

        product = await access.get(caller, Product, product_uuid)
        if product is None or product.supplier_id != supplier.id:
            raise not_found("Product")
        previous_url = product.image_url

        file_content = await product_helpers.read_image(file)
        image_url = product_helpers.upload_product_image(
            str(product.id), file_content, file.filename, file.content_type
        )

        try:
            product = await access.update(caller, Product, product_uuid, {"image_url": image_url})
            if product is None:
                raise not_found("Product")
            await access.db.commit()
        except Exception:
            # the stored object has no row pointing at it
            product_helpers.delete_product_image(image_url)
            raise

        if previous_url:
            product_helpers.delete_product_image(previous_url)

        return ProductImageUpload(
            image_url=image_url,
            message="Product image uploaded successfully"
        )

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error uploading product image: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload product image"
        )
