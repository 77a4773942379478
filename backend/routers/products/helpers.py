from fastapi import HTTPException, status, UploadFile
from config import get_supabase_storage, SUPABASE_STORAGE_BUCKET
import uuid
import os
import logging

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
MAX_IMAGE_SIZE = 5 * 1024 * 1024


class ProductHelpers:
    """Helper functions for product images"""

    def __init__(self, bucket_name: str = SUPABASE_STORAGE_BUCKET):
        self.bucket_name = bucket_name
        self._storage = None

    @property
    def storage(self):
        if self._storage is None:
            self._storage = get_supabase_storage()
        return self._storage

    async def read_image(self, file: UploadFile) -> bytes:
        """Check type and size of an uploaded image and return its bytes"""
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File type {file.content_type} not allowed"
            )

        file_content = await file.read()
        if len(file_content) > MAX_IMAGE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="File size must be less than 5MB"
            )
        return file_content

    def upload_product_image(self, product_id: str, file_content: bytes, filename: str, content_type: str) -> str:
        """
        Upload a product image to Supabase Storage and return the public URL
        """
        file_extension = os.path.splitext(filename)[1] if filename else ".jpg"
        unique_filename = f"products/{product_id}/{uuid.uuid4()}{file_extension}"

        logger.info(f"Uploading image for product {product_id} to {self.bucket_name}/{unique_filename}")

        try:
            response = self.storage.from_(self.bucket_name).upload(
                path=unique_filename,
                file=file_content,
                file_options={"content-type": content_type}
            )
            if hasattr(response, "error") and response.error:
                logger.error(f"Upload error: {response.error}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Failed to upload image"
                )

            return self.storage.from_(self.bucket_name).get_public_url(unique_filename)

        except HTTPException:
            raise
        except Exception as upload_error:
            logger.error(f"Upload error: {str(upload_error)}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Image storage is unavailable"
            )

    def delete_product_image(self, image_url: str) -> bool:
        """Remove a previously uploaded image; failures are logged and reported as False"""
        marker = f"/storage/v1/object/public/{self.bucket_name}/"
        if marker not in image_url:
            return False

        file_path = image_url.split(marker, 1)[1].split("?", 1)[0]
        try:
            self.storage.from_(self.bucket_name).remove([file_path])
            return True
        except Exception as e:
            logger.warning(f"Failed to delete image {file_path} from storage: {str(e)}")
            return False


product_helpers = ProductHelpers()
