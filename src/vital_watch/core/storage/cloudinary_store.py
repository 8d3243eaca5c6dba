import cloudinary
import cloudinary.api
import cloudinary.uploader
import cloudinary.utils
import cloudinary.exceptions
import httpx
import logging
from typing import BinaryIO, Optional

from ...config import Settings
from ...exceptions import StorageError
from .base import BlobStore, StoredObject

# Set up logger for this module
logger = logging.getLogger(__name__)

# Documents are stored as raw assets behind signed delivery URLs
RESOURCE_TYPE = "raw"
DELIVERY_TYPE = "authenticated"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class CloudinaryBlobStore(BlobStore):
    """
    Blob store backed by Cloudinary.

    The bucket identifier is used as the asset folder, so a document stored
    under key `k` has the public id `<bucket>/<k>`. Content type and the
    original filename travel as contextual metadata on the asset.
    """

    def __init__(
        self,
        bucket: str,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        http_client: Optional[httpx.Client] = None
    ):
        self.bucket = bucket
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True
        )
        self._http = http_client or httpx.Client(timeout=httpx.Timeout(30.0), follow_redirects=True)

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "CloudinaryBlobStore":
        return cls(
            bucket=app_settings.storage_bucket,
            cloud_name=app_settings.cloudinary_cloud_name,
            api_key=app_settings.cloudinary_api_key,
            api_secret=app_settings.cloudinary_api_secret
        )

    def public_id(self, key: str) -> str:
        return f"{self.bucket}/{key}"

    def put(
        self,
        key: str,
        data: BinaryIO,
        content_length: int,
        content_type: str,
        filename: Optional[str] = None
    ) -> None:
        """
        Uploads a document to Cloudinary under the given key.

        Raises:
            StorageError: If the upload fails or the key is already taken
        """
        public_id = self.public_id(key)
        try:
            result = cloudinary.uploader.upload(
                data,
                public_id=public_id,
                resource_type=RESOURCE_TYPE,
                type=DELIVERY_TYPE,
                overwrite=False,
                context={
                    "content_type": content_type or DEFAULT_CONTENT_TYPE,
                    "filename": filename or key
                }
            )
        except cloudinary.exceptions.Error as e:
            raise StorageError(f"Cloudinary API error during upload of {public_id}: {str(e)}") from e
        except Exception as e:
            raise StorageError(f"Unexpected error during upload of {public_id}: {str(e)}") from e

        if result.get("existing"):
            raise StorageError(f"Refusing to overwrite existing asset {public_id}")
        if result.get("public_id") != public_id:
            raise StorageError(f"Cloudinary upload result for {public_id} did not echo the public id")
        if result.get("bytes") != content_length:
            logger.warning(
                f"Stored size of {public_id} ({result.get('bytes')} bytes) "
                f"differs from declared length ({content_length} bytes)"
            )
        logger.info(f"Successfully uploaded document to Cloudinary: {public_id}")

    def get(self, key: str) -> StoredObject:
        """
        Opens a streaming download of a document.

        The metadata lookup and the HTTP request both happen before this returns,
        so failures surface as StorageError instead of a truncated stream.
        """
        public_id = self.public_id(key)
        try:
            resource = cloudinary.api.resource(
                public_id,
                resource_type=RESOURCE_TYPE,
                type=DELIVERY_TYPE
            )
        except cloudinary.exceptions.Error as e:
            raise StorageError(f"Cloudinary API error while reading metadata of {public_id}: {str(e)}") from e
        except Exception as e:
            raise StorageError(f"Unexpected error while reading metadata of {public_id}: {str(e)}") from e

        url, _ = cloudinary.utils.cloudinary_url(
            public_id,
            resource_type=RESOURCE_TYPE,
            type=DELIVERY_TYPE,
            sign_url=True,
            secure=True
        )

        response = None
        try:
            response = self._http.send(self._http.build_request("GET", url), stream=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            if response is not None:
                response.close()
            raise StorageError(f"Failed to download {public_id}: {str(e)}") from e

        metadata = (resource.get("context") or {}).get("custom", {})
        content_length = resource.get("bytes")
        if content_length is None:
            content_length = int(response.headers.get("content-length", 0))

        return StoredObject(
            key=key,
            chunks=response.iter_bytes(),
            content_type=metadata.get("content_type") or DEFAULT_CONTENT_TYPE,
            content_length=int(content_length),
            filename=metadata.get("filename"),
            on_close=response.close
        )

    def delete(self, key: str) -> None:
        """
        Deletes a document from Cloudinary and invalidates cached copies.

        Raises:
            StorageError: If Cloudinary reports anything other than success or "not found"
        """
        public_id = self.public_id(key)
        try:
            result = cloudinary.uploader.destroy(
                public_id,
                resource_type=RESOURCE_TYPE,
                type=DELIVERY_TYPE,
                invalidate=True
            )
        except cloudinary.exceptions.Error as e:
            raise StorageError(f"Cloudinary API error during delete of {public_id}: {str(e)}") from e
        except Exception as e:
            raise StorageError(f"Unexpected error during delete of {public_id}: {str(e)}") from e

        outcome = result.get("result")
        if outcome == "not found":
            logger.warning(f"Delete of {public_id} found nothing to remove")
            return
        if outcome != "ok":
            raise StorageError(f"Cloudinary refused to delete {public_id}: {outcome}")
        logger.info(f"Deleted document from Cloudinary: {public_id}")

    def close(self) -> None:
        self._http.close()
