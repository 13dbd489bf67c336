import logging
from typing import Optional
from azure.storage.blob import BlobServiceClient, ContentSettings
from azure.core.exceptions import AzureError
from config import Config
from errors import UpstreamError
from file_storage import FileStorageService
from image_processor import content_type_for

logger = logging.getLogger(__name__)

class BlobStorageService:
    def __init__(self, storage_dir: Optional[str] = None):
        self.config = Config()

        # Azure Blob Storage configuration
        self.account_name = self.config.AZURE_STORAGE_ACCOUNT_NAME
        self.container_name = self.config.STORAGE_CONTAINER
        self.timeout = int(self.config.EXTERNAL_TIMEOUT_SECONDS)
        self.local_storage = None

        # Initialize blob client
        if self.account_name:
            connection_string = self.config.AZURE_STORAGE_CONNECTION_STRING
            if connection_string:
                self.blob_service_client = BlobServiceClient.from_connection_string(connection_string)
                logger.info("Initialized Azure Blob Storage with connection string")
            else:
                # Use managed identity for production
                from azure.identity import DefaultAzureCredential
                credential = DefaultAzureCredential()
                account_url = f"https://{self.account_name}.blob.core.windows.net"
                self.blob_service_client = BlobServiceClient(account_url=account_url, credential=credential)
                logger.info("Initialized Azure Blob Storage with managed identity")
        else:
            # Local development fallback - use file system
            self.blob_service_client = None
            logger.warning("Azure Blob Storage not configured, using local file storage fallback")
            self.local_storage = FileStorageService(storage_dir)

    @property
    def is_local(self) -> bool:
        return self.blob_service_client is None

    def upload(self, path: str, file_bytes: bytes, content_type: Optional[str] = None) -> str:
        """
        Upload bytes to the object store

        Returns:
            The stored path, to be passed to public_url()
        """
        try:
            if self.is_local:
                return self.local_storage.upload(path, file_bytes)

            blob_client = self.blob_service_client.get_blob_client(
                container=self.container_name,
                blob=path
            )

            blob_client.upload_blob(
                file_bytes,
                overwrite=False,
                content_settings=ContentSettings(content_type=content_type or content_type_for(path)),
                timeout=self.timeout
            )

            logger.info(f"Uploaded file to blob storage: {path}")
            return path

        except AzureError as e:
            logger.error(f"Azure Blob Storage error: {e}")
            raise UpstreamError(f"Image upload failed: {e}")
        except OSError as e:
            logger.error(f"Failed to save file to local storage: {e}")
            raise UpstreamError(f"Image upload failed: {e}")

    def public_url(self, stored_path: str) -> str:
        if self.is_local:
            return self.local_storage.public_url(stored_path)

        # Already a full URL
        if stored_path.startswith('https://'):
            return stored_path

        return f"https://{self.account_name}.blob.core.windows.net/{self.container_name}/{stored_path}"

    def delete(self, stored_path: str) -> bool:
        try:
            if self.is_local:
                return self.local_storage.delete(stored_path)

            prefix = f"https://{self.account_name}.blob.core.windows.net/{self.container_name}/"
            blob_name = stored_path[len(prefix):] if stored_path.startswith(prefix) else stored_path

            blob_client = self.blob_service_client.get_blob_client(
                container=self.container_name,
                blob=blob_name
            )
            blob_client.delete_blob(timeout=self.timeout)
            logger.info(f"Deleted blob: {blob_name}")
            return True

        except AzureError as e:
            logger.error(f"Error deleting blob: {e}")
            return False

    def get_storage_info(self) -> dict:
        """Get storage system information"""
        if self.is_local:
            return self.local_storage.get_storage_info()
        return {
            "storage_type": "azure_blob",
            "account_name": self.account_name,
            "container_name": self.container_name,
        }

# Global blob storage instance
blob_storage = BlobStorageService()
