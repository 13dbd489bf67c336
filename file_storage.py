import logging
from pathlib import Path
from typing import Optional
from config import Config
from errors import ValidationError

logger = logging.getLogger(__name__)

class FileStorageService:
    def __init__(self, storage_dir: Optional[str] = None):
        # Storage directory - works for local, Docker volume, and K8s persistent volume
        self.storage_dir = Path(storage_dir or Config.STORAGE_DIR)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"File storage initialized: {self.storage_dir.absolute()}")

    def _resolve(self, relative_path: str) -> Path:
        full_path = (self.storage_dir / relative_path).resolve()
        if self.storage_dir.resolve() not in full_path.parents:
            raise ValidationError(f"Invalid storage path: {relative_path}")
        return full_path

    def upload(self, path: str, file_bytes: bytes) -> str:
        """
        Save file bytes under the given relative path

        Args:
            path: Relative path, e.g. "<user_id>/<epoch_ms>-leaf.jpg"
            file_bytes: Raw file content

        Returns:
            The relative path, for database storage
        """
        try:
            full_path = self._resolve(path)
            full_path.parent.mkdir(parents=True, exist_ok=True)

            with open(full_path, 'wb') as f:
                f.write(file_bytes)

            logger.info(f"Saved file: {path} ({len(file_bytes)} bytes)")
            return path

        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"Failed to save file {path}: {e}")
            raise

    def public_url(self, relative_path: str) -> str:
        return f"{Config.LOCAL_FILES_PREFIX}/{relative_path}"

    def delete(self, relative_path: str) -> bool:
        """
        Delete a file from storage

        Returns:
            True if deleted successfully, False otherwise
        """
        try:
            full_path = self._resolve(relative_path)

            if full_path.exists():
                full_path.unlink()
                logger.info(f"Deleted file: {relative_path}")

                # Remove the user dir if this was its last file
                try:
                    full_path.parent.rmdir()
                except OSError:
                    pass

                return True
            else:
                logger.warning(f"File not found for deletion: {relative_path}")
                return False

        except Exception as e:
            logger.error(f"Error deleting file {relative_path}: {e}")
            return False

    def get_storage_info(self) -> dict:
        """Get storage system information"""
        try:
            total_files = sum(1 for _ in self.storage_dir.rglob('*') if _.is_file())
            total_size = sum(f.stat().st_size for f in self.storage_dir.rglob('*') if f.is_file())

            return {
                "storage_type": "local",
                "storage_dir": str(self.storage_dir.absolute()),
                "total_files": total_files,
                "total_size_bytes": total_size,
                "total_size_mb": round(total_size / (1024 * 1024), 2)
            }
        except Exception as e:
            logger.error(f"Error getting storage info: {e}")
            return {"error": str(e)}
