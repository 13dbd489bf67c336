import io
import logging
from pathlib import Path
from PIL import Image, UnidentifiedImageError
from config import Config
from errors import ValidationError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
}

class ImageProcessor:
    def __init__(self):
        self.max_size = Config.MAX_FILE_SIZE
        self.allowed_extensions = Config.ALLOWED_EXTENSIONS

    def validate_file(self, filename: str, content_length: int) -> bool:
        file_ext = Path(filename).suffix.lower()

        if file_ext not in self.allowed_extensions:
            raise ValidationError(f"Unsupported file type: {file_ext or 'none'}")

        if content_length == 0:
            raise ValidationError("Image file is empty")

        if content_length > self.max_size:
            raise ValidationError(f"File size {content_length} exceeds maximum {self.max_size}")

        return True

    def verify_image(self, image_bytes: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.verify()
            logger.info(f"Verified image: {image.format} {image.size[0]}x{image.size[1]}")
            return image
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            logger.error(f"Failed to decode image: {e}")
            raise ValidationError("Uploaded file is not a valid image")

    def process_upload(self, filename: str, image_bytes: bytes) -> bool:
        self.validate_file(filename, len(image_bytes))
        self.verify_image(image_bytes)
        return True

def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), 'application/octet-stream')
