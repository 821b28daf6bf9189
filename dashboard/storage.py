# dashboard/storage.py
import logging
import uuid
from pathlib import Path

from .schemas import ImageFile

logger = logging.getLogger(__name__)


class ImageStorage:
    """
    Stores customer images on disk. Files are served back under
    `public_prefix`, so the returned path is what goes in customers.image_url.
    """

    def __init__(self, root, public_prefix: str = "/customers"):
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    def upload(self, image: ImageFile) -> str:
        original = Path(image.filename)
        if not original.name:
            raise OSError("uploaded image has no filename")
        # customers may upload files with the same name
        name = f"{original.stem}-{uuid.uuid4().hex[:12]}{original.suffix.lower()}"
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(image.content)
        logger.info("Stored image %s (%d bytes)", name, len(image.content))
        return f"{self.public_prefix}/{name}"
