"""
Image upload and preprocessing handler for Detectoo.
"""
import logging
from typing import Optional, Dict, Any, Tuple

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

INVALID_TYPE_MESSAGE = "Please upload an image file"


class ImageUploadHandler:
    """Handles image upload, validation, and basic information extraction."""

    SUPPORTED_FORMATS = ['jpg', 'jpeg', 'png', 'webp', 'gif', 'bmp']
    # Advertised to the user only; uploads above it are still analysed
    MAX_FILE_SIZE = 25 * 1024 * 1024  # 25MB in bytes

    @staticmethod
    def validate_image(uploaded_file) -> Tuple[bool, str]:
        """
        Validate uploaded image file by its declared MIME type.

        Args:
            uploaded_file: Streamlit uploaded file object

        Returns:
            Tuple of (is_valid, error_message)
        """
        if uploaded_file is None:
            return False, "No file selected"

        mime_type = getattr(uploaded_file, 'type', None) or ''
        if not mime_type.startswith('image/'):
            return False, INVALID_TYPE_MESSAGE

        return True, ""

    @staticmethod
    def load_image(uploaded_file) -> Optional[Image.Image]:
        """
        Load and return PIL Image from uploaded file.

        Args:
            uploaded_file: Streamlit uploaded file object

        Returns:
            PIL Image object or None if failed
        """
        try:
            # Reset file pointer
            uploaded_file.seek(0)
            image = Image.open(uploaded_file)
            image.load()
            return image
        except Exception as e:
            logger.warning("Failed to decode %s: %s", getattr(uploaded_file, 'name', '?'), e)
            return None

    @staticmethod
    def get_file_info(uploaded_file) -> Dict[str, Any]:
        """
        Extract basic information about the uploaded file.

        Args:
            uploaded_file: Streamlit uploaded file object

        Returns:
            Dictionary with name, size in bytes and MIME type
        """
        return {
            'filename': uploaded_file.name,
            'file_size': uploaded_file.size,
            'mime_type': uploaded_file.type,
        }


class ImagePreprocessor:
    """Converts decoded images into the pixel arrays used for analysis."""

    @staticmethod
    def to_rgba_array(image: Image.Image) -> np.ndarray:
        """
        Convert a PIL image into an (H, W, 4) uint8 RGBA array.

        Args:
            image: PIL Image object

        Returns:
            RGBA pixel array
        """
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        pixels = np.array(image, dtype=np.uint8)
        # Fully transparent pixels read back as (0, 0, 0, 0) from a canvas
        pixels[pixels[:, :, 3] == 0] = 0
        return pixels

    @staticmethod
    def flatten_to_rgb(pixels: np.ndarray) -> np.ndarray:
        """
        Composite an RGBA array onto a white background.

        Args:
            pixels: RGBA or RGB pixel array

        Returns:
            RGB pixel array of the same height and width
        """
        if pixels.shape[2] == 3:
            return pixels.copy()

        # Create white background for transparent images
        rgb = pixels[:, :, :3].astype(np.float32)
        alpha = pixels[:, :, 3:4].astype(np.float32) / 255.0
        flattened = rgb * alpha + 255.0 * (1.0 - alpha)
        return np.clip(np.round(flattened), 0, 255).astype(np.uint8)
