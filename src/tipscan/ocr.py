"""Tesseract OCR wrapper with receipt image preprocessing."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

import cv2
import numpy as np

try:
    import pytesseract
    from pdf2image import convert_from_path
except ImportError:
    print("Required packages not installed. Run: pip install pytesseract pdf2image")
    raise

from .config import ScanConfig

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {'.png', '.jpg', '.jpeg'}
PDF_SUFFIX = '.pdf'

# Pixels darker than this after contrast stretching become pure black
BLACK_CUTOFF = 50


class OCRProcessor:
    """Load receipt images, preprocess them per OCR mode and run Tesseract."""

    def __init__(self, config: Optional[ScanConfig] = None):
        """
        Initialize OCR processor.

        Args:
            config: Scan configuration; defaults are used when omitted
        """
        self.config = config or ScanConfig()
        self.language = self.config.language
        self.tesseract_config = self.config.tesseract_config

    def load_image(self, path: Path) -> np.ndarray:
        """
        Load a receipt as a BGR image array.

        PDFs are rasterised and only the first page is used.

        Args:
            path: Path to a PNG, JPG or PDF receipt

        Returns:
            Image as a numpy array
        """
        try:
            if path.suffix.lower() == PDF_SUFFIX:
                pages = convert_from_path(str(path), dpi=self.config.pdf_dpi, first_page=1, last_page=1)
                if not pages:
                    raise ValueError(f"Could not load image from empty PDF {path}")
                logger.info(f"Rasterised first page of {path.name}")
                return cv2.cvtColor(np.array(pages[0].convert('RGB')), cv2.COLOR_RGB2BGR)

            image = cv2.imread(str(path), cv2.IMREAD_COLOR)
            if image is None:
                raise ValueError(f"Could not load image {path}")
            return image
        except Exception as e:
            logger.error(f"Failed to load {path}: {e}")
            raise

    def preprocess(self, image: np.ndarray, mode: str = 'normal') -> np.ndarray:
        """
        Prepare an image for OCR: downscale, grayscale, contrast and threshold.

        Args:
            image: BGR, BGRA or grayscale image array
            mode: One of the configured OCR modes

        Returns:
            Single-channel uint8 image
        """
        profile = self.config.profile_for(mode)

        height, width = image.shape[:2]
        if width > self.config.max_width:
            scale = self.config.max_width / width
            image = cv2.resize(image, (self.config.max_width, max(1, int(height * scale))),
                               interpolation=cv2.INTER_AREA)

        if image.ndim == 2:
            gray = image
        elif image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        else:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        gray = gray.astype(np.float32)
        brightness = float(gray.mean()) if gray.size else 0.0
        factor = profile.factor_for(brightness)
        threshold = profile.threshold_for(brightness)

        contrasted = gray * factor + 128 * (1 - factor)
        result = np.where(contrasted > threshold, 255.0,
                          np.where(contrasted < BLACK_CUTOFF, 0.0, contrasted))

        logger.debug(f"Preprocessed {mode}: brightness={brightness:.1f}, "
                     f"factor={factor}, threshold={threshold}")
        return np.clip(result, 0, 255).astype(np.uint8)

    async def recognize(self, image: np.ndarray,
                        on_progress: Optional[Callable[[float], None]] = None) -> str:
        """
        Recognise text in a preprocessed image.

        Tesseract runs in a worker thread. Progress is reported as a 0..1
        fraction at the start and end of recognition.

        Args:
            image: Preprocessed image array
            on_progress: Optional progress callback

        Returns:
            Recognised text
        """
        if on_progress:
            on_progress(0.0)
        try:
            text = await asyncio.to_thread(
                pytesseract.image_to_string, image, lang=self.language, config=self.tesseract_config
            )
        except Exception as e:
            logger.error(f"Tesseract recognition failed: {e}")
            raise
        if on_progress:
            on_progress(1.0)
        return text

    def has_embedded_text(self, pdf_path: Path) -> bool:
        """
        Check if a PDF has good quality embedded text, so OCR can be skipped.

        Args:
            pdf_path: Path to PDF file

        Returns:
            True if the PDF has readable embedded text
        """
        text = self.extract_embedded_text(pdf_path)
        if len(text.strip()) < 10:
            return False

        readable_lines = 0
        for line in text.split('\n'):
            line = line.strip()
            if len(line) > 3:
                weird_chars = sum(1 for c in line if ord(c) < 32 or ord(c) > 126)
                if weird_chars / len(line) < 0.3:
                    readable_lines += 1

        if readable_lines >= 2:
            logger.info(f"{pdf_path.name} has good embedded text, extracting directly")
            return True

        logger.info(f"{pdf_path.name} has poor embedded text, will use OCR instead")
        return False

    def extract_embedded_text(self, pdf_path: Path) -> str:
        """Extract embedded text from PDF, or an empty string on failure."""
        try:
            from pdfminer.high_level import extract_text
            return extract_text(str(pdf_path))
        except Exception as e:
            logger.warning(f"Could not extract embedded text from {pdf_path}: {e}")
            return ""
