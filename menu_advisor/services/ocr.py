"""
ocr.py

Reads a menu photo and extracts readable text from it.

Supported inputs:
- JPEG / PNG / WebP / GIF image bytes (GIF: first frame only)

Uses Tesseract OCR through pytesseract. Each image is read twice:
1. After OpenCV preprocessing (grayscale, upscale, contrast, threshold),
   trying several page segmentation modes
2. As-is, with Tesseract's default settings
The longest result wins.

This file:
- Only returns extracted text (possibly empty)
- Raises RuntimeError when the engine itself fails
- Does NOT decide whether the text is "enough" (the API layer does)
- Does NOT contain FastAPI routes
"""

import io
import logging
from typing import List, Optional

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError
import pytesseract  # OCR engine to read text from images

logger = logging.getLogger(__name__)


class OCRService:
    """
    OCRService has one job: turn image bytes into text.

    An empty string means the engine ran but found nothing.
    A RuntimeError means the engine could not run at all.
    """

    # Page segmentation modes tried on the preprocessed image:
    # 3 = automatic, 6 = uniform block, 4 = single column, 11 = sparse text
    PSM_MODES = (3, 6, 4, 11)

    def __init__(self, tesseract_cmd: Optional[str] = None, language: str = "eng"):
        """
        Parameters:
        - tesseract_cmd: path to the tesseract binary (None = look it up on PATH)
        - language: Tesseract language code
        """

        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

        self.language = language

    def extract_text(self, image_bytes: bytes) -> str:
        """
        Main entry point used by the application.

        What happens here:
        1. Decode the image from memory
        2. OCR the preprocessed image (best of several PSM modes)
        3. OCR the original image
        4. Return the longest non-empty result

        Parameters:
        - image_bytes: uploaded file data (kept in memory)

        Returns:
        - extracted text, "" if nothing was recognized

        Raises:
        - RuntimeError if the image cannot be decoded or every OCR attempt failed

        Called by:
        - POST /api/analyze (menu_advisor/api/analyze.py)
        """

        image = self._load_image(image_bytes)

        results: List[str] = []
        errors: List[Exception] = []

        # Try 1: preprocessed image, several segmentation modes
        try:
            processed = self._preprocess_image(image)
            text = self._ocr_with_multiple_psm(processed)
            if text:
                results.append(text)
        except Exception as error:
            logger.warning(f"OCR on preprocessed image failed: {error}")
            errors.append(error)

        # Try 2: original image, default settings
        try:
            text = pytesseract.image_to_string(image, lang=self.language).strip()
            if text:
                results.append(text)
        except Exception as error:
            logger.warning(f"OCR on original image failed: {error}")
            errors.append(error)

        if results:
            best = max(results, key=len)
            logger.info(f"OCR extracted {len(best)} characters")
            return best

        # Both attempts blew up: that is an engine failure, not an empty menu
        if len(errors) == 2:
            raise RuntimeError(f"Text recognition failed: {errors[-1]}")

        logger.info("OCR finished without recognizing any text")
        return ""

    def _load_image(self, image_bytes: bytes) -> Image.Image:
        """Decode bytes into an RGB PIL image."""
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.seek(0)  # first frame of animated GIF / WebP
            return image.convert("RGB")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as error:
            raise RuntimeError(f"Could not decode image: {error}") from error

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """
        Prepare a photographed menu for OCR.

        What happens here:
        1. Convert to grayscale
        2. Upscale small photos (Tesseract prefers ~30px text height)
        3. Enhance contrast with CLAHE
        4. Remove noise with a bilateral filter (keeps letter edges)
        5. Adaptive threshold to black text on white background
        6. Invert if the menu is light text on a dark background

        Parameters:
        - image: RGB PIL image

        Returns:
        - processed PIL image
        """

        gray = cv2.cvtColor(np.array(image), cv2.COLOR_RGB2GRAY)

        height, width = gray.shape[:2]
        if width < 1000:
            scale = 1000 / width
            gray = cv2.resize(
                gray,
                (1000, int(height * scale)),
                interpolation=cv2.INTER_CUBIC
            )

        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        enhanced = clahe.apply(gray)

        denoised = cv2.bilateralFilter(enhanced, 9, 75, 75)

        binary = cv2.adaptiveThreshold(
            denoised,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            31,  # Block size
            10   # Constant subtracted
        )

        # Mostly dark result means inverted colours
        if np.mean(binary) < 127:
            binary = cv2.bitwise_not(binary)

        return Image.fromarray(binary)

    def _ocr_with_multiple_psm(self, processed_image: Image.Image) -> str:
        """
        Run Tesseract with each PSM mode and keep the most confident text.

        Returns:
        - best text, "" if every mode returned nothing

        Raises:
        - the last engine error if every mode failed
        """

        best_text = ""
        best_confidence = -1.0
        last_error: Optional[Exception] = None
        succeeded = False

        for psm in self.PSM_MODES:
            config = f"--oem 3 --psm {psm}"
            try:
                data = pytesseract.image_to_data(
                    processed_image,
                    lang=self.language,
                    config=config,
                    output_type=pytesseract.Output.DICT
                )
            except Exception as error:
                logger.debug(f"Tesseract PSM {psm} failed: {error}")
                last_error = error
                continue

            succeeded = True
            text, confidence = self._text_and_confidence(data)

            if text and confidence > best_confidence:
                best_confidence = confidence
                best_text = text

        if not succeeded and last_error is not None:
            raise last_error

        return best_text

    @staticmethod
    def _text_and_confidence(data: dict) -> tuple:
        """
        Rebuild line-broken text from image_to_data output and average its confidence.

        Words are grouped by (block, paragraph, line) so menu rows stay on one line.
        """

        words = data.get("text", [])
        count = len(words)
        blocks = data.get("block_num", [0] * count)
        paragraphs = data.get("par_num", [0] * count)
        line_numbers = data.get("line_num", [0] * count)
        raw_confidences = data.get("conf", [-1] * count)

        lines: dict = {}
        confidences: List[float] = []

        for index in range(count):
            word = str(words[index] or "").strip()
            try:
                conf = float(raw_confidences[index])
            except (IndexError, TypeError, ValueError):
                conf = -1.0

            if not word or conf < 0:
                continue

            key = (blocks[index], paragraphs[index], line_numbers[index])
            lines.setdefault(key, []).append(word)
            confidences.append(conf)

        text = "\n".join(" ".join(line_words) for _, line_words in sorted(lines.items()))
        average = sum(confidences) / len(confidences) if confidences else 0.0
        return text, average
