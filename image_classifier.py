"""
Image diagnosis selection.

ImageClassifier is the seam where a real crop-disease model plugs in: it takes
an uploaded image and returns a DiagnosisResult. RandomImageClassifier is the
placeholder in use today. It checks that the upload is a readable image but
never looks at the pixels, and picks one of a fixed set of candidate diseases
uniformly at random.
"""
import logging
import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from chat_models import DiagnosisResult
from image_processor import ImageProcessor

logger = logging.getLogger(__name__)

CANDIDATE_DIAGNOSES = (
    DiagnosisResult(
        disease="Late Blight",
        confidence=0.92,
        treatment=(
            "Apply copper-based fungicide and ensure good air circulation between plants. "
            "Remove and destroy infected parts immediately."
        ),
    ),
    DiagnosisResult(
        disease="Powdery Mildew",
        confidence=0.87,
        treatment=(
            "Apply neem oil or potassium bicarbonate spray. "
            "Improve air circulation and avoid overhead watering."
        ),
    ),
    DiagnosisResult(
        disease="Bacterial Leaf Spot",
        confidence=0.78,
        treatment=(
            "Remove infected leaves, avoid overhead watering, and apply copper-based "
            "bactericide as a preventive measure."
        ),
    ),
)


class ImageClassifier(ABC):
    @abstractmethod
    def diagnose(self, filename: str, image_bytes: bytes) -> DiagnosisResult:
        """Return the disease detected in the image with a confidence and treatment"""


class RandomImageClassifier(ImageClassifier):
    def __init__(
        self,
        candidates: Sequence[DiagnosisResult] = CANDIDATE_DIAGNOSES,
        rng: Optional[random.Random] = None,
        processor: Optional[ImageProcessor] = None,
    ):
        if not candidates:
            raise ValueError("At least one candidate diagnosis is required")
        self.candidates = list(candidates)
        self.rng = rng or random.Random()
        self.processor = processor or ImageProcessor()

    def diagnose(self, filename: str, image_bytes: bytes) -> DiagnosisResult:
        self.processor.process_upload(filename, image_bytes)
        result = self.rng.choice(self.candidates)
        logger.info(f"Diagnosed {filename} as {result.disease} ({result.confidence:.2f})")
        return result
