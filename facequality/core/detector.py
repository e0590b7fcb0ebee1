"""Face detection module.

This module locates the face region that quality analysis is restricted to
when the capture flow does not supply one. Detection uses the Haar cascade
bundled with OpenCV; the detector is loaded once per process through a
``DetectorHandle`` owned by the application.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional

import cv2
import numpy as np

from ..models.types import Box, PixelBuffer

logger = logging.getLogger(__name__)

DEFAULT_CASCADE = 'haarcascade_frontalface_default.xml'

class FaceDetectionError(Exception):
    """Base exception for face detection errors."""
    pass

class DetectorLoadError(FaceDetectionError):
    """Exception raised when the detector model cannot be loaded."""
    pass

class FaceDetector:
    """Handles face detection on decoded pixel buffers."""

    # Constants for face detection
    SCALE_FACTOR = 1.1      # Image pyramid step
    MIN_NEIGHBORS = 5       # Overlapping hits needed to accept a detection
    MIN_ASPECT_RATIO = 0.5  # Minimum width/height ratio
    MAX_ASPECT_RATIO = 1.5  # Maximum width/height ratio

    def __init__(self, classifier, min_face_px: int = 60):
        self._classifier = classifier
        self.min_face_px = min_face_px

    @classmethod
    def load(cls, cascade_path: Optional[str] = None, min_face_px: int = 60) -> 'FaceDetector':
        """Load the cascade model from disk.

        Args:
            cascade_path: Cascade XML file; OpenCV's bundled frontal-face
                cascade when omitted.
            min_face_px: Smallest face side length to report.

        Returns:
            Ready detector.

        Raises:
            DetectorLoadError: If the cascade file is missing or unreadable.
        """
        if cascade_path is None:
            cascade_path = str(Path(cv2.data.haarcascades) / DEFAULT_CASCADE)
        if not Path(cascade_path).exists():
            raise DetectorLoadError(f"Cascade model not found at {cascade_path}")

        # Newer bindings raise SystemError instead of cv2.error on a bad file
        classifier = cv2.CascadeClassifier()
        try:
            loaded = classifier.load(cascade_path)
        except (cv2.error, SystemError) as e:
            raise DetectorLoadError(f"Failed to load cascade model from {cascade_path}: {str(e)}")
        if not loaded or classifier.empty():
            raise DetectorLoadError(f"Failed to load cascade model from {cascade_path}")

        logger.info(f"Face detector loaded from {cascade_path}")
        return cls(classifier, min_face_px=min_face_px)

    def detect_faces(self, image: PixelBuffer) -> List[Box]:
        """Detect all plausible faces in an image.

        Args:
            image: Decoded RGBA buffer.

        Returns:
            Face boxes, largest first. Empty when nothing is found.
        """
        if image.width == 0 or image.height == 0:
            return []

        gray = cv2.cvtColor(np.ascontiguousarray(image.as_array()), cv2.COLOR_RGBA2GRAY)
        detections = self._classifier.detectMultiScale(
            gray,
            scaleFactor=self.SCALE_FACTOR,
            minNeighbors=self.MIN_NEIGHBORS,
            minSize=(self.min_face_px, self.min_face_px),
        )

        results: List[Box] = []
        for (x, y, w, h) in detections:
            # Validate aspect ratio
            aspect_ratio = w / h
            if not (self.MIN_ASPECT_RATIO <= aspect_ratio <= self.MAX_ASPECT_RATIO):
                continue
            results.append({'x': int(x), 'y': int(y), 'width': int(w), 'height': int(h)})

        # Larger faces are usually the subject being captured
        results.sort(key=lambda box: box['width'] * box['height'], reverse=True)
        return results

    def detect(self, image: PixelBuffer) -> Optional[Box]:
        """Return the largest face in the image, or None."""
        faces = self.detect_faces(image)
        return faces[0] if faces else None

class DetectorHandle:
    """Once-initialized, shareable reference to a face detector.

    The first ``get()`` starts loading in a worker thread; concurrent and later
    callers await the same future. A failed load is not cached, so the next
    ``get()`` tries again.
    """

    def __init__(self, loader: Callable[[], FaceDetector]):
        self._loader = loader
        self._future: Optional[asyncio.Future] = None
        self._detector: Optional[FaceDetector] = None

    @property
    def loaded(self) -> bool:
        return self._detector is not None

    async def get(self) -> FaceDetector:
        if self._detector is not None:
            return self._detector
        if self._future is None:
            loop = asyncio.get_running_loop()
            self._future = loop.run_in_executor(None, self._loader)
        future = self._future
        try:
            detector = await asyncio.shield(future)
        except Exception:
            if self._future is future:
                self._future = None
            raise
        self._detector = detector
        return detector
