"""
Face verification capability.

Call sites only depend on ``FaceVerifier.verify(image, reference)``. The
default engine is ``MockFaceVerifier``: a fixed delay followed by a constant
answer, standing in for the external computer-vision project. A real engine
plugs in through ``EmbeddingFaceVerifier`` by supplying an embedding function.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from presence.utils.encoding_utils import load_image_array, normalize_encodings
from presence.utils.logger import logger

log = logger.getChild("face_engine")

# -----------------------------
# Result & interface
# -----------------------------
@dataclass
class VerificationResult:
    is_match: bool
    confidence: float


class FaceVerifier:
    def verify(self, image: str, reference: str) -> VerificationResult:
        """Compare a captured frame with the stored reference (both data URLs)."""
        raise NotImplementedError

# -----------------------------
# Mock engine
# -----------------------------
class MockFaceVerifier(FaceVerifier):
    """Always answers the same way after an optional artificial delay."""

    def __init__(self, is_match: bool = True, confidence: float = 1.0, delay: float = 0.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.is_match = is_match
        self.confidence = confidence
        self.delay = delay
        self._sleep = sleep
        self.calls = 0

    def verify(self, image, reference):
        self.calls += 1
        if self.delay > 0:
            self._sleep(self.delay)
        return VerificationResult(self.is_match, self.confidence if self.is_match else 0.0)

# -----------------------------
# Embedding engine
# -----------------------------
Embedder = Callable[[np.ndarray], Optional[np.ndarray]]


class EmbeddingFaceVerifier(FaceVerifier):
    """
    Cosine-distance matching on face embeddings.

    ``embed`` receives an RGB array and returns an embedding vector, or None
    when no face was found. Frames match when the cosine distance between the
    normalised embeddings is below ``threshold``.
    """

    def __init__(self, embed: Embedder, threshold: float = 0.5):
        self.embed = embed
        self.threshold = threshold

    def _embedding(self, data_url: str) -> Optional[np.ndarray]:
        vector = self.embed(load_image_array(data_url))
        if vector is None:
            return None
        return normalize_encodings(np.asarray(vector, dtype=np.float32).ravel())

    def verify(self, image, reference):
        probe = self._embedding(image)
        known = self._embedding(reference)
        if probe is None or known is None:
            log.info("No face detected in one of the frames")
            return VerificationResult(False, 0.0)

        dist = 1.0 - float(np.dot(known, probe))
        conf = 1.0 - dist
        return VerificationResult(dist < self.threshold, conf)
