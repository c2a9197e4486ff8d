from presence.face_engine.camera import Camera, UploadedFrameCamera
from presence.face_engine.verifier import (
    EmbeddingFaceVerifier,
    FaceVerifier,
    MockFaceVerifier,
    VerificationResult,
)

__all__ = [
    "Camera",
    "UploadedFrameCamera",
    "FaceVerifier",
    "MockFaceVerifier",
    "EmbeddingFaceVerifier",
    "VerificationResult",
]
