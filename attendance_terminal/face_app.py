"""
InsightFace initialization module.

Provides the feature extractor: one frame in, one face descriptor (or
nothing) out.
"""

from typing import Any, Optional
import numpy as np
from .config import Config
from .exceptions import ModelUnavailableError
from .logging_config import get_logger

logger = get_logger(__name__)


def initialize_face_app(config: Config) -> Any:
    """
    Initialize InsightFace FaceAnalysis.

    Args:
        config: Service configuration

    Returns:
        Initialized FaceAnalysis instance

    Raises:
        ModelUnavailableError: If the library or its models cannot be loaded
    """
    logger.info('Initializing InsightFace AI...')

    try:
        from insightface.app import FaceAnalysis

        face_app = FaceAnalysis(providers=['CPUExecutionProvider'])
        face_app.prepare(ctx_id=0, det_size=config.insightface_det_size)
    except Exception as e:
        logger.error(f'InsightFace initialization failed: {e}')
        raise ModelUnavailableError(f'Face model unavailable: {e}') from e

    logger.info(f'✅ InsightFace initialized (det_size={config.insightface_det_size})')

    return face_app


class FaceExtractor:
    """Turns camera frames into face descriptors."""

    def __init__(self, face_app: Any):
        """
        Args:
            face_app: Prepared FaceAnalysis instance (anything with a
                ``get(frame)`` method returning detected faces)
        """
        self.face_app = face_app

    def detect(self, frame: np.ndarray) -> Optional[np.ndarray]:
        """
        Extract the descriptor of the most confident face in the frame.

        Returns:
            Normalized embedding, or None if no face was found
        """
        if frame is None:
            return None

        faces = self.face_app.get(frame)
        if not faces:
            return None

        face = max(faces, key=lambda f: float(getattr(f, 'det_score', 0.0)))
        return np.asarray(face.normed_embedding, dtype=np.float32)
