"""Google Imagen API client wrapper via Vertex AI."""

import base64
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import google.auth
import google.auth.transport.requests
import requests

from ..config import Config
from ..errors import GenerationError

logger = logging.getLogger(__name__)

SUPPORTED_ASPECT_RATIOS = ("1:1", "3:4", "4:3", "9:16", "16:9")

STANDARD_IMAGE_SIZE = "1K"


def sample_image_size(fast_mode: bool, reference_image: Optional[str] = None) -> Optional[str]:
    """Size descriptor sent with a request; the fast and capability models take none."""
    if fast_mode or reference_image:
        return None
    return STANDARD_IMAGE_SIZE


@dataclass
class ImageResult:
    """Result of an Imagen generation operation."""

    prompt: str
    images: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """A call succeeded only if it reported no error and produced an image."""
        return not self.errors and bool(self.images)

    @property
    def error_message(self) -> Optional[str]:
        if self.errors:
            return "; ".join(self.errors)
        if not self.images:
            return "no image returned"
        return None


class ImagenClient:
    """Client wrapper for Google Imagen image generation via Vertex AI."""

    SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

    def __init__(
        self,
        config: Config,
        session: Optional[requests.Session] = None,
        timeout: float = 120.0,
    ) -> None:
        """Initialize the Imagen client.

        Args:
            config: Application configuration (project, region, model names).
            session: HTTP session to reuse; one is created if omitted.
            timeout: Per-request HTTP timeout in seconds.
        """
        self._project_id = config.google_cloud_project
        self._location = config.google_cloud_location
        self._model = config.imagen_model
        self._fast_model = config.imagen_fast_model
        self._capability_model = config.imagen_capability_model
        self._session = session or requests.Session()
        self._timeout = timeout
        self._credentials = None
        self._credentials_lock = threading.Lock()

        if not self._project_id:
            raise ValueError("GOOGLE_CLOUD_PROJECT not set")

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def model(self) -> str:
        return self._model

    def _token(self) -> str:
        with self._credentials_lock:
            if self._credentials is None:
                self._credentials, _ = google.auth.default(scopes=self.SCOPES)
            if not self._credentials.valid:
                self._credentials.refresh(google.auth.transport.requests.Request())
            return self._credentials.token

    def _endpoint(self, model: str) -> str:
        return (
            f"https://{self._location}-aiplatform.googleapis.com/v1/"
            f"projects/{self._project_id}/locations/{self._location}/"
            f"publishers/google/models/{model}:predict"
        )

    def _load_reference(self, reference: str) -> str:
        """Return a reference image (local path or URL) as base64."""
        if reference.startswith(("http://", "https://")):
            response = self._session.get(reference, timeout=self._timeout)
            response.raise_for_status()
            data = response.content
        else:
            data = Path(reference).read_bytes()
        return base64.b64encode(data).decode("ascii")

    def generate_image(
        self,
        prompt: str,
        output_path: Path,
        aspect_ratio: str = "3:4",
        reference_image: Optional[str] = None,
        fast_mode: bool = False,
        watermark: bool = False,
    ) -> ImageResult:
        """Generate an image from a text prompt.

        Args:
            prompt: Text description of the image to generate.
            output_path: Local path to save the generated image.
            aspect_ratio: One of SUPPORTED_ASPECT_RATIOS.
            reference_image: Optional image (path or URL) guiding identity/style.
            fast_mode: Use the fast model at preview resolution.
            watermark: Ask the service to add its watermark.

        Returns:
            ImageResult with the saved image path or the upstream errors.
        """
        size = sample_image_size(fast_mode, reference_image)
        if reference_image:
            model = self._capability_model
        elif fast_mode:
            model = self._fast_model
        else:
            model = self._model

        result = ImageResult(
            prompt=prompt,
            created_at=datetime.now(),
            metadata={
                "aspect_ratio": aspect_ratio,
                "size": size,
                "model": model,
                "reference_image": reference_image,
            },
        )

        if aspect_ratio not in SUPPORTED_ASPECT_RATIOS:
            result.errors.append(f"unsupported aspect ratio: {aspect_ratio}")
            return result

        try:
            instance = {"prompt": prompt}
            if reference_image:
                instance["prompt"] = f"{prompt} [1]"
                instance["referenceImages"] = [
                    {
                        "referenceType": "REFERENCE_TYPE_SUBJECT",
                        "referenceId": 1,
                        "referenceImage": {
                            "bytesBase64Encoded": self._load_reference(reference_image),
                        },
                        "subjectImageConfig": {"subjectType": "SUBJECT_TYPE_DEFAULT"},
                    }
                ]

            parameters = {
                "sampleCount": 1,
                "aspectRatio": aspect_ratio,
                "addWatermark": watermark,
            }
            if size:
                parameters["sampleImageSize"] = size

            headers = {
                "Authorization": f"Bearer {self._token()}",
                "Content-Type": "application/json",
            }

            logger.info(f"Generating image with Imagen: {prompt[:50]}...")
            response = self._session.post(
                self._endpoint(model),
                json={"instances": [instance], "parameters": parameters},
                headers=headers,
                timeout=self._timeout,
            )

            if response.status_code != 200:
                error_msg = f"{response.status_code}: {response.text[:500]}"
                logger.error(f"Imagen API error: {error_msg}")
                result.errors.append(error_msg)
                return result

            predictions = response.json().get("predictions", [])
            encoded = [
                p["bytesBase64Encoded"] for p in predictions if p.get("bytesBase64Encoded")
            ]
            if not encoded:
                result.errors.append("No image data in response")
                return result

            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "wb") as f:
                f.write(base64.b64decode(encoded[0]))

            result.images.append(str(output_path))
            logger.info(f"Saved image to {output_path}")
            return result

        except Exception as e:
            logger.error(f"Image generation failed: {e}")
            result.errors.append(str(e))
            return result


def first_image(result: ImageResult, label: str) -> str:
    """Return the first image of a successful result.

    Raises:
        GenerationError: Carrying the upstream messages if the call failed.
    """
    if not result.success:
        raise GenerationError.from_messages(
            f"failed to generate {label}",
            result.errors or ["no image returned"],
        )
    return result.images[0]
