import base64
import binascii
import io
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

import openai
from PIL import Image, UnidentifiedImageError

from .errors import CompositionError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-image-1"


@dataclass(frozen=True)
class CompositionRequest:
    base_image: Path
    overlay_image: Path
    instruction: str
    mask: Optional[Path] = None
    quality: str = "low"


def build_instruction(has_mask: bool) -> str:
    placement = (
        "inside the highlighted mask region of the product"
        if has_mask
        else "at the center of the product"
    )
    return (
        f"Add the client logo {placement}, making it prominent but not "
        "overwhelming. Ensure the logo is clearly visible and properly scaled. "
        "Apply the logo exactly once and leave the rest of the product unchanged."
    )


def _as_upload(path: Path) -> Tuple[str, bytes, str]:
    mime, _ = mimetypes.guess_type(path.name)
    return path.name, path.read_bytes(), mime or "image/png"


class OpenAICompositor:
    """
    Adapter around the OpenAI image edit endpoint.

    The base product and the client logo are sent together as reference
    images; an optional mask restricts where the edit may happen.
    """

    def __init__(self, client: Any, model: str = DEFAULT_MODEL) -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings) -> "OpenAICompositor":
        client = openai.OpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.request_timeout,
        )
        return cls(client=client, model=settings.openai_model)

    def compose(self, request: CompositionRequest) -> bytes:
        params = {
            "model": self.model,
            "image": [_as_upload(request.base_image), _as_upload(request.overlay_image)],
            "prompt": request.instruction,
            "n": 1,
            "size": "auto",
            "quality": request.quality,
        }
        if request.mask is not None:
            params["mask"] = _as_upload(request.mask)

        logger.debug("Compositor prompt: %s", request.instruction)
        try:
            response = self.client.images.edit(**params)
        except openai.OpenAIError as exc:
            raise CompositionError(
                f"Image edit failed for {request.base_image.name}: {exc}"
            ) from exc

        data = getattr(response, "data", None) or []
        payload = getattr(data[0], "b64_json", None) if data else None
        if not payload:
            raise CompositionError(
                f"Image edit for {request.base_image.name} returned no image payload"
            )

        return decode_image_payload(payload, label=request.base_image.name)


def decode_image_payload(payload: str, label: str = "image") -> bytes:
    """
    Decode a base64 image payload and make sure Pillow can read it.
    """
    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CompositionError(f"Payload for {label} is not valid base64") from exc

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError) as exc:
        raise CompositionError(f"Payload for {label} is not a readable image") from exc

    return image_bytes
