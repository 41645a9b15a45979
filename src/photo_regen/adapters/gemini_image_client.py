"""Gemini image generation client."""

import base64
import logging
from dataclasses import dataclass

from google import genai
from google.genai import errors, types

from photo_regen.errors import GenerationError
from photo_regen.services.generator import ImageModelClient

INSTRUCTION = (
    "Generate a high-quality food photography image based on this input image "
    "and description. Output parameters: Resolution 1920x1080 (Full HD), "
    "Format JPEG. Description: "
)
IMAGE_SIZE = "2K"
_HARM_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)
_TEXT_PREVIEW_CHARS = 200

logger = logging.getLogger(__name__)


@dataclass
class GeminiImageClient(ImageModelClient):
    """Image model client backed by the Gemini API."""

    client: genai.Client
    model: str

    @classmethod
    def create(cls, api_key: str, model: str) -> "GeminiImageClient":
        """Create a Gemini image client."""
        return cls(client=genai.Client(api_key=api_key), model=model)

    async def generate_image(
        self, *, prompt: str, image: bytes, mime_type: str, aspect_ratio: str
    ) -> bytes:
        """Send the source image and prompt, return the generated image bytes."""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            types.Part.from_text(text=INSTRUCTION + prompt),
                            types.Part.from_bytes(data=image, mime_type=mime_type),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    image_config=types.ImageConfig(
                        aspect_ratio=aspect_ratio, image_size=IMAGE_SIZE
                    ),
                    safety_settings=[
                        types.SafetySetting(
                            category=category,
                            threshold=types.HarmBlockThreshold.BLOCK_NONE,
                        )
                        for category in _HARM_CATEGORIES
                    ],
                ),
            )
        except errors.APIError as exc:
            raise GenerationError(
                f"Gemini API Error: {exc.code} - {exc.message or exc.status}",
                status_code=exc.code,
            ) from exc
        return _extract_image(response)


def _extract_image(response: types.GenerateContentResponse) -> bytes:
    """Return the first inline image of the first candidate."""
    candidates = response.candidates or []
    candidate = candidates[0] if candidates else None
    parts = []
    if candidate is not None and candidate.content is not None:
        parts = candidate.content.parts or []

    image_data: bytes | str | None = None
    text = ""
    for part in parts:
        if part.inline_data is not None and part.inline_data.data:
            image_data = part.inline_data.data
        if part.text:
            text += part.text

    if image_data is None:
        reason = getattr(candidate, "finish_reason", None)
        finish_reason = str(getattr(reason, "value", reason) or "Unknown")
        logger.error("No image found in Gemini response", extra={"reason": finish_reason})
        raise GenerationError(
            "Gemini did not return an image. "
            f"Finish Reason: {finish_reason}. "
            f"Response Text: {text[:_TEXT_PREVIEW_CHARS]}",
            finish_reason=finish_reason,
        )
    if isinstance(image_data, str):
        return base64.b64decode(image_data)
    return image_data
