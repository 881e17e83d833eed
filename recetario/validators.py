"""
Input validation and Pydantic models for recipe and profile writes.

This module provides request models and validation helpers for the
recetario API, including multi-line list parsing and image upload checks.
"""

import io
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field, field_validator

from .domain.exceptions import ValidationException

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")

MAX_TITLE_LENGTH = 200
MAX_SUMMARY_LENGTH = 1000
MAX_USERNAME_LENGTH = 50
MAX_BIO_LENGTH = 500

LINE_BREAKS = re.compile(r"\n+")
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

BYTES_PER_MB = 1024 * 1024


def to_list(text: Optional[str]) -> List[str]:
    """
    Split multi-line text into trimmed, non-empty lines.

    Examples:
        "200 g harina\\n\\n 2 huevos " -> ["200 g harina", "2 huevos"]
    """
    if not text:
        return []
    return [line.strip() for line in LINE_BREAKS.split(text) if line.strip()]


def _clean_lines(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return to_list(value)
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


class RecipeDraft(BaseModel):
    """
    Recipe fields submitted for creation or edit.

    Ingredients and steps may be sent as lists or as newline separated
    text; either way they end up as trimmed lists without blank lines.
    Completeness (title, ingredients, steps) is checked by the service.
    """

    title: str = Field(default="", max_length=MAX_TITLE_LENGTH)
    summary: str = Field(default="", max_length=MAX_SUMMARY_LENGTH)
    ingredients: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    category: str = ""
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", "summary", "category", mode="before")
    @classmethod
    def strip_text(cls, v):
        return (v or "").strip()

    @field_validator("ingredients", "steps", mode="before")
    @classmethod
    def split_lines(cls, v):
        return _clean_lines(v)

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        return _clean_lines(v)

    def missing_fields(self) -> List[str]:
        """Names of the required fields left empty."""
        missing = []
        if not self.title:
            missing.append("title")
        if not self.ingredients:
            missing.append("ingredients")
        if not self.steps:
            missing.append("steps")
        return missing


class ProfileUpdate(BaseModel):
    """Editable profile fields; blank values are stored as null."""

    username: Optional[str] = Field(default=None, max_length=MAX_USERNAME_LENGTH)
    full_name: Optional[str] = Field(default=None, max_length=MAX_TITLE_LENGTH)
    bio: Optional[str] = Field(default=None, max_length=MAX_BIO_LENGTH)

    @field_validator("username", "full_name", "bio", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded image held in memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def safe_filename(self) -> str:
        """Filename reduced to characters safe in a storage path."""
        name = UNSAFE_FILENAME_CHARS.sub("-", self.filename or "").strip("-.")
        return name or "image"


def check_image_size(filename: str, size: int, max_bytes: int) -> None:
    """
    Reject an image larger than ``max_bytes``.

    Raises:
        ValidationException: If the image is too large
    """
    if size > max_bytes:
        raise ValidationException(
            "photo",
            filename,
            f"La imagen pesa demasiado ({round(size / BYTES_PER_MB)}MB). "
            f"Maximo {round(max_bytes / BYTES_PER_MB)}MB.",
        )


def image_dimensions(upload: ImageUpload) -> Tuple[int, int]:
    """
    Width and height of an uploaded image, read from its header.

    Raises:
        ValidationException: If the content cannot be read as an image
    """
    try:
        with Image.open(io.BytesIO(upload.content)) as image:
            return image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        raise ValidationException("photo", upload.filename, "No se pudo leer la imagen.")


def validate_image(
    upload: ImageUpload,
    max_bytes: int,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> ImageUpload:
    """
    Check an uploaded image's type, size and dimensions.

    Args:
        upload: The uploaded file
        max_bytes: Maximum accepted size in bytes
        max_width: Maximum accepted width in pixels, if limited
        max_height: Maximum accepted height in pixels, if limited

    Returns:
        The same upload when valid

    Raises:
        ValidationException: If the type is not an accepted image type,
            the file is empty, too large or unreadable, or its dimensions
            exceed the limits
    """
    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationException(
            "photo",
            upload.content_type,
            "El archivo debe ser una imagen JPG, PNG, WEBP o GIF.",
        )

    if upload.size == 0:
        raise ValidationException("photo", upload.filename, "El archivo esta vacio.")

    check_image_size(upload.filename, upload.size, max_bytes)

    if max_width is None and max_height is None:
        return upload

    width, height = image_dimensions(upload)
    if (max_width is not None and width > max_width) or (
        max_height is not None and height > max_height
    ):
        raise ValidationException(
            "photo",
            upload.filename,
            f"La imagen es demasiado grande ({width}x{height}). "
            f"Maximo {max_width}x{max_height}.",
        )

    return upload
