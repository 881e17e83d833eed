"""Request parsing and response shaping shared by the routers."""

from typing import Any, Callable, Optional, Type, TypeVar

from fastapi import UploadFile
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..domain.entities import Page
from ..domain.exceptions import ValidationException
from ..validators import ImageUpload, check_image_size

M = TypeVar("M", bound=BaseModel)


async def read_upload(file: Optional[UploadFile], max_bytes: int) -> Optional[ImageUpload]:
    """
    Read an optional multipart file; an empty file field counts as absent.

    At most ``max_bytes + 1`` bytes are read into memory.

    Raises:
        ValidationException: If the file is larger than ``max_bytes``
    """
    if file is None or not file.filename:
        return None
    if file.size is not None:
        check_image_size(file.filename, file.size, max_bytes)
    content = await file.read(max_bytes + 1)
    check_image_size(file.filename, len(content), max_bytes)
    return ImageUpload(
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
        content=content,
    )


def parse_model(model: Type[M], **fields: Any) -> M:
    """
    Build a request model from form fields.

    Raises:
        ValidationException: For the first invalid field
    """
    try:
        return model(**fields)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or "form"
        raise ValidationException(field, error.get("input", ""), error.get("msg", "invalid"))


def page_to_dict(page: Page, item_to_dict: Callable[[Any], dict]) -> dict:
    return {
        "items": [item_to_dict(item) for item in page.items],
        "page": page.page,
        "page_size": page.page_size,
        "total_items": page.total_items,
        "total_pages": page.total_pages,
        "has_previous": page.has_previous,
        "has_next": page.has_next,
    }
