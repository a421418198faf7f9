"""Split a markdown document into YAML front matter and body."""

import yaml
from pydantic import ValidationError

from .types import ArticleFrontMatter

DELIMITER = "---"


class FrontMatterError(Exception):
    """Raised when a document has no usable front matter block."""

    pass


def split_front_matter(text: str) -> tuple[str, str]:
    """
    Split raw text into the front matter source and the body.

    The document must open with a `---` line; the block ends at the next
    line that is exactly `---`.

    Returns:
        Tuple of (yaml source, body)

    Raises:
        FrontMatterError: If the block is missing or never closed
    """
    text = text.lstrip("\ufeff").replace("\r\n", "\n")
    lines = text.lstrip("\n").split("\n")

    if not lines or lines[0].rstrip() != DELIMITER:
        raise FrontMatterError("Document does not start with a front matter block")

    for index in range(1, len(lines)):
        if lines[index].rstrip() == DELIMITER:
            source = "\n".join(lines[1:index])
            body = "\n".join(lines[index + 1 :])
            return source, body.lstrip("\n")

    raise FrontMatterError("Front matter block is not closed")


def extract_front_matter(text: str) -> tuple[ArticleFrontMatter, str]:
    """
    Parse the front matter of a content file.

    Args:
        text: Full document text

    Returns:
        Tuple of (validated front matter, body text)

    Raises:
        FrontMatterError: Missing block, invalid YAML, or invalid fields
    """
    source, body = split_front_matter(text)

    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML in front matter: {e}") from e

    if not isinstance(data, dict):
        raise FrontMatterError("Front matter must be a mapping")

    try:
        front_matter = ArticleFrontMatter.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "<root>"
            for error in e.errors()
        )
        raise FrontMatterError(f"Invalid front matter fields: {fields}") from e

    return front_matter, body
