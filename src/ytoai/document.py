from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MetadataMode(Enum):
    """Which metadata keys are rendered into a document's formatted content."""

    ALL = "all"
    EMBED = "embed"
    INFERENCE = "inference"
    NONE = "none"


@dataclass
class Document:
    """A piece of text to embed, with optional metadata.

    Metadata keys listed in ``excluded_embed_metadata_keys`` are left out
    when the document is formatted for embedding, and likewise for
    ``excluded_inference_metadata_keys`` when formatted for inference.
    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    excluded_embed_metadata_keys: list[str] = field(default_factory=list)
    excluded_inference_metadata_keys: list[str] = field(default_factory=list)

    def formatted_content(self, mode: MetadataMode = MetadataMode.ALL) -> str:
        if mode is MetadataMode.NONE:
            excluded = set(self.metadata)
        elif mode is MetadataMode.EMBED:
            excluded = set(self.excluded_embed_metadata_keys)
        elif mode is MetadataMode.INFERENCE:
            excluded = set(self.excluded_inference_metadata_keys)
        else:
            excluded = set()

        metadata_string = "\n".join(
            f"{key}: {value}"
            for key, value in self.metadata.items()
            if key not in excluded
        )
        if not metadata_string:
            return self.content
        return f"{metadata_string}\n\n{self.content}"
