"""
In-memory representation of an uploaded file
"""
from dataclasses import dataclass
from typing import Literal


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    kind: Literal["pdf", "image"]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
