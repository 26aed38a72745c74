"""Parts decoded from a multipart/form-data request body."""

from dataclasses import dataclass
from typing import BinaryIO


@dataclass(frozen=True, slots=True)
class FormItem:
    """Plain form field."""

    name: str
    value: str

    def dispose(self) -> None:
        pass


@dataclass(frozen=True, slots=True)
class FileItem:
    """Uploaded file. Its stream is only readable until the next part is requested."""

    name: str
    original_file_name: str
    content_type: str
    stream: BinaryIO

    def read(self) -> bytes:
        self.stream.seek(0)
        return self.stream.read()

    def dispose(self) -> None:
        self.stream.close()


@dataclass(frozen=True, slots=True)
class BinaryItem:
    """Field without a file name carrying a non-text payload."""

    name: str
    stream: BinaryIO

    def read(self) -> bytes:
        self.stream.seek(0)
        return self.stream.read()

    def dispose(self) -> None:
        self.stream.close()


type UploadPart = FormItem | FileItem | BinaryItem
