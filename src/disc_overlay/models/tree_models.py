"""File and folder nodes of a tree under construction."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from disc_overlay.models.content_models import Segment


class FileNode(BaseModel):
    """A file whose content is an ordered list of segments.

    ``size`` is authoritative: segments are never read past it.
    """

    model_config = ConfigDict(frozen=False)

    kind: Literal["file"] = "file"
    name: str
    size: int = 0
    segments: list[Segment] = Field(default_factory=list)

    @property
    def is_file(self) -> bool:
        return True

    @property
    def is_folder(self) -> bool:
        return False


class FolderNode(BaseModel):
    """A folder; child names are matched case-insensitively."""

    model_config = ConfigDict(frozen=False)

    kind: Literal["folder"] = "folder"
    name: str
    children: list["TreeNode"] = Field(default_factory=list)

    @property
    def is_file(self) -> bool:
        return False

    @property
    def is_folder(self) -> bool:
        return True


TreeNode = Annotated[Union[FileNode, FolderNode], Field(discriminator="kind")]

FolderNode.model_rebuild()
