"""Result models returned by the release lookups."""

from datetime import datetime

from pydantic import BaseModel, Field


class PrivateImageTag(BaseModel):
    """The latest tag found for one private registry image."""

    image: str
    tag: str


class PrivateImageError(BaseModel):
    """A failed lookup for one private registry image."""

    image: str
    error: str

    def display_value(self) -> str:
        """Render the error the way it is reported next to successful tags."""
        return f"Error: {self.error}"


class Release(BaseModel):
    """A mirror registry tag together with its image creation time."""

    tag: str
    created: datetime


class RepoResult(BaseModel):
    """The most recent releases of one mirror registry repository, newest first."""

    image: str = Field(description="The repository URL exactly as configured")
    releases: list[Release] = Field(default_factory=list)


class AggregateResult(BaseModel):
    """Combined answer for all tracked images.

    The field names follow the published JSON contract, hence the camelCase.
    """

    privateImages: dict[str, str] = Field(
        default_factory=dict,
        description="Private image name mapped to its latest tag, or to a string starting with 'Error: '",
    )
    mirrorImages: list[RepoResult] = Field(default_factory=list)


class TrackedPrivateImage(BaseModel):
    image: str
    pattern: str


class TrackedImages(BaseModel):
    """The images a server instance is configured to track."""

    private_registry: str
    private_images: list[TrackedPrivateImage]
    mirror_images: list[str]
