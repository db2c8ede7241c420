# SPDX-License-Identifier: MIT
"""Pydantic models for JSON documents served by the feed."""

from pydantic import BaseModel, ConfigDict, Field


class VersionsIndex(BaseModel):
    """Versions of one package, stored at ``{id}/index.json``.

    See https://learn.microsoft.com/en-us/nuget/api/package-base-address-resource
    """

    versions: list[str] = Field(default_factory=list)

    def with_version(self, version: str) -> "VersionsIndex":
        """Return an index that also lists *version*, keeping existing order."""
        if version in self.versions:
            return self
        return VersionsIndex(versions=[*self.versions, version])


class ServiceResource(BaseModel):
    """One entry of the service index."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="@id")
    type: str = Field(alias="@type")
    comment: str | None = None


class ServiceIndex(BaseModel):
    """Entry point document listing the resources this feed offers.

    See https://learn.microsoft.com/en-us/nuget/api/service-index
    """

    version: str = "3.0.0"
    resources: list[ServiceResource] = Field(default_factory=list)

    @classmethod
    def for_url(cls, url: str) -> "ServiceIndex":
        """Build the service index of a feed mounted at *url*."""
        url = url.rstrip("/")
        return cls(
            resources=[
                ServiceResource(
                    id=f"{url}/package",
                    type="PackagePublish/2.0.0",
                    comment="Push packages",
                ),
                ServiceResource(
                    id=f"{url}/content",
                    type="PackageBaseAddress/3.0.0",
                    comment="Package content and version listings",
                ),
            ]
        )
