"""
Pydantic schemas for the directory API.

Field names follow the JSON the web client already consumes (camelCase).
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class CoordinatesModel(BaseModel):
    lat: float
    lng: float


class OrganizationResponse(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    coordinates: Optional[CoordinatesModel] = None
    acceptsDropOff: bool = False
    acceptsPickUp: bool = False
    acceptsShipping: bool = False


class DirectoryOrganization(OrganizationResponse):
    favorite: bool = False
    categories: list[str] = Field(default_factory=list)


class OrganizationCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    address: Optional[str] = Field(default=None, max_length=512)
    phone: Optional[str] = Field(default=None, max_length=32)
    website: Optional[str] = Field(default=None, max_length=512)
    email: Optional[str] = Field(default=None, max_length=256)
    description: Optional[str] = Field(default=None, max_length=4096)
    acceptsDropOff: bool = False
    acceptsPickUp: bool = False
    acceptsShipping: bool = False


class DiscoverRequest(BaseModel):
    filter: Optional[str] = None


class FavoritesResponse(BaseModel):
    organizations: list[DirectoryOrganization]
    isLoggedIn: bool


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)


class CategoryResponse(BaseModel):
    id: str
    name: str


class AcceptedCategoryResponse(BaseModel):
    id: str
    organization: str
    category: str
    qualityGuidelines: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)


class AcceptedCategoryUpsertRequest(BaseModel):
    category: str = Field(..., min_length=1, max_length=64)
    qualityGuidelines: Optional[list[str]] = None
    instructions: Optional[list[str]] = None


class AcceptedCategoryUpdateRequest(BaseModel):
    organization: Optional[str] = None
    category: Optional[str] = None
    qualityGuidelines: Optional[list[str]] = None
    instructions: Optional[list[str]] = None


class MemberIdResponse(BaseModel):
    id: Optional[str] = None


class MemberResponse(BaseModel):
    id: str
    authenticationID: str
    name: Optional[str] = None
    email: Optional[str] = None


class StatusResponse(BaseModel):
    status: Literal["ok"]
