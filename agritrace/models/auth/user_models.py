from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal

UserRole = Literal["farmer", "aggregator", "retailer", "consumer", "admin"]


class CoordinatesModel(BaseModel):
    latitude: float
    longitude: float


class AddressModel(BaseModel):
    village: Optional[str] = ""
    district: Optional[str] = ""
    state: Optional[str] = ""
    pincode: Optional[str] = ""
    coordinates: Optional[CoordinatesModel] = None
    fullAddress: Optional[str] = ""
    isLocationDetected: bool = False


class FarmerDetailsModel(BaseModel):
    farmSize: Optional[float] = None
    primaryCrops: List[str] = Field(default_factory=list)
    organicCertified: Optional[bool] = None


class RegisterModel(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    role: UserRole
    phone: str = Field(..., min_length=1)
    walletAddress: Optional[str] = None
    address: Optional[AddressModel] = None
    farmerDetails: Optional[FarmerDetailsModel] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("must be a valid email address")
        return v


class LoginModel(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ProfileUpdateModel(BaseModel):
    # email, password and role are not editable here
    name: Optional[str] = None
    phone: Optional[str] = None
    walletAddress: Optional[str] = None
    address: Optional[AddressModel] = None
    farmerDetails: Optional[FarmerDetailsModel] = None


class LocationUpdateModel(BaseModel):
    email: str
    address: AddressModel
