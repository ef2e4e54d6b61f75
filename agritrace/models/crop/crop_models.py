from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List, Literal

CropCategory = Literal["grains", "vegetables", "fruits", "pulses", "spices", "cash_crops"]
CropUnit = Literal["kg", "tons", "bags", "quintal"]
CropStatus = Literal["draft", "listed", "sold", "reserved", "expired"]
QualityGrade = Literal["A", "B", "C", "Premium"]


class FarmLocationModel(BaseModel):
    village: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    coordinates: Optional[dict] = None


class CropQualityModel(BaseModel):
    grade: QualityGrade = "A"
    moistureContent: Optional[float] = None
    purity: Optional[float] = None


class CertificationModel(BaseModel):
    name: str
    issuedBy: Optional[str] = None
    validUntil: Optional[datetime] = None


class CropImageModel(BaseModel):
    url: str
    caption: Optional[str] = None


class CropUploadModel(BaseModel):
    farmerEmail: str
    name: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit: CropUnit = "kg"
    pricePerUnit: float = Field(0, ge=0)

    variety: Optional[str] = None
    category: Optional[CropCategory] = None
    harvestDate: Optional[datetime] = None
    sowingDate: Optional[datetime] = None
    isOrganic: bool = False
    quality: Optional[CropQualityModel] = None
    certifications: List[CertificationModel] = Field(default_factory=list)
    images: List[CropImageModel] = Field(default_factory=list)
    description: Optional[str] = None
    farmLocation: Optional[FarmLocationModel] = None
    status: CropStatus = "listed"


class CropUpdateModel(BaseModel):
    # traceabilityId, farmer and qrCode are not updatable
    name: Optional[str] = None
    variety: Optional[str] = None
    category: Optional[CropCategory] = None
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[CropUnit] = None
    pricePerUnit: Optional[float] = Field(None, ge=0)
    harvestDate: Optional[datetime] = None
    isOrganic: Optional[bool] = None
    quality: Optional[CropQualityModel] = None
    description: Optional[str] = None
    images: Optional[List[CropImageModel]] = None
    status: Optional[CropStatus] = None
