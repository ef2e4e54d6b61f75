from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, Literal

ORDER_STATUSES = ("pending", "confirmed", "in_transit", "delivered", "cancelled", "disputed")

OrderStatus = Literal["pending", "confirmed", "in_transit", "delivered", "cancelled", "disputed"]


class DeliveryAddressModel(BaseModel):
    fullAddress: Optional[str] = None
    village: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    coordinates: Optional[dict] = None


class QualityRequirementsModel(BaseModel):
    grade: Optional[str] = None
    moistureContent: Optional[str] = None
    purity: Optional[str] = None
    specialRequests: Optional[str] = None


class OrderCreateModel(BaseModel):
    cropId: str
    cropName: Optional[str] = None
    farmerEmail: str
    buyerEmail: str
    quantity: float = Field(..., gt=0)
    unit: Literal["kg", "quintal", "tons", "bags"] = "kg"
    pricePerUnit: float = Field(..., ge=0)
    paymentMethod: Literal["cash", "bank_transfer", "digital_wallet", "blockchain"] = "cash"
    advancePayment: float = Field(0, ge=0)
    deliveryAddress: Optional[DeliveryAddressModel] = None
    notes: Optional[str] = Field(None, max_length=500)
    qualityRequirements: Optional[QualityRequirementsModel] = None
    expectedDeliveryDate: Optional[datetime] = None


class OrderStatusUpdateModel(BaseModel):
    status: OrderStatus
    userEmail: str
    message: Optional[str] = None
    location: Optional[str] = None


class OrderRatingModel(BaseModel):
    userEmail: str
    ratingType: Literal["farmer", "buyer"]
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = None
