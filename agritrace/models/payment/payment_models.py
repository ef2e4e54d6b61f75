from pydantic import BaseModel, Field
from typing import Optional, Literal

TransactionStatus = Literal[
    "pending", "confirmed", "in_transit", "delivered", "completed", "cancelled", "disputed"
]
PaymentStatus = Literal["pending", "partial", "completed", "refunded"]


class PaymentCreateModel(BaseModel):
    cropId: str
    sellerEmail: str
    aggregatorEmail: Optional[str] = None
    quantity: float = Field(..., ge=0)
    pricePerUnit: float = Field(..., ge=0)
    # defaults to quantity * pricePerUnit
    totalAmount: Optional[float] = Field(None, ge=0)
    status: TransactionStatus = "pending"
    paymentStatus: PaymentStatus = "pending"
    paymentId: Optional[str] = None
    blockchainTxHash: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
