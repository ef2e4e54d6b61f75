# agritrace/models/aggregator/collection_models.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List, Literal

COLLECTION_STATUSES = (
    "collected",
    "quality_checked",
    "stored",
    "processed",
    "ready_for_sale",
    "sold",
    "in_transit",
    "delivered",
    "rejected",
)

CollectionStatus = Literal[
    "collected",
    "quality_checked",
    "stored",
    "processed",
    "ready_for_sale",
    "sold",
    "in_transit",
    "delivered",
    "rejected",
]

Grade = Literal["Premium", "A", "B", "C", "Rejected"]
Severity = Literal["Low", "Medium", "High"]


# ---------------------------------------------------------
# Inputs
# ---------------------------------------------------------
class GpsModel(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CollectionLocationModel(BaseModel):
    farmAddress: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    gpsCoordinates: Optional[GpsModel] = None


class StorageConditionsModel(BaseModel):
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    ventilation: Optional[str] = None


class StorageDetailsModel(BaseModel):
    facilityName: Optional[str] = None
    facilityAddress: Optional[str] = None
    storageType: Optional[Literal["warehouse", "cold_storage", "silo", "open_yard"]] = None
    storageConditions: Optional[StorageConditionsModel] = None
    expectedStorageDuration: Optional[int] = None  # days
    storageStartDate: Optional[datetime] = None


class CollectCropModel(BaseModel):
    cropId: str = Field(..., min_length=1)
    collectedQuantity: float = Field(..., gt=0)
    collectedUnit: Literal["kg", "tons", "bags", "quintal"] = "kg"
    purchasePrice: float = Field(..., ge=0)  # total paid to the farmer
    collectionLocation: CollectionLocationModel
    storageDetails: StorageDetailsModel = Field(default_factory=StorageDetailsModel)
    notes: Optional[str] = ""


class ScanQRModel(BaseModel):
    qrCode: str = Field(..., min_length=1)
    scannedLocation: Optional[GpsModel] = None


class StatusUpdateModel(BaseModel):
    status: CollectionStatus
    notes: Optional[str] = ""


class RecordSaleModel(BaseModel):
    buyerEmail: str
    buyerType: Literal["retailer", "processor", "exporter", "consumer"] = "retailer"
    salePrice: float = Field(..., ge=0)
    paymentStatus: Literal["pending", "partial", "completed"] = "pending"
    notes: Optional[str] = ""


# ---------------------------------------------------------
# Quality assessment (QualityInspector output)
# ---------------------------------------------------------
class VisualInspection(BaseModel):
    color: str
    texture: str
    size: str
    uniformity: float = Field(..., ge=0, le=100)


class Defect(BaseModel):
    defectType: str
    severity: Severity
    affectedPercentage: float = Field(..., ge=0, le=100)


class AiAnalysis(BaseModel):
    visualInspection: VisualInspection
    defectDetection: List[Defect] = Field(default_factory=list)
    moistureContent: float
    purityLevel: float
    contaminants: List[str] = Field(default_factory=list)
    pesticidesDetected: bool = False
    organicCompliance: bool = False


class InspectionImage(BaseModel):
    url: str
    type: str = "original"
    timestamp: datetime


class QualityAssessment(BaseModel):
    overallGrade: Grade
    qualityScore: float = Field(..., ge=0, le=100)
    aiAnalysis: AiAnalysis
    inspectionImages: List[InspectionImage] = Field(default_factory=list)
    inspectorNotes: Optional[str] = ""
    analyzedAt: datetime


# ---------------------------------------------------------
# Ledger receipt (LedgerWriter output)
# ---------------------------------------------------------
class LedgerReceipt(BaseModel):
    transactionHash: str
    blockNumber: int
    contractAddress: Optional[str] = None
    produceId: Optional[int] = None
    gasUsed: Optional[int] = None
    confirmations: int = 0
    isConfirmed: bool = False
    blockchainTimestamp: datetime


class TraceabilityEntry(BaseModel):
    stage: str
    actor: str
    timestamp: datetime
    location: Optional[str] = ""
    action: str
    notes: Optional[str] = ""
