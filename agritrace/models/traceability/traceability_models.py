# agritrace/models/traceability/traceability_models.py
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional

FARM_PRODUCTION = "Farm Production"
COLLECTION_AND_QUALITY = "Collection & Quality Check"
SALE = "Sale"


@dataclass
class TraceEvent:
    stage: str = ""
    actor: Optional[str] = None
    location: Any = None        # string for chain entries, address block for farm/collection
    timestamp: Any = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProductSummary:
    cropId: Any = None
    traceabilityId: str = ""
    name: str = ""
    variety: str = ""
    category: str = ""
    status: str = ""
    qrCode: Optional[Dict[str, Any]] = None


@dataclass
class TraceabilityViewModel:
    product: ProductSummary = field(default_factory=ProductSummary)
    chain: List[TraceEvent] = field(default_factory=list)
    collections: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        # asdict would deep-copy the raw Mongo documents too; keep them as-is
        return {
            "product": asdict(self.product),
            "chain": [asdict(ev) for ev in self.chain],
            "collections": self.collections,
        }


@dataclass
class CollectionTraceViewModel:
    productInfo: Dict[str, Any] = field(default_factory=dict)
    traceabilityChain: List[TraceEvent] = field(default_factory=list)
    blockchain: Optional[Dict[str, Any]] = None
    qualityReport: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productInfo": self.productInfo,
            "traceabilityChain": [asdict(ev) for ev in self.traceabilityChain],
            "blockchain": self.blockchain,
            "qualityReport": self.qualityReport,
        }
