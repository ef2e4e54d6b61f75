# agritrace/services/aggregator/quality_service.py
"""
Quality inspection capability.

A QualityInspector turns the served URLs (/uploads/aggregator/...) of an
aggregator's quality images into a QualityAssessment. MockQualityInspector fabricates plausible values;
a real model-backed inspector only has to return the same shape.
"""
from __future__ import annotations

import random
from typing import Any, List, Optional

from flask import current_app

from agritrace.models.aggregator.collection_models import (
    AiAnalysis,
    Defect,
    InspectionImage,
    QualityAssessment,
    VisualInspection,
)
from agritrace.utils import now_utc


def grade_from_score(score: float) -> str:
    if score >= 90:
        return "Premium"
    if score >= 80:
        return "A"
    if score >= 70:
        return "B"
    if score >= 60:
        return "C"
    return "Rejected"


class QualityInspector:
    def assess(self, image_urls: List[str]) -> QualityAssessment:
        raise NotImplementedError


class MockQualityInspector(QualityInspector):
    DEFECT_TYPES = ["Insect Damage", "Discoloration", "Cracks", "Foreign Matter"]

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def assess(self, image_urls: List[str]) -> QualityAssessment:
        rng = self._rng
        score = rng.randint(60, 100)

        defects = []
        if rng.random() > 0.7:
            defects.append(Defect(
                defectType=rng.choice(self.DEFECT_TYPES),
                severity=rng.choice(["Low", "Medium", "High"]),
                affectedPercentage=rng.randint(1, 15),
            ))

        analysis = AiAnalysis(
            visualInspection=VisualInspection(
                color=rng.choice(["Excellent", "Good", "Fair"]),
                texture=rng.choice(["Uniform", "Slightly Varied", "Inconsistent"]),
                size=rng.choice(["Uniform", "Mixed", "Small"]),
                uniformity=rng.randint(70, 99),
            ),
            defectDetection=defects,
            moistureContent=rng.randint(10, 19),
            purityLevel=rng.randint(80, 99),
            contaminants=["Dust", "Stones"] if rng.random() > 0.8 else [],
            pesticidesDetected=rng.random() > 0.9,
            organicCompliance=rng.random() > 0.3,
        )

        analyzed_at = now_utc()
        return QualityAssessment(
            overallGrade=grade_from_score(score),
            qualityScore=score,
            aiAnalysis=analysis,
            inspectionImages=[
                InspectionImage(url=p, type="original", timestamp=analyzed_at) for p in image_urls
            ],
            analyzedAt=analyzed_at,
        )


def init_quality(app: Any) -> QualityInspector:
    inspector = MockQualityInspector(seed=app.config.get("QUALITY_SEED"))
    app.extensions["quality_inspector"] = inspector
    app.logger.info("Mock quality inspector bound")
    return inspector


def get_quality_inspector() -> QualityInspector:
    return current_app.extensions["quality_inspector"]
