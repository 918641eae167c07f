from __future__ import annotations

import re
from types import MappingProxyType

from growsmart.core.schemas import CanonicalCondition


# PlantVillage (Kaggle, 38 classes) labels -> canonical "Subject Condition"
DISEASE_CLASSES = MappingProxyType({
    "Apple___Apple_scab": "Apple Scab",
    "Apple___Black_rot": "Apple Black Rot",
    "Apple___Cedar_apple_rust": "Apple Cedar Rust",
    "Apple___healthy": "Apple Healthy",
    "Blueberry___healthy": "Blueberry Healthy",
    "Cherry_(including_sour)___Powdery_mildew": "Cherry Powdery Mildew",
    "Cherry_(including_sour)___healthy": "Cherry Healthy",
    "Corn_(maize)___Cercospora_leaf_spot Gray_leaf_spot": "Corn Gray Leaf Spot",
    "Corn_(maize)___Common_rust_": "Corn Common Rust",
    "Corn_(maize)___Northern_Leaf_Blight": "Corn Northern Leaf Blight",
    "Corn_(maize)___healthy": "Corn Healthy",
    "Grape___Black_rot": "Grape Black Rot",
    "Grape___Esca_(Black_Measles)": "Grape Black Measles",
    "Grape___Leaf_blight_(Isariopsis_Leaf_Spot)": "Grape Leaf Blight",
    "Grape___healthy": "Grape Healthy",
    "Orange___Haunglongbing_(Citrus_greening)": "Citrus Greening Disease",
    "Peach___Bacterial_spot": "Peach Bacterial Spot",
    "Peach___healthy": "Peach Healthy",
    "Pepper,_bell___Bacterial_spot": "Pepper Bacterial Spot",
    "Pepper,_bell___healthy": "Pepper Healthy",
    "Potato___Early_blight": "Potato Early Blight",
    "Potato___Late_blight": "Potato Late Blight",
    "Potato___healthy": "Potato Healthy",
    "Raspberry___healthy": "Raspberry Healthy",
    "Soybean___healthy": "Soybean Healthy",
    "Squash___Powdery_mildew": "Squash Powdery Mildew",
    "Strawberry___Leaf_scorch": "Strawberry Leaf Scorch",
    "Strawberry___healthy": "Strawberry Healthy",
    "Tomato___Bacterial_spot": "Tomato Bacterial Spot",
    "Tomato___Early_blight": "Tomato Early Blight",
    "Tomato___Late_blight": "Tomato Late Blight",
    "Tomato___Leaf_Mold": "Tomato Leaf Mold",
    "Tomato___Septoria_leaf_spot": "Tomato Septoria Leaf Spot",
    "Tomato___Spider_mites Two-spotted_spider_mite": "Tomato Spider Mites",
    "Tomato___Target_Spot": "Tomato Target Spot",
    "Tomato___Tomato_Yellow_Leaf_Curl_Virus": "Tomato Yellow Leaf Curl Virus",
    "Tomato___Tomato_mosaic_virus": "Tomato Mosaic Virus",
    "Tomato___healthy": "Tomato Healthy",
})

UNKNOWN = "Unknown"

_SEPARATORS = re.compile(r"[_\-]+")
_WORD_START = re.compile(r"\b\w")
_WHITESPACE = re.compile(r"\s+")


def parse_raw_label(label: str) -> str:
    """Best-effort canonical string for a label missing from the table."""
    text = _SEPARATORS.sub(" ", label or "")
    text = _WORD_START.sub(lambda m: m.group(0).upper(), text)
    return _WHITESPACE.sub(" ", text).strip()


class TaxonomyResolver:
    """
    Maps backend labels onto canonical (subject, condition) pairs.

    Exact table lookup first, heuristic parsing second. Never raises: an
    unrecognized label still yields a canonical condition, which is a
    best-effort reading rather than a verified identification.
    """

    def __init__(self, table: MappingProxyType | dict[str, str] | None = None):
        self.table = table if table is not None else DISEASE_CLASSES

    def canonical_name(self, raw_label: str) -> str:
        label = (raw_label or "").strip()
        mapped = self.table.get(label)
        if mapped:
            return mapped
        return parse_raw_label(label) or UNKNOWN

    def resolve(self, raw_label: str) -> CanonicalCondition:
        name = self.canonical_name(raw_label)
        subject, _, condition = name.partition(" ")
        condition = condition.strip()

        return CanonicalCondition(
            subject=subject,
            condition=condition,
            name=name,
            is_healthy=condition.lower() == "healthy",
        )
