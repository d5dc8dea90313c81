"""
Cloud Vision object-localization wire models and parser.

Request:
    {"requests": [{"image": {"content": <base64 JPEG>},
                   "features": [{"type": "OBJECT_LOCALIZATION"}]}]}

Response:
    {"responses": [{"localizedObjectAnnotations": [
        {"name": ..., "score": ...,
         "boundingPoly": {"normalizedVertices": [{"x": ..., "y": ...}, ...]}}]}]}

An empty or malformed response means "nothing detected", never an error.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.detection import Candidate, FREE_TEXT_CLASS_ID, clamp01

DEFAULT_LABEL = "Unknown"
DEFAULT_REMOTE_MIN_SCORE = 0.45


class NormalizedVertex(BaseModel):
    # Cloud Vision omits zero-valued coordinates
    x: float = 0.0
    y: float = 0.0

    @field_validator("x", "y", mode="before")
    @classmethod
    def _null_coordinate(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class BoundingPoly(BaseModel):
    normalizedVertices: List[NormalizedVertex] = Field(default_factory=list)

    @field_validator("normalizedVertices", mode="before")
    @classmethod
    def _null_vertices(cls, value: Any) -> Any:
        return [] if value is None else value


class LocalizedObjectAnnotation(BaseModel):
    name: str = DEFAULT_LABEL
    score: float = 0.0
    boundingPoly: Optional[BoundingPoly] = None

    @field_validator("name", mode="before")
    @classmethod
    def _null_name(cls, value: Any) -> Any:
        return DEFAULT_LABEL if value is None else value

    @field_validator("score", mode="before")
    @classmethod
    def _null_score(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class AnnotateImageResponse(BaseModel):
    # Raw entries; each is validated on its own by parse_annotate_response
    localizedObjectAnnotations: List[Any] = Field(default_factory=list)

    @field_validator("localizedObjectAnnotations", mode="before")
    @classmethod
    def _null_annotations(cls, value: Any) -> Any:
        return [] if value is None else value


class BatchAnnotateImagesResponse(BaseModel):
    responses: List[AnnotateImageResponse] = Field(default_factory=list)


def build_annotate_request(image_b64: str) -> Dict[str, Any]:
    """Build the object-localization request body for one base64 JPEG."""
    return {
        "requests": [
            {
                "image": {"content": image_b64},
                "features": [{"type": "OBJECT_LOCALIZATION"}],
            }
        ]
    }


def annotation_to_candidate(annotation: LocalizedObjectAnnotation) -> Optional[Candidate]:
    """
    Axis-aligned bounds of an annotation's polygon.

    Each vertex coordinate is clamped into [0, 1] before taking min/max.
    Annotations without vertices have no box and yield None.
    """
    vertices = annotation.boundingPoly.normalizedVertices if annotation.boundingPoly else []
    if not vertices:
        return None

    xs = [clamp01(v.x) for v in vertices]
    ys = [clamp01(v.y) for v in vertices]
    return Candidate(
        x1=min(xs),
        y1=min(ys),
        x2=max(xs),
        y2=max(ys),
        score=clamp01(annotation.score),
        class_id=FREE_TEXT_CLASS_ID,
        label=annotation.name or DEFAULT_LABEL,
    )


def parse_annotate_response(payload: Union[str, bytes, Dict[str, Any], None]) -> List[Candidate]:
    """
    Parse an images:annotate response into Candidates.

    Args:
        payload: Raw JSON text/bytes or an already-decoded dict.

    Returns:
        Candidates of the first response, in annotation order. Empty when the
        payload is missing, malformed, or carries no annotations. A single
        malformed annotation is skipped; the rest are kept.
    """
    if payload is None:
        return []

    try:
        if isinstance(payload, (str, bytes, bytearray)):
            if not payload:
                return []
            payload = json.loads(payload)
        response = BatchAnnotateImagesResponse.model_validate(payload)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logging.warning(f"Malformed Vision response, treating as no detections: {e}")
        return []

    if not response.responses:
        return []

    out: List[Candidate] = []
    for index, raw in enumerate(response.responses[0].localizedObjectAnnotations):
        try:
            annotation = LocalizedObjectAnnotation.model_validate(raw)
        except ValidationError as e:
            logging.debug(f"Skipping malformed annotation #{index}: {e}")
            continue

        candidate = annotation_to_candidate(annotation)
        if candidate is None:
            logging.debug(f"Skipping annotation without vertices: {annotation.name}")
            continue
        out.append(candidate)
    return out


def filter_by_score(
    candidates: Sequence[Candidate],
    min_score: float = DEFAULT_REMOTE_MIN_SCORE,
) -> List[Candidate]:
    """Keep candidates scoring at least min_score."""
    return [c for c in candidates if c.score >= min_score]
