from dataclasses import dataclass, field
from typing import Any

import httpx

from app.config import settings
from app.core.exceptions import ClassificationError
from app.models.enums import TrashBinType


@dataclass
class ClassificationResult:
    recommended_bin_type: TrashBinType | None
    explanation: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class WasteClassifier:
    async def classify(
        self,
        *,
        image_url: str,
        available_bin_types: list[TrashBinType],
        company_name: str | None = None,
        area_name: str | None = None,
    ) -> ClassificationResult:
        raise NotImplementedError


class MockWasteClassifier(WasteClassifier):
    async def classify(
        self,
        *,
        image_url: str,
        available_bin_types: list[TrashBinType],
        company_name: str | None = None,
        area_name: str | None = None,
    ) -> ClassificationResult:
        if not settings.CLASSIFIER_ENABLED:
            return ClassificationResult(recommended_bin_type=None, explanation="Classifier disabled")
        bin_type = available_bin_types[0] if available_bin_types else TrashBinType.MIXED
        return ClassificationResult(
            recommended_bin_type=bin_type,
            explanation=f"Mock classification into {bin_type.value}",
            raw={"provider": "mock", "recommended_bin_type": bin_type.value},
        )


class HttpWasteClassifier(WasteClassifier):
    def __init__(
        self,
        api_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url or settings.CLASSIFIER_API_URL
        self.api_token = api_token or settings.CLASSIFIER_API_TOKEN
        self.timeout = timeout or settings.CLASSIFIER_TIMEOUT_SECONDS
        self.transport = transport

    async def classify(
        self,
        *,
        image_url: str,
        available_bin_types: list[TrashBinType],
        company_name: str | None = None,
        area_name: str | None = None,
    ) -> ClassificationResult:
        if not self.api_url or not self.api_token:
            raise ClassificationError("Missing classifier API configuration")

        payload = {
            "image_url": image_url,
            "available_bin_types": [b.value for b in available_bin_types],
            "company_name": company_name,
            "area_name": area_name,
        }
        headers = {"Authorization": f"Bearer {self.api_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise ClassificationError(f"Classifier request failed: {exc}") from exc
        if response.status_code >= 400:
            raise ClassificationError(f"Classifier returned HTTP {response.status_code}")

        data = response.json() if response.content else {}
        return ClassificationResult(
            recommended_bin_type=parse_bin_type(data.get("recommended_bin_type"), available_bin_types),
            explanation=data.get("explanation"),
            raw=data,
        )


def parse_bin_type(value: Any, allowed: list[TrashBinType]) -> TrashBinType | None:
    """Map the model's answer onto a bin type available at the collection area."""
    if not isinstance(value, str):
        return None
    try:
        bin_type = TrashBinType(value.strip().upper())
    except ValueError:
        return None
    if allowed and bin_type not in allowed:
        return None
    return bin_type


def get_classifier() -> WasteClassifier:
    if settings.CLASSIFIER_PROVIDER.lower() == "http":
        return HttpWasteClassifier()
    return MockWasteClassifier()
