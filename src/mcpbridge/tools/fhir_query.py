"""FHIR query tool -- one authenticated POST to a FHIR query endpoint.

The endpoint accepts ``{"from": <resource type>, "where": {...}}`` and
answers with a FHIR ``Bundle``.  The bundle is reduced to the few fields
a model needs (type, status, medication, dosage, date) before it is
returned as JSON text.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

from mcpbridge.core.errors import FHIRRequestError

logger = logging.getLogger(__name__)

TOOL_NAME = "query-fhir"
DEFAULT_TIMEOUT = 20.0


def format_bundle(bundle: dict[str, Any]) -> dict[str, Any]:
    """Reshape a FHIR search Bundle for model consumption."""
    entries = []
    for entry in bundle.get("entry") or []:
        resource = entry.get("resource") or {}
        medication = (resource.get("medicationCodeableConcept") or {}).get("text") or (
            resource.get("medicationReference") or {}
        ).get("display")
        dosage_instructions = resource.get("dosageInstruction") or [{}]
        formatted: dict[str, Any] = {
            "type": resource.get("resourceType"),
            "status": resource.get("status"),
        }
        optional = {
            "medication": medication,
            "dosage": dosage_instructions[0].get("text"),
            "date": resource.get("authoredOn") or resource.get("dateWritten"),
        }
        formatted.update({k: v for k, v in optional.items() if v is not None})
        entries.append(formatted)

    return {
        "resourceType": bundle.get("resourceType"),
        "count": bundle.get("total") or 0,
        "entries": entries,
    }


class FHIRQueryTool:
    """Query FHIR resources through a single configured endpoint.

    Implements the :class:`Tool` protocol.  ``base_url`` and the fallback
    token default to ``FHIR_API_BASE`` / ``FHIR_AUTH_TOKEN``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        auth_token: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url or os.environ.get("FHIR_API_BASE", "")
        self._auth_token = auth_token or os.environ.get("FHIR_AUTH_TOKEN", "")
        self._client = client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return TOOL_NAME

    @property
    def description(self) -> str:
        return "Query FHIR resources"

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "searchParams": {
                    "type": "object",
                    "properties": {
                        "from": {
                            "type": "string",
                            "description": "FHIR resource type, e.g. MedicationRequest.",
                        },
                        "where": {
                            "type": "object",
                            "additionalProperties": {"type": "string"},
                            "description": "FHIR search parameters.",
                        },
                    },
                    "required": ["from", "where"],
                },
                "authToken": {
                    "type": "string",
                    "description": "Bearer token for the FHIR endpoint.",
                },
            },
            "required": ["searchParams"],
        }

    async def execute(self, **kwargs: Any) -> str:
        """Run the query.

        Args:
            **kwargs: ``searchParams`` (``from`` + ``where``) and ``authToken``.

        Returns:
            The reshaped bundle as indented JSON text.

        Raises:
            ValueError: If the search parameters are malformed or no
                endpoint/token is available.
            FHIRRequestError: If the endpoint answers with a non-2xx status.
        """
        params = kwargs.get("searchParams")
        if not isinstance(params, dict):
            msg = "Parameter 'searchParams' is required and must be an object."
            raise ValueError(msg)
        resource_type = params.get("from")
        where = params.get("where") or {}
        if not resource_type or not isinstance(resource_type, str):
            msg = "searchParams.from must be a FHIR resource type."
            raise ValueError(msg)
        if not isinstance(where, dict):
            msg = "searchParams.where must be an object of string values."
            raise ValueError(msg)
        if not all(isinstance(v, str) for v in where.values()):
            msg = "searchParams.where values must be strings."
            raise ValueError(msg)

        token = kwargs.get("authToken") or self._auth_token
        if not token:
            msg = "No authToken given and FHIR_AUTH_TOKEN is not set."
            raise ValueError(msg)
        if not self._base_url:
            msg = "FHIR_API_BASE is not set."
            raise ValueError(msg)

        query = {"from": resource_type, "where": where}
        bundle = await self._post(query, token)
        return json.dumps(format_bundle(bundle), indent=2)

    async def _post(self, query: dict[str, Any], token: str) -> dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        logger.info("FHIR query: %s", json.dumps(query))
        if self._client is not None:
            response = await self._client.post(self._base_url, json=query, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._base_url, json=query, headers=headers)

        if not response.is_success:
            logger.error("FHIR request failed with status %s", response.status_code)
            raise FHIRRequestError(response.status_code)
        data = response.json()
        if not isinstance(data, dict):
            msg = "FHIR endpoint returned a non-object response"
            raise ValueError(msg)
        return data
