from __future__ import annotations

import asyncio
import logging
from typing import Any

import backoff
import requests
from pydantic import ValidationError

from ..errors import ApiError
from .models import CatalogInstance, MerkleEntry

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class CatalogClient:
    """Client for the public product catalog.

    Resolves instance ids into product configuration and serves allowlist
    merkle data. Transient HTTP failures are retried; anything else surfaces
    as ``ApiError``.
    """

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @backoff.on_exception(
        backoff.expo,
        (requests.exceptions.RequestException, requests.exceptions.HTTPError),
        max_tries=5,
        giveup=lambda e: (
            isinstance(e, requests.exceptions.HTTPError)
            and e.response is not None
            and e.response.status_code not in RETRYABLE_STATUS
        ),
        jitter=backoff.full_jitter,
    )
    async def _get_with_retry(self, path: str, params: dict[str, Any] | None = None):
        response = await asyncio.to_thread(
            requests.get,
            f"{self.base_url}{path}",
            params=params,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._get_with_retry(path, params)
            return response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise ApiError(
                f"Catalog request failed with status {status}",
                details={"path": path, "status": status},
            ) from e
        except requests.exceptions.RequestException as e:
            raise ApiError(
                f"Catalog request failed: {e}", details={"path": path}
            ) from e
        except ValueError as e:
            raise ApiError(
                "Catalog returned a non-JSON response", details={"path": path}
            ) from e

    async def get_instance(self, instance_id: str | int) -> CatalogInstance:
        """Fetch a product instance by id.

        Raises:
            ApiError: On HTTP failure, a missing instance, or a malformed payload
        """
        payload = await self._get_json("/instance/data", {"id": str(instance_id)})
        if not payload:
            raise ApiError(
                f"Instance with ID {instance_id} not found",
                details={"instance_id": str(instance_id)},
            )
        try:
            instance = CatalogInstance.model_validate(payload)
        except ValidationError as e:
            raise ApiError(
                f"Malformed catalog data for instance {instance_id}",
                details={"instance_id": str(instance_id), "errors": e.error_count()},
            ) from e
        logger.debug("Fetched instance %s (app %s)", instance.id, instance.app_id)
        return instance

    async def get_merkle_info(
        self, merkle_tree_id: int, address: str, app_id: int
    ) -> list[MerkleEntry]:
        """Allowlist entries for ``address`` in ``merkle_tree_id``; empty when not listed."""
        payload = await self._get_json(
            f"/merkleTree/{merkle_tree_id}/merkleInfo",
            {"address": address, "appId": app_id},
        )
        if not isinstance(payload, list):
            raise ApiError(
                "Malformed merkle info response",
                details={"merkle_tree_id": merkle_tree_id},
            )
        try:
            return [MerkleEntry.model_validate(item) for item in payload]
        except ValidationError as e:
            raise ApiError(
                "Malformed merkle info entry",
                details={"merkle_tree_id": merkle_tree_id},
            ) from e
