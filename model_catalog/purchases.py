"""The purchase operation: bump a model's counter and log the purchase.

The two writes touch different collections and are not wrapped in a Mongo
transaction (those need a replica set). Instead:

- strict mode checks the model first, writes the record, then increments,
  and deletes the record again if the increment did not land;
- orphan mode, the default, increments and then always writes the record,
  even when no model matched.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import NotFound
from .repository import ModelRepository, PurchaseRecorder

logger = logging.getLogger(__name__)


class PurchaseService:
    def __init__(
        self,
        models: ModelRepository,
        purchases: PurchaseRecorder,
        allow_orphans: bool = True,
    ):
        self.models = models
        self.purchases = purchases
        self.allow_orphans = allow_orphans

    def purchase(self, model_id: str, buyer_email: str | None = None) -> dict[str, Any] | None:
        """Record one purchase of `model_id`.

        Returns the model after the increment, or None (orphan mode only)
        when the id matched nothing.

        Raises:
            InvalidIdentifier: `model_id` is not an ObjectId string.
            NotFound: strict mode, and the model does not exist.
        """
        model_id = model_id.strip()
        logger.info("Purchase request for %s by %s", model_id, buyer_email)

        if self.allow_orphans:
            return self._purchase_unchecked(model_id, buyer_email)
        return self._purchase_checked(model_id, buyer_email)

    def _purchase_unchecked(self, model_id: str, buyer_email: str | None) -> dict[str, Any] | None:
        updated = self.models.increment_purchased(model_id)
        self.purchases.append(model_id, buyer_email)
        if updated is None:
            logger.warning("Purchase recorded for unknown model %s", model_id)
        return updated

    def _purchase_checked(self, model_id: str, buyer_email: str | None) -> dict[str, Any]:
        if not self.models.exists(model_id):
            raise NotFound("Model")

        record = self.purchases.append(model_id, buyer_email)
        try:
            updated = self.models.increment_purchased(model_id)
        except Exception:
            self._compensate(record)
            raise

        if updated is None:
            # Deleted between the existence check and the increment.
            self._compensate(record)
            raise NotFound("Model")
        return updated

    def _compensate(self, record: dict[str, Any]) -> None:
        logger.warning("Rolling back purchase record %s for model %s", record["_id"], record["modelId"])
        self.purchases.remove(record["_id"])
