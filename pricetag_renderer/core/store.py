"""
Product Store
=============

Loads the product collection from its JSON file, selects the records whose
price changed and rewrites the collection once a batch has run.
"""

from typing import Any, Iterable, List, Optional, Set
from pathlib import Path
import json

from pydantic import ValidationError

from pricetag_renderer.config.logging import get_logger
from pricetag_renderer.models.schemas import Product

logger = get_logger(__name__)


class ProductStoreError(Exception):
    """Exception raised when the products file cannot be read."""

    pass


def select_pending(products: Iterable[Product]) -> List[Product]:
    """Return the products whose previous price is missing or differs, in order."""
    return [product for product in products if product.needs_render]


class ProductStore:
    """JSON file backed product collection."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger: Any = logger.bind(component="product_store", path=str(self.path))

    def load(self) -> List[Product]:
        """
        Read and validate the whole product collection.

        Returns:
            Products in file order

        Raises:
            ProductStoreError: If the file is missing, not JSON, not an array
                or holds an invalid record
        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            self.logger.error("Error reading products file", error=str(e))
            raise ProductStoreError(f"Cannot read products file {self.path}: {e}")
        except json.JSONDecodeError as e:
            self.logger.error("Error parsing products file", error=str(e))
            raise ProductStoreError(f"Invalid JSON in products file {self.path}: {e}")

        if not isinstance(raw, list):
            self.logger.error("Products file is not a JSON array", found=type(raw).__name__)
            raise ProductStoreError(f"Products file {self.path} must contain a JSON array")

        try:
            products = [Product.model_validate(record) for record in raw]
        except ValidationError as e:
            self.logger.error("Invalid product record", error=str(e))
            raise ProductStoreError(f"Invalid product record in {self.path}: {e}")

        self.logger.info("Loaded products", count=len(products))
        return products

    def persist(self, products: List[Product], caught_up: Optional[Set[str]] = None) -> List[Product]:
        """
        Rewrite the collection with previous_price advanced to current_price.

        Args:
            products: Full collection, in file order
            caught_up: When given, only pending products whose image stem is in
                this set are advanced; the others keep their previous price

        Returns:
            The collection as written
        """
        updated = [
            product.caught_up()
            if caught_up is None or not product.needs_render or product.image_stem in caught_up
            else product
            for product in products
        ]

        payload = [product.to_record() for product in updated]
        self.path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )

        skipped = sum(1 for product in updated if product.needs_render)
        self.logger.info(
            "Updated products file with new previous_price values",
            count=len(updated),
            left_pending=skipped,
        )
        return updated
