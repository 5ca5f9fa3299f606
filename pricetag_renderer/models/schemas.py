"""
Pydantic Models and Schemas
===========================

Core data models for product records, capture work items, template context
and the messages exchanged between capture workers and the coordinator.
"""

from typing import Any, Dict, Optional, List, Tuple, Union
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


IdentityKey = Tuple[Union[str, int], Optional[Union[str, int]]]


# Enums
class MessageKind(str, Enum):
    """Worker notification kinds."""
    STATUS = "status"
    CAPTURED = "captured"
    DONE = "done"
    ERROR = "error"


# Product Models
class Product(BaseModel):
    """A product record as stored in the products file."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    product_code: Union[str, int] = Field(..., alias="productCode", description="Product identifier")
    variation_suffix: Optional[Union[str, int]] = Field(None, description="Variant image suffix")
    current_price: Union[int, float] = Field(..., description="Current price")
    previous_price: Optional[Union[int, float]] = Field(
        None, description="Price at the last successful run"
    )

    @property
    def identity_key(self) -> IdentityKey:
        """(productCode, variation_suffix) with an empty suffix normalized to None."""
        return (self.product_code, self.variation_suffix or None)

    @property
    def image_stem(self) -> str:
        """File name stem shared by the source photo and the generated tag."""
        if self.variation_suffix:
            return f"{self.product_code}_{self.variation_suffix}"
        return f"{self.product_code}"

    @property
    def needs_render(self) -> bool:
        """Whether the price changed since the last run."""
        return self.previous_price is None or self.previous_price != self.current_price

    def to_record(self) -> Dict[str, Any]:
        """Serialize back to the products file shape, extra keys included."""
        data = self.model_dump(by_alias=True)
        for name in ("variation_suffix", "previous_price"):
            # optional keys absent from the file stay absent
            if name not in self.model_fields_set and data.get(name) is None:
                data.pop(name)
        return data

    def caught_up(self) -> "Product":
        """Copy of this record with previous_price advanced to current_price."""
        data = self.to_record()
        data["previous_price"] = self.current_price
        return Product.model_validate(data)


class WorkItem(BaseModel):
    """A pending product paired with its index in the full collection."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Position in the unfiltered collection")
    product: Product = Field(..., description="Product to capture")

    @property
    def page_path(self) -> str:
        return f"/product/{self.index}"


# Rendering Models
class PriceTagContext(BaseModel):
    """Parameters of the price tag template."""
    image_url: str = Field(..., description="URL of the product photo")
    price_text: str = Field(..., description="Formatted price in Arabic-indic digits")


class CaptureOptions(BaseModel):
    """Browser and output options handed to each capture worker."""
    output_dir: Path = Field(..., description="Directory receiving WebP files")
    viewport_width: int = Field(1368, gt=0, description="Viewport width")
    viewport_height: int = Field(768, gt=0, description="Viewport height")
    device_scale_factor: float = Field(2.0, gt=0, le=4.0, description="Device pixel ratio")
    headless: bool = Field(True, description="Run browser in headless mode")
    timeout: int = Field(30000, gt=0, description="Navigation timeout in milliseconds")
    webp_quality: int = Field(90, ge=1, le=100, description="WebP encoder quality")


# Worker Models
class WorkerMessage(BaseModel):
    """One-way notification from a capture worker to the coordinator."""
    worker_id: int = Field(..., description="Worker number, starting at 1")
    kind: MessageKind = Field(..., description="Notification kind")
    text: str = Field("", description="Human readable message")
    image_stem: Optional[str] = Field(None, description="Stem of the captured image")


class WorkerReport(BaseModel):
    """Coordinator-side outcome of one capture worker."""
    worker_id: int = Field(..., description="Worker number, starting at 1")
    assigned: int = Field(0, ge=0, description="Number of work items assigned")
    captured: List[str] = Field(default_factory=list, description="Stems of captured images")
    completed: bool = Field(False, description="Whether the worker reported completion")
    error: Optional[str] = Field(None, description="Error reported by the worker")
    exit_code: Optional[int] = Field(None, description="Worker process exit code")
    timed_out: bool = Field(False, description="Whether the worker was terminated on timeout")

    @property
    def succeeded(self) -> bool:
        return self.completed and self.exit_code == 0 and not self.timed_out


class BatchResult(BaseModel):
    """Summary of one batch run."""
    total: int = Field(..., ge=0, description="Products in the collection")
    pending: int = Field(..., ge=0, description="Products selected for rendering")
    workers: List[WorkerReport] = Field(default_factory=list, description="Per-worker outcomes")
    persisted: bool = Field(False, description="Whether the products file was rewritten")

    @property
    def captured(self) -> List[str]:
        return [stem for report in self.workers for stem in report.captured]

    @property
    def failed_workers(self) -> List[WorkerReport]:
        return [report for report in self.workers if not report.succeeded]
