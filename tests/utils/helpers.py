"""
Test Helpers
============

Builders and small utilities shared across tests.
"""

from typing import Any, Dict, List, Sequence, TypeVar, Union
from pathlib import Path
import io
import json

from PIL import Image

T = TypeVar("T")


def make_record(
    code: Union[str, int], current: float, previous: Any = "absent", suffix: Any = None, **extra: Any
) -> Dict[str, Any]:
    """Product record dict in the products file shape."""
    record: Dict[str, Any] = {"productCode": code, "current_price": current}
    if suffix is not None:
        record["variation_suffix"] = suffix
    if previous != "absent":
        record["previous_price"] = previous
    record.update(extra)
    return record


def write_products(path: Path, records: List[Dict[str, Any]]) -> Path:
    path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def read_products(path: Path) -> List[Dict[str, Any]]:
    return json.loads(path.read_text(encoding="utf-8"))


def merge_round_robin(groups: Sequence[Sequence[T]]) -> List[T]:
    """Inverse of a round-robin split: take one item from each group in turn."""
    merged: List[T] = []
    longest = max((len(group) for group in groups), default=0)
    for position in range(longest):
        for group in groups:
            if position < len(group):
                merged.append(group[position])
    return merged


def make_png_bytes(width: int = 8, height: int = 6) -> bytes:
    """Small half-transparent PNG, like a capture with omitted background."""
    image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    for x in range(width // 2):
        for y in range(height):
            image.putpixel((x, y), (200, 30, 30, 255))
    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()
