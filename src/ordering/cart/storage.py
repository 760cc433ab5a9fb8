"""Client-side persistence for cart and saved-for-later lists.

Both lists are stored as JSON arrays of camelCase line objects under the keys
``cart`` and ``savedForLater``, namespaced per shopper. Reading is forgiving:
missing or corrupt data degrades to an empty list and malformed entries are
dropped, each with a logged warning.
"""

import hashlib
import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from ordering.cart.cart import LineSnapshot, cart_item_id_for

logger = structlog.get_logger(__name__)

CART_KEY = "cart"
SAVED_KEY = "savedForLater"


def storage_key(shopper_id, name: str) -> str:
    return f"{shopper_id}:{name}" if shopper_id else name


class CartStorage(ABC):
    """Key/value store holding serialised cart lists."""

    @abstractmethod
    def read(self, key: str) -> str | None: ...

    @abstractmethod
    def write(self, key: str, value: str) -> None: ...


class MemoryCartStorage(CartStorage):
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self.values.get(key)

    def write(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileCartStorage(CartStorage):
    """One JSON document per shopper under ``directory``, holding both lists.

    Files are named after a SHA-256 digest of the shopper id, so distinct ids
    never share a file whatever characters they contain.
    """

    def __init__(self, directory) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _locate(self, key: str) -> tuple[Path, str]:
        shopper, _, name = key.rpartition(":")
        filename = hashlib.sha256(shopper.encode("utf-8")).hexdigest() if shopper else "default"
        return self.directory / f"{filename}.json", name

    def _load(self, path: Path) -> dict:
        if not path.exists():
            return {}
        document = json.loads(path.read_text(encoding="utf-8"))
        return document if isinstance(document, dict) else {}

    def read(self, key: str) -> str | None:
        path, name = self._locate(key)
        with self._lock:
            value = self._load(path).get(name)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        path, name = self._locate(key)
        with self._lock:
            try:
                document = self._load(path)
            except json.JSONDecodeError:
                document = {}
            document[name] = value
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(document), encoding="utf-8")
            tmp.replace(path)


def _to_json(line: LineSnapshot) -> dict:
    return {
        "cartItemId": line.cart_item_id,
        "productId": line.product_id,
        "selectedOptions": line.selected_options,
        "quantity": line.quantity,
        "unitPriceSnapshot": line.unit_price_snapshot,
    }


def _from_json(entry) -> LineSnapshot | None:
    if not isinstance(entry, dict):
        return None

    product_id = entry.get("productId")
    quantity = entry.get("quantity")
    options = entry.get("selectedOptions") or {}
    price = entry.get("unitPriceSnapshot")
    if not product_id or not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        return None
    if not isinstance(options, dict):
        return None
    if price is not None and not isinstance(price, (int, float)):
        return None

    return LineSnapshot(
        cart_item_id=cart_item_id_for(product_id, options),
        product_id=str(product_id),
        quantity=quantity,
        selected_options={str(k): str(v) for k, v in options.items()},
        unit_price_snapshot=float(price) if price is not None else None,
    )


def load_lines(storage: CartStorage, key: str) -> list[LineSnapshot]:
    try:
        raw = storage.read(key)
    except Exception as exc:
        logger.warning("Cart storage read failed", key=key, error=str(exc))
        return []
    if raw is None:
        return []

    try:
        entries = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding unparsable cart data", key=key)
        return []
    if not isinstance(entries, list):
        logger.warning("Discarding cart data that is not a list", key=key)
        return []

    lines = []
    for entry in entries:
        line = _from_json(entry)
        if line is None:
            logger.warning("Skipping malformed cart entry", key=key, entry=entry)
            continue
        lines.append(line)
    return lines


def save_lines(storage: CartStorage, key: str, lines) -> bool:
    """Write ``lines`` to ``storage``. Failures are logged, never raised."""
    try:
        storage.write(key, json.dumps([_to_json(line) for line in lines]))
    except Exception as exc:
        logger.warning("Cart storage write failed", key=key, error=str(exc))
        return False
    return True
