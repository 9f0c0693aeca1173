"""Saved addresses, persisted as a single JSON blob in the key-value store.

After every mutation exactly one address is primary unless the book is empty.
"""

import logging
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from kesinti_radar.errors import DecodingError
from kesinti_radar.schemas.outage import Address
from kesinti_radar.services.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "saved_addresses"

_ADDRESSES = TypeAdapter(list[Address])


class AddressNotFoundError(KeyError):
    pass


def default_addresses() -> list[Address]:
    return [
        Address(label="Ev", full_text="Karabağlar, İzmir",
                latitude=38.384, longitude=27.128, is_primary=True),
    ]


def encode_addresses(addresses: list[Address]) -> str:
    return _ADDRESSES.dump_json(addresses).decode("utf-8")


def decode_addresses(blob: str) -> list[Address]:
    try:
        return _ADDRESSES.validate_json(blob)
    except ValidationError as e:
        raise DecodingError(f"stored addresses are unreadable: {e.error_count()} errors") from e


class AddressBook:
    def __init__(self, store: KeyValueStore):
        self._store = store
        self._addresses: list[Address] = []
        self.load()

    @property
    def addresses(self) -> list[Address]:
        return [a.model_copy() for a in self._addresses]

    @property
    def primary(self) -> Address | None:
        return next((a.model_copy() for a in self._addresses if a.is_primary), None)

    def load(self):
        """Read the stored list; missing or corrupt data falls back to the default seed."""
        blob = self._store.get(STORAGE_KEY)
        if blob is not None:
            try:
                self._addresses = decode_addresses(blob)
                return
            except DecodingError as e:
                logger.warning("Falling back to default addresses: %s", e)
        self._addresses = default_addresses()
        self.persist()

    def persist(self):
        self._store.set(STORAGE_KEY, encode_addresses(self._addresses))

    def get(self, address_id: UUID) -> Address:
        return self._find(address_id).model_copy()

    def add(self, label: str, full_text: str, latitude: float, longitude: float) -> Address:
        address = Address(
            label=label,
            full_text=full_text,
            latitude=latitude,
            longitude=longitude,
            is_primary=not self._addresses,
        )
        self._commit(self.addresses + [address])
        logger.info("Added address %s (%s)", address.id, label)
        return address.model_copy()

    def update(
        self,
        address_id: UUID,
        label: str | None = None,
        full_text: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Address:
        self._find(address_id)
        changes = {
            "label": label,
            "full_text": full_text,
            "latitude": latitude,
            "longitude": longitude,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        addresses = [a.model_copy(update=changes) if a.id == address_id else a for a in self.addresses]
        self._commit(addresses)
        return self.get(address_id)

    def delete(self, address_id: UUID) -> Address:
        address = self._find(address_id).model_copy()
        addresses = [a for a in self.addresses if a.id != address_id]
        if address.is_primary and addresses:
            addresses[0].is_primary = True
        self._commit(addresses)
        if address.is_primary and addresses:
            logger.info("Primary address deleted; promoted %s", addresses[0].id)
        return address

    def move(self, indices: list[int], destination: int):
        """Move the addresses at ``indices`` so they land before ``destination``.

        ``destination`` is an index into the list as it was before the move.
        """
        count = len(self._addresses)
        offsets = sorted(set(indices))
        if any(i < 0 or i >= count for i in offsets) or not 0 <= destination <= count:
            raise IndexError(f"move out of range for {count} addresses")
        moving = [self._addresses[i] for i in offsets]
        remaining = [a for i, a in enumerate(self._addresses) if i not in offsets]
        target = destination - sum(1 for i in offsets if i < destination)
        self._commit(remaining[:target] + moving + remaining[target:])

    def set_primary(self, address_id: UUID) -> Address:
        self._find(address_id)
        addresses = self.addresses
        for a in addresses:
            a.is_primary = a.id == address_id
        self._commit(addresses)
        return self.get(address_id)

    def _commit(self, addresses: list[Address]):
        """Persist ``addresses``, then make them current. A failed write changes nothing."""
        self._store.set(STORAGE_KEY, encode_addresses(addresses))
        self._addresses = addresses

    def _find(self, address_id: UUID) -> Address:
        for a in self._addresses:
            if a.id == address_id:
                return a
        raise AddressNotFoundError(address_id)
