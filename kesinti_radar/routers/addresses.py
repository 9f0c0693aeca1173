from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response

from kesinti_radar.config import Settings
from kesinti_radar.dependencies import (
    get_address_book,
    get_repository,
    get_settings,
    outage_list,
    unavailable,
)
from kesinti_radar.schemas.outage import (
    Address,
    AddressCreate,
    AddressMove,
    AddressUpdate,
    OutageListResponse,
)
from kesinti_radar.services.address_book import AddressBook, AddressNotFoundError
from kesinti_radar.services.repository import OutageRepository

router = APIRouter(prefix="/addresses", tags=["addresses"])


def _lookup(book: AddressBook, address_id: UUID) -> Address:
    try:
        return book.get(address_id)
    except AddressNotFoundError:
        raise HTTPException(status_code=404, detail=f"Address {address_id} not found")


@router.get("/", response_model=list[Address])
async def list_addresses(book: AddressBook = Depends(get_address_book)):
    return book.addresses


@router.post("/", response_model=Address, status_code=201)
async def add_address(body: AddressCreate, book: AddressBook = Depends(get_address_book)):
    return book.add(body.label, body.full_text, body.latitude, body.longitude)


@router.post("/move", response_model=list[Address])
async def move_addresses(body: AddressMove, book: AddressBook = Depends(get_address_book)):
    try:
        book.move(body.indices, body.destination)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return book.addresses


@router.patch("/{address_id}", response_model=Address)
async def update_address(
    address_id: UUID,
    body: AddressUpdate,
    book: AddressBook = Depends(get_address_book),
):
    _lookup(book, address_id)
    return book.update(address_id, **body.model_dump())


@router.delete("/{address_id}", status_code=204)
async def delete_address(address_id: UUID, book: AddressBook = Depends(get_address_book)):
    _lookup(book, address_id)
    book.delete(address_id)
    return Response(status_code=204)


@router.post("/{address_id}/primary", response_model=list[Address])
async def set_primary_address(address_id: UUID, book: AddressBook = Depends(get_address_book)):
    _lookup(book, address_id)
    book.set_primary(address_id)
    return book.addresses


@router.get("/{address_id}/outages", response_model=OutageListResponse)
async def address_outages(
    address_id: UUID,
    book: AddressBook = Depends(get_address_book),
    repository: OutageRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    result = await repository.get_outages(_lookup(book, address_id))
    if not result.ok:
        raise unavailable(result.error, settings.locale)
    return outage_list(result.value, settings.locale)


@router.get("/{address_id}/history", response_model=OutageListResponse)
async def address_history(
    address_id: UUID,
    book: AddressBook = Depends(get_address_book),
    repository: OutageRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    result = await repository.get_outage_history(_lookup(book, address_id))
    if not result.ok:
        raise unavailable(result.error, settings.locale)
    return outage_list(result.value, settings.locale)
