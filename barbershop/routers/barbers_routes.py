# barbershop/routers/barbers_routes.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from barbershop.deps import get_barber_service
from barbershop.schemas import BarberCreate, BarberPublic
from barbershop.services import BarberService

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberCreate,
    service: BarberService = Depends(get_barber_service),
):
    created = service.create_barber(barber.first_name, barber.last_name)
    return BarberPublic.from_domain(created)


@router.get("", response_model=List[BarberPublic])
def list_barbers(service: BarberService = Depends(get_barber_service)):
    return [BarberPublic.from_domain(b) for b in service.list_barbers()]


@router.get("/search", response_model=BarberPublic)
def search_barber(
    first_name: str,
    last_name: str,
    service: BarberService = Depends(get_barber_service),
):
    return BarberPublic.from_domain(service.find_by_name(first_name, last_name))


@router.get("/{barber_id}", response_model=BarberPublic)
def get_barber(
    barber_id: UUID,
    service: BarberService = Depends(get_barber_service),
):
    return BarberPublic.from_domain(service.get_barber(barber_id))
