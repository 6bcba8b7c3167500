# apps/inventory/api/endpoints/umis.py
from typing import Any, Optional

from fastapi import APIRouter, Depends

from erp_sdk.exceptions import UpstreamServiceError

from ...services.umis_service import UMISService, get_umis_service

router = APIRouter(prefix="/umis", tags=["UMIS"])


def _require(data: Optional[Any], resource: str) -> Any:
    if data is None:
        raise UpstreamServiceError(f"Failed to fetch {resource} from UMIS.")
    return data


@router.get("/areas", summary="Areas from UMIS")
async def read_areas(umis: UMISService = Depends(get_umis_service)):
    return _require(await umis.get_areas(), "areas")


@router.get("/areas/{area_id}", summary="Single area from UMIS")
async def read_area(area_id: int, umis: UMISService = Depends(get_umis_service)):
    return _require(await umis.get_area(area_id), f"area {area_id}")


@router.get("/organization-structure", summary="Organization structure from UMIS")
async def read_organization_structure(umis: UMISService = Depends(get_umis_service)):
    return _require(await umis.get_organization_structure(), "organization structure")


@router.get("/designations", summary="Designations from UMIS")
async def read_designations(umis: UMISService = Depends(get_umis_service)):
    return _require(await umis.get_designations(), "designations")


@router.get("/users", summary="Users from UMIS")
async def read_users(umis: UMISService = Depends(get_umis_service)):
    return _require(await umis.get_users(), "users")


@router.get("/assigned-areas", summary="Assigned areas from UMIS")
async def read_assigned_areas(umis: UMISService = Depends(get_umis_service)):
    return _require(await umis.get_assigned_areas(), "assigned areas")
