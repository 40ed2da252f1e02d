"""
Opportunity router - API endpoints for opportunities and their lookups.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.dependencies import require_roles
from marketplace.core.permissions import Roles, check_is_admin, ensure_organization_authorization
from marketplace.core.security import Principal
from marketplace.core.status import Status
from marketplace.db.session import get_db
from marketplace.errors import ForbiddenError
from marketplace.schemas.lookup import LookupRead
from marketplace.schemas.opportunity import (
    OpportunityInfo,
    OpportunityRead,
    OpportunityRequest,
    OpportunitySearchFilter,
    OpportunitySearchFilterInfo,
    OpportunitySearchResults,
    OpportunitySearchResultsInfo,
)
from marketplace.services.lookups.opportunity_lookups import (
    OpportunityCategoryService,
    OpportunityDifficultyService,
    OpportunityStatusService,
    OpportunityTypeService,
)
from marketplace.services.opportunity_service import Association, OpportunityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v3/opportunity", tags=["opportunity"])

administrative = require_roles(*Roles.ADMINISTRATIVE)


# ----------------------------------------------------------------------
# Anonymous
# ----------------------------------------------------------------------


@router.get("/{id}/info", response_model=OpportunityInfo)
async def get_info_by_id(id: UUID, db: AsyncSession = Depends(get_db)):
    """Public view of an opportunity."""
    logger.info("Handling request %s", "get_info_by_id")
    result = await OpportunityService(db).get_info_by_id(id)
    logger.info("Request %s handled", "get_info_by_id")
    return result


@router.post("/info/search", response_model=OpportunitySearchResultsInfo)
async def search_info(search_filter: OpportunitySearchFilterInfo, db: AsyncSession = Depends(get_db)):
    """Search active opportunities."""
    logger.info("Handling request %s", "search_info")
    result = await OpportunityService(db).search_info(search_filter)
    logger.info("Request %s handled", "search_info")
    return result


# ----------------------------------------------------------------------
# Lookups
# ----------------------------------------------------------------------


@router.get("/category", response_model=List[LookupRead])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    logger.info("Handling request %s", "list_categories")
    result = await OpportunityCategoryService(db).list()
    logger.info("Request %s handled", "list_categories")
    return result


@router.get("/difficulty", response_model=List[LookupRead])
async def list_difficulties(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    logger.info("Handling request %s", "list_difficulties")
    result = await OpportunityDifficultyService(db).list()
    logger.info("Request %s handled", "list_difficulties")
    return result


@router.get("/status", response_model=List[LookupRead])
async def list_statuses(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    logger.info("Handling request %s", "list_statuses")
    result = await OpportunityStatusService(db).list()
    logger.info("Request %s handled", "list_statuses")
    return result


@router.get("/type", response_model=List[LookupRead])
async def list_types(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    logger.info("Handling request %s", "list_types")
    result = await OpportunityTypeService(db).list()
    logger.info("Request %s handled", "list_types")
    return result


# ----------------------------------------------------------------------
# Administrative
# ----------------------------------------------------------------------


@router.get("/{id}", response_model=OpportunityRead)
async def get_by_id(
    id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    """Get an opportunity, including its categories, countries, languages and skills."""
    logger.info("Handling request %s", "get_by_id")
    opportunity = await OpportunityService(db).get_by_id(
        id,
        include_children=True,
        principal=principal,
        ensure_organization_authorization=True,
    )
    logger.info("Request %s handled", "get_by_id")
    return OpportunityRead.from_model(opportunity)


@router.post("/search", response_model=OpportunitySearchResults)
async def search(
    search_filter: OpportunitySearchFilter,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    """
    Search opportunities in any status.

    Organization admins must scope the search to one of their organizations.
    """
    logger.info("Handling request %s", "search")
    organization_scope = None
    if not check_is_admin(principal):
        if search_filter.organization_id is None:
            raise ForbiddenError("Organization admins must specify an organization to search")
        ensure_organization_authorization(principal, search_filter.organization_id)
        organization_scope = [search_filter.organization_id]
    result = await OpportunityService(db).search(search_filter, organization_scope=organization_scope)
    logger.info("Request %s handled", "search")
    return result


@router.post("", response_model=OpportunityRead)
async def upsert(
    request: OpportunityRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    """Create (no id) or update (id set) an opportunity."""
    logger.info("Handling request %s", "upsert")
    opportunity = await OpportunityService(db).upsert(request, principal, ensure_organization_authorization=True)
    logger.info("Request %s handled", "upsert")
    return OpportunityRead.from_model(opportunity)


@router.patch("/{id}/{status}", response_model=OpportunityRead)
async def update_status(
    id: UUID,
    status: Status,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    """Activate, deactivate or delete an opportunity."""
    logger.info("Handling request %s", "update_status")
    opportunity = await OpportunityService(db).update_status(
        id, status, principal, ensure_organization_authorization=True
    )
    logger.info("Request %s handled", "update_status")
    return OpportunityRead.from_model(opportunity)


@router.put("/{id}/assign/{association}", response_model=OpportunityRead)
async def assign(
    id: UUID,
    association: Association,
    ids: List[UUID] = Body(...),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    """Link categories, countries, languages or skills to an opportunity."""
    logger.info("Handling request %s (%s)", "assign", association.value)
    opportunity = await OpportunityService(db).assign(
        association, id, ids, principal, ensure_organization_authorization=True
    )
    logger.info("Request %s handled", "assign")
    return OpportunityRead.from_model(opportunity)


@router.delete("/{id}/remove/{association}", response_model=OpportunityRead)
async def remove(
    id: UUID,
    association: Association,
    ids: List[UUID] = Body(...),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(administrative),
):
    """Unlink categories, countries, languages or skills from an opportunity."""
    logger.info("Handling request %s (%s)", "remove", association.value)
    opportunity = await OpportunityService(db).remove(
        association, id, ids, principal, ensure_organization_authorization=True
    )
    logger.info("Request %s handled", "remove")
    return OpportunityRead.from_model(opportunity)
