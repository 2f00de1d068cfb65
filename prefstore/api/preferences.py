"""FastAPI router exposing the session, favorites and recent-search endpoints."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, Query, Request, Response, status

from prefstore.errors import AuthenticationRequiredError, ImportFormatError
from prefstore.identifiers import normalize_id
from prefstore.schemas.favorites import FavoritesStats, SortCriteria
from prefstore.schemas.preferences import (
    FavoriteHotelPayload,
    FavoritesListResponse,
    FavoriteStatusResponse,
    ImportResultResponse,
    RecentSearchCreate,
    RecentSearchesResponse,
    SessionState,
    SignInRequest,
)
from prefstore.remote.base import SessionIdentityProvider
from prefstore.services.dependencies import (
    PreferenceServices,
    get_identity_provider,
    get_preference_facade,
    get_preference_services,
)
from prefstore.services.facade import PreferenceFacade

router = APIRouter()

T = TypeVar("T")


async def _mutate(
    services: PreferenceServices,
    action: Callable[[], Awaitable[T]],
    description: str,
) -> T:
    """Run a mutating call, gated on sign-in when the deployment requires it."""

    if not services.settings.require_sign_in_for_mutations:
        return await action()

    async def _reject() -> T:
        raise AuthenticationRequiredError(f"Sign in to {description}")

    return await services.facade.require_action(action, _reject)


def _session_state(facade: PreferenceFacade) -> SessionState:
    return SessionState(
        mode=facade.mode,
        user_id=facade.user_id,
        is_authenticated=facade.is_authenticated,
    )


# -- session -------------------------------------------------------------------


@router.get("/session", response_model=SessionState)
async def get_session(
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> SessionState:
    """Report which store currently serves preferences."""

    return _session_state(facade)


@router.post("/session/sign-in", response_model=SessionState)
async def sign_in(
    payload: SignInRequest,
    identity: SessionIdentityProvider = Depends(get_identity_provider),
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> SessionState:
    """Record a completed sign-in and switch to the user's remote preferences."""

    await identity.sign_in(payload.user_id)
    return _session_state(facade)


@router.post("/session/sign-out", response_model=SessionState)
async def sign_out(
    identity: SessionIdentityProvider = Depends(get_identity_provider),
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> SessionState:
    await identity.sign_out()
    return _session_state(facade)


# -- favorites -----------------------------------------------------------------


@router.get("/favorites", response_model=FavoritesListResponse)
async def list_favorites(
    sort: SortCriteria = Query(SortCriteria.RECENT, description="Ordering of the result"),
    q: str | None = Query(
        None,
        max_length=512,
        description="Case-insensitive filter on name and location (newest first)",
    ),
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> FavoritesListResponse:
    """Return saved hotels, either sorted or filtered by ``q``."""

    if q and q.strip():
        entries = await facade.search_favorites(q)
    else:
        entries = await facade.list_favorites(sort)
    return FavoritesListResponse(
        total=len(entries),
        favorites=[entry.to_document() for entry in entries],
    )


@router.post(
    "/favorites",
    status_code=status.HTTP_201_CREATED,
)
async def add_favorite(
    payload: FavoriteHotelPayload,
    services: PreferenceServices = Depends(get_preference_services),
) -> dict[str, Any]:
    """Save a hotel; re-saving an id replaces the earlier entry."""

    entry = await _mutate(
        services,
        lambda: services.facade.add_favorite(payload.to_document()),
        "save favorites",
    )
    return entry.to_document()


@router.post("/favorites/toggle", response_model=FavoriteStatusResponse)
async def toggle_favorite(
    payload: FavoriteHotelPayload,
    services: PreferenceServices = Depends(get_preference_services),
) -> FavoriteStatusResponse:
    favorited = await _mutate(
        services,
        lambda: services.facade.toggle_favorite(payload.to_document()),
        "save favorites",
    )
    return FavoriteStatusResponse(hotel_id=normalize_id(payload.id), favorited=favorited)


@router.get("/favorites/stats", response_model=FavoritesStats)
async def favorite_stats(
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> FavoritesStats:
    return await facade.favorite_stats()


@router.get("/favorites/export")
async def export_favorites(
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> Response:
    """Download every favorite in the versioned backup format."""

    payload = await facade.export_favorites()
    return Response(
        content=payload,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="favorites.json"'},
    )


@router.post("/favorites/import", response_model=ImportResultResponse)
async def import_favorites(
    request: Request,
    merge: bool = Query(False, description="Keep existing favorites not in the backup"),
    services: PreferenceServices = Depends(get_preference_services),
) -> ImportResultResponse:
    """Restore favorites from a backup produced by ``GET /favorites/export``.

    The request body is the raw export document.
    """

    try:
        payload = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ImportFormatError("Import payload is not valid UTF-8") from exc
    imported = await _mutate(
        services,
        lambda: services.facade.import_favorites(payload, merge=merge),
        "import favorites",
    )
    total = len(await services.facade.list_favorites())
    return ImportResultResponse(imported=imported, total=total)


@router.get("/favorites/{hotel_id}/status", response_model=FavoriteStatusResponse)
async def favorite_status(
    hotel_id: str,
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> FavoriteStatusResponse:
    return FavoriteStatusResponse(
        hotel_id=normalize_id(hotel_id),
        favorited=await facade.is_favorited(hotel_id),
    )


@router.delete("/favorites/{hotel_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite(
    hotel_id: str,
    services: PreferenceServices = Depends(get_preference_services),
) -> Response:
    """Remove a favorite; unknown ids succeed without changes."""

    await _mutate(
        services,
        lambda: services.facade.remove_favorite(hotel_id),
        "remove favorites",
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/favorites", status_code=status.HTTP_204_NO_CONTENT)
async def clear_favorites(
    services: PreferenceServices = Depends(get_preference_services),
) -> Response:
    await _mutate(services, services.facade.clear_favorites, "clear favorites")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- recent searches -------------------------------------------------------------


@router.get("/recent-searches", response_model=RecentSearchesResponse)
async def list_recent_searches(
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> RecentSearchesResponse:
    return RecentSearchesResponse(searches=facade.recent_searches())


@router.post("/recent-searches", response_model=RecentSearchesResponse)
async def add_recent_search(
    payload: RecentSearchCreate,
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> RecentSearchesResponse:
    """Record a search; blank queries are accepted and ignored."""

    await facade.add_recent_search(payload.query, payload.replace_hint)
    return RecentSearchesResponse(searches=facade.recent_searches())


@router.delete("/recent-searches/{query}", response_model=RecentSearchesResponse)
async def remove_recent_search(
    query: str,
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> RecentSearchesResponse:
    await facade.remove_recent_search(query)
    return RecentSearchesResponse(searches=facade.recent_searches())


@router.delete("/recent-searches", response_model=RecentSearchesResponse)
async def clear_recent_searches(
    facade: PreferenceFacade = Depends(get_preference_facade),
) -> RecentSearchesResponse:
    await facade.clear_recent_searches()
    return RecentSearchesResponse(searches=facade.recent_searches())


__all__ = ["router"]
