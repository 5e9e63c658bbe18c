from fastapi import APIRouter, Depends, Path, Query
from ....services.key_browser import KeyBrowserService
from ....schemas.counter import ListEntriesResponse, ListOptions, SuccessResponse, UpdateEntryRequest
from ...deps import get_key_browser_service, require_admin_token

router = APIRouter(dependencies=[Depends(require_admin_token)])


@router.get("/entries", response_model=ListEntriesResponse)
async def list_entries(
    limit: int | None = Query(default=None, description="Page size"),
    cursor: str | None = Query(default=None, description="Cursor from the previous page"),
    prefix: str | None = Query(default=None, description="Only keys with this prefix"),
    only_keys: bool = Query(default=False, alias="onlyKeys", description="Skip fetching values"),
    browser: KeyBrowserService = Depends(get_key_browser_service)
):
    """
    List stored entries one page at a time

    - With onlyKeys=true returns bare keys (up to 256 per page), useful for counting
    - Otherwise fetches every value and the decoded page path (up to 30 per page)
    - Pass the returned cursor back to get the next page
    """
    options = ListOptions(limit=limit, cursor=cursor, prefix=prefix, only_keys=only_keys)
    return await browser.list_entries(options)


@router.post("/entries", response_model=SuccessResponse)
async def update_entry(
    body: UpdateEntryRequest,
    browser: KeyBrowserService = Depends(get_key_browser_service)
):
    """
    Create or overwrite a stored value
    """
    await browser.update_entry(body.key, body.value)
    return SuccessResponse()


@router.delete("/entries/{key}", response_model=SuccessResponse)
async def delete_entry(
    key: str = Path(..., description="Stored key to delete"),
    browser: KeyBrowserService = Depends(get_key_browser_service)
):
    """
    Delete a stored key
    """
    await browser.delete_entry(key)
    return SuccessResponse()
