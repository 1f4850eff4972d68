"""
Tag endpoint tests — open editing of the shared taxonomy, name
uniqueness, the derived tag -> articles back-reference and the
detach-then-delete cascade.
"""
import pytest
from httpx import AsyncClient

from helpers import make_tag, register


@pytest.mark.asyncio
async def test_create_list_and_get_tags(async_client: AsyncClient):
    ann = await register(async_client, "ann")
    resp = await async_client.post("/api/v1/tags", json={
        "name": "zeta", "description": "last letter",
    }, headers=ann["headers"])
    assert resp.status_code == 201
    zeta = resp.json()
    await make_tag(async_client, ann["headers"], "alpha")

    listing = await async_client.get("/api/v1/tags")
    assert [t["name"] for t in listing.json()] == ["alpha", "zeta"]

    detail = await async_client.get(f"/api/v1/tags/{zeta['id']}")
    assert detail.json()["description"] == "last letter"


@pytest.mark.asyncio
async def test_anonymous_cannot_create_tag(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/tags", json={"name": "nope"})
    assert resp.status_code == 401
    assert (await async_client.get("/api/v1/tags")).json() == []


@pytest.mark.asyncio
async def test_duplicate_tag_name_conflicts(async_client: AsyncClient):
    ben = await register(async_client, "ben")
    await make_tag(async_client, ben["headers"], "python")
    resp = await async_client.post("/api/v1/tags", json={"name": "python"}, headers=ben["headers"])
    assert resp.status_code == 409
    assert resp.json()["field"] == "name"


@pytest.mark.asyncio
async def test_any_account_may_edit_any_tag(async_client: AsyncClient):
    """Tags are not owned; a different account can rename them."""
    cat = await register(async_client, "cat")
    dan = await register(async_client, "dan")
    tag_id = await make_tag(async_client, cat["headers"], "pyhton")

    resp = await async_client.put(f"/api/v1/tags/{tag_id}", json={"name": "python"}, headers=dan["headers"])
    assert resp.status_code == 200
    assert resp.json()["name"] == "python"


@pytest.mark.asyncio
async def test_rename_to_existing_name_conflicts(async_client: AsyncClient):
    dee = await register(async_client, "dee")
    await make_tag(async_client, dee["headers"], "taken")
    other = await make_tag(async_client, dee["headers"], "free")
    resp = await async_client.put(f"/api/v1/tags/{other}", json={"name": "taken"}, headers=dee["headers"])
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_update_missing_tag(async_client: AsyncClient):
    ed = await register(async_client, "ed")
    resp = await async_client.put("/api/v1/tags/9999", json={"name": "x"}, headers=ed["headers"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_tag_articles_back_reference(async_client: AsyncClient):
    flo = await register(async_client, "flo")
    tag_id = await make_tag(async_client, flo["headers"], "shared")
    for title in ("one", "two"):
        await async_client.post("/api/v1/articles", json={
            "title": title, "content": "c", "tag_ids": [tag_id],
        }, headers=flo["headers"])
    await async_client.post("/api/v1/articles", json={
        "title": "untagged", "content": "c",
    }, headers=flo["headers"])

    resp = await async_client.get(f"/api/v1/tags/{tag_id}/articles")
    assert resp.status_code == 200
    assert {a["title"] for a in resp.json()} == {"one", "two"}

    missing = await async_client.get("/api/v1/tags/9999/articles")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_tag_detaches_from_articles(async_client: AsyncClient):
    """After deleting T, no article holds T and T is gone from the tag store."""
    gil = await register(async_client, "gil")
    hue = await register(async_client, "hue")
    doomed = await make_tag(async_client, gil["headers"], "doomed")
    kept = await make_tag(async_client, gil["headers"], "kept")

    a1 = await async_client.post("/api/v1/articles", json={
        "title": "a1", "content": "c", "tag_ids": [doomed, kept],
    }, headers=gil["headers"])
    a2 = await async_client.post("/api/v1/articles", json={
        "title": "a2", "content": "c", "tag_ids": [doomed],
    }, headers=hue["headers"])

    # Deleting is open to any identified account, not just article owners.
    resp = await async_client.delete(f"/api/v1/tags/{doomed}", headers=hue["headers"])
    assert resp.status_code == 204

    assert (await async_client.get(f"/api/v1/tags/{doomed}")).status_code == 404
    first = (await async_client.get(f"/api/v1/articles/{a1.json()['id']}")).json()
    second = (await async_client.get(f"/api/v1/articles/{a2.json()['id']}")).json()
    assert [t["id"] for t in first["tags"]] == [kept]
    assert second["tags"] == []


@pytest.mark.asyncio
async def test_delete_missing_tag(async_client: AsyncClient):
    ivo = await register(async_client, "ivo")
    resp = await async_client.delete("/api/v1/tags/9999", headers=ivo["headers"])
    assert resp.status_code == 404
