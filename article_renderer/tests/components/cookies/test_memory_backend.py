import pytest

from article_renderer.components.cookies.backends import MemoryCookieBackend


@pytest.mark.asyncio
async def test_host_only_cookie_is_not_sent_to_subdomains():
    backend = MemoryCookieBackend()
    assert await backend.set_cookie("https://example.com/", "a=1")

    assert await backend.get_cookie_header("https://example.com/") == "a=1"
    assert await backend.get_cookie_header("https://www.example.com/") is None


@pytest.mark.asyncio
async def test_domain_cookie_is_sent_to_subdomains():
    backend = MemoryCookieBackend()
    assert await backend.set_cookie("https://example.com", "a=1; domain=.example.com; path=/")

    assert await backend.get_cookie_header("https://example.com/article") == "a=1"
    assert await backend.get_cookie_header("https://www.example.com/article") == "a=1"
    assert await backend.get_cookie_header("https://notexample.com/") is None


@pytest.mark.asyncio
async def test_domain_attribute_must_cover_host():
    backend = MemoryCookieBackend()
    assert not await backend.set_cookie("https://example.com", "a=1; domain=.other.com")
    assert len(backend) == 0


@pytest.mark.asyncio
async def test_host_only_and_domain_entries_are_kept_apart():
    backend = MemoryCookieBackend()
    await backend.set_cookie("https://example.com", "a=1; domain=.example.com; path=/")
    await backend.set_cookie("https://example.com", "a=1; path=/")

    assert len(backend) == 2
    assert await backend.get_cookie_header("https://example.com/") == "a=1; a=1"


@pytest.mark.asyncio
async def test_same_key_overwrites_value():
    backend = MemoryCookieBackend()
    await backend.set_cookie("https://example.com", "a=1")
    await backend.set_cookie("https://example.com", "a=2")

    assert len(backend) == 1
    assert await backend.get_cookie_header("https://example.com") == "a=2"


@pytest.mark.asyncio
async def test_default_path_comes_from_request_url():
    backend = MemoryCookieBackend()
    await backend.set_cookie("https://example.com/news/story", "a=1")

    assert await backend.get_cookie_header("https://example.com/news/other") == "a=1"
    assert await backend.get_cookie_header("https://example.com/sport") is None


@pytest.mark.asyncio
async def test_path_matching_and_ordering():
    backend = MemoryCookieBackend()
    await backend.set_cookie("https://example.com", "root=1; path=/")
    await backend.set_cookie("https://example.com", "deep=2; path=/news")

    assert await backend.get_cookie_header("https://example.com/news/story") == "deep=2; root=1"
    assert await backend.get_cookie_header("https://example.com/newsletter") == "root=1"


@pytest.mark.asyncio
async def test_secure_cookie_only_sent_over_https():
    backend = MemoryCookieBackend()
    await backend.set_cookie("https://example.com", "s=1; path=/; Secure")

    assert await backend.get_cookie_header("https://example.com/") == "s=1"
    assert await backend.get_cookie_header("http://example.com/") is None


@pytest.mark.asyncio
async def test_expiring_cookie_deletes_existing_entry():
    backend = MemoryCookieBackend()
    await backend.set_cookie("https://example.com", "a=1; path=/")
    assert await backend.set_cookie("https://example.com", "a=gone; path=/; Max-Age=0")

    assert await backend.get_cookie_header("https://example.com/") is None


@pytest.mark.asyncio
async def test_rejects_malformed_cookie_and_hostless_url():
    backend = MemoryCookieBackend()
    assert not await backend.set_cookie("https://example.com", "no-pair-here")
    assert not await backend.set_cookie("not a url", "a=1")
    assert await backend.get_cookie_header("not a url") is None


@pytest.mark.asyncio
async def test_remove_all_and_flush_count():
    backend = MemoryCookieBackend()
    await backend.set_cookie("https://example.com", "a=1")
    assert await backend.remove_all()
    assert len(backend) == 0

    await backend.flush()
    await backend.flush()
    assert backend.flush_count == 2
