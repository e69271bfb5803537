"""
Tests for the WebDAV and iCloud providers.
"""

from typing import Dict, Optional

import httpx
import pytest

from subly_sync.exceptions import TransportError
from subly_sync.models import SyncMeta, SyncPayload
from subly_sync.providers import ICloudDriveHost, ICloudHost, ICloudProvider, WebDAVProvider
from tests.unit.fakes import HttpRecorder

DAV_ROOT = "https://dav.example.com/remote.php/dav/files/me"
DAV_FILE = f"{DAV_ROOT}/subly-sync.json"

PAYLOAD = SyncPayload(
    data={"subscriptions": []},
    meta=SyncMeta(last_synced_at=2000, updated_at=1000, device_id="dev_bbbbbbbb"),
)


def make_webdav(recorder: HttpRecorder, url: str = DAV_ROOT + "/") -> WebDAVProvider:
    provider = WebDAVProvider(transport=recorder.transport())
    provider.set_credentials(url, "me", "hunter2")
    return provider


class TestWebDAV:
    """Tests for WebDAVProvider."""

    @pytest.mark.asyncio
    async def test_trailing_slash_is_stripped(self):
        provider = make_webdav(HttpRecorder(), url=DAV_ROOT + "///")
        assert provider.file_url == DAV_FILE

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        recorder = HttpRecorder()
        provider = WebDAVProvider(transport=recorder.transport())

        assert await provider.is_available() is False
        assert await provider.is_authenticated() is False
        assert recorder.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,expected", [(207, True), (200, True), (401, False), (404, False)])
    async def test_propfind_status(self, status_code, expected):
        recorder = HttpRecorder({("PROPFIND", DAV_ROOT): lambda r: httpx.Response(status_code)})
        provider = make_webdav(recorder)

        assert await provider.is_authenticated() is expected

        request = recorder.requests[0]
        assert request.headers["Depth"] == "0"
        assert request.headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        def explode(request):
            raise httpx.ConnectError("refused", request=request)

        provider = make_webdav(HttpRecorder({("PROPFIND", DAV_ROOT): explode}))

        assert await provider.is_authenticated() is False
        assert await provider.authenticate() is False

    @pytest.mark.asyncio
    async def test_upload_and_download(self):
        stored: Dict[str, bytes] = {}

        def put(request):
            stored["body"] = request.content
            return httpx.Response(201)

        recorder = HttpRecorder({
            ("PUT", DAV_FILE): put,
            ("GET", DAV_FILE): lambda r: httpx.Response(200, content=stored["body"]),
        })
        provider = make_webdav(recorder)

        await provider.upload(PAYLOAD)

        assert await provider.download() == PAYLOAD
        assert recorder.requests[0].headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_upload_failure_raises(self):
        provider = make_webdav(HttpRecorder({("PUT", DAV_FILE): lambda r: httpx.Response(507)}))

        with pytest.raises(TransportError) as exc_info:
            await provider.upload(PAYLOAD)

        assert exc_info.value.status_code == 507
        assert exc_info.value.provider == "webdav"

    @pytest.mark.asyncio
    async def test_download_missing(self):
        provider = make_webdav(HttpRecorder({("GET", DAV_FILE): lambda r: httpx.Response(404)}))
        assert await provider.download() is None

    @pytest.mark.asyncio
    async def test_disconnect_clears_credentials(self):
        provider = make_webdav(HttpRecorder())

        await provider.disconnect()

        assert await provider.is_available() is False
        assert provider.password == ""


class MemoryICloudHost(ICloudHost):
    """iCloud container held in a dict."""

    def __init__(self, available: bool = True):
        self.available = available
        self.files: Dict[str, str] = {}

    async def container_url(self) -> Optional[str]:
        return "file:///icloud/Documents/" if self.available else None

    async def read_file(self, filename: str) -> Optional[str]:
        return self.files.get(filename)

    async def write_file(self, filename: str, contents: str) -> None:
        if not self.available:
            raise OSError("container unavailable")
        self.files[filename] = contents


class TestICloud:
    """Tests for ICloudProvider."""

    @pytest.mark.asyncio
    async def test_availability_follows_container(self):
        assert await ICloudProvider(MemoryICloudHost()).is_available() is True
        assert await ICloudProvider(MemoryICloudHost()).authenticate() is True
        assert await ICloudProvider(MemoryICloudHost(available=False)).is_authenticated() is False

    @pytest.mark.asyncio
    async def test_upload_then_download(self):
        host = MemoryICloudHost()
        provider = ICloudProvider(host)

        await provider.upload(PAYLOAD)

        assert host.files["subly-sync.json"] == PAYLOAD.to_json()
        assert (await provider.get_remote_meta()).device_id == "dev_bbbbbbbb"

    @pytest.mark.asyncio
    async def test_missing_or_empty_file(self):
        host = MemoryICloudHost()
        provider = ICloudProvider(host)

        assert await provider.download() is None
        host.files["subly-sync.json"] = ""
        assert await provider.download() is None

    @pytest.mark.asyncio
    async def test_write_error_becomes_transport_error(self):
        provider = ICloudProvider(MemoryICloudHost(available=False))

        with pytest.raises(TransportError):
            await provider.upload(PAYLOAD)


class TestICloudDriveHost:
    """Tests for the iCloud Drive container on disk."""

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, tmp_path):
        host = ICloudDriveHost(documents_dir=tmp_path, platform="linux")
        assert await host.container_url() is None

    @pytest.mark.asyncio
    async def test_missing_container(self, tmp_path):
        host = ICloudDriveHost(documents_dir=tmp_path / "absent", platform="darwin")
        assert await host.container_url() is None

    @pytest.mark.asyncio
    async def test_read_write(self, tmp_path):
        host = ICloudDriveHost(documents_dir=tmp_path, platform="darwin")

        assert await host.container_url() == tmp_path.as_uri()
        assert await host.read_file("subly-sync.json") is None

        await host.write_file("subly-sync.json", '{"data":null}')
        await host.write_file("subly-sync.json", '{"data":{}}')

        assert await host.read_file("subly-sync.json") == '{"data":{}}'
        assert [p.name for p in tmp_path.iterdir()] == ["subly-sync.json"]

    def test_default_location(self):
        host = ICloudDriveHost(container="iCloud~com~example", platform="darwin")
        assert host.documents_dir.parts[-4:] == ("Library", "Mobile Documents", "iCloud~com~example", "Documents")
