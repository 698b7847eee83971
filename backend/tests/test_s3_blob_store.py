"""S3BlobStore 테스트 (boto3 client 대신 메모리 fake 사용)."""

import io

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from app.core.exceptions import BlobStorageError
from app.core.storage import CHUNK_SIZE, S3BlobStore


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeBody:
    def __init__(self, data: bytes):
        self._data = io.BytesIO(data)
        self.closed = False
        self.reads = 0

    def read(self, size: int) -> bytes:
        self.reads += 1
        return self._data.read(size)

    def close(self):
        self.closed = True


class FakeS3Client:
    """The subset of the boto3 S3 client used by S3BlobStore."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: list[dict] = []
        self.bodies: list[FakeBody] = []
        self.head_error: Exception | None = None
        self.get_error: Exception | None = None
        self.upload_error: Exception | None = None

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        if self.upload_error:
            raise self.upload_error
        self.objects[(bucket, key)] = fileobj.read()
        self.uploads.append({"bucket": bucket, "key": key, "extra": ExtraArgs})

    def head_object(self, Bucket, Key):
        if self.head_error:
            raise self.head_error
        if (Bucket, Key) not in self.objects:
            raise client_error("404", "HeadObject")
        return {"ContentLength": len(self.objects[(Bucket, Key)])}

    def get_object(self, Bucket, Key):
        if self.get_error:
            raise self.get_error
        if (Bucket, Key) not in self.objects:
            raise client_error("NoSuchKey", "GetObject")
        body = FakeBody(self.objects[(Bucket, Key)])
        self.bodies.append(body)
        return {"Body": body}


async def chunks_of(*parts: bytes):
    for part in parts:
        yield part


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def store(s3_client):
    return S3BlobStore(s3_client, bucket="videos-bucket", prefix="videos/")


async def test_round_trip(s3_client, store):
    payload = b"\x00\x01" * (CHUNK_SIZE + 123)
    await store.put(7, chunks_of(payload[:1000], payload[1000:]))

    assert s3_client.uploads == [
        {
            "bucket": "videos-bucket",
            "key": "videos/video7.mpg",
            "extra": {"ContentType": "video/mpeg"},
        }
    ]
    assert await store.exists(7)

    data = b"".join([chunk async for chunk in store.stream(7)])
    assert data == payload
    assert s3_client.bodies[0].closed


async def test_put_overwrites(s3_client, store):
    await store.put(7, chunks_of(b"old"))
    await store.put(7, chunks_of(b"new"))
    assert s3_client.objects[("videos-bucket", "videos/video7.mpg")] == b"new"


@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
async def test_missing_key_does_not_exist(s3_client, store, code):
    s3_client.head_error = client_error(code, "HeadObject")
    assert await store.exists(1) is False


async def test_access_denied_raises(s3_client, store):
    s3_client.head_error = client_error("AccessDenied", "HeadObject")
    with pytest.raises(BlobStorageError):
        await store.exists(1)


async def test_connection_failure_raises(s3_client, store):
    s3_client.head_error = EndpointConnectionError(endpoint_url="https://s3.example.com")
    with pytest.raises(BlobStorageError):
        await store.exists(1)


async def test_upload_failure_raises(s3_client, store):
    s3_client.upload_error = client_error("InternalError", "PutObject")
    with pytest.raises(BlobStorageError):
        await store.put(1, chunks_of(b"data"))
    assert s3_client.objects == {}


async def test_get_failure_raises(s3_client, store):
    await store.put(1, chunks_of(b"data"))
    s3_client.get_error = client_error("AccessDenied", "GetObject")

    with pytest.raises(BlobStorageError):
        async for _ in store.stream(1):
            pass


async def test_body_closed_after_partial_read(s3_client, store):
    await store.put(1, chunks_of(b"x" * (CHUNK_SIZE * 3)))

    stream = store.stream(1)
    first = await stream.__anext__()
    assert len(first) == CHUNK_SIZE
    await stream.aclose()

    body = s3_client.bodies[0]
    assert body.closed
    assert body.reads == 1
