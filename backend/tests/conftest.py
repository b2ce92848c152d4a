import copy
import io
import os
import tempfile

import pytest

# Keep config's import-time mkdir out of the source tree
os.environ.setdefault("ARTIFACT_DIR", tempfile.mkdtemp(prefix="replicator-test-"))

import anthropic  # noqa: E402
import httpx  # noqa: E402
from PIL import Image  # noqa: E402

from replicator.generation.registry import TaskRegistry  # noqa: E402
from replicator.generation.service import GenerationService  # noqa: E402


class FakeModelClient:
    """Scripted stand-in for ModelClient; replies are returned (or raised) in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, messages, max_tokens=4000, system=None):
        self.calls.append({"messages": copy.deepcopy(messages), "max_tokens": max_tokens})
        if not self.replies:
            raise AssertionError("unexpected model call")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def api_error(status: int, error_type: str = "api_error") -> anthropic.APIStatusError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(status, request=request)
    body = {"type": "error", "error": {"type": error_type, "message": "upstream said no"}}
    return anthropic.APIStatusError("upstream said no", response=response, body=body)


def make_png(color=(0, 0, 255), size=(64, 48)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def registry():
    return TaskRegistry()


@pytest.fixture
def make_service(tmp_path, registry):
    """Build a GenerationService whose model client replays the given replies."""

    def factory(replies=(), sampler=None):
        fake = FakeModelClient(replies)
        svc = GenerationService(
            registry=registry,
            client_factory=lambda api_key, model: fake,
            sampler=sampler,
            artifact_dir=tmp_path / "generations",
        )
        return svc, fake

    return factory
