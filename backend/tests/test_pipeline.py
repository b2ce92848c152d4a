import pytest

from replicator.generation.frames import Frame, SampledVideo
from replicator.generation.pipeline import (
    generate_from_image,
    generate_from_video,
    is_good_match,
    refine_markup,
)
from tests.conftest import FakeModelClient


class ProgressLog:
    def __init__(self):
        self.events = []

    def __call__(self, progress, message, iteration=None):
        self.events.append((progress, message, iteration))

    @property
    def values(self):
        return [p for p, _, _ in self.events]


def video_with(n, duration=3.0):
    frames = [Frame(image=f"jpeg-{i}".encode(), timestamp=i * 0.5, index=i) for i in range(n)]
    return SampledVideo(frames=frames, duration=duration, fps=30.0)


def image_blocks(content):
    return [block for block in content if isinstance(block, dict) and block.get("type") == "image"]


def embedded_html(call):
    """The markup a critique call shows the model, taken from inside its ```html fence."""
    text = call["messages"][0]["content"][-1]["text"]
    return text.split("```html\n", 1)[1].rsplit("\n```", 1)[0]


@pytest.mark.asyncio
async def test_image_generation_is_a_single_call(png_bytes):
    client = FakeModelClient(["<html><body>ok</body></html>"])

    text = await generate_from_image(client, png_bytes, "image/png")

    assert text == "<html><body>ok</body></html>"
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["max_tokens"] == 4000
    [message] = call["messages"]
    assert message["role"] == "user"
    assert image_blocks(message["content"])[0]["source"]["media_type"] == "image/png"


@pytest.mark.asyncio
async def test_video_conversation_turn_order():
    client = FakeModelClient(["baseline", "change 1", "change 2", "summary text", "final code"])
    progress = ProgressLog()

    text = await generate_from_video(client, video_with(3), report=progress)

    assert text == "final code"
    assert [c["max_tokens"] for c in client.calls] == [4000, 1000, 1000, 2000, 4000]

    final = client.calls[-1]["messages"]
    assert [m["role"] for m in final] == [
        "user", "assistant",
        "user", "assistant",
        "user", "assistant",
        "user", "assistant",
        "user",
    ]
    assert final[1]["content"] == "baseline"
    assert final[3]["content"] == "change 1"
    assert final[5]["content"] == "change 2"
    assert final[7]["content"] == "summary text"
    assert "summary text" in final[8]["content"]

    # one frame per turn, in order
    shown = [image_blocks(m["content"]) for m in final[:6:2]]
    assert [len(blocks) for blocks in shown] == [1, 1, 1]
    assert isinstance(final[6]["content"], str)

    # each call sees the whole history so far
    assert [len(c["messages"]) for c in client.calls] == [1, 3, 5, 7, 9]
    assert progress.values == sorted(progress.values)
    assert progress.values[-1] == 70


@pytest.mark.asyncio
async def test_single_frame_video_returns_baseline():
    client = FakeModelClient(["only answer"])

    assert await generate_from_video(client, video_with(1)) == "only answer"
    assert len(client.calls) == 1


@pytest.mark.parametrize(
    "critique, expected",
    [
        ("This is an already very good match.", True),
        ("The UI is 95%+ accurate to the image.", True),
        ("No further improvements are needed.", True),
        ("The header color is off and spacing is wrong.", False),
        ("", False),
    ],
)
def test_is_good_match(critique, expected):
    assert is_good_match(critique) is expected


@pytest.mark.asyncio
async def test_refine_stops_on_first_match(png_bytes):
    client = FakeModelClient(["This is an already very good match."])

    outcome = await refine_markup(client, [(png_bytes, "image/png")], "<div>v0</div>")

    assert outcome.iteration_count == 1
    assert outcome.is_match is True
    assert outcome.html == "<div>v0</div>"
    assert len(client.calls) == 1
    content = client.calls[0]["messages"][0]["content"]
    assert len(image_blocks(content)) == 1
    assert "<div>v0</div>" in content[-1]["text"]


@pytest.mark.asyncio
async def test_refine_runs_all_iterations_without_match(png_bytes):
    client = FakeModelClient([
        "button too small", "```html\n<div>v1</div>\n```",
        "colors off", "<div>v2</div>",
        "padding off",
    ])
    progress = ProgressLog()

    outcome = await refine_markup(client, [(png_bytes, "image/png")], "<div>v0</div>", max_iterations=3, report=progress)

    assert outcome.iteration_count == 3
    assert outcome.is_match is False
    # the last critique is final; no improvement is requested after it
    assert outcome.html == "<div>v2</div>"
    assert len(client.calls) == 5
    assert [c["max_tokens"] for c in client.calls] == [4000] * 5
    # each critique sees the latest improvement with its fences stripped
    assert embedded_html(client.calls[2]) == "<div>v1</div>"
    assert embedded_html(client.calls[4]) == "<div>v2</div>"
    assert progress.values == sorted(progress.values)
    assert max(progress.values) < 100
    assert {it for _, _, it in progress.events} == {1, 2, 3}
    assert progress.events[-1][1] == "Reached maximum of 3 iterations"


@pytest.mark.asyncio
async def test_refine_match_on_second_iteration(png_bytes):
    client = FakeModelClient(["fix header", "<div>v1</div>", "No further improvements needed."])

    outcome = await refine_markup(client, [(png_bytes, "image/png")], "<div>v0</div>", max_iterations=3)

    assert outcome.iteration_count == 2
    assert outcome.is_match is True
    assert outcome.html == "<div>v1</div>"


@pytest.mark.asyncio
async def test_refine_video_sends_every_frame():
    client = FakeModelClient(["already a very good match"])
    images = [(b"f0", "image/jpeg"), (b"f1", "image/jpeg"), (b"f2", "image/jpeg")]

    await refine_markup(client, images, "<div/>", is_video=True)

    assert len(image_blocks(client.calls[0]["messages"][0]["content"])) == 3
