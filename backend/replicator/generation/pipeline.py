"""Model conversations: single image, multi-turn video, and the refinement loop."""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from replicator.config import REFINE_MAX_ITERATIONS
from replicator.generation import prompts
from replicator.generation.frames import SampledVideo
from replicator.generation.llm import image_block, text_block
from replicator.generation.postprocess import strip_code_fences

logger = logging.getLogger("replicator.pipeline")

# Critique phrases taken to mean "no more changes needed"
MATCH_PHRASES = (
    "no further improvements",
    "95%+ accurate",
    "already very good match",
    "already a very good match",
)


class Completer(Protocol):
    async def complete(self, messages: list[dict], max_tokens: int = 4000, system: Optional[str] = None) -> str:
        ...


class Reporter(Protocol):
    def __call__(self, progress: float, message: str, iteration: Optional[int] = None) -> None:
        ...


def _no_report(progress: float, message: str, iteration: Optional[int] = None) -> None:
    pass


@dataclass
class RefinementOutcome:
    html: str
    iteration_count: int
    is_match: bool


def is_good_match(critique: str) -> bool:
    text = (critique or "").lower()
    return any(phrase in text for phrase in MATCH_PHRASES)


async def generate_from_image(
    client: Completer,
    image: bytes,
    media_type: str,
    report: Reporter = _no_report,
) -> str:
    report(30, "Analyzing image and extracting UI elements...")
    return await client.complete(
        [{"role": "user", "content": [text_block(prompts.IMAGE_PROMPT), image_block(image, media_type)]}],
        max_tokens=4000,
    )


async def generate_from_video(
    client: Completer,
    video: SampledVideo,
    report: Reporter = _no_report,
) -> str:
    """Walk the model through the frames one turn at a time, then ask for the implementation.

    Turn order: overview + frame 0, one "what changed" turn per later frame,
    an interaction summary, and finally the implementation request.
    """
    frames = video.frames
    count = len(frames)
    overview = [
        text_block(prompts.video_overview_prompt(count, video.duration)),
        image_block(frames[0].image, "image/jpeg"),
    ]
    messages: list[dict] = [{"role": "user", "content": overview}]
    report(30, "Analyzing initial UI state...")
    baseline = await client.complete(messages, max_tokens=4000)
    if count == 1:
        return baseline
    messages.append({"role": "assistant", "content": baseline})

    report(40, "Analyzing UI interactions from video frames...")
    for i in range(1, count):
        frame = frames[i]
        report(40 + (i * 20) // count, f"Analyzing frame {i + 1} of {count}...")
        messages.append({
            "role": "user",
            "content": [
                text_block(prompts.frame_analysis_prompt(i, count, frame.timestamp, video.duration)),
                image_block(frame.image, "image/jpeg"),
            ],
        })
        analysis = await client.complete(messages, max_tokens=1000)
        messages.append({"role": "assistant", "content": analysis})

    report(60, "Creating comprehensive interaction analysis...")
    messages.append({"role": "user", "content": prompts.interaction_summary_prompt(count, video.duration)})
    summary = await client.complete(messages, max_tokens=2000)
    messages.append({"role": "assistant", "content": summary})

    report(70, "Generating final implementation with interactions...")
    messages.append({"role": "user", "content": prompts.implementation_prompt(count, video.duration, summary)})
    return await client.complete(messages, max_tokens=4000)


async def refine_markup(
    client: Completer,
    images: Sequence[tuple[bytes, str]],
    html: str,
    is_video: bool = False,
    max_iterations: int = REFINE_MAX_ITERATIONS,
    report: Reporter = _no_report,
) -> RefinementOutcome:
    """Critique-then-improve, at most max_iterations times; stops early on a declared match."""
    current = html
    iterations = 0
    is_match = False
    step = 80 / max(1, max_iterations)
    for iteration in range(1, max_iterations + 1):
        iterations = iteration
        base = 10 + (iteration - 1) * step
        report(base, f"Iteration {iteration}: Analyzing UI against original design...", iteration=iteration)
        content = [text_block(prompts.critique_prompt(iteration, max_iterations, is_video))]
        content.extend(image_block(data, media_type) for data, media_type in images)
        content.append(text_block(prompts.current_html_prompt(current)))
        critique = await client.complete([{"role": "user", "content": content}], max_tokens=4000)

        if is_good_match(critique):
            is_match = True
            report(base + step / 3, f"Good match achieved after {iteration} iterations", iteration=iteration)
            break
        if iteration == max_iterations:
            report(base + step / 3, f"Reached maximum of {max_iterations} iterations", iteration=iteration)
            break

        report(base + step / 3, f"Iteration {iteration}: Generating improved HTML...", iteration=iteration)
        improved = await client.complete(
            [{"role": "user", "content": [text_block(prompts.improvement_prompt(critique, current))]}],
            max_tokens=4000,
        )
        current = strip_code_fences(improved)
        report(base + 2 * step / 3, f"Iteration {iteration} complete", iteration=iteration)
    logger.info("Refinement finished after %s iterations (match=%s)", iterations, is_match)
    return RefinementOutcome(html=current, iteration_count=iterations, is_match=is_match)
