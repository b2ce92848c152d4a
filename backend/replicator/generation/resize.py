"""Resize helpers for sampled frames and model-bound images."""
import logging
from typing import Optional, Tuple

from PIL import Image

logger = logging.getLogger("replicator.resize")

FillMode = str  # "color" | "crop"


def resize_to_fit(
    img: Image.Image,
    target_width: int,
    target_height: int,
    fill_mode: FillMode = "color",
    fill_color: Optional[Tuple[int, int, int]] = None,
) -> Image.Image:
    """
    Produce an RGB image of exactly (target_width, target_height).
    - color: scale to fit inside target, letterbox the remainder with fill_color (default black).
    - crop: center-crop source to fill target (may lose edges).
    """
    if fill_color is None:
        fill_color = (0, 0, 0)
    w, h = img.size
    if img.mode != "RGB":
        img = img.convert("RGB")
    tw, th = target_width, target_height
    if w == tw and h == th:
        return img.copy()

    if fill_mode == "crop":
        scale = max(tw / w, th / h)
        new_w, new_h = max(tw, int(w * scale)), max(th, int(h * scale))
        resized = img.resize((new_w, new_h), Image.Resampling.LANCZOS)
        left = (new_w - tw) // 2
        top = (new_h - th) // 2
        return resized.crop((left, top, left + tw, top + th))

    if fill_mode != "color":
        logger.warning("Unknown fill_mode %s, using color", fill_mode)
    scale = min(tw / w, th / h)
    new_w, new_h = int(w * scale), int(h * scale)
    out = Image.new("RGB", (tw, th), fill_color)
    if new_w <= 0 or new_h <= 0:
        return out
    resized = img.resize((new_w, new_h), Image.Resampling.LANCZOS)
    out.paste(resized, ((tw - new_w) // 2, (th - new_h) // 2))
    return out


def shrink_to_edge(img: Image.Image, max_edge: int) -> Image.Image:
    """Scale down (never up) so the longer side is at most max_edge, keeping aspect ratio."""
    w, h = img.size
    longest = max(w, h)
    if longest <= max_edge:
        return img.copy()
    scale = max_edge / longest
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return img.resize((new_w, new_h), Image.Resampling.LANCZOS)


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Parse #RRGGBB to (r,g,b). Black if invalid."""
    hex_color = hex_color.strip().lstrip("#")
    if len(hex_color) == 6:
        try:
            return (int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16))
        except ValueError:
            pass
    return (0, 0, 0)
