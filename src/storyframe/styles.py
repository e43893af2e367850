"""Art-style catalogue: style name to English prompt keywords."""

from typing import NamedTuple

DEFAULT_STYLE = "写实风格"

PHOTOREALISM_KEYWORDS = "photorealistic, 8k, ultra detailed, realistic lighting"

STYLE_KEYWORDS: dict[str, str] = {
    "写实风格": "photorealistic, 8k, ultra detailed, realistic lighting, cinematic",
    "卡通风格": "cartoon style, vibrant colors, clean lines, expressive, animated",
    "动漫风格": "anime style, cel shading, vivid colors, manga, detailed",
    "漫画风格": "manga style, comic style, black and white manga, detailed line art, anime",
    "水彩风格": "watercolor painting, soft edges, artistic, dreamy, watercolor texture",
    "油画风格": "oil painting, textured, classic art, oil brushstrokes, rich colors",
    "像素风格": "pixel art, 8-bit, retro, blocky, vibrant colors",
    "赛博朋克": "cyberpunk, neon lights, futuristic, high tech, dystopian, glowing",
    "吉卜力风格": "ghibli style, studio ghibli, anime, hand drawn, soft colors, whimsical",
    "水墨风格": "ink painting, traditional chinese art, brush strokes, minimalist, black ink",
    "赛璐璐风格": "cel shaded, anime, bold outlines, flat colors, graphic novel style",
    "蒸汽朋克": "steampunk, victorian, brass gears, steam, industrial, ornate",
    "暗黑哥特": "dark fantasy, gothic, horror, eerie atmosphere, dramatic lighting",
    "浮世绘风格": "ukiyo-e, japanese woodblock print, traditional, flat colors, wave patterns",
    "低多边形": "low poly, geometric, flat shading, minimalist, 3D render",
    "黏土动画": "claymation, clay animation, stop motion, textured, hand crafted",
    "复古油画": "vintage painting, classical art, renaissance, rich textures, aged",
    "霓虹艺术": "neon art, glowing, vibrant, retro 80s, synthwave, electric colors",
}


class PreviewStyle(NamedTuple):
    name: str
    prompt: str


PREVIEW_STYLES: tuple[PreviewStyle, ...] = (
    PreviewStyle("写实风格", "A professional portrait of a young woman in natural lighting, photorealistic, 8k, ultra detailed, cinematic, realistic"),
    PreviewStyle("卡通风格", "A cheerful cartoon character with vibrant colors and clean lines, cartoon style, animated, expressive"),
    PreviewStyle("动漫风格", "A beautiful anime girl with detailed hair and eyes, anime style, cel shading, vivid colors, manga style"),
    PreviewStyle("漫画风格", "A dramatic manga character with detailed line work, manga style, black and white, comic style"),
    PreviewStyle("水彩风格", "A soft dreamy landscape, watercolor painting, artistic, soft edges, watercolor texture"),
    PreviewStyle("油画风格", "A classical portrait with rich brushstrokes, oil painting, textured, classic art, rich colors"),
    PreviewStyle("像素风格", "A retro pixel art character, 8-bit, blocky, vibrant colors, retro gaming style"),
    PreviewStyle("赛博朋克", "A cyberpunk city with neon lights and futuristic buildings, cyberpunk, neon, futuristic, high tech"),
    PreviewStyle("吉卜力风格", "A whimsical landscape in Studio Ghibli style, hand drawn, soft colors, magical atmosphere"),
    PreviewStyle("水墨风格", "Traditional Chinese ink painting, elegant brush strokes, minimalist, black ink on paper"),
    PreviewStyle("赛璐璐风格", "A character in cel shaded style, bold outlines, flat colors, graphic novel style"),
    PreviewStyle("蒸汽朋克", "A steampunk machine with brass gears and steam, victorian industrial design, ornate"),
    PreviewStyle("暗黑哥特", "A dark gothic scene with dramatic lighting and eerie atmosphere, dark fantasy, horror"),
    PreviewStyle("浮世绘风格", "Traditional Japanese ukiyo-e woodblock print, flat colors, wave patterns"),
    PreviewStyle("低多边形", "A low poly geometric landscape, flat shading, minimalist, 3D render"),
    PreviewStyle("黏土动画", "A character in claymation style, stop motion, textured, hand crafted"),
    PreviewStyle("复古油画", "A vintage renaissance painting with aged texture, classical art, rich colors"),
    PreviewStyle("霓虹艺术", "Vibrant neon art with glowing colors, retro 80s synthwave style, electric"),
)


def base_keywords(style: str) -> str:
    """Keywords for ``style``, falling back to the realistic style."""
    return STYLE_KEYWORDS.get(style, STYLE_KEYWORDS[DEFAULT_STYLE])


def style_keywords(style: str, strength: int = 80) -> str:
    """Keywords weighted by style strength (0-100).

    Below 50 the style is balanced with a leading photorealism keyword.
    """
    keywords = base_keywords(style)
    if strength / 100 >= 0.5:
        return keywords
    return f"photorealistic, {keywords}"


def contains_style_keyword(prompt: str, keywords: str) -> bool:
    """True if any single keyword from ``keywords`` appears in ``prompt``."""
    lowered = prompt.lower()
    return any(
        kw.strip().lower() in lowered
        for kw in keywords.split(",")
        if kw.strip()
    )
