"""
Prompt construction utilities for Xiaohongshu-style page images.
"""

from __future__ import annotations

from pathlib import Path

from xhs_studio.outline_generation import Page, PageType

PAGE_TYPE_LABELS: dict[PageType, str] = {
    PageType.COVER: "封面",
    PageType.CONTENT: "内容页",
    PageType.SUMMARY: "总结页",
}

STYLE_REQUIREMENTS: tuple[str, ...] = (
    "竖版 3:4 比例",
    "小红书爆款风格",
    "清新、精致、有设计感",
    "文字清晰可读",
    "排版美观，留白合理",
    "不要带有任何小红书的 logo 或水印",
    "确保竖屏显示正确，不要旋转或倒置",
)

COVER_CONSISTENCY_NOTE = "参考风格: 请参考封面图片的风格保持一致"


def build_image_prompt(
    page: Page,
    theme: str,
    cover_image_path: str | Path | None = None,
) -> str:
    """
    Build the instruction sent to the upstream generator for a single page.

    Parameters
    ----------
    page:
        Page whose content should be rendered.
    theme:
        Theme of the whole post; repeated on every page for coherence.
    cover_image_path:
        Path of the already generated cover. Non-cover pages get an extra note asking
        for a style consistent with it.
    """
    label = PAGE_TYPE_LABELS[page.type]
    requirements = "\n".join(
        f"{index}. {line}" for index, line in enumerate(STYLE_REQUIREMENTS, start=1)
    )

    prompt = f"""生成一张小红书风格的{label}图片。

主题: {theme}
页面类型: {label}
页面内容: {page.content}

要求:
{requirements}"""

    if cover_image_path and page.type is not PageType.COVER:
        prompt += f"\n\n{COVER_CONSISTENCY_NOTE}"

    return prompt


IMAGE_STYLE_GUIDE = f"""小红书风格配图提示词模板

每一页图片的提示词由以下部分组成:
- 页面类型: 封面 / 内容页 / 总结页
- 主题: 整篇笔记的主题
- 页面内容: 大纲中该页的正文

固定要求:
{chr(10).join(f"{index}. {line}" for index, line in enumerate(STYLE_REQUIREMENTS, start=1))}

生成顺序: 先生成封面，其余页面以封面为风格参考，追加一句「{COVER_CONSISTENCY_NOTE}」。"""
