from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import structlog

from ..core.errors import InputValidationError
from ..extraction import IMAGE_ACCEPT, CaseDocument, validate_upload
from ..llm import GenerationClient, InlinePart
from .prompts import build_image_prompt, build_post_text_prompt
from .schema import PostContent, PostResult

logger = structlog.get_logger()

MISSING_INPUT_MESSAGE = "Por favor, preencha o tema e selecione um formato para o post."


def _reference_parts(style_image: CaseDocument | None, logo_image: CaseDocument | None) -> List[InlinePart]:
    parts: List[InlinePart] = []
    for image in (style_image, logo_image):
        if image is None:
            continue
        validate_upload(image.name, image.mime_type, IMAGE_ACCEPT)
        parts.append(image.to_part())
    return parts


async def _both(client: GenerationClient, prompts: Sequence[str], parts: List[InlinePart]) -> List[str]:
    """Run the image requests concurrently; the first failure cancels the rest."""
    tasks = [asyncio.ensure_future(client.generate_image(prompt, parts)) for prompt in prompts]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            logger.error("post.image_failed", error=str(task.exception()))
            raise task.exception()
    return [task.result() for task in tasks]


@dataclass
class PostService:
    client: GenerationClient

    async def generate_content(self, theme: str) -> PostContent:
        content = await self.client.generate_structured_text(build_post_text_prompt(theme), PostContent)
        logger.info("post.text_generated", title=content.title, hashtags=len(content.hashtags))
        return content

    async def generate_images(
        self,
        content: PostContent,
        aspect_ratio: str,
        style_image: CaseDocument | None = None,
        logo_image: CaseDocument | None = None,
    ) -> Tuple[str, str]:
        """Returns ``(with_text, without_text)`` data URIs, or raises if either fails."""
        parts = _reference_parts(style_image, logo_image)
        prompts = [
            build_image_prompt(
                content,
                aspect_ratio,
                with_text=with_text,
                has_style_image=style_image is not None,
                has_logo_image=logo_image is not None,
            )
            for with_text in (True, False)
        ]
        logger.info("post.images_requested", aspect_ratio=aspect_ratio, reference_images=len(parts))
        with_text, without_text = await _both(self.client, prompts, parts)
        logger.info("post.images_generated", aspect_ratio=aspect_ratio)
        return with_text, without_text

    async def generate_post(
        self,
        theme: str,
        aspect_ratio: str,
        style_image: CaseDocument | None = None,
        logo_image: CaseDocument | None = None,
    ) -> PostResult:
        if not theme.strip() or not aspect_ratio.strip():
            raise InputValidationError(MISSING_INPUT_MESSAGE)
        _reference_parts(style_image, logo_image)

        content = await self.generate_content(theme)
        with_text, without_text = await self.generate_images(content, aspect_ratio, style_image, logo_image)
        return PostResult(
            post_content=content,
            image_url_with_text=with_text,
            image_url_without_text=without_text,
        )

    async def regenerate_images(
        self,
        result: PostResult,
        aspect_ratio: str,
        style_image: CaseDocument | None = None,
        logo_image: CaseDocument | None = None,
    ) -> PostResult:
        """New image pair for an existing post; the texts are reused unchanged."""
        if not aspect_ratio.strip():
            raise InputValidationError(MISSING_INPUT_MESSAGE)
        with_text, without_text = await self.generate_images(
            result.post_content, aspect_ratio, style_image, logo_image
        )
        return result.model_copy(update={"image_url_with_text": with_text, "image_url_without_text": without_text})
