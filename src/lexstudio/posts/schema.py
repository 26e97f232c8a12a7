from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    subtitle: str
    copy_text: str = Field(alias="copy")
    hashtags: List[str] = Field(min_length=1)
    seo_keywords: List[str] = Field(alias="seoKeywords", min_length=1)

    @field_validator("title", "subtitle", "copy_text")
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("campo obrigatório vazio")
        return v

    @classmethod
    def gemini_schema(cls) -> Dict[str, Any]:
        return {
            "type": "OBJECT",
            "properties": {
                "title": {
                    "type": "STRING",
                    "description": "Um título atraente e curto para o post (máximo 6-8 palavras).",
                },
                "subtitle": {
                    "type": "STRING",
                    "description": "Um subtítulo curto e informativo (máximo 10-12 palavras).",
                },
                "copy": {
                    "type": "STRING",
                    "description": "A legenda principal do post (cerca de 2-3 parágrafos).",
                },
                "hashtags": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "Uma lista de 5-7 hashtags relevantes em português sobre direito do trabalho.",
                },
                "seoKeywords": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "Uma lista de 3-5 palavras-chave de SEO para otimização de blog sobre direito do trabalho.",  # noqa: E501
                },
            },
            "required": ["title", "subtitle", "copy", "hashtags", "seoKeywords"],
        }


class PostResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_content: PostContent = Field(alias="postContent")
    image_url_with_text: str = Field(alias="imageUrlWithText")
    image_url_without_text: str = Field(alias="imageUrlWithoutText")
