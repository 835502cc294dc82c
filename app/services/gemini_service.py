"""Gemini service for blog posts and single-topic guides."""
import json
import logging
import re
from typing import List, Optional

from google import genai
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?")


class BlogDraft(BaseModel):
    title: str
    slug: str
    content: str
    meta_description: str
    keywords: List[str] = []


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences Gemini tends to wrap JSON in."""
    return _FENCE_RE.sub("", text or "").strip()


BLOG_PROMPT = """You are a world-class medical educator and SEO specialist for 'Study Prometric'.
Your goal is to write a blog post for medical professionals (doctors, nurses, pharmacists) preparing for licensing exams in the Gulf (DHA, MOH, HAAD, SMLE, OMSB, QCHP).

TASK:
1. Brainstorm a high-yield medical topic or exam strategy that is currently trending or essential for these candidates.
2. Write a comprehensive, authoritative, and engaging article (approx. 1000 words).
3. Include clear headings (H1, H2), structured advice, and clinical pearls.
4. Mention how the 'Study Prometric' platform (with its AI clinical cases and question bank) is a vital resource for this specific topic.

Return ONLY a JSON object:
{
  "title": "Compelling SEO Title",
  "slug": "url-friendly-slug",
  "content": "Full article in Markdown/HTML format",
  "meta_description": "A 150-160 character meta description for Google",
  "keywords": ["list", "of", "5", "target", "keywords"]
}"""


class GeminiService:
    """Thin wrapper over the google-genai client."""

    def __init__(self, client: Optional[genai.Client] = None):
        if client is None:
            if not settings.GEMINI_API_KEY:
                raise UpstreamServiceError("Gemini API key is missing.")
            client = genai.Client(api_key=settings.GEMINI_API_KEY)
        self.client = client
        self.model = settings.GEMINI_MODEL

    def _generate(self, prompt: str) -> str:
        response = self.client.models.generate_content(model=self.model, contents=prompt)
        text = strip_code_fences(response.text)
        if not text:
            raise ValueError("Gemini did not return any content.")
        return text

    def generate_blog_post(self) -> BlogDraft:
        text = self._generate(BLOG_PROMPT)
        try:
            return BlogDraft.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Gemini blog response was not valid JSON: %.200s", text)
            raise ValueError("Gemini returned a malformed blog post.") from e

    def generate_topic_content(self, topic_title: str) -> str:
        """Return the guide for one topic as cleaned JSON text."""
        prompt = f"""You are an expert medical educator for 'Study Prometric'. Generate a comprehensive guide for: "{topic_title}".
Use HTML tags (<ul>, <li>, <p>) for formatting.

You must also include a "youtube_video_id".
CRITICAL: This MUST be a real, working 11-character YouTube ID from Osmosis, Ninja Nerd, or Khan Academy Medicine. DO NOT MAKE ONE UP. If you don't know a specific working ID for this topic, leave the "youtube_video_id" field empty.

Return ONLY a JSON object with these keys:
title, definition, main_causes, symptoms, diagnostic_tests, diagnostic_criteria, treatment_management, youtube_video_id"""
        return self._generate(prompt)


def get_gemini_service() -> GeminiService:
    """FastAPI dependency; overridden in tests."""
    return GeminiService()
