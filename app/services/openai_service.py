"""OpenAI LLM service for topic matching and structured content generation."""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from openai import OpenAI
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

NO_MATCH_ANSWER = "None"


class TopicContent(BaseModel):
    """Structured study guide for one course topic."""

    title: str
    definition: str
    main_causes: Union[str, List[str]]
    symptoms: Union[str, List[str]]
    diagnostic_tests: Union[str, List[str]]
    diagnostic_criteria: Union[str, List[str]]
    treatment_management: Union[str, List[str]]
    youtube_embed_code: Optional[str] = None


class McqContent(BaseModel):
    correct_answer: Optional[str] = None
    explanation_text: str
    difficulty: str


@dataclass(frozen=True)
class Matched:
    """The model named a known topic."""
    topic: Any


@dataclass(frozen=True)
class NoMatch:
    """The model answered ``None`` or named something that is not a topic."""
    answer: Optional[str] = None


@dataclass(frozen=True)
class ParseError:
    """The model returned nothing usable."""
    raw: Optional[str]
    reason: str


TopicMatch = Union[Matched, NoMatch, ParseError]


def classify_topic_answer(raw: Optional[str], topics: Sequence[Any]) -> TopicMatch:
    """
    Turn a free-form completion into a typed topic match.

    The answer is trimmed and unquoted, then compared by exact string
    equality against each topic's ``title``.

    Args:
        raw: Completion text as returned by the model
        topics: Objects with a ``title`` attribute

    Returns:
        ``Matched(topic)``, ``NoMatch`` or ``ParseError``
    """
    if raw is None:
        return ParseError(raw=None, reason="AI returned no content")

    answer = raw.strip().strip("\"'`").strip()
    if not answer:
        return ParseError(raw=raw, reason="AI returned an empty answer")

    if answer == NO_MATCH_ANSWER:
        return NoMatch(answer=answer)

    for topic in topics:
        if topic.title == answer:
            return Matched(topic=topic)

    return NoMatch(answer=answer)


class OpenAIService:
    """Service for interacting with OpenAI API."""

    def __init__(self, client: Optional[OpenAI] = None):
        """Initialize OpenAI client with API key from settings."""
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise UpstreamServiceError("OpenAI API key is missing.")
            client = OpenAI(api_key=settings.OPENAI_API_KEY)
        self.client = client
        self.model = settings.OPENAI_MODEL
        self.match_model = settings.OPENAI_MATCH_MODEL

    def match_topic(self, question_text: str, topics: Sequence[Any]) -> TopicMatch:
        """
        Ask the model which topic best fits a question.

        Zero temperature; the model must reply with an exact topic title or
        ``None``. SDK failures propagate to the caller.
        """
        prompt = self._build_match_prompt(question_text, [t.title for t in topics])

        response = self.client.chat.completions.create(
            model=self.match_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
        )
        content = response.choices[0].message.content
        return classify_topic_answer(content, topics)

    def generate_topic_content(self, topic_title: str) -> TopicContent:
        """Generate the structured guide for one topic title."""
        prompt = f"""You are an expert medical educator creating content for 'Study Prometric'. Generate a comprehensive guide for the topic: "{topic_title}".

The content must be structured into sections using HTML tags (<h2>, <p>, <ul>, <li>).

1. Definition: A clear definition.
2. Main Causes: A list of etiologies.
3. Symptoms: Key signs and symptoms.
4. Diagnostic Tests: Relevant labs and imaging.
5. Diagnostic Criteria: Established criteria.
6. Treatment/Management: Overview of treatment strategy.
7. YouTube Video Embed: A full HTML <iframe> embed code for a relevant educational video from Osmosis, Khan Academy Medicine, Armando Hasudungan, or Ninja Nerd. Use the youtube.com/embed/ format.

The entire output MUST be a single, valid JSON object with keys: title, definition, main_causes, symptoms, diagnostic_tests, diagnostic_criteria, treatment_management, and youtube_embed_code. Do not add any text outside this JSON object."""

        result = self._complete_json(prompt, temperature=0.7)
        try:
            return TopicContent.model_validate(result)
        except ValidationError as e:
            raise ValueError(f"AI response did not match the topic schema: {e.error_count()} invalid field(s)") from e

    def generate_mcq_content(self, question: str, options: Dict[str, str]) -> McqContent:
        """Suggest the correct option, an explanation and a difficulty for an MCQ."""
        prompt = f"""You are an expert medical educator. Analyze the MCQ:
Question: {question}
Options: A: {options.get('A', '')}, B: {options.get('B', '')}, C: {options.get('C', '')}, D: {options.get('D', '')}

Return JSON: {{"correct_answer": "A|B|C|D", "explanation_text": "...", "difficulty": "Easy|Medium|Hard"}}"""

        result = self._complete_json(prompt, model=self.match_model)
        try:
            return McqContent.model_validate(result)
        except ValidationError as e:
            raise ValueError("Failed to parse AI response into expected JSON format.") from e

    def _complete_json(self, prompt: str, model: Optional[str] = None, temperature: Optional[float] = None) -> Dict:
        kwargs = {
            "model": model or self.model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
        }
        if temperature is not None:
            kwargs["temperature"] = temperature

        response = self.client.chat.completions.create(**kwargs)
        content = response.choices[0].message.content
        if not content:
            raise ValueError("OpenAI did not return any content.")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Unparseable JSON from OpenAI: %.200s", content)
            raise ValueError("OpenAI returned invalid JSON.") from e

    def _build_match_prompt(self, question_text: str, titles: List[str]) -> str:
        topic_list = "\n".join(f"- {title}" for title in titles)
        return f"""Given the following medical question, which of the listed topics is the single most relevant? Respond with ONLY the exact topic title from the list. If no topic is a good match, respond with '{NO_MATCH_ANSWER}'.

Question: "{question_text}"

Topics:
{topic_list}"""


def get_openai_service() -> OpenAIService:
    """FastAPI dependency; overridden in tests."""
    return OpenAIService()
