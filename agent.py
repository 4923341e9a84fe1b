import logging
import os
from typing import Optional

from errors import AnalysisServiceError


logger = logging.getLogger(__name__)


def _status_of(exc: Exception) -> Optional[int]:
    """HTTP status carried by an SDK exception, if any."""
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


class WalletInsightsAgent:
    """Language-model client that returns the analysis as JSON text."""

    def __init__(self, provider: Optional[str] = None):
        self.provider = (provider or os.getenv("AI_PROVIDER", "openai")).lower()

        if self.provider == "anthropic":
            self._init_anthropic()
        elif self.provider == "gemini":
            self._init_gemini()
        elif self.provider == "openai":
            self._init_openai()
        else:
            raise ValueError(
                f"Unknown AI_PROVIDER '{self.provider}'. "
                "Set AI_PROVIDER to 'anthropic', 'openai', or 'gemini'."
            )

    # ── Provider Init ─────────────────────────────────────────────────────

    def _init_anthropic(self):
        import anthropic

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError("ANTHROPIC_API_KEY is not set.")
        self._errors = (anthropic.APIError,)
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-6")
        logger.info("AI Provider: Anthropic | Model: %s", self.model)

    def _init_gemini(self):
        import google.generativeai as genai
        from google.api_core import exceptions as google_exceptions

        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise EnvironmentError("GEMINI_API_KEY is not set.")
        genai.configure(api_key=api_key)
        self._genai = genai
        self._errors = (google_exceptions.GoogleAPIError,)
        self.model = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        logger.info("AI Provider: Gemini | Model: %s", self.model)

    def _init_openai(self):
        import openai

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise EnvironmentError("OPENAI_API_KEY is not set.")
        self._errors = (openai.APIError,)
        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        logger.info("AI Provider: OpenAI | Model: %s", self.model)

    # ── Completion ────────────────────────────────────────────────────────

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1500,
        temperature: float = 0.3,
    ) -> Optional[str]:
        """Send one analysis request; provider failures become AnalysisServiceError."""
        try:
            if self.provider == "anthropic":
                return await self._call_anthropic(system_prompt, user_prompt, max_tokens, temperature)
            elif self.provider == "gemini":
                return await self._call_gemini(system_prompt, user_prompt, max_tokens, temperature)
            return await self._call_openai(system_prompt, user_prompt, max_tokens, temperature)
        except self._errors as e:
            status = _status_of(e)
            logger.warning("%s API error (status=%s): %s", self.provider, status, e)
            raise AnalysisServiceError(str(e), status) from e

    async def _call_anthropic(self, system_prompt, user_prompt, max_tokens, temperature):
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return message.content[0].text if message.content else None

    async def _call_gemini(self, system_prompt, user_prompt, max_tokens, temperature):
        model = self._genai.GenerativeModel(self.model, system_instruction=system_prompt)
        response = await model.generate_content_async(
            user_prompt,
            generation_config=self._genai.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
                response_mime_type="application/json",
            ),
        )
        return response.text

    async def _call_openai(self, system_prompt, user_prompt, max_tokens, temperature):
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
