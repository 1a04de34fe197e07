"""
Gemini REST client for chat, streaming and structured generation.

Talks to either the public Gemini API (API key) or Vertex AI (OAuth token
from google-auth). Both expose the same ``generateContent`` and
``streamGenerateContent`` resources, so the request bodies are shared.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Iterator

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import (
    GEMINI_API_BASE, VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT,
    MAX_OUTPUT_TOKENS, CHAT_TEMPERATURE, STRUCTURED_TEMPERATURE,
)

logger = logging.getLogger("llm_client")

USER_ROLE = "user"
MODEL_ROLE = "model"

_SSE_DATA_PREFIX = "data:"


class LLMServiceError(RuntimeError):
    """The Gemini endpoint answered with an HTTP error."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Gemini REST error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class StructuredOutputError(ValueError):
    """A structured generation response could not be parsed as JSON."""


@dataclass
class GeminiChat:
    """Client-side chat session: the system instruction plus accumulated contents."""
    system_instruction: str
    history: List[Dict[str, Any]] = field(default_factory=list)

    def record_exchange(self, user_text: str, model_text: str) -> None:
        self.history.append(text_content(USER_ROLE, user_text))
        self.history.append(text_content(MODEL_ROLE, model_text))


def text_content(role: str, text: str) -> Dict[str, Any]:
    """Build a single Gemini ``Content`` entry."""
    return {"role": role, "parts": [{"text": text}]}


class GeminiRestClient:
    """REST-based client for Gemini models (Gemini API or Vertex AI)."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 project: Optional[str] = None,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT,
                 max_output_tokens: int = MAX_OUTPUT_TOKENS):
        if not api_key and not project:
            raise ValueError("Either api_key or project is required")

        self.api_key = api_key
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.timeout = timeout
        self.max_output_tokens = max_output_tokens
        self._token: Optional[str] = None

        if api_key:
            self.base_url = GEMINI_API_BASE
            self.model_resource = f"models/{self.model}"
        else:
            self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
            self.model_resource = (
                f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
            )

    def _refresh_token(self):
        """Refresh the OAuth token for Vertex API calls."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
        else:
            creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])

        auth_req = google.auth.transport.requests.Request()
        creds.refresh(auth_req)
        self._token = creds.token

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key
        else:
            if not self._token:
                self._refresh_token()
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _url(self, method: str) -> str:
        return f"{self.base_url}/{self.model_resource}:{method}"

    def _build_body(self,
                    contents: List[Dict[str, Any]],
                    system_instruction: Optional[str] = None,
                    temperature: float = CHAT_TEMPERATURE,
                    response_schema: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(self.max_output_tokens),
            },
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if response_schema is not None:
            body["generationConfig"]["responseMimeType"] = "application/json"
            body["generationConfig"]["responseSchema"] = response_schema
        return body

    def _post(self, body: Dict[str, Any]) -> str:
        resp = requests.post(
            self._url("generateContent"), headers=self._headers(), json=body, timeout=self.timeout
        )
        if resp.status_code >= 400:
            raise LLMServiceError(resp.status_code, resp.text)
        return self._parse_response_text(resp.json())

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Extract the text of the first candidate, joining all of its text parts.
        Streaming chunks use the same shape, so this serves both paths.
        """
        cands = resp_json.get("candidates") or []
        if not cands:
            return ""
        content = cands[0].get("content") or {}
        parts = content.get("parts") or []
        return "".join(
            p["text"] for p in parts
            if isinstance(p, dict) and isinstance(p.get("text"), str)
        )

    # ------------------------------------------------------------------
    # Conversational service
    # ------------------------------------------------------------------

    def create_chat(self, system_instruction: str,
                    history: Optional[List[Dict[str, Any]]] = None) -> GeminiChat:
        """Create a chat seeded with prior contents. No request is made."""
        return GeminiChat(system_instruction=system_instruction, history=list(history or []))

    def send(self, chat: GeminiChat, text: str) -> str:
        """Send a user message and return the complete reply."""
        contents = chat.history + [text_content(USER_ROLE, text)]
        body = self._build_body(contents, system_instruction=chat.system_instruction)
        logger.debug("Sending chat message (%d prior contents)", len(chat.history))

        reply = self._post(body)
        chat.record_exchange(text, reply)
        return reply

    def send_streaming(self, chat: GeminiChat, text: str) -> Iterator[str]:
        """
        Send a user message and yield the reply as it arrives.

        The exchange is only recorded in the chat history once the stream
        has been fully consumed.
        """
        contents = chat.history + [text_content(USER_ROLE, text)]
        body = self._build_body(contents, system_instruction=chat.system_instruction)
        logger.debug("Streaming chat message (%d prior contents)", len(chat.history))

        pieces: List[str] = []
        with requests.post(
            self._url("streamGenerateContent"),
            params={"alt": "sse"},
            headers=self._headers(),
            json=body,
            timeout=self.timeout,
            stream=True,
        ) as resp:
            if resp.status_code >= 400:
                raise LLMServiceError(resp.status_code, resp.text)

            for line in resp.iter_lines(decode_unicode=True):
                if not line or not line.startswith(_SSE_DATA_PREFIX):
                    continue
                payload = line[len(_SSE_DATA_PREFIX):].strip()
                chunk = self._parse_response_text(json.loads(payload))
                if chunk:
                    pieces.append(chunk)
                    yield chunk

        chat.record_exchange(text, "".join(pieces))

    # ------------------------------------------------------------------
    # Structured generation service
    # ------------------------------------------------------------------

    def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> Any:
        """
        Generate JSON constrained by a response schema.

        Raises:
            StructuredOutputError: If the response is not valid JSON
        """
        body = self._build_body(
            [text_content(USER_ROLE, prompt)],
            temperature=STRUCTURED_TEMPERATURE,
            response_schema=schema,
        )
        logger.debug("Sending structured prompt to LLM...")
        text = self._post(body)
        logger.debug("Raw LLM output: %s", repr(text))

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StructuredOutputError(f"LLM did not return valid JSON: {text}") from e
