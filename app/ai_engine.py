import json
import logging
import asyncio
import warnings
from typing import Callable, Optional, Sequence, Type, TypeVar
from pydantic import BaseModel
from langchain_core._api.deprecation import LangChainDeprecationWarning
from .models import AILogEntry
from . import config

# SUPPRESS FALSE POSITIVE WARNING:
# LangChain recommends switching to ChatGoogleGenerativeAI, but that requires an API Key.
# We are on Cloud Run (Vertex AI) using Service Account Auth, so we MUST use ChatVertexAI.
warnings.filterwarnings("ignore", category=LangChainDeprecationWarning)

from langchain_google_vertexai import ChatVertexAI, HarmBlockThreshold, HarmCategory
from langchain_core.messages import HumanMessage, SystemMessage
from . import persistence

T = TypeVar("T", bound=BaseModel)

# --- SHARED AUTH STATE ---
# One client per model name so the fallback chain reuses connection pools
# and cached OAuth tokens across parallel games.
_SHARED_MODELS = {}
_MODEL_LOCK = asyncio.Lock()

class AllModelsFailedError(RuntimeError):
    """Every model in a fallback list raised. `last_error` is the final failure."""
    def __init__(self, models: Sequence[str], last_error: Optional[BaseException]):
        self.models = list(models)
        self.last_error = last_error
        super().__init__(f"All models failed ({', '.join(self.models)}): {last_error}")

def _resolve_refs(schema, defs: dict):
    if isinstance(schema, list):
        return [_resolve_refs(v, defs) for v in schema]
    if not isinstance(schema, dict):
        return schema
    if "$ref" in schema:
        name = schema["$ref"].split("/")[-1]
        return _resolve_refs(defs.get(name, {}), defs)
    return {k: _resolve_refs(v, defs) for k, v in schema.items() if k != "$defs"}

def _sanitize_schema(schema: dict) -> dict:
    """
    Recursively removes unsupported keywords from the schema
    to make it compatible with Vertex AI Controlled Generation.

    Vertex AI does NOT support: 'additionalProperties', 'title', 'anyOf', 'oneOf', 'allOf', '$ref'.
    """
    if isinstance(schema, dict) and "$defs" in schema:
        schema = _resolve_refs(schema, schema["$defs"])

    if not isinstance(schema, dict):
        if isinstance(schema, list):
            return [_sanitize_schema(v) for v in schema]
        return schema

    # 1. Strip basic forbidden keys
    sanitized = {
        k: _sanitize_schema(v)
        for k, v in schema.items()
        if k not in ["additionalProperties", "title", "$schema", "description", "default"]
    }

    # 2. Handle 'anyOf' (Vertex AI limitation)
    # Optional[X] arrives as anyOf [X, null]; collapse to X (nullable) or to an enum.
    if "anyOf" in sanitized:
        options = [o for o in sanitized.pop("anyOf") if o.get("type") != "null"]
        enums = []
        for opt in options:
            if "enum" in opt:
                enums.extend(opt["enum"])

        if enums:
            sanitized["type"] = "string"
            sanitized["enum"] = list(dict.fromkeys(enums))
        elif options:
            sanitized.update(_sanitize_schema(options[0]))
        sanitized["nullable"] = True

    return sanitized

def _content_text(content) -> str:
    """Newer langchain releases may return a list of content blocks."""
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(block.get("text", ""))
            else:
                parts.append(str(block))
        return "".join(parts)
    return content or ""

def _parse_json(text: str) -> dict:
    clean_text = text.replace("```json", "").replace("```", "").strip()
    return json.loads(clean_text)

class AIEngine:
    def __init__(self):
        self.project_id = config.PROJECT_ID
        self.location = "us-central1"
        self.default_model_name = "gemini-2.5-flash"

        # PERMISSIVE SAFETY SETTINGS (combat and survival narration)
        self.safety_settings = {
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
        }

        self.base_config = {
            "project": self.project_id,
            "location": self.location,
            "temperature": 0.8,
            "max_output_tokens": 8192,
            "safety_settings": self.safety_settings,
        }

    async def _get_model(self, model_name: str):
        """Ensures a single instance of each model is shared across the app."""
        async with _MODEL_LOCK:
            model = _SHARED_MODELS.get(model_name)
            if model is None:
                logging.info(f"System: Initializing Shared AI Session ({model_name})")
                model = ChatVertexAI(model_name=model_name, **self.base_config)
                _SHARED_MODELS[model_name] = model
            return model

    async def _invoke(
        self,
        model_name: str,
        system_prompt: str,
        user_input: str,
        game_id: str = None,
        response_schema: dict = None
    ) -> str:
        """
        Sends one request to one model and returns its text. Raises on transport
        errors; returns "" when the response was safety-blocked.
        """
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_input)
        ]

        model = await self._get_model(model_name)

        if game_id:
            logging.info(f"AI Request: {model_name} (Game: {game_id})")

        # --- STRUCTURED OUTPUT BINDING ---
        if response_schema:
            invocation_model = model.bind(
                response_mime_type="application/json",
                response_schema=_sanitize_schema(response_schema)
            )
        else:
            invocation_model = model

        result = await invocation_model.ainvoke(messages)
        content = _content_text(result.content)
        metadata = result.response_metadata or {}

        if game_id:
            log_entry = AILogEntry(
                game_id=game_id,
                model=model_name,
                system_prompt=system_prompt,
                user_input=user_input,
                raw_response=content,
                usage=metadata.get('usage_metadata', {})
            )
            asyncio.create_task(persistence.db.log_ai_interaction(log_entry))

        finish_reason = metadata.get('finish_reason')

        if not content:
            logging.error(f"[AI SAFETY BLOCK] Content is empty. Finish Reason: {finish_reason}")
            logging.error(f"[AI SAFETY DATA] Ratings: {metadata.get('safety_ratings')}")
            return ""

        if finish_reason and finish_reason != "STOP":
            logging.error(f"[AI TRUNCATION] Stop Reason: {finish_reason} (Game: {game_id})")

        if game_id:
            asyncio.create_task(self._track_usage(game_id, metadata))

        return content

    async def generate_response(
        self,
        system_prompt: str,
        user_input: str,
        model_version: str = "gemini-2.5-flash",
        game_id: str = None,
        response_schema: dict = None
    ) -> str:
        try:
            return await self._invoke(model_version, system_prompt, user_input, game_id, response_schema)
        except Exception as e:
            logging.error(f"AI Generation Error: {e}")
            return f"[SYSTEM ERROR]: {e}"

    async def generate_structured(
        self,
        models: Sequence[str],
        system_prompt: str,
        user_input: str,
        output_model: Type[T],
        game_id: str = None,
        check: Callable[[T], None] = None
    ) -> T:
        """
        Tries each model in order until one returns JSON that validates against
        `output_model`. `check` may raise to reject a parsed answer, which moves
        on to the next model. Raises AllModelsFailedError when the list is exhausted.
        """
        models = list(models)
        if not models:
            raise ValueError("At least one model is required")

        schema = output_model.model_json_schema()
        last_error = None

        for model_name in models:
            try:
                text = await self._invoke(model_name, system_prompt, user_input, game_id, schema)
                if not text:
                    raise ValueError(f"Empty response from {model_name}")
                result = output_model.model_validate(_parse_json(text))
                if check is not None:
                    check(result)
                return result
            except Exception as e:
                last_error = e
                logging.warning(f"AI: Model '{model_name}' failed. Trying next... ({e})")

        logging.error(f"AI: All models failed for {output_model.__name__}: {last_error}")
        raise AllModelsFailedError(models, last_error) from last_error

    async def _track_usage(self, game_id: str, metadata: dict):
        try:
            usage = metadata.get('usage_metadata', {})
            in_tokens = usage.get('prompt_token_count', 0)
            out_tokens = usage.get('candidates_token_count', 0)

            if in_tokens == 0: in_tokens = usage.get('input_tokens', 0)
            if out_tokens == 0: out_tokens = usage.get('output_tokens', 0)

            if in_tokens + out_tokens > 0:
                await persistence.db.increment_token_usage(game_id, in_tokens, out_tokens)

        except Exception as e:
            logging.warning(f"Failed to track usage for {game_id}: {e}")

ai = AIEngine()
