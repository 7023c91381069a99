"""Oracle client for OpenAI-compatible chat-completions endpoints.

Usage example::

    from circuit_designer.oracle.client import OpenAIOracle

    with OpenAIOracle.from_config(AppConfig.load()) as oracle:
        raw = oracle.request_generation("Create a Bell state circuit")
        session.install_generated_circuit(raw)
"""

from __future__ import annotations

import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from circuit_designer.core.config import AppConfig
from circuit_designer.core.errors import OracleError
from circuit_designer.engine.circuit import Circuit
from circuit_designer.engine.gate_registry import GateRegistry

from .protocol import CircuitAnalysis, CircuitOracle

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4"

_RETRYABLE_STATUS = (429, 500, 502, 503, 504)

GENERATION_SYSTEM_PROMPT = """You are a quantum computing expert. Generate quantum circuits based on user descriptions.

Available gates:
{gates}

Respond with a JSON object in this exact format:
{{
  "name": "Circuit name",
  "qubits": number,
  "gates": [
    {{
      "type": "gate_type",
      "qubit": number,
      "time": number,
      "parameters": {{}},
      "controlQubit": number (only for CNOT)
    }}
  ]
}}"""

ANALYSIS_SYSTEM_PROMPT = (
    "You are a quantum computing expert. Analyze the given quantum circuit "
    "and provide insights about its purpose, complexity, potential "
    "applications, and optimization opportunities. Be concise but "
    "informative."
)

ANALYSIS_FORMAT = """Provide analysis in the following format:
- Description: What this circuit does
- Complexity: Simple/Medium/Complex
- Potential Applications: List 2-3 applications
- Optimization Suggestions: 1-2 suggestions for improvement
- Estimated Execution Time: Rough estimate for execution"""

SUGGESTIONS_SYSTEM_PROMPT = (
    "You are a quantum computing expert. Provide 3 specific suggestions for "
    "improving or extending the given quantum circuit. Focus on practical, "
    "implementable improvements."
)


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return (isinstance(exc, httpx.HTTPStatusError)
            and exc.response.status_code in _RETRYABLE_STATUS)


class OpenAIOracle(CircuitOracle):
    """Synchronous chat-completions client.

    Can be used as a context manager to close the underlying HTTP client.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = httpx.Client(
            base_url=base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config: AppConfig) -> OpenAIOracle:
        return cls(
            api_key=config.api_key(),
            base_url=config.oracle_base_url,
            model=config.oracle_model,
            timeout=config.oracle_timeout,
            max_tokens=config.oracle_max_tokens,
            temperature=config.oracle_temperature,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> OpenAIOracle:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # -- transport --

    @retry(
        retry=retry_if_exception(_is_retryable),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    def _post(self, payload: dict) -> dict:
        response = self._client.post(
            "/chat/completions",
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        response.raise_for_status()
        return response.json()

    def _chat(self, system_prompt: str, user_prompt: str,
              max_tokens: int | None = None,
              temperature: float | None = None) -> str:
        """Send one chat exchange and return the reply text.

        Raises:
            OracleError: on missing key, transport, HTTP or shape failure.
        """
        if not self._api_key:
            raise OracleError("Oracle API key not configured")

        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": (self._temperature if temperature is None
                            else temperature),
        }
        try:
            data = self._post(payload)
        except httpx.HTTPError as exc:
            logger.error("Oracle request failed: %s", exc)
            raise OracleError(f"Oracle request failed: {exc}") from exc
        except ValueError as exc:
            raise OracleError("Oracle returned a non-JSON body") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise OracleError("Malformed oracle response") from exc
        if not isinstance(content, str) or not content.strip():
            raise OracleError("No response from oracle")
        return content

    # -- High-level API methods --

    def request_generation(self, prompt: str,
                           current_circuit: Circuit | None = None) -> str:
        """Ask for a circuit; returns the raw reply text (JSON inside)."""
        gates = "\n".join(
            f"- {g.name} ({g.display_name}, {g.num_qubits}-qubit): "
            f"{g.description}"
            for g in GateRegistry.instance().all_gates())
        system_prompt = GENERATION_SYSTEM_PROMPT.format(gates=gates)
        if current_circuit is not None:
            user_prompt = (
                f"Current circuit:\n{current_circuit.describe()}\n\n"
                f"Modify this circuit: {prompt}\n"
                "Return the complete modified circuit."
            )
        else:
            user_prompt = f"Create a new quantum circuit: {prompt}"
        return self._chat(system_prompt, user_prompt)

    def request_analysis(self, circuit: Circuit) -> CircuitAnalysis:
        user_prompt = (
            f"Please analyze this quantum circuit:\n\n{circuit.describe()}"
            f"\n\n{ANALYSIS_FORMAT}"
        )
        text = self._chat(ANALYSIS_SYSTEM_PROMPT, user_prompt, max_tokens=500)
        return CircuitAnalysis.from_text(text)

    def request_suggestions(self, circuit: Circuit) -> list[str]:
        user_prompt = (
            f"Here's my quantum circuit:\n\n{circuit.describe()}\n\n"
            "Provide 3 specific suggestions for improvement or extension."
        )
        text = self._chat(SUGGESTIONS_SYSTEM_PROMPT, user_prompt,
                          max_tokens=300, temperature=0.8)
        return [line.strip() for line in text.splitlines()
                if line.strip()][:3]
