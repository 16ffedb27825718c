# weaviate_connector/generative.py
# SPDX-License-Identifier: Apache-2.0
"""
Runtime generative-model configuration.

``build_generative_config(provider, options)`` reads the provider-prefixed
options supplied with a generative search (``openaiModel``,
``anthropicTemperature``, ...) and returns a :class:`GenerativeProviderConfig`::

    {"name": "generative-openai", "config": {"model": "gpt-4o", "temperature": 0.2}}

Only supplied options appear in ``config``. Two inclusion rules apply:

- ``defined``: included whenever a value is present, so ``0`` is kept
  (temperature, top-p, penalties, boolean switches)
- ``truthy``:  included only for non-empty, non-zero values (model names,
  token limits, URLs)

Comma-separated lists (stop sequences, knowledge) become ``{"values": [...]}``.
An unknown provider yields ``None``.

:meth:`GenerativeProviderConfig.to_runtime` turns the record into the client
library's ``GenerativeConfig.<provider>(...)`` object.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from weaviate.classes.generate import GenerativeConfig

from weaviate_connector.errors import NotSupported, ValidationError
from weaviate_connector.formatting import split_csv

logger = logging.getLogger(__name__)

DEFINED = "defined"
TRUTHY = "truthy"
LIST = "list"

# (option suffix, config key, inclusion rule)
ParamSpec = Tuple[str, str, str]


@dataclass(frozen=True)
class ProviderSpec:
    module: str
    runtime_method: str
    params: Tuple[ParamSpec, ...]
    constants: Mapping[str, Any] = field(default_factory=dict)


_OPENAI_LIKE: Tuple[ParamSpec, ...] = (
    ("Model", "model", TRUTHY),
    ("Temperature", "temperature", DEFINED),
    ("MaxTokens", "maxTokens", TRUTHY),
    ("FrequencyPenalty", "frequencyPenalty", DEFINED),
    ("PresencePenalty", "presencePenalty", DEFINED),
    ("TopP", "topP", DEFINED),
)

PROVIDERS: Dict[str, ProviderSpec] = {
    "openai": ProviderSpec(
        "generative-openai",
        "openai",
        _OPENAI_LIKE
        + (
            ("N", "n", TRUTHY),
            ("Stop", "stop", LIST),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "azureOpenai": ProviderSpec(
        "generative-azure-openai",
        "azure_openai",
        (
            ("Model", "model", TRUTHY),
            ("ResourceName", "resourceName", TRUTHY),
            ("DeploymentId", "deploymentId", TRUTHY),
            ("ApiVersion", "apiVersion", TRUTHY),
            ("BaseURL", "baseURL", TRUTHY),
        )
        + _OPENAI_LIKE[1:],
        constants={"isAzure": True},
    ),
    "anthropic": ProviderSpec(
        "generative-anthropic",
        "anthropic",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("TopK", "topK", TRUTHY),
            ("TopP", "topP", DEFINED),
            ("StopSequences", "stopSequences", LIST),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "cohere": ProviderSpec(
        "generative-cohere",
        "cohere",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("K", "k", TRUTHY),
            ("P", "p", DEFINED),
            ("FrequencyPenalty", "frequencyPenalty", DEFINED),
            ("PresencePenalty", "presencePenalty", DEFINED),
            ("StopSequences", "stopSequences", LIST),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "google": ProviderSpec(
        "generative-google",
        "google",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("TopK", "topK", TRUTHY),
            ("TopP", "topP", DEFINED),
            ("FrequencyPenalty", "frequencyPenalty", DEFINED),
            ("PresencePenalty", "presencePenalty", DEFINED),
            ("StopSequences", "stopSequences", LIST),
            ("ApiEndpoint", "apiEndpoint", TRUTHY),
            ("ProjectId", "projectId", TRUTHY),
            ("EndpointId", "endpointId", TRUTHY),
            ("Region", "region", TRUTHY),
        ),
    ),
    "aws": ProviderSpec(
        "generative-aws",
        "aws",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("Service", "service", TRUTHY),
            ("Region", "region", TRUTHY),
            ("Endpoint", "endpoint", TRUTHY),
            ("TargetModel", "targetModel", TRUTHY),
            ("TargetVariant", "targetVariant", TRUTHY),
        ),
    ),
    "mistral": ProviderSpec(
        "generative-mistral",
        "mistral",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("TopP", "topP", DEFINED),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "anyscale": ProviderSpec(
        "generative-anyscale",
        "anyscale",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "ollama": ProviderSpec(
        "generative-ollama",
        "ollama",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("ApiEndpoint", "apiEndpoint", TRUTHY),
        ),
    ),
    "nvidia": ProviderSpec(
        "generative-nvidia",
        "nvidia",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("TopP", "topP", DEFINED),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "databricks": ProviderSpec(
        "generative-databricks",
        "databricks",
        (
            ("Model", "model", TRUTHY),
            ("Endpoint", "endpoint", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("FrequencyPenalty", "frequencyPenalty", DEFINED),
            ("PresencePenalty", "presencePenalty", DEFINED),
            ("TopP", "topP", DEFINED),
            ("N", "n", TRUTHY),
            ("LogProbs", "logProbs", DEFINED),
            ("TopLogProbs", "topLogProbs", TRUTHY),
            ("Stop", "stop", LIST),
        ),
    ),
    "friendliai": ProviderSpec(
        "generative-friendliai",
        "friendliai",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("TopP", "topP", DEFINED),
            ("N", "n", TRUTHY),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "xai": ProviderSpec(
        "generative-xai",
        "xai",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxTokens", "maxTokens", TRUTHY),
            ("TopP", "topP", DEFINED),
            ("BaseURL", "baseURL", TRUTHY),
        ),
    ),
    "contextualai": ProviderSpec(
        "generative-contextualai",
        "contextualai",
        (
            ("Model", "model", TRUTHY),
            ("Temperature", "temperature", DEFINED),
            ("MaxNewTokens", "maxNewTokens", TRUTHY),
            ("TopP", "topP", DEFINED),
            ("SystemPrompt", "systemPrompt", TRUTHY),
            ("AvoidCommentary", "avoidCommentary", DEFINED),
            ("Knowledge", "knowledge", LIST),
        ),
    ),
}

# Config keys whose snake_case form is not a plain camelCase split.
_RUNTIME_KEYS: Dict[str, str] = {
    "baseURL": "base_url",
    "logProbs": "log_probs",
    "topLogProbs": "top_log_probs",
}


def _snake(key: str) -> str:
    if key in _RUNTIME_KEYS:
        return _RUNTIME_KEYS[key]
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_" + ch.lower())
        else:
            out.append(ch)
    return "".join(out)


@dataclass(frozen=True)
class GenerativeProviderConfig:
    """A provider module name plus the options that were actually supplied."""

    provider: str
    name: str
    config: Dict[str, Any]

    def asdict(self) -> Dict[str, Any]:
        return {"name": self.name, "config": dict(self.config)}

    def to_runtime(self) -> Any:
        """
        Build ``GenerativeConfig.<provider>(...)``.

        Options the installed client does not accept for this provider are
        dropped and logged at debug level. Options the client requires but
        that were not supplied raise ValidationError naming the option.
        """
        spec = PROVIDERS[self.provider]
        factory = getattr(GenerativeConfig, spec.runtime_method, None)
        if factory is None:
            raise NotSupported(
                f"Generative provider '{self.provider}' is not supported by the installed weaviate-client",
                details={"provider": self.provider},
            )

        kwargs: Dict[str, Any] = {}
        for key, value in self.config.items():
            if key in spec.constants:
                continue
            if isinstance(value, Mapping) and "values" in value:
                value = list(value["values"])
            kwargs[_snake(key)] = value

        accepted = _accepted_kwargs(factory)
        if accepted is not None:
            dropped = sorted(set(kwargs) - accepted)
            if dropped:
                logger.debug(
                    "Dropping options not accepted by GenerativeConfig.%s: %s",
                    spec.runtime_method,
                    dropped,
                )
            kwargs = {k: v for k, v in kwargs.items() if k in accepted}

        missing = sorted(_required_kwargs(factory) - set(kwargs))
        if missing:
            options = {_snake(key): f"{self.provider}{suffix}" for suffix, key, _ in spec.params}
            names = [options.get(m, m) for m in missing]
            raise ValidationError(
                f"Generative provider '{self.provider}' requires: {', '.join(names)}",
                details={"provider": self.provider, "missing": names},
            )
        try:
            return factory(**kwargs)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                f"Invalid options for generative provider '{self.provider}': {exc}",
                details={"provider": self.provider},
            ) from exc


def _accepted_kwargs(func: Any) -> Optional[set]:
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values()):
        return None
    return set(sig.parameters)


def _required_kwargs(func: Any) -> set:
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return set()
    return {
        name
        for name, p in sig.parameters.items()
        if p.default is inspect.Parameter.empty
        and p.kind in (inspect.Parameter.KEYWORD_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    }


def _include(rule: str, value: Any) -> bool:
    if rule == DEFINED:
        return value is not None and value != ""
    return bool(value)


def build_generative_config(
    provider: str,
    options: Mapping[str, Any],
) -> Optional[GenerativeProviderConfig]:
    spec = PROVIDERS.get(provider)
    if spec is None:
        return None

    config: Dict[str, Any] = dict(spec.constants)
    for suffix, key, rule in spec.params:
        value = options.get(f"{provider}{suffix}")
        if not _include(rule, value):
            continue
        if rule == LIST:
            config[key] = {"values": split_csv(value)}
        else:
            config[key] = value
    return GenerativeProviderConfig(provider=provider, name=spec.module, config=config)


__all__ = [
    "PROVIDERS",
    "ProviderSpec",
    "GenerativeProviderConfig",
    "build_generative_config",
]
