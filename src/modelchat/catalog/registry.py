"""The fixed model catalog.

Hides how models are grouped per provider and how (provider, id) pairs
are resolved. The catalog is validated once, when it is built.
"""

from collections.abc import Callable, Iterable, Iterator

from ..errors import CatalogError
from .models import Model, Provider, ProviderStatus

DEFAULT_MODEL = Model(provider=Provider.OPENAI, id="gpt-4o", name="GPT-4o (OpenAI)")

DEFAULT_MODELS: tuple[Model, ...] = (
    DEFAULT_MODEL,
    Model(provider=Provider.OPENAI, id="gpt-4o-mini", name="GPT-4o Mini (OpenAI)"),
    Model(provider=Provider.OPENAI, id="gpt-3.5-turbo", name="GPT-3.5 Turbo (OpenAI)"),
    Model(provider=Provider.OPENAI, id="o1", name="O1 - Reasoning (OpenAI)", reasoning=True),
    Model(provider=Provider.OPENAI, id="o1-mini", name="O1 Mini - Reasoning (OpenAI)", reasoning=True),
    Model(
        provider=Provider.OPENAI,
        id="o1-preview",
        name="O1 Preview - Reasoning (OpenAI)",
        reasoning=True,
    ),
    Model(
        provider=Provider.ANTHROPIC,
        id="claude-3-7-sonnet-20250219",
        name="Claude 3.7 Sonnet (Anthropic)",
        reasoning=True,
    ),
    Model(
        provider=Provider.ANTHROPIC,
        id="claude-3-5-sonnet-20240620",
        name="Claude 3.5 Sonnet (Anthropic)",
    ),
    Model(provider=Provider.ANTHROPIC, id="claude-3-haiku-20240307", name="Claude 3 Haiku (Anthropic)"),
    Model(provider=Provider.ANTHROPIC, id="claude-3-opus-20240229", name="Claude 3 Opus (Anthropic)"),
)


class ModelCatalog:
    """Immutable, validated list of models grouped by provider.

    Validation rules:
    - the catalog is not empty
    - no two entries share a (provider, id) pair
    - every provider has at least one model
    - the default model is part of the catalog
    """

    def __init__(self, models: Iterable[Model], default: Model | None = None):
        self._models: tuple[Model, ...] = tuple(models)
        if not self._models:
            raise CatalogError("Model catalog is empty")

        self._by_key: dict[str, Model] = {}
        for model in self._models:
            if model.key in self._by_key:
                raise CatalogError(f"Duplicate model in catalog: {model.key}")
            self._by_key[model.key] = model

        self._by_provider: dict[Provider, tuple[Model, ...]] = {
            provider: tuple(m for m in self._models if m.provider == provider)
            for provider in Provider
        }
        missing = [p.value for p, models in self._by_provider.items() if not models]
        if missing:
            raise CatalogError(f"No models configured for provider(s): {', '.join(missing)}")

        self._default = default or self._models[0]
        if self._default.key not in self._by_key:
            raise CatalogError(f"Default model {self._default.key} is not in the catalog")

    @property
    def default(self) -> Model:
        """The model selected when the store is initialized."""
        return self._default

    @property
    def models(self) -> tuple[Model, ...]:
        return self._models

    def __iter__(self) -> Iterator[Model]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, model: object) -> bool:
        return isinstance(model, Model) and self._by_key.get(model.key) == model

    def resolve(self, provider: Provider | str, model_id: str) -> Model | None:
        """Look up a model by provider and id.

        Returns:
            The catalog entry, or None if the pair is unknown
        """
        try:
            provider_enum = Provider(provider)
        except ValueError:
            return None
        return self._by_key.get(f"{provider_enum.value}:{model_id}")

    def models_for(self, provider: Provider | str) -> tuple[Model, ...]:
        """All models served by a provider, in catalog order."""
        return self._by_provider[Provider(provider)]

    def by_provider(self) -> dict[Provider, tuple[Model, ...]]:
        """Mapping of provider to its model list."""
        return dict(self._by_provider)

    def display_name(self, provider: Provider | str, model_id: str) -> str:
        """Display name of a model, falling back to the raw id."""
        model = self.resolve(provider, model_id)
        return model.name if model else model_id

    def provider_statuses(self, has_credential: Callable[[Provider], bool]) -> list[ProviderStatus]:
        """Report each provider's configuration status and model ids.

        Args:
            has_credential: Predicate telling whether a provider has an API key

        Returns:
            One ProviderStatus per provider, in enumeration order
        """
        return [
            ProviderStatus(
                id=provider,
                name=provider.display_name,
                status="configured" if has_credential(provider) else "not_configured",
                models=[m.id for m in models],
            )
            for provider, models in self._by_provider.items()
        ]


def default_catalog() -> ModelCatalog:
    """Build the catalog shipped with the application."""
    return ModelCatalog(DEFAULT_MODELS, default=DEFAULT_MODEL)
